"""
Pygments lexer for highlighting dscript source.
"""
from pygments.lexer import RegexLexer, bygroups
from pygments.token import (
    Comment,
    Name,
    Number,
    Operator,
    Punctuation,
    String,
    Text,
    Whitespace,
)

__all__ = ["DscriptLexer"]


class DscriptLexer(RegexLexer):
    name = "dscript"
    aliases = ["dscript"]
    filenames = ["*.d"]

    tokens = {
        "root": [
            (r"\s+", Whitespace),
            (r"//.*?$", Comment.Single),
            (r"/\*", Comment.Multiline, "comment"),
            (r'"[^"]*"', String.Double),
            # A probe spec always contains at least one colon.
            (r"[A-Za-z0-9_*+\\?!\[\]]*(?::[A-Za-z0-9_*+\\?!\[\]]*)+", Name.Namespace),
            (r"0x[0-9A-Fa-f]+", Number.Hex),
            (r"0b[01]+", Number.Bin),
            (r"0[0-7]+", Number.Oct),
            (r"[0-9]+", Number.Integer),
            (r"([A-Za-z_][A-Za-z0-9_]*)(\s*)(?=\()", bygroups(Name.Function, Whitespace)),
            (r"[A-Za-z_][A-Za-z0-9_]*", Name.Variable),
            (r"&&|\|\||==|!=|>=|<=|[<>+\-*/%=]", Operator),
            (r"[(){},;]", Punctuation),
            (r".", Text),
        ],
        "comment": [
            (r"[^*/]+", Comment.Multiline),
            (r"/\*", Comment.Multiline, "#push"),
            (r"\*/", Comment.Multiline, "#pop"),
            (r"[*/]", Comment.Multiline),
        ],
    }
