import typing

from .ast import SourcePosition

__all__ = ["DscriptError", "DscriptLexicalError", "DscriptSyntaxError"]


class DscriptError(RuntimeError):
    """
    Base class for all errors raised when parsing a script.

    position is where parsing stopped, rule names the grammar rule(s) being matched at that point
    and expected is the set of token names which would have allowed the parse to continue. Any of
    these may be unknown.
    """

    def __init__(
        self,
        message: str,
        *,
        position: typing.Optional[SourcePosition] = None,
        rule: typing.Optional[str] = None,
        expected: typing.Optional[typing.Iterable[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.position = position
        self.rule = rule
        self.expected = frozenset(expected) if expected is not None else frozenset()

    def __str__(self):
        text = self.message
        if self.position is not None:
            text += f" at line {self.position.line}, column {self.position.column}"
        if len(self.expected) > 0:
            text += f" (expected one of: {', '.join(sorted(self.expected))})"
        return text


class DscriptLexicalError(DscriptError):
    """
    Raised for text which cannot be split into tokens: a character outside the language's
    alphabet, an unterminated string literal or an unterminated block comment.
    """


class DscriptSyntaxError(DscriptError):
    """
    Raised when the tokens do not match the grammar. The __cause__ attribute will be the underlying
    lark parser exception, if there was one.
    """
