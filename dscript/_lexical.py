"""
Lexical pass run before the grammar.

Comments are replaced by spaces, keeping newlines, so that line and column numbers reported by the
parser still refer to the original text. Characters which no token can contain are rejected here,
as are unterminated string literals and block comments.
"""
import string

import structlog

from .ast import SourcePosition
from .exceptions import DscriptLexicalError

LOG = structlog.get_logger()

# Every character which may appear outside of string literals and comments.
_ALPHABET = frozenset(string.ascii_letters + string.digits + "_*+\\?![]:/{}(),;=<>&|%- \t\r\n")

_BYTE_ORDER_MARK = "\ufeff"


def position_at(text: str, index: int) -> SourcePosition:
    """
    Return the position of the character at index within text.
    """
    line_start = text.rfind("\n", 0, index) + 1
    return SourcePosition(
        offset=len(text[:index].encode("utf-8")),
        line=text.count("\n", 0, index) + 1,
        column=index - line_start + 1,
    )


def strip_comments(text: str) -> str:
    """
    Return text with all comments blanked out. Raises DscriptLexicalError if the text contains
    something which cannot be tokenised.
    """
    chars = list(text)
    index = 0
    if text.startswith(_BYTE_ORDER_MARK):
        # Editors may save files with a leading byte order mark. It counts as whitespace.
        chars[0] = " "
        index = 1
    comment_count = 0
    while index < len(text):
        if text[index] == '"':
            end = text.find('"', index + 1)
            if end < 0:
                raise DscriptLexicalError(
                    "Unterminated string literal",
                    position=position_at(text, len(text)),
                    rule="STRING_LITERAL",
                    expected={'"'},
                )
            index = end + 1
        elif text.startswith("//", index):
            end = text.find("\n", index)
            end = len(text) if end < 0 else end
            _blank(chars, index, end)
            comment_count += 1
            index = end
        elif text.startswith("/*", index):
            end = _block_comment_end(text, index)
            _blank(chars, index, end)
            comment_count += 1
            index = end
        elif text[index] not in _ALPHABET:
            raise DscriptLexicalError(
                f"Invalid character {text[index]!r}",
                position=position_at(text, index),
                rule="token",
            )
        else:
            index += 1

    LOG.debug("lexical pass complete", length=len(text), comment_count=comment_count)
    return "".join(chars)


def _block_comment_end(text: str, start: int) -> int:
    """
    Return the index just past the "*/" closing the block comment opened at start. Block comments
    nest so each "/*" within the comment needs its own "*/".
    """
    depth = 0
    index = start
    while index < len(text):
        if text.startswith("/*", index):
            depth += 1
            index += 2
        elif text.startswith("*/", index):
            depth -= 1
            index += 2
            if depth == 0:
                return index
        else:
            index += 1

    opened_at = position_at(text, start)
    raise DscriptLexicalError(
        f"Unterminated block comment opened at line {opened_at.line}, column {opened_at.column}",
        position=position_at(text, len(text)),
        rule="COMMENT",
        expected={"*/"},
    )


def _blank(chars: list[str], start: int, end: int):
    for index in range(start, end):
        if chars[index] != "\n":
            chars[index] = " "
