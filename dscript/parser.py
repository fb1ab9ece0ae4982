"""
Parser for dscript probe definitions.
"""
import typing
from functools import cache

import structlog
from lark import Lark, Tree
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, VisitError

from ._builder import AstBuilder
from ._lexical import position_at, strip_comments
from .ast import Expression, Script
from .exceptions import DscriptSyntaxError

__all__ = ["parse_script", "parse_expression"]

LOG = structlog.get_logger()


@cache
def _load_parser() -> Lark:
    # The Earley parser is needed since "/" both delimits predicates and divides. Only the tokens
    # which follow the predicate can tell the two apart.
    return Lark.open_from_package(
        __package__,
        "grammar.lark",
        propagate_positions=True,
        parser="earley",
        lexer="dynamic",
        start=["script", "expression"],
    )


def parse_script(source: str) -> Script:
    """
    Parse the text of a script into a Script.

    Raises DscriptLexicalError or DscriptSyntaxError describing the first problem found. No partial
    result is returned.
    """
    LOG.debug("parsing script", length=len(source))
    script = _build(source, _parse(source, start="script"))
    LOG.debug("parsed script", probe_count=len(script.probes))
    return script


def parse_expression(source: str) -> Expression:
    """
    Parse a single expression such as a probe predicate without its enclosing slashes.
    """
    return _build(source, _parse(source, start="expression"))


def _parse(source: str, *, start: str) -> Tree:
    text = strip_comments(source)
    try:
        return _load_parser().parse(text, start=start)
    except UnexpectedInput as lark_exception:
        raise _syntax_error(source, lark_exception) from lark_exception


def _build(source: str, tree: Tree) -> typing.Any:
    try:
        return AstBuilder(source).transform(tree)
    except VisitError as e:
        raise e.orig_exc from e


def _syntax_error(source: str, lark_exception: UnexpectedInput) -> DscriptSyntaxError:
    match lark_exception:
        case UnexpectedEOF():
            index = len(source)
            message = "Unexpected end of input"
            expected = lark_exception.expected
        case UnexpectedCharacters():
            index = lark_exception.pos_in_stream
            message = f"Unexpected {source[index]!r}"
            expected = lark_exception.allowed
        case _:
            index = lark_exception.pos_in_stream
            if index is None or index < 0:
                index = len(source)
            message = "Unexpected input"
            expected = getattr(lark_exception, "expected", None)

    return DscriptSyntaxError(
        message,
        position=position_at(source, index),
        rule=_rules_being_matched(lark_exception),
        expected=expected,
    )


def _rules_being_matched(lark_exception: UnexpectedInput) -> typing.Optional[str]:
    # The Earley parser records the (rule, progress) pairs which were waiting on a token.
    names = set()
    for state_item in lark_exception.state or ():
        if isinstance(state_item, tuple):
            rule, _ = state_item
            names.add(rule.origin.name)
    names = {name for name in names if not name.startswith("_")}
    if len(names) == 0:
        return None
    return " | ".join(sorted(names))
