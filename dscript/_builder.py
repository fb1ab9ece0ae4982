import re
import typing

from lark import Token, Transformer, Tree
from lark.visitors import v_args

from ._lexical import position_at
from .ast import (
    Arg,
    Assignment,
    BinaryOp,
    BinaryOperator,
    Expression,
    FunctionCall,
    Identifier,
    IntegerLiteral,
    Parenthesized,
    ProbeDef,
    ProbeSpec,
    Script,
    SourceSpan,
    StringLiteral,
    Tuple,
)
from .exceptions import DscriptSyntaxError

# Characters permitted within a single probe spec component, wildcards included.
_SPEC_ID = r"[A-Za-z0-9_*+\\?!\[\]]+"

# Probe spec forms in the order they are attempted. Shorter forms are prefixes of longer ones so the
# four part form must be tried first. Only the single part form requires its component.
_SPEC_FORMS = (
    re.compile(":".join([f"({_SPEC_ID})?"] * 4)),
    re.compile(":".join([f"({_SPEC_ID})?"] * 3)),
    re.compile(":".join([f"({_SPEC_ID})?"] * 2)),
    re.compile(f"({_SPEC_ID})"),
)


def split_probe_spec(spec: str) -> typing.Optional[tuple[typing.Optional[str], ...]]:
    """
    Split a probe spec into its components. Empty components are returned as None. Returns None if
    spec matches none of the permitted forms.
    """
    for form in _SPEC_FORMS:
        match = form.fullmatch(spec)
        if match is not None:
            return match.groups()
    return None


def build_binary_tree(operands: list[Expression], operators: list[BinaryOperator]) -> Expression:
    """
    Combine a flat sequence of operands separated by operators into a tree respecting operator
    precedence. Operators within a tier are left-associative.
    """
    assert len(operands) == len(operators) + 1
    next_operator = 0

    def climb(lhs: Expression, min_tier: int) -> Expression:
        nonlocal next_operator
        while next_operator < len(operators) and operators[next_operator].tier >= min_tier:
            op = operators[next_operator]
            next_operator += 1
            rhs = operands[next_operator]

            # Anything binding more tightly than op becomes its right hand side.
            while next_operator < len(operators) and operators[next_operator].tier > op.tier:
                rhs = climb(rhs, op.tier + 1)

            lhs = BinaryOp(op, lhs, rhs, span=_join_spans(lhs.span, rhs.span))
        return lhs

    return climb(operands[0], 1)


def _join_spans(
    first: typing.Optional[SourceSpan], last: typing.Optional[SourceSpan]
) -> typing.Optional[SourceSpan]:
    if first is None or last is None:
        return None
    return SourceSpan(
        line=first.line, column=first.column, end_line=last.end_line, end_column=last.end_column
    )


def _tree_span(tree: Tree) -> typing.Optional[SourceSpan]:
    meta = tree.meta
    if meta.empty:
        return None
    return SourceSpan(
        line=meta.line, column=meta.column, end_line=meta.end_line, end_column=meta.end_column
    )


def _token_span(token: Token) -> SourceSpan:
    return SourceSpan(
        line=token.line, column=token.column, end_line=token.end_line, end_column=token.end_column
    )


@v_args(tree=True)
class AstBuilder(Transformer):
    """
    Transformer which converts the parse tree for a script into AST nodes.
    """

    # Source text which was parsed. Used to report positions of errors found while building.
    _source: str

    def __init__(self, source: str):
        super().__init__()
        self._source = source

    def script(self, tree: Tree):
        return Script(tuple(tree.children), span=_tree_span(tree))

    def probe_def(self, tree: Tree):
        spec_token, *predicate, body = tree.children
        return ProbeDef(
            self._probe_spec(spec_token),
            predicate[0] if len(predicate) > 0 else None,
            body,
            span=_tree_span(tree),
        )

    def _probe_spec(self, token: Token) -> ProbeSpec:
        parts = split_probe_spec(str(token))
        if parts is None:
            raise DscriptSyntaxError(
                f"Malformed probe spec {str(token)!r}: at most four colon-separated parts are "
                "allowed",
                position=position_at(self._source, token.start_pos),
                rule="probe_spec",
            )
        return ProbeSpec(parts, span=_token_span(token))

    def predicate(self, tree: Tree):
        return tree.children[0]

    def body(self, tree: Tree):
        return tuple(tree.children)

    def assignment(self, tree: Tree):
        target_token, value = tree.children
        return Assignment(
            Identifier(str(target_token), span=_token_span(target_token)),
            value,
            span=_tree_span(tree),
        )

    def fn_call(self, tree: Tree):
        name_token, *args = tree.children
        return FunctionCall(
            str(name_token), tuple(self._argument(arg) for arg in args), span=_tree_span(tree)
        )

    def _argument(self, arg: Arg) -> Arg:
        # A single parenthesized value in argument position is a one element tuple.
        if isinstance(arg, Parenthesized) and isinstance(
            arg.expression, (Identifier, IntegerLiteral, StringLiteral)
        ):
            return Tuple((arg.expression,), span=arg.span)
        return arg

    def value_tuple(self, tree: Tree):
        return Tuple(tuple(tree.children), span=_tree_span(tree))

    def expression(self, tree: Tree):
        operands = tree.children[0::2]
        operators = [BinaryOperator(str(token)) for token in tree.children[1::2]]
        return build_binary_tree(operands, operators)

    def parenthesized(self, tree: Tree):
        return Parenthesized(tree.children[0], span=_tree_span(tree))

    def identifier(self, tree: Tree):
        return Identifier(str(tree.children[0]), span=_tree_span(tree))

    def integer(self, tree: Tree):
        token = tree.children[0]
        match token.type:
            case "HEX_LITERAL":
                value, base = int(token[2:], base=16), 16
            case "BINARY_LITERAL":
                value, base = int(token[2:], base=2), 2
            case "OCTAL_LITERAL":
                value, base = int(token[1:], base=8), 8
            case "DECIMAL_LITERAL":
                value, base = int(token, base=10), 10
            case _:  # pragma: no cover
                raise DscriptSyntaxError(f"Unexpected literal type: {token.type}")
        return IntegerLiteral(value, base, span=_tree_span(tree))

    def string(self, tree: Tree):
        token = tree.children[0]
        return StringLiteral(token[1:-1], span=_tree_span(tree))
