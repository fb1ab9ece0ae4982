"""
Abstract syntax tree for dscript probe definitions.

Nodes are immutable. Every node may carry the span of source text it was parsed from. Spans take no
part in equality so that trees parsed from differently laid out text compare equal.
"""
import dataclasses
import enum
import typing

__all__ = [
    "SourcePosition",
    "SourceSpan",
    "Node",
    "Identifier",
    "IntegerLiteral",
    "StringLiteral",
    "BinaryOperator",
    "BinaryOp",
    "Parenthesized",
    "FunctionCall",
    "Tuple",
    "Assignment",
    "ProbeSpec",
    "ProbeDef",
    "Script",
    "Value",
    "Expression",
    "Arg",
    "Statement",
    "iter_child_nodes",
    "NodeVisitor",
]


@dataclasses.dataclass(frozen=True)
class SourcePosition:
    # Offset in bytes from the start of the UTF-8 encoded source.
    offset: int

    # 1-based line and column.
    line: int
    column: int


@dataclasses.dataclass(frozen=True)
class SourceSpan:
    line: int
    column: int
    end_line: int
    end_column: int


@dataclasses.dataclass(frozen=True)
class Node:
    span: typing.Optional[SourceSpan] = dataclasses.field(
        default=None, compare=False, repr=False, kw_only=True
    )


# Values


@dataclasses.dataclass(frozen=True)
class Identifier(Node):
    name: str


@dataclasses.dataclass(frozen=True)
class IntegerLiteral(Node):
    value: int

    # Base the literal was written in: one of 2, 8, 10 or 16.
    base: int = 10


@dataclasses.dataclass(frozen=True)
class StringLiteral(Node):
    # Text between the quotes, verbatim. No escape sequences are processed.
    value: str


# Expressions


class BinaryOperator(enum.Enum):
    AND = "&&"
    OR = "||"
    EQ = "=="
    NE = "!="
    GE = ">="
    GT = ">"
    LE = "<="
    LT = "<"
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    MODULO = "%"

    @property
    def tier(self) -> int:
        """
        Precedence tier of the operator. Operators in higher tiers bind more tightly.
        """
        return _OPERATOR_TIERS[self]

    def __str__(self):
        return self.value


# Precedence tiers, lowest to highest: logical, relational, additive, multiplicative.
_OPERATOR_TIERS = {
    BinaryOperator.AND: 1,
    BinaryOperator.OR: 1,
    BinaryOperator.EQ: 2,
    BinaryOperator.NE: 2,
    BinaryOperator.GE: 2,
    BinaryOperator.GT: 2,
    BinaryOperator.LE: 2,
    BinaryOperator.LT: 2,
    BinaryOperator.ADD: 3,
    BinaryOperator.SUBTRACT: 3,
    BinaryOperator.MULTIPLY: 4,
    BinaryOperator.DIVIDE: 4,
    BinaryOperator.MODULO: 4,
}


@dataclasses.dataclass(frozen=True)
class BinaryOp(Node):
    op: BinaryOperator
    left: "Expression"
    right: "Expression"


@dataclasses.dataclass(frozen=True)
class Parenthesized(Node):
    expression: "Expression"


@dataclasses.dataclass(frozen=True)
class Tuple(Node):
    """
    A fixed group of values passed to a function as a single argument, e.g. ``(arg0, arg1)``.
    """

    values: tuple["Value", ...]

    def __post_init__(self):
        if len(self.values) == 0:
            raise ValueError("Tuples must contain at least one value")


@dataclasses.dataclass(frozen=True)
class FunctionCall(Node):
    name: str
    args: tuple["Arg", ...] = ()


# Statements


@dataclasses.dataclass(frozen=True)
class Assignment(Node):
    target: Identifier
    value: "Expression"


# Probes


@dataclasses.dataclass(frozen=True)
class ProbeSpec(Node):
    """
    Event specification of a probe: up to four colon-separated components naming, from coarse to
    fine, the provider, package, event and mode. A component of None was left empty in the source
    and matches anything.
    """

    parts: tuple[typing.Optional[str], ...]

    def __post_init__(self):
        if not 1 <= len(self.parts) <= 4:
            raise ValueError(f"Probe specs have between 1 and 4 parts, not {len(self.parts)}")

    def _part(self, index: int) -> typing.Optional[str]:
        return self.parts[index] if index < len(self.parts) else None

    @property
    def provider(self) -> typing.Optional[str]:
        return self._part(0)

    @property
    def package(self) -> typing.Optional[str]:
        return self._part(1)

    @property
    def event(self) -> typing.Optional[str]:
        return self._part(2)

    @property
    def mode(self) -> typing.Optional[str]:
        return self._part(3)

    @property
    def pattern(self) -> str:
        """
        All four components joined with colons, with "*" in place of any that are missing.
        """
        parts = [self._part(index) for index in range(4)]
        return ":".join(part if part is not None else "*" for part in parts)

    def __str__(self):
        return ":".join(part if part is not None else "" for part in self.parts)


@dataclasses.dataclass(frozen=True)
class ProbeDef(Node):
    spec: ProbeSpec

    # Guard expression. None means the probe always fires.
    predicate: typing.Optional["Expression"]

    body: tuple["Statement", ...]

    def __post_init__(self):
        if len(self.body) == 0:
            raise ValueError("Probe bodies must contain at least one statement")

    @property
    def is_unconditional(self) -> bool:
        return self.predicate is None


@dataclasses.dataclass(frozen=True)
class Script(Node):
    # Probe definitions in the order they appear in the source.
    probes: tuple[ProbeDef, ...]


Value = typing.Union[Identifier, IntegerLiteral, StringLiteral]
Expression = typing.Union[BinaryOp, FunctionCall, Parenthesized, Value]
Arg = typing.Union[Tuple, Expression]
Statement = typing.Union[FunctionCall, Assignment]


def iter_child_nodes(node: Node) -> typing.Iterator[Node]:
    """
    Yield the direct children of node in field order.
    """
    for field in dataclasses.fields(node):
        if field.name == "span":
            continue
        value = getattr(node, field.name)
        if isinstance(value, Node):
            yield value
        elif isinstance(value, tuple):
            yield from (item for item in value if isinstance(item, Node))


class NodeVisitor:
    """
    Walks a tree calling a visit_<class name> method for each node, for example visit_BinaryOp.
    Nodes without a matching method are passed to generic_visit which visits their children.
    """

    def visit(self, node: Node):
        visitor = getattr(self, f"visit_{type(node).__name__}", self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: Node):
        for child in iter_child_nodes(node):
            self.visit(child)
