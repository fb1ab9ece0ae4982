"""
Render AST nodes as text.

format_script and format_expression produce dscript source which parses back to an equal tree. dump
produces an indented outline of the tree for inspection.
"""
from .ast import (
    Assignment,
    BinaryOp,
    Expression,
    FunctionCall,
    Identifier,
    IntegerLiteral,
    Node,
    NodeVisitor,
    Parenthesized,
    ProbeDef,
    ProbeSpec,
    Script,
    StringLiteral,
    Tuple,
)

__all__ = ["format_script", "format_expression", "dump"]

_INDENT = "    "


class _SourceFormatter(NodeVisitor):
    def visit_Script(self, node: Script) -> str:
        return "\n".join(self.visit(probe) for probe in node.probes)

    def visit_ProbeDef(self, node: ProbeDef) -> str:
        header = self.visit(node.spec)
        if node.predicate is not None:
            header += f" / {self.visit(node.predicate)} /"
        lines = [header + " {"]
        lines.extend(f"{_INDENT}{self.visit(statement)};" for statement in node.body)
        lines.append("}")
        return "\n".join(lines) + "\n"

    def visit_ProbeSpec(self, node: ProbeSpec) -> str:
        return str(node)

    def visit_Assignment(self, node: Assignment) -> str:
        return f"{node.target.name} = {self.visit(node.value)}"

    def visit_FunctionCall(self, node: FunctionCall) -> str:
        return f"{node.name}({', '.join(self.visit(arg) for arg in node.args)})"

    def visit_Tuple(self, node: Tuple) -> str:
        return f"({', '.join(self.visit(value) for value in node.values)})"

    def visit_BinaryOp(self, node: BinaryOp) -> str:
        left = self.visit(node.left)
        right = self.visit(node.right)

        # Trees built by hand may lack the Parenthesized nodes needed to keep their shape.
        if isinstance(node.left, BinaryOp) and node.left.op.tier < node.op.tier:
            left = f"({left})"
        if isinstance(node.right, BinaryOp) and node.right.op.tier <= node.op.tier:
            right = f"({right})"

        return f"{left} {node.op} {right}"

    def visit_Parenthesized(self, node: Parenthesized) -> str:
        return f"({self.visit(node.expression)})"

    def visit_Identifier(self, node: Identifier) -> str:
        return node.name

    def visit_IntegerLiteral(self, node: IntegerLiteral) -> str:
        match node.base:
            case 16:
                return f"0x{node.value:X}"
            case 8:
                return f"0{node.value:o}"
            case 2:
                return f"0b{node.value:b}"
            case _:
                return str(node.value)

    def visit_StringLiteral(self, node: StringLiteral) -> str:
        return f'"{node.value}"'

    def generic_visit(self, node: Node):
        raise TypeError(f"Cannot format node of type {type(node).__name__}")


def format_script(script: Script) -> str:
    return _SourceFormatter().visit(script)


def format_expression(expression: Expression) -> str:
    return _SourceFormatter().visit(expression)


class _Dumper(NodeVisitor):
    def __init__(self):
        self.lines: list[str] = []
        self._depth = 0

    def generic_visit(self, node: Node):
        self.lines.append(f"{_INDENT * self._depth}{type(node).__name__}{_describe(node)}")
        self._depth += 1
        super().generic_visit(node)
        self._depth -= 1


def _describe(node: Node) -> str:
    match node:
        case ProbeSpec():
            return f" {node}"
        case ProbeDef(predicate=None):
            return " (unconditional)"
        case BinaryOp():
            return f" {node.op}"
        case FunctionCall():
            return f" {node.name}"
        case Identifier():
            return f" {node.name}"
        case IntegerLiteral():
            return f" {node.value} (base {node.base})"
        case StringLiteral():
            return f" {node.value!r}"
        case _:
            return ""


def dump(node: Node) -> str:
    """
    Return an indented outline of node and its descendants, one node per line.
    """
    dumper = _Dumper()
    dumper.visit(node)
    return "\n".join(dumper.lines)
