import pytest
from lark.exceptions import UnexpectedInput

from dscript.ast import (
    Assignment,
    BinaryOp,
    BinaryOperator,
    FunctionCall,
    Identifier,
    IntegerLiteral,
    ProbeDef,
    ProbeSpec,
    Script,
    StringLiteral,
    Tuple,
)
from dscript.exceptions import DscriptError, DscriptLexicalError, DscriptSyntaxError
from dscript.parser import parse_script


def test_synchronous_fault():
    script = parse_script(
        "wasm:ic0:call_perform:alt { new_target_fn_name = inject_synchronous_fault; }"
    )
    assert script == Script(
        (
            ProbeDef(
                ProbeSpec(("wasm", "ic0", "call_perform", "alt")),
                None,
                (
                    Assignment(
                        Identifier("new_target_fn_name"), Identifier("inject_synchronous_fault")
                    ),
                ),
            ),
        )
    )
    assert script.probes[0].is_unconditional


def test_predicate_with_function_calls():
    script = parse_script(
        'wasm::call:alt / strpaircmp((arg0, arg1), "bookings") && '
        'strpaircmp((arg2, arg3), "record") / { new_target_fn_name = "redirect"; }'
    )
    (probe,) = script.probes
    assert not probe.is_unconditional
    assert probe.predicate == BinaryOp(
        BinaryOperator.AND,
        FunctionCall(
            "strpaircmp",
            (Tuple((Identifier("arg0"), Identifier("arg1"))), StringLiteral("bookings")),
        ),
        FunctionCall(
            "strpaircmp", (Tuple((Identifier("arg2"), Identifier("arg3"))), StringLiteral("record"))
        ),
    )


def test_empty_body():
    with pytest.raises(DscriptSyntaxError) as exc_info:
        parse_script("name {}")
    assert exc_info.value.position.column == 7
    assert "ID" in exc_info.value.expected


def test_unterminated_string():
    with pytest.raises(DscriptLexicalError) as exc_info:
        parse_script('"abc')
    assert exc_info.value.position.offset == 4


@pytest.mark.parametrize(
    "script",
    [
        "wasm:bytecode:br:before / i / { x = 1; }",
        'wasm:bytecode:br:before / "i" <= 1 / { x = 1; }',
        "wasm:bytecode:br:before / i54 < r77 / { x = 1; }",
        "wasm:bytecode:br:before / i != 7 / { x = 1; }",
        'wasm:bytecode:br:before / (i == "1") && (b == "2") / { x = 1; }',
        'wasm:bytecode:br:before / i == "1" && b == "2" / { x = 1; }',
        "wasm:bytecode:br:before / i == (1 + 3) / { count = 0; }",
        "wasm:bytecode:br:before/i/{x=1;}",
        "wasm:::alt / (i == \"1\") && (b == \"2\") / { i = 0; }",
    ],
)
def test_valid_predicates(script: str):
    (probe,) = parse_script(script).probes
    assert probe.predicate is not None


def test_division_inside_predicate():
    (probe,) = parse_script("wasm::call:alt / a / b / { x = 1; }").probes
    assert probe.predicate == BinaryOp(BinaryOperator.DIVIDE, Identifier("a"), Identifier("b"))


def test_division_chain_inside_predicate():
    (probe,) = parse_script("wasm::call:alt / a / b / c / { x = 1; }").probes
    assert probe.predicate == BinaryOp(
        BinaryOperator.DIVIDE,
        BinaryOp(BinaryOperator.DIVIDE, Identifier("a"), Identifier("b")),
        Identifier("c"),
    )


@pytest.mark.parametrize(
    "script",
    [
        # Empty predicate
        "wasm:bytecode:call:alt / / { x = 1; }",
        "wasm:bytecode:call:alt / 5i < r77 / { x = 1; }",
        'wasm:bytecode:call:alt / i == """" / { x = 1; }',
        # Unclosed predicate
        "wasm:bytecode:call:alt / i == 1 { x = 1; }",
        # Bad statement
        "wasm:bytecode:call:alt / i == 1 / { i; }",
        # Multiple specs per probe are not supported.
        "wasm::call:alt, wasm::call:before { x = 1; }",
        # Negation is not supported.
        "wasm::call:alt / !(i == 1) / { x = 1; }",
        # No probes at all.
        "",
        "   \n  ",
        "// just a comment",
    ],
)
def test_invalid_scripts(script: str):
    with pytest.raises(DscriptError):
        parse_script(script)


def test_probe_order_is_kept():
    script = parse_script(
        """
        BEGIN { start(); }
        wasm:bytecode:br:before / i > 0 / { count = count + 1; }
        wasm:bytecode:br:before { other = 1; }
        END { report(count); }
        """
    )
    assert [str(probe.spec) for probe in script.probes] == [
        "BEGIN",
        "wasm:bytecode:br:before",
        "wasm:bytecode:br:before",
        "END",
    ]
    assert [probe.is_unconditional for probe in script.probes] == [True, False, True, True]


def test_script_files(scripts_dir):
    paths = sorted(scripts_dir.glob("**/*.d"))
    assert len(paths) > 0
    for path in paths:
        script = parse_script(path.read_text(encoding="utf-8"))
        assert len(script.probes) > 0


def test_asynchronous_fault_file(scripts_dir):
    script = parse_script((scripts_dir / "fault_injection" / "async_fault.d").read_text())
    (probe,) = script.probes
    assert probe.spec.parts == ("wasm", None, "call", "alt")
    assert probe.body == (
        Assignment(Identifier("new_target_fn_name"), StringLiteral("redirect_to_fault_injector")),
    )

    # Five conditions joined by && form a left-leaning chain.
    conditions = []
    node = probe.predicate
    while isinstance(node, BinaryOp) and node.op == BinaryOperator.AND:
        conditions.append(node.right)
        node = node.left
    conditions.append(node)
    conditions.reverse()
    assert len(conditions) == 5
    assert conditions[0] == BinaryOp(
        BinaryOperator.EQ, Identifier("target_fn_type"), StringLiteral("import")
    )
    assert [c.name for c in conditions[3:]] == ["strpaircmp", "strpaircmp"]


def test_monitor_file(scripts_dir):
    script = parse_script((scripts_dir / "monitors" / "branch_count.d").read_text())
    assert [probe.spec.pattern for probe in script.probes] == [
        "wasm:bytecode:br_if:before",
        "END:*:*:*",
        "wasm:bytecode:call:after",
    ]
    trace_call = script.probes[2].body[0]
    assert trace_call == FunctionCall(
        "trace", (StringLiteral("call"), Tuple((Identifier("fn_id"), Identifier("pc"))))
    )
    assert script.probes[2].predicate.right.right == IntegerLiteral(493, 8)


@pytest.mark.parametrize(
    "script",
    [
        "wasm:ic0:call_perform:alt { new_target_fn_name = inject_synchronous_fault; }",
        "wasm::call:alt / a + b * c == d / { f((x, y), 0b11); z = 0x7f % 3; }",
    ],
)
def test_parsing_is_deterministic(script: str):
    assert parse_script(script) == parse_script(script)


@pytest.mark.parametrize("script", ["name {}", "wasm::call:alt { x = ; }", "x { y = 1; } $"])
def test_errors_are_deterministic(script: str):
    errors = []
    for _ in range(2):
        with pytest.raises(DscriptError) as exc_info:
            parse_script(script)
        errors.append((type(exc_info.value), exc_info.value.position, str(exc_info.value)))
    assert errors[0] == errors[1]


def test_end_of_input_error():
    with pytest.raises(DscriptSyntaxError) as exc_info:
        parse_script("wasm::x:y { a = 1;")
    assert exc_info.value.position.offset == 18
    assert exc_info.value.position.column == 19


def test_error_offsets_count_bytes():
    with pytest.raises(DscriptLexicalError) as exc_info:
        parse_script('BEGIN { x = "é"; } @')
    position = exc_info.value.position
    assert (position.line, position.column, position.offset) == (1, 20, 20)
    assert exc_info.value.rule == "token"


def test_syntax_error_cause():
    with pytest.raises(DscriptSyntaxError) as exc_info:
        parse_script("wasm::call:alt { x = ; }")
    assert isinstance(exc_info.value.__cause__, UnexpectedInput)
    assert exc_info.value.rule is not None


def test_leading_byte_order_mark():
    (probe,) = parse_script("\ufeffBEGIN { x = 1; }").probes
    assert probe.spec == ProbeSpec(("BEGIN",))
    assert (probe.span.line, probe.span.column) == (1, 2)


def test_byte_order_mark_after_start():
    with pytest.raises(DscriptLexicalError) as exc_info:
        parse_script("BEGIN {\ufeff x = 1; }")
    assert exc_info.value.position.column == 8
    assert exc_info.value.rule == "token"
