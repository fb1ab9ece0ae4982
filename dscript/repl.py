"""
Interactive prompt and file checker for dscript.
"""
import sys
import typing

from better_exceptions import format_exception
from prompt_toolkit import PromptSession, print_formatted_text
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.lexers import PygmentsLexer
from prompt_toolkit.styles import Style
from prompt_toolkit.styles.pygments import style_from_pygments_cls
from pygments.styles import get_style_by_name

from .ast import Node, Script
from .exceptions import DscriptError, DscriptSyntaxError
from .lexer import DscriptLexer
from .parser import parse_expression, parse_script
from .printer import dump, format_expression, format_script


def _format_source(node: Node) -> str:
    if isinstance(node, Script):
        return format_script(node)
    return format_expression(node)


# Ways a parsed node can be shown.
FORMATTERS: dict[str, typing.Callable[[Node], str]] = {
    "tree": dump,
    "source": _format_source,
}


class ReplSession:
    style = Style.from_dict(
        {
            "error": "red",
        }
    )

    def __init__(
        self, *, prompt_session: typing.Optional[PromptSession] = None, output_format: str = "tree"
    ):
        if output_format not in FORMATTERS:
            raise ValueError(f"Unknown output format: {output_format}")
        self._prompt_session = prompt_session
        self._formatter = FORMATTERS[output_format]

    def check_file(self, script_path: str):
        """
        Parse a script file and show the result. Parse errors propagate to the caller.
        """
        with open(script_path, encoding="utf-8") as f:
            self._show(parse_script(f.read()))

    def start_interactive(self):
        if self._prompt_session is None:
            self._prompt_session = PromptSession()
        style = style_from_pygments_cls(get_style_by_name("solarized-dark"))
        while True:
            try:
                prompt_line = self._prompt_session.prompt(
                    ">",
                    lexer=PygmentsLexer(DscriptLexer),
                    style=style,
                    include_default_pygments_style=False,
                    auto_suggest=AutoSuggestFromHistory(),
                )
                self.execute(prompt_line)
            except DscriptError as err:
                self._print_error(str(err))
            except (EOFError, KeyboardInterrupt):
                # Exit from REPL on SIGINT or on end of input.
                break
            except Exception:
                self._print_error("Unexpected Python error:")
                for line in format_exception(*sys.exc_info()):
                    sys.stderr.write(line)

    def execute(self, prompt_line: str):
        """
        Parse a line holding either probe definitions or a lone expression and show the result.
        """
        if prompt_line.strip() == "":
            return
        try:
            node = parse_script(prompt_line)
        except DscriptSyntaxError as script_error:
            # Not a script, perhaps the line is an expression. If not, the error from parsing it
            # as a script is the more useful one.
            try:
                node = parse_expression(prompt_line)
            except DscriptError:
                raise script_error from None
        self._show(node)

    def _show(self, node: Node):
        sys.stdout.write(f"{self._formatter(node).rstrip()}\n")

    def _print_error(self, error_message: str):
        print_formatted_text(
            FormattedText([("class:error", error_message)]), style=self.style, file=sys.stderr
        )
