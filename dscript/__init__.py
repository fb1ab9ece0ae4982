"""
Parser for dscript, a language of probe definitions describing how to instrument a program.
"""
from .ast import NodeVisitor, Script
from .exceptions import DscriptError, DscriptLexicalError, DscriptSyntaxError
from .parser import parse_expression, parse_script
from .printer import dump, format_expression, format_script

__all__ = [
    "DscriptError",
    "DscriptLexicalError",
    "DscriptSyntaxError",
    "NodeVisitor",
    "Script",
    "dump",
    "format_expression",
    "format_script",
    "parse_expression",
    "parse_script",
]
