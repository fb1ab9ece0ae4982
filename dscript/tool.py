"""
Check dscript probe definitions.

Usage:
    {cmd} [--debug] [--format=<fmt>]
    {cmd} (-h | --help)
    {cmd} [--debug] [--format=<fmt>] <script>...

Options:
    -h, --help          Show a brief usage summary.
    --format=<fmt>      Show parsed scripts as "tree" or "source". [default: tree]
    --debug             Log parser activity to standard error.

    <script>            Parse and show a script file. With no scripts, start an interactive
                        prompt.
"""
import logging
import os
import sys

import docopt
import structlog

from .exceptions import DscriptError
from .repl import FORMATTERS, ReplSession


def _configure_logging(debug: bool):
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if debug else logging.WARNING
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def main():
    opts = docopt.docopt(__doc__.format(cmd=os.path.basename(sys.argv[0])))
    _configure_logging(opts["--debug"])

    if opts["--format"] not in FORMATTERS:
        sys.stderr.write(f"Unknown format: {opts['--format']}\n")
        sys.exit(2)

    session = ReplSession(output_format=opts["--format"])
    if len(opts["<script>"]) == 0:
        session.start_interactive()
        return

    for script_path in opts["<script>"]:
        try:
            session.check_file(script_path)
        except DscriptError as err:
            sys.stderr.write(f"{script_path}: {err}\n")
            sys.exit(1)
