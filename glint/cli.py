# glint/cli.py
import argparse
import logging
import os
import sys
from typing import List, Optional

from .diagnostics import Level
from .lexer import Lexer
from .parser import Parser, ParseError
from .report import print_report
from .semantic_analyzer import AnalysisError, analyze

log = logging.getLogger('glint.cli')

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Checked when no source file is given
DEMO_SOURCE = """\
import gleam/io

pub fn main() {
  let message = "Hello, Joe!"
  let #(first, second) = #(1, 2)
  first
  message
}

fn describe(value, unused_flag, _ignored) {
  let label = "value"
  value
}

pub fn scoped() {
  let outer = 10
  outer
  {
    -outer
    let inner = 20
    Nil
  }
  inner
}

fn countdown(n) {
  countdown
  !n
  total
}

pub fn with_resource() {
  use file, _mode <- open("data.txt")
  let [head, ..rest] = [1, 2, 3]
  #(file, head)
}
"""

def build_arg_parser() -> argparse.ArgumentParser:
    parser_cli = argparse.ArgumentParser(
        prog='glint',
        description='Report undefined names and unused bindings in a Gleam module.')
    parser_cli.add_argument('source', nargs='?',
                            help='Path to the source file to check (default: built-in demo module).')
    parser_cli.add_argument('--no-color', action='store_true',
                            help='Print diagnostics without ANSI colors.')
    parser_cli.add_argument("--log-level", default="WARNING", choices=LOG_LEVELS,
                            help="Set the default logging level (default: WARNING)")
    parser_cli.add_argument("--lexer-log-level", choices=LOG_LEVELS,
                            help="Set the logging level for the lexer (default: --log-level)")
    parser_cli.add_argument("--parser-log-level", choices=LOG_LEVELS,
                            help="Set the logging level for the parser (default: --log-level)")
    parser_cli.add_argument("--semantic-log-level", choices=LOG_LEVELS,
                            help="Set the logging level for the semantic analyzer (default: --log-level)")
    return parser_cli

def configure_logging(args: argparse.Namespace):
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format='%(levelname)s:%(name)s:%(message)s')
    for logger_name, level in (('glint.lexer', args.lexer_log_level),
                               ('glint.parser', args.parser_log_level),
                               ('semantic', args.semantic_log_level)):
        if level is not None:
            logging.getLogger(logger_name).setLevel(getattr(logging, level))

def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    configure_logging(args)

    try:
        if args.source is None:
            log.info("No source file given, checking the demo module")
            source_code = DEMO_SOURCE
        else:
            if not os.path.exists(args.source):
                print(f"Error: Input file not found: {args.source}", file=sys.stderr)
                return 1
            with open(args.source, 'r', encoding='utf-8') as f:
                source_code = f.read()

        log.info("Starting Lexing...")
        tokens = Lexer(source_code).tokenize()
        log.info("Starting Parsing...")
        module = Parser(tokens).parse()
        log.info("Starting Semantic Analysis...")
        diagnostics = analyze(module)
    except (ParseError, AnalysisError) as e:
        log.critical(f"{type(e).__name__}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        log.critical(f"An unexpected error occurred: {e}", exc_info=True)
        print(f"An unexpected error occurred: {e}", file=sys.stderr)
        return 1

    print_report(diagnostics, color=not args.no_color)
    return 1 if any(d.level is Level.ERROR for d in diagnostics) else 0

if __name__ == "__main__":
    sys.exit(main())
