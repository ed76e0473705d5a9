"""
Lox Programming Language - Main Entry Point
Runs a script file, or starts an interactive prompt when no script is given
"""

import sys
import argparse
import os
from typing import List, Optional, TextIO

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from scanner import Scanner
from parsing import create_parser, create_debug_parser, parse
from interpreter import interpret
from environment import Environment
from error_handling import ErrorReporter
from printer import print_ast
from utilities import stringify


VERSION = "pylox 0.3.0"

# sysexits-style codes
EXIT_OK = 0
EXIT_USAGE = 64
EXIT_DATA_ERROR = 65
EXIT_SOFTWARE = 70


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      prog='lox',
      description='Lox - a small dynamically-typed scripting language',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.lox            # Run a Lox script
  %(prog)s                       # Interactive mode
  %(prog)s --tokens script.lox   # Show the token stream
  %(prog)s --parse script.lox    # Parse and show the syntax tree
  %(prog)s --debug script.lox    # Run with debug traces on stderr
        """
  )

  parser.add_argument(
      'script',
      nargs='*',
      help='Lox script file to execute'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--tokens',
      action='store_true',
      help='Scan file and show tokens (for debugging)'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse file and show the syntax tree (for debugging)'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug output for all stages'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def run_source(
    source: str,
    env: Optional[Environment] = None,
    output: Optional[TextIO] = None,
    reporter: Optional[ErrorReporter] = None,
    debug: bool = False
) -> ErrorReporter:
  """
  Run source text through scan, parse and interpret.
  Interpretation is skipped when scanning or parsing reported an error.
  Returns the reporter holding every diagnostic of the run.
  """
  if reporter is None:
    reporter = ErrorReporter(source)

  tokens = Scanner(source, reporter, debug).scan_tokens()
  statements = parse(tokens, reporter, debug)

  if reporter.had_error:
    return reporter

  interpret(statements, env if env is not None else Environment(), reporter, output, debug)
  return reporter


def exit_code_for(reporter: ErrorReporter) -> int:
  if reporter.had_error:
    return EXIT_DATA_ERROR
  if reporter.had_runtime_error:
    return EXIT_SOFTWARE
  return EXIT_OK


def read_script(script_path: str) -> Optional[str]:
  """Read a script, printing a hint and returning None when it cannot be read"""
  try:
    with open(script_path, 'r', encoding='utf-8') as f:
      return f.read()
  except FileNotFoundError:
    print(f"Error: Script file '{script_path}' not found", file=sys.stderr)
    print(f"  Hint: Check the file path and make sure the file exists", file=sys.stderr)
  except PermissionError:
    print(f"Error: Permission denied reading '{script_path}'", file=sys.stderr)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}", file=sys.stderr)
    print(f"  Hint: Make sure the file is a text file with UTF-8 encoding", file=sys.stderr)
  return None


def run_script_file(script_path: str, debug: bool = False) -> int:
  """Run a Lox script file and return the process exit code"""
  source = read_script(script_path)
  if source is None:
    return EXIT_USAGE

  if debug:
    print(f"Running {script_path}...", file=sys.stderr)

  reporter = ErrorReporter(source, stream=sys.stderr)
  run_source(source, reporter=reporter, debug=debug)
  return exit_code_for(reporter)


def show_tokens(script_path: str, debug: bool = False) -> int:
  """Scan a Lox script file and print its tokens"""
  source = read_script(script_path)
  if source is None:
    return EXIT_USAGE

  reporter = ErrorReporter(source, stream=sys.stderr)
  parser = create_debug_parser() if debug else create_parser()
  for token in parser.tokenize(source, reporter):
    print(f"{token.location:>8}  {token}")

  return exit_code_for(reporter)


def parse_file(script_path: str, debug: bool = False) -> int:
  """Parse a Lox script file and print each statement's syntax tree"""
  source = read_script(script_path)
  if source is None:
    return EXIT_USAGE

  reporter = ErrorReporter(source, stream=sys.stderr)
  parser = create_debug_parser() if debug else create_parser()
  statements = parser.parse_string(source, reporter)

  print(f"Parsed {len(statements)} top-level statements:")
  print("=" * 50)
  for statement in statements:
    try:
      print(print_ast(statement))
    except RecursionError:
      print(f"<{type(statement).__name__} nested too deeply to print>")

  return exit_code_for(reporter)


def setup_readline() -> None:
  """Setup readline with history and keyword completion"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser("~/.lox_history")
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # first run, no history yet

  readline.set_history_length(1000)

  completions = [
      "and", "else", "false", "for", "if", "nil", "or", "print",
      "true", "var", "while", "break",
      ":env", ":help", "exit"
  ]

  def completer(text, state):
    options = [word for word in completions if word.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(readline.write_history_file, history_file)


def print_repl_help() -> None:
  print("REPL Commands:")
  print("  :env              - Show current environment")
  print("  :help             - Show this help")
  print("  exit              - Exit REPL")
  print()
  print("Language features:")
  print("  var x = 5;                        - Variable declaration")
  print("  print x > 3 ? \"big\" : \"small\";    - Conditional expression")
  print("  for (var i = 0; i < 3; i = i + 1) print i;")


def run_interactive_mode(debug: bool = False) -> int:
  """Run Lox in interactive mode; bindings persist across lines"""
  print(f"{VERSION} - Interactive Mode")
  print("Type 'exit' to quit, ':help' for commands")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()

  session_env = Environment()
  reporter = ErrorReporter(stream=sys.stderr)

  while True:
    try:
      code = input("> ")
    except (EOFError, KeyboardInterrupt):
      print()
      break

    command = code.strip()
    if command == "exit":
      break
    if not command:
      continue

    if command == ":help":
      print_repl_help()
      continue

    if command == ":env":
      bindings = session_env.snapshot()
      if bindings:
        for name, value in bindings.items():
          print(f"  {name} = {stringify(value)}")
      else:
        print("  (no bindings)")
      continue

    # errors from a previous line must not block this one
    reporter.reset(code)
    run_source(code, session_env, reporter=reporter, debug=debug)

  return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
  """Main entry point for Lox"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if len(args.script) > 1:
    print("Usage: lox [script]", file=sys.stderr)
    return EXIT_USAGE

  if args.script and not args.interactive:
    script = args.script[0]
    if args.tokens:
      return show_tokens(script, debug=args.debug)
    if args.parse:
      return parse_file(script, debug=args.debug)
    return run_script_file(script, debug=args.debug)

  return run_interactive_mode(debug=args.debug)


if __name__ == "__main__":
  sys.exit(main())
