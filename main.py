"""Command-line front end for the IGCSE pseudocode interpreter.

Usage:
    python main.py [-v...] FILE [--inputs "5,3,8"] [--files DIR]
    python main.py FILE --dryrun [--trace-format text|csv|markdown]
    python main.py FILE --step
    python main.py FILE --check
    python main.py                      (REPL, one program per line)

Options:
  -v            Increase log verbosity (can be repeated)
  --inputs      Comma-separated values consumed by INPUT before prompting
  --files       Directory that OPENFILE ... FOR READ loads files from
"""

import argparse
import logging
import sys
from pathlib import Path

from dry_run_interpreter import DryRunInterpreter
from errors import ExecutionCancelled, InterpreterError, PseudocodeSyntaxError
from interpreter import Interpreter
from parser import parse_source
from settings import MAX_ITERATIONS, MAX_RECURSION_DEPTH, InterpreterSettings
from validator import SyntaxValidator

logger = logging.getLogger(__name__)

LOG_LEVELS = [logging.WARNING, logging.INFO, logging.DEBUG]


def split_inputs(raw):
    if raw is None:
        return []
    return [v.strip() for v in raw.split(",") if v.strip()]


class ConsoleInput:
    """INPUT handler: queued values first, then stdin."""

    def __init__(self, queued=None):
        self.queued = list(queued or [])

    def __call__(self, name, type_name):
        if self.queued:
            return self.queued.pop(0)
        try:
            return input(f"{name} ({type_name}): ")
        except EOFError:
            raise InterpreterError(f"No input available for '{name}'") from None


def directory_loader(directory):
    """File-upload handler that reads OPENFILE targets from ``directory``."""
    root = Path(directory)

    def load(filename):
        path = root / filename
        if not path.is_file():
            logger.info("no file %s for OPENFILE", path)
            return None
        return path.read_text(encoding="utf-8")
    return load


class StepPrompt:
    """Step callback for --step: waits on stdin before each statement."""

    def __init__(self, out=None):
        self.interpreter = None
        self.out = out or sys.stdout

    def __call__(self):
        state = self.interpreter.get_debug_state()
        while True:
            try:
                command = input(f"[line {state.current_line}] step> ").strip().lower()
            except EOFError:
                command = "continue"
            if command == "":
                return
            if command in ("continue", "c"):
                self.interpreter.disable_debug_mode()
                return
            if command == "stop":
                self.interpreter.cancel()
                return
            if command == "vars":
                for name, info in state.variables.items():
                    shown = info['value'] if info['initialized'] else "<unassigned>"
                    print(f"  {name} : {info['type']} = {shown}", file=self.out)
                continue
            print("  Enter = step, c/continue = run to end, stop, vars", file=self.out)


def build_settings(args):
    return InterpreterSettings(
        max_iterations=args.max_iterations,
        max_recursion_depth=args.max_depth,
        echo_file_writes=not args.no_echo,
        debug_mode=args.step,
    )


def run(source, args, filename="<stdin>", out=None):
    """Parse and run one program. Returns the process exit status."""
    out = out or sys.stdout
    try:
        statements = parse_source(source, filename)
    except PseudocodeSyntaxError as e:
        print(f"Syntax Error at line {e.line}: {e.message}", file=sys.stderr)
        return 1

    settings = build_settings(args)
    upload = directory_loader(args.files) if args.files else None

    if args.dryrun:
        interpreter = DryRunInterpreter(split_inputs(args.inputs), upload, settings)
        status = _drain(interpreter.execute(statements), out)
        print(interpreter.format_trace(args.trace_format), file=out)
        return status

    prompt = StepPrompt(out) if args.step else None
    interpreter = Interpreter(
        input_handler=ConsoleInput(split_inputs(args.inputs)),
        step_callback=prompt,
        file_upload_handler=upload,
        settings=settings,
    )
    if prompt is not None:
        prompt.interpreter = interpreter
    return _drain(interpreter.execute(statements), out)


def _drain(lines, out):
    try:
        for line in lines:
            print(line, file=out)
    except InterpreterError as e:
        print(f"Runtime Error at line {e.line}: {e.message}", file=sys.stderr)
        return 1
    except ExecutionCancelled:
        print("Execution cancelled", file=sys.stderr)
        return 1
    return 0


def check(source, filename):
    errors = SyntaxValidator(filename).validate(source)
    for error in errors:
        print(f"Line {error.line}: {error.message}")
    if not errors:
        print("No syntax errors")
    return 1 if errors else 0


def repl(args):
    print("IGCSE Pseudocode Interpreter (Type 'exit' to quit)")
    while True:
        try:
            line = input(">>> ")
        except EOFError:
            break
        if line.strip().lower() == 'exit':
            break
        if line.strip():
            run(line, args)
    return 0


def build_parser():
    parser = argparse.ArgumentParser(description="IGCSE pseudocode interpreter")
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='increase log verbosity (can be repeated)')
    parser.add_argument('program', nargs='?', help='pseudocode source file')
    parser.add_argument('--inputs', help='comma-separated INPUT values, e.g. "5,3,8"')
    parser.add_argument('--files', metavar='DIR', help='directory OPENFILE READ loads from')

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--dryrun', action='store_true', help='print a trace table')
    mode.add_argument('--step', action='store_true', help='pause before every statement')
    mode.add_argument('--check', action='store_true', help='syntax check only')

    parser.add_argument('--trace-format', choices=sorted(DryRunInterpreter.TRACE_FORMATS),
                        default='text')
    parser.add_argument('--max-iterations', type=int, default=MAX_ITERATIONS)
    parser.add_argument('--max-depth', type=int, default=MAX_RECURSION_DEPTH)
    parser.add_argument('--no-echo', action='store_true',
                        help='do not echo WRITEFILE data to the output')
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=LOG_LEVELS[min(args.verbose, len(LOG_LEVELS) - 1)],
                        format="%(levelname)s %(name)s: %(message)s")

    if not args.program:
        return repl(args)

    program_file = Path(args.program)
    if not program_file.is_file():
        print(f"Error: file {program_file} not found", file=sys.stderr)
        return 1
    source = program_file.read_text(encoding="utf-8")

    if args.check:
        return check(source, str(program_file))
    return run(source, args, str(program_file))


if __name__ == "__main__":
    sys.exit(main())
