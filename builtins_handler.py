"""
Built-in function implementations for the IGCSE pseudocode interpreter.

Each built-in is a standalone function that receives already-evaluated
arguments and returns a result. The dispatch table maps upper-case names
to handlers; arity is checked before any argument is evaluated.
"""
import random

from errors import InterpreterError
from symbol_table import (
    floor_number, format_value, is_number, parse_integer, parse_real, require_finite,
    to_real,
)


def _require_string(name, value):
    if not isinstance(value, str):
        raise InterpreterError(f"{name} requires string parameter")
    return value


# ── Individual built-in implementations ──

def _builtin_length(args):
    return len(_require_string('LENGTH', args[0]))

def _builtin_ucase(args):
    return _require_string('UCASE', args[0]).upper()

def _builtin_lcase(args):
    return _require_string('LCASE', args[0]).lower()

def _builtin_substring(args):
    text, start, length = args
    if not isinstance(text, str) or not is_number(start) or not is_number(length):
        raise InterpreterError("SUBSTRING parameter type mismatch")
    start, length = int(round(require_finite(start))), int(round(require_finite(length)))
    if start < 1:
        raise InterpreterError("SUBSTRING start position must be 1 or greater")
    if length < 0:
        raise InterpreterError("SUBSTRING length cannot be negative")
    begin = start - 1
    return text[begin:begin + length]

def _builtin_int(args):
    value = args[0]
    if isinstance(value, bool):
        return 1 if value else 0
    if is_number(value):
        return floor_number(value)
    if isinstance(value, str):
        return parse_integer(value)
    return 0

def _builtin_real(args):
    value = args[0]
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if is_number(value):
        return to_real(value)
    if isinstance(value, str):
        return parse_real(value)
    return 0.0

def _builtin_string(args):
    return format_value(args[0])

def _builtin_round(args):
    value, places = args
    if not is_number(value) or not is_number(places):
        raise InterpreterError("ROUND parameter type mismatch")
    places = int(round(require_finite(places)))
    try:
        multiplier = 10.0 ** places
        return round(require_finite(value) * multiplier) / multiplier
    except (OverflowError, ZeroDivisionError):
        raise InterpreterError("ROUND result out of range") from None

def _builtin_random(args):
    return random.random()


# ── Dispatch table ──

BUILTIN_DISPATCH = {
    'LENGTH':    _builtin_length,
    'SUBSTRING': _builtin_substring,
    'UCASE':     _builtin_ucase,
    'LCASE':     _builtin_lcase,
    'INT':       _builtin_int,
    'REAL':      _builtin_real,
    'STRING':    _builtin_string,
    'ROUND':     _builtin_round,
    'RANDOM':    _builtin_random,
}

BUILTIN_ARITY = {
    'LENGTH': 1, 'SUBSTRING': 3, 'UCASE': 1, 'LCASE': 1,
    'INT': 1, 'REAL': 1, 'STRING': 1, 'ROUND': 2, 'RANDOM': 0,
    'EOF': 1,
}

# Set of all built-in function names (for quick membership checks)
BUILTIN_NAMES = frozenset(BUILTIN_ARITY)


def is_builtin(name):
    return name.upper() in BUILTIN_NAMES


def check_arity(name, count):
    """Raise unless a built-in is called with exactly the right number of arguments."""
    name = name.upper()
    expected = BUILTIN_ARITY[name]
    if count == expected:
        return
    if expected == 0:
        raise InterpreterError(f"{name} takes no parameters")
    noun = "parameter" if expected == 1 else "parameters"
    raise InterpreterError(f"{name} requires {expected} {noun}")


def call_builtin(name, args, files=None):
    """
    Dispatch a built-in function call.

    EOF is handled separately because it needs the interpreter's simulated
    file system. Built-in names are case-insensitive.
    """
    name = name.upper()
    if name == 'EOF':
        if files is None:
            raise InterpreterError("EOF requires a file system")
        return files.eof(format_value(args[0]))

    handler = BUILTIN_DISPATCH.get(name)
    if handler is None:
        raise InterpreterError(f"Function '{name}' not found")
    return handler(args)
