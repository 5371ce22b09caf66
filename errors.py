"""
Error types shared by the lexer, parser and interpreter.

Syntax errors are raised before anything runs; runtime errors abort the
whole run. Cancellation is not a language fault, so it sits outside the
PseudocodeError hierarchy and hosts can report it separately.
"""


class PseudocodeError(Exception):
    """Base class for errors that point at a source line."""

    def __init__(self, message: str, line: int = 0):
        super().__init__(message)
        self.message = message
        self.line = line

    def __str__(self):
        return self.message


class PseudocodeSyntaxError(PseudocodeError):
    """Raised by the lexer or parser."""


class InterpreterError(PseudocodeError):
    """Raised while a program is running."""


class ExecutionCancelled(Exception):
    """The host asked the running program to stop."""

    def __init__(self, line: int = 0):
        super().__init__("Execution cancelled")
        self.line = line
