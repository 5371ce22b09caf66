"""Live syntax checking: runs the lexer and parser only, never the program."""
import logging
import re
from dataclasses import dataclass
from typing import List

from errors import PseudocodeSyntaxError
from lexer import Lexer
from parser import Parser

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

_LINE_PATTERN = re.compile(r'line (\d+)')


@dataclass
class ValidationError:
    line: int
    message: str
    error_type: str = "Syntax"


class SyntaxValidator:
    def __init__(self, filename: str = "<editor>"):
        self.filename = filename

    def validate(self, source: str) -> List[ValidationError]:
        """Return the syntax errors in ``source``; empty when it parses."""
        if not source.strip():
            return []
        try:
            Parser(Lexer(source, self.filename).tokenize()).parse()
        except PseudocodeSyntaxError as exc:
            logger.debug("validation failed: %s", exc)
            return [ValidationError(self._line_of(exc), exc.message)]
        return []

    def is_valid(self, source: str) -> bool:
        return not self.validate(source)

    @staticmethod
    def _line_of(exc: PseudocodeSyntaxError) -> int:
        if exc.line:
            return exc.line
        match = _LINE_PATTERN.search(exc.message)
        return int(match.group(1)) if match else 1
