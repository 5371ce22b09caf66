import logging
import re
from enum import Enum, auto

from errors import PseudocodeSyntaxError

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class TokenType(Enum):
    # Literals and identifiers
    NUMBER = auto()      # raw digit text; INTEGER vs REAL is decided by the parser
    STRING = auto()      # "..." and '...' both land here
    BOOLEAN = auto()
    IDENTIFIER = auto()

    # Comparison operators (multi-char forms must win the alternation)
    ASSIGN = auto()      # ← or <-- (also <-)
    NE = auto()          # <>
    LE = auto()          # <=
    GE = auto()          # >=
    EQ = auto()          # =
    LT = auto()
    GT = auto()

    # Arithmetic / string operators
    PLUS = auto()
    MINUS = auto()
    MULTIPLY = auto()
    DIVIDE = auto()
    POWER = auto()       # ^
    AMPER = auto()       # & string concatenation
    DIV = auto()
    MOD = auto()

    # Logic
    AND = auto()
    OR = auto()
    NOT = auto()

    # Declarations and types
    DECLARE = auto()
    CONSTANT = auto()
    INTEGER_KW = auto()
    REAL_KW = auto()
    STRING_KW = auto()
    CHAR_KW = auto()
    BOOLEAN_KW = auto()
    ARRAY = auto()
    OF = auto()
    INT_KW = auto()      # INT( ... ) conversion

    # Procedures and functions
    PROCEDURE = auto()
    ENDPROCEDURE = auto()
    FUNCTION = auto()
    ENDFUNCTION = auto()
    RETURNS = auto()
    RETURN = auto()
    CALL = auto()
    BYREF = auto()
    BYVAL = auto()

    # Control flow
    IF = auto()
    THEN = auto()
    ELSE = auto()
    ENDIF = auto()
    CASE = auto()
    OTHERWISE = auto()
    ENDCASE = auto()
    FOR = auto()
    TO = auto()
    STEP = auto()
    NEXT = auto()
    REPEAT = auto()
    UNTIL = auto()
    WHILE = auto()
    DO = auto()
    ENDWHILE = auto()

    # I/O
    INPUT = auto()
    OUTPUT = auto()
    OPENFILE = auto()
    READFILE = auto()
    WRITEFILE = auto()
    CLOSEFILE = auto()
    READ_MODE = auto()
    WRITE_MODE = auto()
    APPEND_MODE = auto()

    # Delimiters
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    COLON = auto()       # type separator and array bound separator [1:10]
    COMMA = auto()

    NEWLINE = auto()
    EOF = auto()


class Token:
    def __init__(self, type_, value, line, column):
        self.type = type_
        self.value = value
        self.line = line
        self.column = column

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, line={self.line}, col={self.column})"

    def describe(self) -> str:
        """Text used when a token appears in an error message."""
        if self.type == TokenType.EOF:
            return "end of input"
        if self.type == TokenType.NEWLINE:
            return "end of line"
        if self.type == TokenType.BOOLEAN:
            return "TRUE" if self.value else "FALSE"
        return str(self.value)


class LexerError(PseudocodeSyntaxError):
    def __init__(self, message, line=0, column=0):
        super().__init__(message, line)
        self.column = column


class Lexer:
    # Earlier patterns win the alternation, so multi-char operators precede
    # their single-char prefixes and unterminated literals follow the
    # terminated forms.
    TOKEN_SPECS = [
        ('WHITESPACE', r'[ \t\r]+'),
        ('NEWLINE', r'\n'),
        ('COMMENT', r'//[^\n]*'),

        ('ASSIGN', r'←|<--|<-'),
        ('NE', r'<>'),
        ('LE', r'<='),
        ('GE', r'>='),
        ('EQ', r'='),
        ('LT', r'<'),
        ('GT', r'>'),
        ('PLUS', r'\+'),
        ('MINUS', r'-'),
        ('MULTIPLY', r'\*'),
        ('DIVIDE', r'/'),
        ('POWER', r'\^'),
        ('AMPER', r'&'),
        ('LPAREN', r'\('),
        ('RPAREN', r'\)'),
        ('LBRACKET', r'\['),
        ('RBRACKET', r'\]'),
        ('COLON', r':'),
        ('COMMA', r','),

        ('NUMBER', r'[0-9]+(?:\.[0-9]*)?'),
        ('STRING', r'"[^"\n]*"'),
        ('CHAR', r"'[^'\n]*'"),
        ('UNTERMINATED_STRING', r'"[^"\n]*'),
        ('UNTERMINATED_CHAR', r"'[^'\n]*"),

        ('IDENTIFIER', r'[^\W\d]\w*'),
    ]

    KEYWORDS = {
        'DECLARE': TokenType.DECLARE,
        'CONSTANT': TokenType.CONSTANT,
        'INTEGER': TokenType.INTEGER_KW,
        'REAL': TokenType.REAL_KW,
        'STRING': TokenType.STRING_KW,
        'CHAR': TokenType.CHAR_KW,
        'BOOLEAN': TokenType.BOOLEAN_KW,
        'ARRAY': TokenType.ARRAY,
        'OF': TokenType.OF,
        'INT': TokenType.INT_KW,
        'PROCEDURE': TokenType.PROCEDURE,
        'ENDPROCEDURE': TokenType.ENDPROCEDURE,
        'FUNCTION': TokenType.FUNCTION,
        'ENDFUNCTION': TokenType.ENDFUNCTION,
        'RETURNS': TokenType.RETURNS,
        'RETURN': TokenType.RETURN,
        'CALL': TokenType.CALL,
        'BYREF': TokenType.BYREF,
        'BYVAL': TokenType.BYVAL,
        'IF': TokenType.IF,
        'THEN': TokenType.THEN,
        'ELSE': TokenType.ELSE,
        'ENDIF': TokenType.ENDIF,
        'CASE': TokenType.CASE,
        'OTHERWISE': TokenType.OTHERWISE,
        'ENDCASE': TokenType.ENDCASE,
        'FOR': TokenType.FOR,
        'TO': TokenType.TO,
        'STEP': TokenType.STEP,
        'NEXT': TokenType.NEXT,
        'REPEAT': TokenType.REPEAT,
        'UNTIL': TokenType.UNTIL,
        'WHILE': TokenType.WHILE,
        'DO': TokenType.DO,
        'ENDWHILE': TokenType.ENDWHILE,
        'INPUT': TokenType.INPUT,
        'OUTPUT': TokenType.OUTPUT,
        'OPENFILE': TokenType.OPENFILE,
        'READFILE': TokenType.READFILE,
        'WRITEFILE': TokenType.WRITEFILE,
        'CLOSEFILE': TokenType.CLOSEFILE,
        'READ': TokenType.READ_MODE,
        'WRITE': TokenType.WRITE_MODE,
        'APPEND': TokenType.APPEND_MODE,
        'DIV': TokenType.DIV,
        'MOD': TokenType.MOD,
        'AND': TokenType.AND,
        'OR': TokenType.OR,
        'NOT': TokenType.NOT,
        'TRUE': TokenType.BOOLEAN,
        'FALSE': TokenType.BOOLEAN,
    }

    def __init__(self, source, filename="<input>"):
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens = []

    @property
    def _regex(self):
        cls = self.__class__
        if '_MASTER_REGEX' not in cls.__dict__:
            pattern_parts = [f'(?P<{name}>{regex})' for name, regex in cls.TOKEN_SPECS]
            cls._MASTER_REGEX = re.compile('|'.join(pattern_parts))
        return cls._MASTER_REGEX

    def _update_position(self, text):
        newlines = text.count('\n')
        if newlines:
            self.line += newlines
            self.column = len(text) - text.rfind('\n')
        else:
            self.column += len(text)

    def _get_context(self) -> str:
        """Extract the current source line and add a ^ pointer for error display."""
        lines = self.source.split('\n')
        if self.line - 1 < len(lines):
            src_line = lines[self.line - 1]
            pointer = ' ' * (self.column - 1) + '^'
            return f"\n  {src_line}\n  {pointer}"
        return ""

    def error(self, message):
        context = self._get_context()
        logger.debug("lexer error at %d:%d: %s", self.line, self.column, message)
        raise LexerError(
            f"{self.filename}:{self.line}:{self.column}: {message}{context}",
            self.line, self.column,
        )

    def tokenize(self):
        while self.pos < len(self.source):
            match = self._regex.match(self.source, self.pos)

            if not match:
                self.error(f"Unexpected character: {self.source[self.pos]!r}")

            kind = match.lastgroup
            if kind == 'UNTERMINATED_STRING':
                self.error("Unterminated string")
            if kind == 'UNTERMINATED_CHAR':
                self.error("Unterminated character literal")

            value = match.group()
            start_line, start_col = self.line, self.column

            self.pos = match.end()
            self._update_position(value)

            if kind in ('WHITESPACE', 'COMMENT'):
                continue

            self.tokens.append(self._create_token(kind, value, start_line, start_col))

        self.tokens.append(Token(TokenType.EOF, None, self.line, self.column))
        logger.debug("%s: %d tokens", self.filename, len(self.tokens))
        return self.tokens

    # Regex group name -> TokenType for fixed-text tokens
    _TOKEN_TYPE_MAP = {
        'NEWLINE': TokenType.NEWLINE,
        'ASSIGN': TokenType.ASSIGN, 'NE': TokenType.NE, 'LE': TokenType.LE,
        'GE': TokenType.GE, 'EQ': TokenType.EQ, 'LT': TokenType.LT,
        'GT': TokenType.GT, 'PLUS': TokenType.PLUS, 'MINUS': TokenType.MINUS,
        'MULTIPLY': TokenType.MULTIPLY, 'DIVIDE': TokenType.DIVIDE,
        'POWER': TokenType.POWER, 'AMPER': TokenType.AMPER,
        'LPAREN': TokenType.LPAREN, 'RPAREN': TokenType.RPAREN,
        'LBRACKET': TokenType.LBRACKET, 'RBRACKET': TokenType.RBRACKET,
        'COLON': TokenType.COLON, 'COMMA': TokenType.COMMA,
        'NUMBER': TokenType.NUMBER,
    }

    def _create_token(self, kind, value, line, col):
        if kind == 'IDENTIFIER':
            upper_val = value.upper()
            token_type = self.KEYWORDS.get(upper_val)
            if token_type is None:
                return Token(TokenType.IDENTIFIER, value, line, col)
            if token_type == TokenType.BOOLEAN:
                return Token(token_type, upper_val == 'TRUE', line, col)
            return Token(token_type, upper_val, line, col)

        if kind in ('STRING', 'CHAR'):
            return Token(TokenType.STRING, value[1:-1], line, col)

        mapped = self._TOKEN_TYPE_MAP.get(kind)
        if mapped is not None:
            return Token(mapped, value, line, col)

        raise RuntimeError(f"Unhandled token kind: {kind}")


def tokenize(source, filename="<input>"):
    """Shorthand for Lexer(source, filename).tokenize()."""
    return Lexer(source, filename).tokenize()
