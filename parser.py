import logging
from typing import List, Optional

from ast_nodes import *
from errors import PseudocodeSyntaxError
from lexer import Lexer, Token, TokenType

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

# Precedence table for binary operators (higher value = binds tighter)
OPERATOR_PRECEDENCE = {
    TokenType.OR: 10,
    TokenType.AND: 20,
    TokenType.EQ: 30, TokenType.NE: 30,
    TokenType.LT: 30, TokenType.GT: 30,
    TokenType.LE: 30, TokenType.GE: 30,
    TokenType.PLUS: 40, TokenType.MINUS: 40, TokenType.AMPER: 40,
    TokenType.MULTIPLY: 50, TokenType.DIVIDE: 50,
    TokenType.DIV: 50, TokenType.MOD: 50,
    TokenType.POWER: 60,
}

RIGHT_ASSOCIATIVE = frozenset({TokenType.POWER})

# NOT sits between AND and the comparisons: NOT a = b is NOT (a = b)
NOT_PRECEDENCE = 25

_TYPE_TOKENS = frozenset({
    TokenType.INTEGER_KW, TokenType.REAL_KW, TokenType.STRING_KW,
    TokenType.CHAR_KW, TokenType.BOOLEAN_KW,
})

# Keywords that double as conversion functions when followed by '('
_CALLABLE_KEYWORDS = frozenset({TokenType.INT_KW, TokenType.REAL_KW, TokenType.STRING_KW})

_FILE_MODES = {
    TokenType.READ_MODE: "READ",
    TokenType.WRITE_MODE: "WRITE",
    TokenType.APPEND_MODE: "APPEND",
}


class ParserError(PseudocodeSyntaxError):
    pass


class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0
        self.current = tokens[0] if tokens else Token(TokenType.EOF, None, 1, 1)

        # Statement dispatch table: TokenType -> parse method
        self._stmt_dispatch = {
            TokenType.DECLARE: self.parse_declare,
            TokenType.CONSTANT: self.parse_constant,
            TokenType.INPUT: self.parse_input,
            TokenType.OUTPUT: self.parse_output,
            TokenType.IF: self.parse_if,
            TokenType.CASE: self.parse_case,
            TokenType.WHILE: self.parse_while,
            TokenType.REPEAT: self.parse_repeat,
            TokenType.FOR: self.parse_for,
            TokenType.PROCEDURE: self.parse_procedure_decl,
            TokenType.FUNCTION: self.parse_function_decl,
            TokenType.CALL: self.parse_call_stmt,
            TokenType.RETURN: self.parse_return,
            TokenType.OPENFILE: self.parse_open_file,
            TokenType.CLOSEFILE: self.parse_close_file,
            TokenType.READFILE: self.parse_read_file,
            TokenType.WRITEFILE: self.parse_write_file,
            TokenType.IDENTIFIER: self.parse_assignment,
        }

    # ── Cursor helpers ──

    def peek(self, offset: int = 0) -> Token:
        idx = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[idx]

    def advance(self) -> Token:
        old = self.current
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
            self.current = self.tokens[self.pos]
        return old

    def error(self, message: str, token: Optional[Token] = None) -> ParserError:
        token = token or self.current
        return ParserError(f"{message} at line {token.line}", token.line)

    def expect(self, token_type: TokenType, message: Optional[str] = None) -> Token:
        if self.current.type != token_type:
            if message is None:
                message = f"Expected {token_type.name}, got '{self.current.describe()}'"
            raise self.error(message)
        return self.advance()

    def match(self, *token_types: TokenType) -> Optional[Token]:
        if self.current.type in token_types:
            return self.advance()
        return None

    def check(self, *token_types: TokenType) -> bool:
        return self.current.type in token_types

    @staticmethod
    def _at(node, token: Token):
        node.line = token.line
        return node

    def _skip_newlines(self):
        while self.current.type == TokenType.NEWLINE:
            self.advance()

    def _parse_block_until(self, *end_tokens: TokenType) -> List[Stmt]:
        """Parse statements until one of the given token types (or EOF) is reached."""
        stmts = []
        while True:
            self._skip_newlines()
            if self.check(TokenType.EOF, *end_tokens):
                return stmts
            stmts.extend(self.parse_statement())

    # ── Top-level parsing ──

    def parse(self) -> List[Stmt]:
        statements = self._parse_block_until()
        logger.debug("parsed %d top-level statements", len(statements))
        return statements

    def parse_statement(self) -> List[Stmt]:
        line = self.current.line
        handler = self._stmt_dispatch.get(self.current.type)
        if handler is None:
            raise self.error(f"Unexpected '{self.current.describe()}'")
        result = handler()
        stmts = result if isinstance(result, list) else [result]
        for stmt in stmts:
            stmt.line = line
        return stmts

    # ── Declarations ──

    def parse_declare(self) -> List[DeclareStmt]:
        self.expect(TokenType.DECLARE)
        names = [self.expect(TokenType.IDENTIFIER, "Expected variable name after DECLARE").value]
        while self.match(TokenType.COMMA):
            names.append(self.expect(TokenType.IDENTIFIER, "Expected variable name after ','").value)
        self.expect(TokenType.COLON, "Expected ':' in DECLARE")

        if not self.match(TokenType.ARRAY):
            type_name = self._parse_type_name()
            return [DeclareStmt(name, type_name) for name in names]

        self.expect(TokenType.LBRACKET, "Expected '[' after ARRAY")
        bounds = []
        while True:
            lower = self._parse_bound()
            self.expect(TokenType.COLON, "Expected ':' between array bounds")
            upper = self._parse_bound()
            bounds.append((lower, upper))
            if not self.match(TokenType.COMMA):
                break
        self.expect(TokenType.RBRACKET, "Expected ']' after array bounds")
        self.expect(TokenType.OF, "Expected OF after array bounds")
        element_type = self._parse_type_name()
        return [DeclareStmt(name, element_type, True, list(bounds)) for name in names]

    def _parse_bound(self) -> int:
        tok = self.current
        expr = self.parse_expression()
        negative = False
        if isinstance(expr, UnaryExpr) and expr.operator == '-':
            negative, expr = True, expr.operand
        if (not isinstance(expr, LiteralExpr) or isinstance(expr.value, bool)
                or not isinstance(expr.value, int)):
            raise self.error("Array bounds must be literal integers", tok)
        return -expr.value if negative else expr.value

    def _parse_type_name(self) -> str:
        if not self.check(*_TYPE_TOKENS):
            raise self.error(f"Expected data type, got '{self.current.describe()}'")
        return self.advance().value

    def parse_constant(self):
        raise self.error("Feature not supported: CONSTANT")

    # ── Simple statements ──

    def _parse_target(self) -> Expr:
        """Identifier or array element that receives a value."""
        name_tok = self.expect(TokenType.IDENTIFIER, "Expected variable name")
        if self.match(TokenType.LBRACKET):
            return self._at(ArrayAccessExpr(name_tok.value, self._parse_index_list()), name_tok)
        return self._at(VariableExpr(name_tok.value), name_tok)

    def _parse_index_list(self) -> List[Expr]:
        """Comma-separated indices (LBRACKET already consumed)."""
        indices = [self.parse_expression()]
        while self.match(TokenType.COMMA):
            indices.append(self.parse_expression())
        self.expect(TokenType.RBRACKET, "Expected ']' after array index")
        return indices

    def parse_assignment(self) -> AssignStmt:
        target = self._parse_target()
        self.expect(TokenType.ASSIGN, f"Expected '<-' after '{self._target_name(target)}'")
        return AssignStmt(target, self.parse_expression())

    @staticmethod
    def _target_name(target: Expr) -> str:
        return target.array if isinstance(target, ArrayAccessExpr) else target.name

    def parse_input(self) -> InputStmt:
        self.expect(TokenType.INPUT)
        return InputStmt(self._parse_target())

    def parse_output(self) -> OutputStmt:
        self.expect(TokenType.OUTPUT)
        values = [self.parse_expression()]
        while self.match(TokenType.COMMA):
            values.append(self.parse_expression())
        return OutputStmt(values)

    # ── Control flow ──

    def parse_if(self) -> IfStmt:
        self.expect(TokenType.IF)
        condition = self._parse_condition_then()
        then_branch = self._parse_block_until(TokenType.ELSE, TokenType.ENDIF)

        elif_branches = []
        while self.check(TokenType.ELSE) and self.peek(1).type == TokenType.IF:
            self.advance()
            self.advance()
            elif_condition = self._parse_condition_then()
            elif_branches.append(
                (elif_condition, self._parse_block_until(TokenType.ELSE, TokenType.ENDIF))
            )

        else_branch = None
        if self.match(TokenType.ELSE):
            else_branch = self._parse_block_until(TokenType.ENDIF)
        self.expect(TokenType.ENDIF, "Expected ENDIF to close IF statement")
        return IfStmt(condition, then_branch, elif_branches, else_branch)

    def _parse_condition_then(self) -> Expr:
        condition = self.parse_expression()
        self._skip_newlines()
        self.expect(TokenType.THEN, "Expected THEN after IF condition")
        return condition

    def parse_while(self) -> WhileStmt:
        self.expect(TokenType.WHILE)
        condition = self.parse_expression()
        self._skip_newlines()
        self.expect(TokenType.DO, "Expected DO after WHILE condition")
        body = self._parse_block_until(TokenType.ENDWHILE)
        self.expect(TokenType.ENDWHILE, "Expected ENDWHILE to close WHILE loop")
        return WhileStmt(condition, body)

    def parse_repeat(self) -> RepeatStmt:
        self.expect(TokenType.REPEAT)
        body = self._parse_block_until(TokenType.UNTIL)
        self.expect(TokenType.UNTIL, "Expected UNTIL to close REPEAT loop")
        return RepeatStmt(body, self.parse_expression())

    def parse_for(self) -> ForStmt:
        for_tok = self.expect(TokenType.FOR)
        name = self.expect(TokenType.IDENTIFIER, "Expected loop variable after FOR").value
        self.expect(TokenType.ASSIGN, "Expected '<-' after FOR variable")
        start = self.parse_expression()
        self.expect(TokenType.TO, "Expected TO in FOR loop")
        end = self.parse_expression()
        if self.match(TokenType.STEP):
            step = self.parse_expression()
        else:
            step = self._at(LiteralExpr(1), for_tok)
        body = self._parse_block_until(TokenType.NEXT)
        self.expect(TokenType.NEXT, "Expected NEXT to close FOR loop")
        self._validate_next_variable(name)
        return ForStmt(name, start, end, step, body)

    def _validate_next_variable(self, loop_var: str):
        """The variable after NEXT is optional but must match the FOR variable."""
        if self.check(TokenType.IDENTIFIER):
            tok = self.advance()
            if tok.value != loop_var:
                raise self.error(
                    f"NEXT identifier '{tok.value}' does not match FOR variable '{loop_var}'", tok
                )

    def parse_case(self) -> CaseStmt:
        self.expect(TokenType.CASE)
        self.expect(TokenType.OF, "Expected OF after CASE")
        selector = self.parse_expression()

        branches = []
        otherwise = None
        while True:
            self._skip_newlines()
            if self.check(TokenType.ENDCASE, TokenType.EOF):
                break
            if self.match(TokenType.OTHERWISE):
                self.expect(TokenType.COLON, "Expected ':' after OTHERWISE")
                otherwise = self._parse_block_until(TokenType.ENDCASE)
                break
            branches.append(self.parse_case_branch())

        self.expect(TokenType.ENDCASE, "Expected ENDCASE to close CASE statement")
        return CaseStmt(selector, branches, otherwise)

    def parse_case_branch(self) -> CaseBranch:
        """<value> [TO <value>] : <statements>"""
        label_tok = self.current
        label = self.parse_expression()
        if self.match(TokenType.TO):
            label = self._at(RangeExpr(label, self.parse_expression()), label_tok)
        self.expect(TokenType.COLON, "Expected ':' after CASE value")

        stmts = []
        while True:
            self._skip_newlines()
            if self.check(TokenType.EOF) or self._at_case_branch_end():
                break
            stmts.extend(self.parse_statement())
        return CaseBranch(label, stmts)

    def _at_case_branch_end(self) -> bool:
        """A branch ends where the next label, OTHERWISE or ENDCASE begins."""
        return self.check(TokenType.ENDCASE, TokenType.OTHERWISE) or self.is_case_label_start()

    def is_case_label_start(self) -> bool:
        if self.check(TokenType.NUMBER, TokenType.STRING, TokenType.BOOLEAN):
            return True
        return self._is_negative_literal_start()

    def _is_negative_literal_start(self) -> bool:
        """A negative literal like -3 starting a case label."""
        return self.check(TokenType.MINUS) and self.peek(1).type == TokenType.NUMBER

    # ── Procedures and functions ──

    def parse_procedure_decl(self) -> ProcedureDecl:
        self.expect(TokenType.PROCEDURE)
        name = self.expect(TokenType.IDENTIFIER, "Expected procedure name").value
        params = self._parse_optional_params()
        body = self._parse_block_until(TokenType.ENDPROCEDURE)
        self.expect(TokenType.ENDPROCEDURE, "Expected ENDPROCEDURE to close PROCEDURE")
        return ProcedureDecl(name, params, body)

    def parse_function_decl(self) -> FunctionDecl:
        self.expect(TokenType.FUNCTION)
        name = self.expect(TokenType.IDENTIFIER, "Expected function name").value
        params = self._parse_optional_params()
        self.expect(TokenType.RETURNS, "Expected RETURNS in FUNCTION header")
        return_type = self._parse_type_name()
        body = self._parse_block_until(TokenType.ENDFUNCTION)
        self.expect(TokenType.ENDFUNCTION, "Expected ENDFUNCTION to close FUNCTION")
        return FunctionDecl(name, params, return_type, body)

    def _parse_optional_params(self) -> List[Param]:
        """Parse an optional parenthesized parameter list."""
        if not self.match(TokenType.LPAREN):
            return []
        params = []
        if not self.check(TokenType.RPAREN):
            params.append(self.parse_param())
            while self.match(TokenType.COMMA):
                params.append(self.parse_param())
        self.expect(TokenType.RPAREN, "Expected ')' after parameters")
        return params

    def parse_param(self) -> Param:
        # BYVAL is the default and each parameter carries its own mode
        mode = "BYVAL"
        if self.match(TokenType.BYREF):
            mode = "BYREF"
        else:
            self.match(TokenType.BYVAL)
        name = self.expect(TokenType.IDENTIFIER, "Expected parameter name").value
        self.expect(TokenType.COLON, f"Expected ':' after parameter '{name}'")
        if self.match(TokenType.ARRAY):
            self.expect(TokenType.OF, f"Expected OF after ARRAY for parameter '{name}'")
            return Param(name, "ARRAY", mode, self._parse_type_name())
        return Param(name, self._parse_type_name(), mode)

    def parse_call_stmt(self) -> CallStmt:
        self.expect(TokenType.CALL)
        name = self.expect(TokenType.IDENTIFIER, "Expected procedure name after CALL").value
        args = self._parse_arglist() if self.match(TokenType.LPAREN) else []
        return CallStmt(name, args)

    def parse_return(self) -> ReturnStmt:
        self.expect(TokenType.RETURN)
        return ReturnStmt(self.parse_expression())

    # ── File statements ──

    def parse_open_file(self) -> OpenFileStmt:
        self.expect(TokenType.OPENFILE)
        filename = self.parse_expression()
        self.expect(TokenType.FOR, "Expected FOR after OPENFILE filename")
        mode_tok = self.current
        if mode_tok.type not in _FILE_MODES:
            raise self.error("Expected READ, WRITE or APPEND after FOR")
        self.advance()
        return OpenFileStmt(filename, _FILE_MODES[mode_tok.type])

    def parse_close_file(self) -> CloseFileStmt:
        self.expect(TokenType.CLOSEFILE)
        return CloseFileStmt(self.parse_expression())

    def parse_read_file(self) -> ReadFileStmt:
        self.expect(TokenType.READFILE)
        filename = self.parse_expression()
        self.expect(TokenType.COMMA, "Expected ',' after READFILE filename")
        return ReadFileStmt(filename, self._parse_target())

    def parse_write_file(self) -> WriteFileStmt:
        self.expect(TokenType.WRITEFILE)
        filename = self.parse_expression()
        self.expect(TokenType.COMMA, "Expected ',' after WRITEFILE filename")
        return WriteFileStmt(filename, self.parse_expression())

    # ── Expressions (precedence climbing) ──

    def parse_expression(self, min_prec: int = 0) -> Expr:
        left = self._parse_prefix()
        while True:
            prec = OPERATOR_PRECEDENCE.get(self.current.type, -1)
            if prec < min_prec:
                return left
            op_tok = self.advance()
            next_min = prec if op_tok.type in RIGHT_ASSOCIATIVE else prec + 1
            right = self.parse_expression(next_min)
            left = self._at(BinaryExpr(left, op_tok.value, right), op_tok)

    def _parse_prefix(self) -> Expr:
        if self.check(TokenType.NOT):
            tok = self.advance()
            return self._at(UnaryExpr("NOT", self.parse_expression(NOT_PRECEDENCE)), tok)
        return self.parse_unary()

    def parse_unary(self) -> Expr:
        if self.check(TokenType.MINUS):
            tok = self.advance()
            return self._at(UnaryExpr("-", self.parse_unary()), tok)
        return self.parse_primary()

    def parse_primary(self) -> Expr:
        tok = self.current

        if self.match(TokenType.LPAREN):
            expr = self.parse_expression()
            self.expect(TokenType.RPAREN, "Expected ')'")
            return expr

        if self.match(TokenType.NUMBER):
            value = float(tok.value) if '.' in tok.value else int(tok.value)
            return self._at(LiteralExpr(value), tok)

        if self.match(TokenType.STRING, TokenType.BOOLEAN):
            return self._at(LiteralExpr(tok.value), tok)

        if self.check(*_CALLABLE_KEYWORDS) and self.peek(1).type == TokenType.LPAREN:
            self.advance()
            self.advance()
            return self._at(CallExpr(tok.value, self._parse_arglist()), tok)

        if self.match(TokenType.IDENTIFIER):
            if self.match(TokenType.LBRACKET):
                return self._at(ArrayAccessExpr(tok.value, self._parse_index_list()), tok)
            if self.match(TokenType.LPAREN):
                return self._at(CallExpr(tok.value, self._parse_arglist()), tok)
            return self._at(VariableExpr(tok.value), tok)

        raise self.error(f"Unexpected '{tok.describe()}' in expression")

    def _parse_arglist(self) -> List[Expr]:
        """Comma-separated argument list (LPAREN already consumed)."""
        args = []
        if not self.check(TokenType.RPAREN):
            args.append(self.parse_expression())
            while self.match(TokenType.COMMA):
                args.append(self.parse_expression())
        self.expect(TokenType.RPAREN, "Expected ')' after arguments")
        return args


def parse_source(source: str, filename: str = "<input>") -> List[Stmt]:
    """Tokenize and parse a whole program."""
    return Parser(Lexer(source, filename).tokenize()).parse()
