import logging
import math
import operator
import sys
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional, Tuple

from ast_nodes import *
from builtins_handler import call_builtin, check_arity, is_builtin
from errors import ExecutionCancelled, InterpreterError
from file_handler import SimulatedFileSystem
from parser import parse_source
from settings import InterpreterSettings
from symbol_table import (
    ArrayBounds, CallFrame, DataType, DebugState, ExecutionContext, SymbolTable,
    Variable, coerce_input, floor_number, format_value, is_number, to_index, to_real,
    values_equal,
)

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

# Each pseudocode call level costs roughly a dozen Python frames
PYTHON_RECURSION_LIMIT = 20000


class Returned:
    """A function-body statement hit RETURN. None means it completed normally."""
    __slots__ = ('value',)

    def __init__(self, value):
        self.value = value


# ── Binary operators ──

def _arithmetic(fn, checks_zero=False):
    def apply(left, right):
        if not (is_number(left) and is_number(right)):
            raise InterpreterError("Cannot perform arithmetic on non-numbers")
        if checks_zero and right == 0:
            raise InterpreterError("Division by zero")
        return fn(to_real(left), to_real(right))
    return apply


def _power(left, right):
    try:
        return math.pow(left, right)
    except OverflowError:
        return math.inf
    except ValueError:
        return math.nan


def _ordering(fn):
    def apply(left, right):
        if is_number(left) and is_number(right):
            return fn(to_real(left), to_real(right))
        if isinstance(left, str) and isinstance(right, str):
            return fn(left, right)
        raise InterpreterError("Invalid comparison")
    return apply


def _logical(fn):
    def apply(left, right):
        if not (isinstance(left, bool) and isinstance(right, bool)):
            raise InterpreterError("Logical operators require boolean operands")
        return fn(left, right)
    return apply


BINARY_OPERATORS = {
    '+': _arithmetic(operator.add),
    '-': _arithmetic(operator.sub),
    '*': _arithmetic(operator.mul),
    '/': _arithmetic(operator.truediv, checks_zero=True),
    'DIV': _arithmetic(operator.floordiv, checks_zero=True),
    'MOD': _arithmetic(math.fmod, checks_zero=True),
    '^': _arithmetic(_power),
    '&': lambda left, right: format_value(left) + format_value(right),
    '=': values_equal,
    '<>': lambda left, right: not values_equal(left, right),
    '<': _ordering(operator.lt),
    '>': _ordering(operator.gt),
    '<=': _ordering(operator.le),
    '>=': _ordering(operator.ge),
    'AND': _logical(lambda left, right: left and right),
    'OR': _logical(lambda left, right: left or right),
}


class Interpreter:
    """
    Two-pass tree-walking evaluator.

    ``execute`` registers every top-level PROCEDURE and FUNCTION, then runs
    the remaining statements and yields output lines as they are produced.
    Procedures stream through generators; FUNCTION bodies run synchronously
    on a reduced statement set and report RETURN through a ``Returned`` value.
    """

    def __init__(self,
                 input_handler: Optional[Callable[[str, str], str]] = None,
                 step_callback: Optional[Callable[[], None]] = None,
                 file_upload_handler: Optional[Callable[[str], str]] = None,
                 settings: Optional[InterpreterSettings] = None):
        self.settings = settings or InterpreterSettings()
        self.input_handler = input_handler
        self.step_callback = step_callback
        self.debug_mode = self.settings.debug_mode
        self.symbol_table = SymbolTable()
        self.files = SimulatedFileSystem(file_upload_handler, self.settings.echo_file_writes)
        self.call_stack: List[CallFrame] = [CallFrame("main", 1, "main")]
        self.iteration_count = 0
        self.recursion_depth = 0
        self.current_line = 0
        self.running = False
        self.paused = False
        self._cancel_event = threading.Event()
        self._init_dispatch_tables()

    def _init_dispatch_tables(self):
        # Streaming visitors return an iterable of output lines, or None
        self._stmt_visitors = {
            DeclareStmt: self.visit_DeclareStmt,
            AssignStmt: self.visit_AssignStmt,
            OutputStmt: self.visit_OutputStmt,
            InputStmt: self.visit_InputStmt,
            IfStmt: self.visit_IfStmt,
            WhileStmt: self.visit_WhileStmt,
            RepeatStmt: self.visit_RepeatStmt,
            ForStmt: self.visit_ForStmt,
            CaseStmt: self.visit_CaseStmt,
            CallStmt: self.visit_CallStmt,
            ReturnStmt: self.visit_ReturnStmt,
            ProcedureDecl: self.visit_Definition,
            FunctionDecl: self.visit_Definition,
            OpenFileStmt: self.visit_OpenFileStmt,
            CloseFileStmt: self.visit_CloseFileStmt,
            ReadFileStmt: self.visit_ReadFileStmt,
            WriteFileStmt: self.visit_WriteFileStmt,
        }

        # Function-body runners return None or a Returned
        self._function_runners = {
            DeclareStmt: self.visit_DeclareStmt,
            AssignStmt: self.visit_AssignStmt,
            IfStmt: self.run_IfStmt,
            WhileStmt: self.run_WhileStmt,
            RepeatStmt: self.run_RepeatStmt,
            ForStmt: self.run_ForStmt,
            CaseStmt: self.run_CaseStmt,
            ReturnStmt: self.run_ReturnStmt,
        }

        self._expr_evaluators = {
            LiteralExpr: self.evaluate_LiteralExpr,
            VariableExpr: self.evaluate_VariableExpr,
            ArrayAccessExpr: self.evaluate_ArrayAccessExpr,
            BinaryExpr: self.evaluate_BinaryExpr,
            UnaryExpr: self.evaluate_UnaryExpr,
            CallExpr: self.evaluate_CallExpr,
        }

    # ══════════════════════════════════════════════════════
    #  Entry point and host controls
    # ══════════════════════════════════════════════════════

    def execute(self, statements: List[Stmt]) -> Iterator[str]:
        """Run a parsed program, yielding each output line as it is produced."""
        self.iteration_count = 0
        self.recursion_depth = 0
        self.call_stack = [CallFrame("main", 1, "main")]
        self.running = True
        if sys.getrecursionlimit() < PYTHON_RECURSION_LIMIT:
            sys.setrecursionlimit(PYTHON_RECURSION_LIMIT)

        try:
            for stmt in statements:
                if isinstance(stmt, (ProcedureDecl, FunctionDecl)):
                    self._register(stmt)
            global_context = self.symbol_table.global_context
            for stmt in statements:
                if not isinstance(stmt, (ProcedureDecl, FunctionDecl)):
                    yield from self._execute(stmt, global_context)
        except RecursionError:
            raise InterpreterError("Maximum recursion depth exceeded", self.current_line) from None
        finally:
            self.running = False
            self.paused = False
            self._cancel_event.clear()

    def cancel(self):
        """
        Ask the run to stop at the next statement boundary.

        The request lasts until the current run ends, so a later ``execute``
        on the same instance starts fresh.
        """
        self._cancel_event.set()

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_event.is_set()

    def disable_debug_mode(self):
        """Stop pausing before statements; the run continues to the end."""
        self.debug_mode = False

    def get_debug_state(self) -> DebugState:
        """Snapshot for the debugger. Meant to be read while the run is paused."""
        return DebugState(
            current_line=self.call_stack[-1].line if self.call_stack else self.current_line,
            call_stack=[CallFrame(f.name, f.line, f.kind) for f in self.call_stack],
            variables=self.symbol_table.snapshot_globals(),
            paused=self.paused,
            running=self.running,
        )

    def get_file_content(self, filename: str) -> Optional[str]:
        return self.files.get_content(filename)

    def get_all_files(self) -> List[Tuple[str, str, int]]:
        return self.files.list_files()

    # ══════════════════════════════════════════════════════
    #  Statement dispatch
    # ══════════════════════════════════════════════════════

    def _register(self, decl):
        table = (self.symbol_table.procedures if isinstance(decl, ProcedureDecl)
                 else self.symbol_table.functions)
        table[decl.name] = decl
        logger.debug("registered %s %s", STATEMENT_KEYWORDS[type(decl)], decl.name)

    def _enter_statement(self, stmt: Stmt):
        self.iteration_count += 1
        if self.iteration_count > self.settings.max_iterations:
            raise InterpreterError("Execution timeout: Possible infinite loop", stmt.line)
        self._check_cancelled()
        self.current_line = stmt.line
        self.call_stack[-1].line = stmt.line

    def _check_cancelled(self):
        if self._cancel_event.is_set():
            raise ExecutionCancelled(self.current_line)

    def _pause(self):
        self.paused = True
        logger.debug("paused before line %d", self.current_line)
        try:
            self.step_callback()
        finally:
            self.paused = False
        self._check_cancelled()

    def _execute(self, stmt: Stmt, ctx: ExecutionContext) -> Iterator[str]:
        self._enter_statement(stmt)
        if self.debug_mode and self.step_callback is not None:
            self._pause()

        visitor = self._stmt_visitors.get(type(stmt))
        if visitor is None:
            raise InterpreterError(f"No visit method for {type(stmt).__name__}", stmt.line)
        try:
            lines = visitor(stmt, ctx)
            if lines is not None:
                yield from lines
        except InterpreterError as exc:
            self._attach_line(exc, stmt)
            raise

    def _execute_block(self, stmts: List[Stmt], ctx: ExecutionContext) -> Iterator[str]:
        for stmt in stmts:
            yield from self._execute(stmt, ctx)

    def _run(self, stmt: Stmt, ctx: ExecutionContext) -> Optional[Returned]:
        """Synchronous dispatch used inside FUNCTION bodies."""
        self._enter_statement(stmt)
        runner = self._function_runners.get(type(stmt))
        if runner is None:
            keyword = STATEMENT_KEYWORDS.get(type(stmt), type(stmt).__name__)
            raise InterpreterError(f"Unsupported statement in function: {keyword}", stmt.line)
        try:
            return runner(stmt, ctx)
        except InterpreterError as exc:
            self._attach_line(exc, stmt)
            raise

    def _run_block(self, stmts: List[Stmt], ctx: ExecutionContext) -> Optional[Returned]:
        for stmt in stmts:
            result = self._run(stmt, ctx)
            if result is not None:
                return result
        return None

    @staticmethod
    def _attach_line(exc: InterpreterError, stmt: Stmt):
        if not exc.line:
            exc.line = stmt.line
            logger.debug("runtime error at line %d: %s", exc.line, exc.message)

    # ══════════════════════════════════════════════════════
    #  Simple statements
    # ══════════════════════════════════════════════════════

    def visit_DeclareStmt(self, stmt: DeclareStmt, ctx: ExecutionContext):
        dtype = self.symbol_table.resolve_type(stmt.type_name)
        if stmt.is_array:
            bounds = ArrayBounds(list(stmt.array_bounds), dtype)
            ctx.declare(stmt.name, Variable.new_array(bounds))
        else:
            ctx.declare(stmt.name, Variable(dtype))

    def visit_AssignStmt(self, stmt: AssignStmt, ctx: ExecutionContext):
        value = self.evaluate(stmt.value, ctx)
        variable, indices, _ = self._resolve_target(stmt.target, ctx)
        self._store(variable, indices, stmt.target, value)

    def visit_OutputStmt(self, stmt: OutputStmt, ctx: ExecutionContext):
        return [" ".join(format_value(self.evaluate(v, ctx)) for v in stmt.values)]

    def visit_InputStmt(self, stmt: InputStmt, ctx: ExecutionContext):
        if self.input_handler is None:
            raise InterpreterError("No input handler available")
        variable, indices, label = self._resolve_target(stmt.target, ctx)
        target_type = variable.element_type if indices is not None else variable.type
        text = self.input_handler(label, target_type.name)
        text = "" if text is None else str(text)
        self._store(variable, indices, stmt.target, coerce_input(text, target_type))
        return [text]

    def _resolve_target(self, target: Expr, ctx: ExecutionContext):
        """Return (variable, indices or None, display label) for an assignable target."""
        if isinstance(target, ArrayAccessExpr):
            variable = self._array_variable(target.array, ctx)
            indices = [to_index(self.evaluate(i, ctx)) for i in target.indices]
            label = f"{target.array}[{', '.join(str(i) for i in indices)}]"
            return variable, indices, label
        variable = ctx.get(target.name)
        if variable.is_array:
            raise InterpreterError(f"Cannot assign to array '{target.name}' without an index")
        return variable, None, target.name

    @staticmethod
    def _store(variable: Variable, indices: Optional[List[int]], target: Expr, value: Any):
        if indices is None:
            variable.value = value
            variable.initialized = True
        else:
            variable.set_element(target.array, indices, value)

    def _array_variable(self, name: str, ctx: ExecutionContext) -> Variable:
        variable = ctx.lookup(name)
        if variable is None:
            raise InterpreterError(f"Array '{name}' not declared")
        if not variable.is_array:
            raise InterpreterError(f"'{name}' is not an array")
        return variable

    def visit_Definition(self, stmt, ctx: ExecutionContext):
        # Procedure and function tables are global even for nested declarations
        self._register(stmt)

    def visit_ReturnStmt(self, stmt: ReturnStmt, ctx: ExecutionContext):
        raise InterpreterError("RETURN is only allowed inside a FUNCTION")

    # ══════════════════════════════════════════════════════
    #  Control flow (streaming and function-body forms)
    # ══════════════════════════════════════════════════════

    def _condition(self, expr: Expr, ctx: ExecutionContext, keyword: str) -> bool:
        value = self.evaluate(expr, ctx)
        if not isinstance(value, bool):
            raise InterpreterError(f"{keyword} condition must be boolean")
        return value

    def _select_if_branch(self, stmt: IfStmt, ctx: ExecutionContext) -> Optional[List[Stmt]]:
        if self._condition(stmt.condition, ctx, "IF"):
            return stmt.then_branch
        for condition, block in stmt.elif_branches:
            if self._condition(condition, ctx, "ELSE IF"):
                return block
        return stmt.else_branch

    def visit_IfStmt(self, stmt: IfStmt, ctx: ExecutionContext):
        block = self._select_if_branch(stmt, ctx)
        if block:
            yield from self._execute_block(block, ctx)

    def run_IfStmt(self, stmt: IfStmt, ctx: ExecutionContext):
        block = self._select_if_branch(stmt, ctx)
        return self._run_block(block, ctx) if block else None

    def visit_WhileStmt(self, stmt: WhileStmt, ctx: ExecutionContext):
        while self._condition(stmt.condition, ctx, "WHILE"):
            yield from self._execute_block(stmt.body, ctx)

    def run_WhileStmt(self, stmt: WhileStmt, ctx: ExecutionContext):
        while self._condition(stmt.condition, ctx, "WHILE"):
            result = self._run_block(stmt.body, ctx)
            if result is not None:
                return result
        return None

    def visit_RepeatStmt(self, stmt: RepeatStmt, ctx: ExecutionContext):
        while True:
            yield from self._execute_block(stmt.body, ctx)
            if self._condition(stmt.condition, ctx, "UNTIL"):
                return

    def run_RepeatStmt(self, stmt: RepeatStmt, ctx: ExecutionContext):
        while True:
            result = self._run_block(stmt.body, ctx)
            if result is not None:
                return result
            if self._condition(stmt.condition, ctx, "UNTIL"):
                return None

    def _start_for(self, stmt: ForStmt, ctx: ExecutionContext) -> Tuple[Variable, int, int]:
        variable = ctx.lookup(stmt.identifier)
        if variable is None:
            variable = ctx.declare(stmt.identifier, Variable(DataType.INTEGER))
        elif variable.is_array:
            raise InterpreterError(f"FOR loop variable '{stmt.identifier}' cannot be an array")

        values = [self.evaluate(e, ctx) for e in (stmt.start_value, stmt.end_value, stmt.step_value)]
        if not all(is_number(v) for v in values):
            raise InterpreterError("FOR loop bounds must be numbers")
        start, end, step = (floor_number(v) for v in values)
        if step == 0:
            raise InterpreterError("FOR loop STEP cannot be zero")

        variable.value = start
        variable.initialized = True
        return variable, end, step

    @staticmethod
    def _for_continues(variable: Variable, end: int, step: int) -> bool:
        if not is_number(variable.value):
            raise InterpreterError("FOR loop variable must stay numeric")
        return variable.value <= end if step > 0 else variable.value >= end

    @staticmethod
    def _for_advance(variable: Variable, step: int):
        variable.value = floor_number(variable.value) + step

    def visit_ForStmt(self, stmt: ForStmt, ctx: ExecutionContext):
        variable, end, step = self._start_for(stmt, ctx)
        while self._for_continues(variable, end, step):
            yield from self._execute_block(stmt.body, ctx)
            self._for_advance(variable, step)

    def run_ForStmt(self, stmt: ForStmt, ctx: ExecutionContext):
        variable, end, step = self._start_for(stmt, ctx)
        while self._for_continues(variable, end, step):
            result = self._run_block(stmt.body, ctx)
            if result is not None:
                return result
            self._for_advance(variable, step)
        return None

    def _select_case_branch(self, stmt: CaseStmt, ctx: ExecutionContext) -> Optional[List[Stmt]]:
        selector = self.evaluate(stmt.selector, ctx)
        for branch in stmt.branches:
            if self._case_matches(branch.label, selector, ctx):
                return branch.statements
        return stmt.otherwise_branch

    def _case_matches(self, label: Expr, selector: Any, ctx: ExecutionContext) -> bool:
        if isinstance(label, RangeExpr):
            low = self.evaluate(label.start, ctx)
            high = self.evaluate(label.end, ctx)
            if not (is_number(selector) and is_number(low) and is_number(high)):
                raise InterpreterError("CASE range requires numeric values")
            return low <= selector <= high
        return values_equal(selector, self.evaluate(label, ctx))

    def visit_CaseStmt(self, stmt: CaseStmt, ctx: ExecutionContext):
        block = self._select_case_branch(stmt, ctx)
        if block:
            yield from self._execute_block(block, ctx)

    def run_CaseStmt(self, stmt: CaseStmt, ctx: ExecutionContext):
        block = self._select_case_branch(stmt, ctx)
        return self._run_block(block, ctx) if block else None

    def run_ReturnStmt(self, stmt: ReturnStmt, ctx: ExecutionContext):
        return Returned(self.evaluate(stmt.value, ctx))

    # ══════════════════════════════════════════════════════
    #  Procedures and functions
    # ══════════════════════════════════════════════════════

    @contextmanager
    def _call_scope(self, name: str, line: int, kind: str):
        """Depth guard plus call-stack frame, released on every exit path."""
        self.recursion_depth += 1
        try:
            if self.recursion_depth > self.settings.max_recursion_depth:
                raise InterpreterError("Maximum recursion depth exceeded")
            self.call_stack.append(CallFrame(name, line, kind))
            logger.debug("enter %s %s (depth %d)", kind, name, self.recursion_depth)
            try:
                yield
            finally:
                self.call_stack.pop()
                logger.debug("leave %s %s", kind, name)
        finally:
            self.recursion_depth -= 1

    def _bind_arguments(self, decl, arguments: List[Expr],
                        caller_ctx: ExecutionContext) -> ExecutionContext:
        local = self.symbol_table.new_call_context()
        for param, arg in zip(decl.params, arguments):
            if param.mode == "BYREF":
                if not isinstance(arg, VariableExpr):
                    raise InterpreterError("BYREF parameter must be a variable")
                local.declare(param.name, caller_ctx.get(arg.name))
            else:
                local.declare(param.name, self._copy_argument(param, arg, caller_ctx))
        return local

    def _copy_argument(self, param: Param, arg: Expr, caller_ctx: ExecutionContext) -> Variable:
        if param.type_name.upper() == "ARRAY":
            source = caller_ctx.lookup(arg.name) if isinstance(arg, VariableExpr) else None
            if source is None or not source.is_array:
                raise InterpreterError(f"Parameter '{param.name}' expects an array")
            return source.copy()
        value = self.evaluate(arg, caller_ctx)
        return Variable(self.symbol_table.resolve_type(param.type_name), value, True)

    def visit_CallStmt(self, stmt: CallStmt, ctx: ExecutionContext):
        proc = self.symbol_table.procedures.get(stmt.name)
        if proc is None:
            if stmt.name in self.symbol_table.functions:
                raise InterpreterError(f"Use assignment to call function '{stmt.name}', not CALL")
            raise InterpreterError(f"Procedure '{stmt.name}' not found")
        if len(stmt.arguments) != len(proc.params):
            raise InterpreterError(f"Incorrect number of arguments for procedure '{proc.name}'")

        with self._call_scope(proc.name, stmt.line, "procedure"):
            local = self._bind_arguments(proc, stmt.arguments, ctx)
            yield from self._execute_block(proc.body, local)

    def _call_function(self, func: FunctionDecl, arguments: List[Expr],
                       ctx: ExecutionContext, line: int) -> Any:
        if len(arguments) != len(func.params):
            raise InterpreterError(f"Incorrect number of arguments for function '{func.name}'")
        with self._call_scope(func.name, line, "function"):
            local = self._bind_arguments(func, arguments, ctx)
            result = self._run_block(func.body, local)
        if result is None:
            raise InterpreterError(f"Function '{func.name}' did not return a value")
        return result.value

    # ══════════════════════════════════════════════════════
    #  File statements
    # ══════════════════════════════════════════════════════

    def _filename(self, expr: Expr, ctx: ExecutionContext) -> str:
        return format_value(self.evaluate(expr, ctx))

    def visit_OpenFileStmt(self, stmt: OpenFileStmt, ctx: ExecutionContext):
        return [self.files.open(self._filename(stmt.filename, ctx), stmt.mode)]

    def visit_CloseFileStmt(self, stmt: CloseFileStmt, ctx: ExecutionContext):
        return [self.files.close(self._filename(stmt.filename, ctx))]

    def visit_ReadFileStmt(self, stmt: ReadFileStmt, ctx: ExecutionContext):
        line = self.files.read_line(self._filename(stmt.filename, ctx))
        variable, indices, _ = self._resolve_target(stmt.target, ctx)
        target_type = variable.element_type if indices is not None else variable.type
        self._store(variable, indices, stmt.target, coerce_input(line, target_type))
        return [line]

    def visit_WriteFileStmt(self, stmt: WriteFileStmt, ctx: ExecutionContext):
        filename = self._filename(stmt.filename, ctx)
        echo = self.files.write_line(filename, format_value(self.evaluate(stmt.data, ctx)))
        return [echo] if echo is not None else None

    # ══════════════════════════════════════════════════════
    #  Expressions
    # ══════════════════════════════════════════════════════

    def evaluate(self, expr: Expr, ctx: ExecutionContext) -> Any:
        evaluator = self._expr_evaluators.get(type(expr))
        if evaluator is None:
            raise InterpreterError(f"No evaluate method for {type(expr).__name__}")
        return evaluator(expr, ctx)

    def evaluate_LiteralExpr(self, expr: LiteralExpr, ctx: ExecutionContext):
        return expr.value

    def evaluate_VariableExpr(self, expr: VariableExpr, ctx: ExecutionContext):
        variable = ctx.get(expr.name)
        if variable.is_array:
            raise InterpreterError(f"Array '{expr.name}' must be used with an index")
        if not variable.initialized:
            raise InterpreterError(f"Variable '{expr.name}' used before assignment")
        return variable.value

    def evaluate_ArrayAccessExpr(self, expr: ArrayAccessExpr, ctx: ExecutionContext):
        variable = self._array_variable(expr.array, ctx)
        indices = [to_index(self.evaluate(i, ctx)) for i in expr.indices]
        return variable.get_element(expr.array, indices)

    def evaluate_BinaryExpr(self, expr: BinaryExpr, ctx: ExecutionContext):
        left = self.evaluate(expr.left, ctx)
        right = self.evaluate(expr.right, ctx)
        op = BINARY_OPERATORS.get(expr.operator)
        if op is None:
            raise InterpreterError(f"Unknown operator: {expr.operator}")
        return op(left, right)

    def evaluate_UnaryExpr(self, expr: UnaryExpr, ctx: ExecutionContext):
        operand = self.evaluate(expr.operand, ctx)
        if expr.operator == '-':
            if not is_number(operand):
                raise InterpreterError("Cannot negate non-number")
            return -to_real(operand)
        if expr.operator == 'NOT':
            if not isinstance(operand, bool):
                raise InterpreterError("NOT requires boolean operand")
            return not operand
        raise InterpreterError(f"Unknown operator: {expr.operator}")

    def evaluate_CallExpr(self, expr: CallExpr, ctx: ExecutionContext):
        if is_builtin(expr.callee):
            check_arity(expr.callee, len(expr.arguments))
            args = [self.evaluate(a, ctx) for a in expr.arguments]
            return call_builtin(expr.callee, args, self.files)

        func = self.symbol_table.functions.get(expr.callee)
        if func is None:
            if expr.callee in self.symbol_table.procedures:
                raise InterpreterError(f"Use CALL to run procedure '{expr.callee}'")
            raise InterpreterError(f"Function '{expr.callee}' not found")
        return self._call_function(func, expr.arguments, ctx, expr.line or self.current_line)


def run_source(source: str, **interpreter_kwargs) -> List[str]:
    """Parse and run a program, returning every output line."""
    return list(Interpreter(**interpreter_kwargs).execute(parse_source(source)))
