import math
import re
from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterator, List, Optional, Tuple

from errors import InterpreterError


class DataType(Enum):
    """IGCSE primitive types plus ARRAY."""
    INTEGER = auto()
    REAL = auto()
    STRING = auto()
    CHAR = auto()
    BOOLEAN = auto()
    ARRAY = auto()


# ── Runtime values ──
#
# Values are plain Python objects: int, float, str and bool. Arrays only
# live inside Variables. bool is a subclass of int, so every numeric check
# has to exclude it explicitly.

def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def format_value(value: Any) -> str:
    """Display form used by OUTPUT, & and STRING()."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def values_equal(left: Any, right: Any) -> bool:
    """Equality for = and <> and for CASE labels."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if is_number(left) and is_number(right):
        return to_real(left) == to_real(right)
    return type(left) is type(right) and left == right


def to_real(value: Any) -> float:
    try:
        return float(value)
    except OverflowError:
        raise InterpreterError("Number too large") from None


def require_finite(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        raise InterpreterError(f"Cannot convert {format_value(value)} to an integer")
    return value


def floor_number(value: Any) -> int:
    return math.floor(require_finite(value))


def to_index(value: Any) -> int:
    if not is_number(value):
        raise InterpreterError("Array index must be a number")
    return floor_number(value)


_INTEGER_TEXT = re.compile(r"[+-]?\d+", re.ASCII)
_REAL_TEXT = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)


def parse_integer(text: str) -> int:
    """Whole-number text to int; anything else reads as 0."""
    text = text.strip()
    return int(text) if _INTEGER_TEXT.fullmatch(text) else 0


def parse_real(text: str) -> float:
    text = text.strip()
    return float(text) if _REAL_TEXT.fullmatch(text) else 0.0


def coerce_input(text: str, target_type: Optional[DataType]) -> Any:
    """Convert text typed by the user (or read from a file) to the target's type."""
    if target_type == DataType.INTEGER:
        return parse_integer(text)
    if target_type == DataType.REAL:
        return parse_real(text)
    if target_type == DataType.BOOLEAN:
        return text.strip().lower() == "true"
    return text


@dataclass
class ArrayBounds:
    """
    Bounds of an ARRAY declaration.
    Supports multiple dimensions with arbitrary integer bounds.
    """
    dims: List[Tuple[int, int]]    # (lower, upper) per dimension
    element_type: DataType


@dataclass
class ArraySlot:
    initialized: bool = False
    value: Any = None


def _allocate(dims: List[Tuple[int, int]]) -> Dict[int, Any]:
    lower, upper = dims[0]
    if len(dims) == 1:
        return {i: ArraySlot() for i in range(lower, upper + 1)}
    return {i: _allocate(dims[1:]) for i in range(lower, upper + 1)}


@dataclass
class Variable:
    """A named storage location. BYREF parameters share the same instance."""
    type: DataType
    value: Any = None
    initialized: bool = False
    array_bounds: Optional[ArrayBounds] = None

    @classmethod
    def new_array(cls, bounds: ArrayBounds) -> 'Variable':
        """Every slot across all dimensions is allocated up front, uninitialized."""
        return cls(DataType.ARRAY, _allocate(bounds.dims), False, bounds)

    @property
    def is_array(self) -> bool:
        return self.type == DataType.ARRAY

    @property
    def element_type(self) -> Optional[DataType]:
        return self.array_bounds.element_type if self.array_bounds else None

    def _slot(self, name: str, indices: List[int]) -> ArraySlot:
        dims = self.array_bounds.dims
        if len(indices) != len(dims):
            raise InterpreterError(
                f"Array '{name}' expects {len(dims)} index(es), got {len(indices)}"
            )
        node = self.value
        for idx, (lower, upper) in zip(indices, dims):
            if idx < lower or idx > upper:
                raise InterpreterError(
                    f"Array index out of bounds: {name}[{idx}] is outside {lower}:{upper}"
                )
            node = node[idx]
        return node

    def get_element(self, name: str, indices: List[int]) -> Any:
        slot = self._slot(name, indices)
        if not slot.initialized:
            raise InterpreterError("Array element accessed before assignment")
        return slot.value

    def set_element(self, name: str, indices: List[int], value: Any):
        slot = self._slot(name, indices)
        slot.value = value
        slot.initialized = True

    def elements(self) -> Iterator[Tuple[Tuple[int, ...], ArraySlot]]:
        """Yield (indices, slot) pairs in index order."""
        def walk(node, prefix):
            for idx in sorted(node):
                child = node[idx]
                if isinstance(child, ArraySlot):
                    yield prefix + (idx,), child
                else:
                    yield from walk(child, prefix + (idx,))
        if self.is_array:
            yield from walk(self.value, ())

    def copy(self) -> 'Variable':
        return Variable(self.type, deepcopy(self.value), self.initialized, self.array_bounds)


class ExecutionContext:
    """Name -> Variable mapping chained to a parent context."""

    def __init__(self, parent: Optional['ExecutionContext'] = None):
        self.variables: Dict[str, Variable] = {}
        self.parent = parent

    def declare(self, name: str, variable: Variable) -> Variable:
        # Re-declaring replaces the old variable (DECLARE inside a loop body)
        self.variables[name] = variable
        return variable

    def lookup(self, name: str) -> Optional[Variable]:
        """Search this context, then its parents."""
        ctx = self
        while ctx is not None:
            var = ctx.variables.get(name)
            if var is not None:
                return var
            ctx = ctx.parent
        return None

    def get(self, name: str) -> Variable:
        var = self.lookup(name)
        if var is None:
            raise InterpreterError(f"Variable '{name}' not declared")
        return var


class SymbolTable:
    """Global context plus the process-wide procedure and function tables."""

    _BUILTIN_TYPES = {
        'INTEGER': DataType.INTEGER, 'REAL': DataType.REAL,
        'STRING': DataType.STRING, 'CHAR': DataType.CHAR,
        'BOOLEAN': DataType.BOOLEAN, 'ARRAY': DataType.ARRAY,
    }

    def __init__(self):
        self.global_context = ExecutionContext()
        self.procedures: Dict[str, Any] = {}
        self.functions: Dict[str, Any] = {}

    def new_call_context(self) -> ExecutionContext:
        """Callee contexts chain to the globals, never to the caller's locals."""
        return ExecutionContext(parent=self.global_context)

    def resolve_type(self, type_name: Optional[str]) -> DataType:
        dtype = self._BUILTIN_TYPES.get((type_name or "").upper())
        if dtype is None:
            raise InterpreterError(f"Unknown type '{type_name}'")
        return dtype

    def snapshot_globals(self) -> Dict[str, Dict[str, Any]]:
        """Copy of the global variables as {name: {type, value, initialized}}."""
        snapshot = {}
        for name, var in self.global_context.variables.items():
            if var.is_array:
                value = {idx: slot.value for idx, slot in var.elements() if slot.initialized}
            else:
                value = var.value
            snapshot[name] = {
                'type': var.type.name,
                'value': value,
                'initialized': var.initialized,
            }
        return snapshot


@dataclass
class CallFrame:
    """Call-stack entry used for diagnostics and the debugger."""
    name: str
    line: int
    kind: str = "main"      # main, procedure or function


@dataclass
class DebugState:
    current_line: int
    call_stack: List[CallFrame] = field(default_factory=list)
    variables: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    paused: bool = False
    running: bool = False
