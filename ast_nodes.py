from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union


# Every node gets a ``line`` attribute from the parser. It is a plain class
# attribute rather than a dataclass field, so structural equality ignores it.

@dataclass
class Expr:
    """Base class for all expressions."""
    line = 0


@dataclass
class LiteralExpr(Expr):
    value: Union[int, float, str, bool]


@dataclass
class VariableExpr(Expr):
    name: str


@dataclass
class ArrayAccessExpr(Expr):
    array: str
    indices: List[Expr]


@dataclass
class BinaryExpr(Expr):
    left: Expr
    operator: str
    right: Expr


@dataclass
class UnaryExpr(Expr):
    operator: str   # '-' or 'NOT'
    operand: Expr


@dataclass
class CallExpr(Expr):
    """Built-in or user FUNCTION call."""
    callee: str
    arguments: List[Expr]


@dataclass
class RangeExpr(Expr):
    """value1 TO value2 in a CASE label."""
    start: Expr
    end: Expr


@dataclass
class Stmt:
    """Base class for all statements."""
    line = 0


@dataclass
class DeclareStmt(Stmt):
    name: str
    type_name: str
    is_array: bool = False
    array_bounds: Optional[List[Tuple[int, int]]] = None


@dataclass
class AssignStmt(Stmt):
    target: Union[VariableExpr, ArrayAccessExpr]
    value: Expr


@dataclass
class OutputStmt(Stmt):
    values: List[Expr]


@dataclass
class InputStmt(Stmt):
    target: Union[VariableExpr, ArrayAccessExpr]


@dataclass
class IfStmt(Stmt):
    condition: Expr
    then_branch: List[Stmt]
    elif_branches: List[Tuple[Expr, List[Stmt]]] = field(default_factory=list)
    else_branch: Optional[List[Stmt]] = None


@dataclass
class WhileStmt(Stmt):
    condition: Expr
    body: List[Stmt]


@dataclass
class RepeatStmt(Stmt):
    body: List[Stmt]
    condition: Expr


@dataclass
class ForStmt(Stmt):
    identifier: str
    start_value: Expr
    end_value: Expr
    step_value: Expr
    body: List[Stmt]


@dataclass
class CaseBranch:
    """
    One CASE branch.
    label: a single value expression, or a RangeExpr for ``a TO b``
    statements: body executed on match
    """
    label: Expr
    statements: List[Stmt]


@dataclass
class CaseStmt(Stmt):
    selector: Expr
    branches: List[CaseBranch]
    otherwise_branch: Optional[List[Stmt]] = None


@dataclass
class Param:
    name: str
    type_name: str
    mode: str = "BYVAL"                  # BYVAL or BYREF
    element_type: Optional[str] = None   # for ARRAY OF <type> parameters


@dataclass
class ProcedureDecl(Stmt):
    name: str
    params: List[Param]
    body: List[Stmt]


@dataclass
class FunctionDecl(Stmt):
    name: str
    params: List[Param]
    return_type: str
    body: List[Stmt]


@dataclass
class CallStmt(Stmt):
    name: str
    arguments: List[Expr]


@dataclass
class ReturnStmt(Stmt):
    value: Expr


@dataclass
class OpenFileStmt(Stmt):
    filename: Expr
    mode: str   # READ, WRITE or APPEND


@dataclass
class CloseFileStmt(Stmt):
    filename: Expr


@dataclass
class ReadFileStmt(Stmt):
    filename: Expr
    target: Union[VariableExpr, ArrayAccessExpr]


@dataclass
class WriteFileStmt(Stmt):
    filename: Expr
    data: Expr


# Keyword shown for each statement kind in messages and trace tables
STATEMENT_KEYWORDS = {
    DeclareStmt: "DECLARE",
    AssignStmt: "assignment",
    OutputStmt: "OUTPUT",
    InputStmt: "INPUT",
    IfStmt: "IF",
    WhileStmt: "WHILE",
    RepeatStmt: "REPEAT",
    ForStmt: "FOR",
    CaseStmt: "CASE",
    ProcedureDecl: "PROCEDURE",
    FunctionDecl: "FUNCTION",
    CallStmt: "CALL",
    ReturnStmt: "RETURN",
    OpenFileStmt: "OPENFILE",
    CloseFileStmt: "CLOSEFILE",
    ReadFileStmt: "READFILE",
    WriteFileStmt: "WRITEFILE",
}
