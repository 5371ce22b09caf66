"""
Dry-run / trace-table mode.

  - Takes pre-supplied input values (as given on an exam paper) instead of prompting
  - Records a trace row of the global variables after each executed statement
  - Renders the trace as an ASCII table, CSV or Markdown
"""
import csv
import io
from typing import Dict, List, Optional

from ast_nodes import *
from errors import InterpreterError
from interpreter import Interpreter
from settings import InterpreterSettings
from symbol_table import format_value

# Statements whose bodies produce their own rows
_COMPOUND = (IfStmt, WhileStmt, RepeatStmt, ForStmt, CaseStmt, CallStmt)

UNSET = "-"


class DryRunInterpreter(Interpreter):

    def __init__(self, input_queue=None, file_upload_handler=None,
                 settings: Optional[InterpreterSettings] = None):
        super().__init__(
            input_handler=self._consume_next_input,
            file_upload_handler=file_upload_handler,
            settings=settings,
        )
        self.trace: List[Dict] = []
        self.output_log: List[str] = []
        self.input_queue = [str(v) for v in (input_queue or [])]
        self.input_index = 0

    # ══════════════════════════════════════════════════════
    #  AST scanning (static, no execution)
    # ══════════════════════════════════════════════════════

    @staticmethod
    def scan_inputs(statements) -> List[Dict]:
        """Walk the AST for INPUT and READFILE targets: [{'line', 'variable', 'source'}]."""
        results = []
        _walk_for_inputs(statements, results)
        return results

    # ══════════════════════════════════════════════════════
    #  Trace recording
    # ══════════════════════════════════════════════════════

    def _execute(self, stmt, ctx):
        if isinstance(stmt, _COMPOUND):
            yield from super()._execute(stmt, ctx)
            return
        produced = []
        for line in super()._execute(stmt, ctx):
            produced.append(line)
            self.output_log.append(line)
            yield line
        self._record(stmt, produced)

    def _record(self, stmt, produced):
        self.trace.append({
            'step': len(self.trace) + 1,
            'line': stmt.line,
            'statement': describe_statement(stmt),
            'variables': self._snapshot_vars(),
            'output': " / ".join(produced),
        })

    def _snapshot_vars(self) -> Dict[str, str]:
        snapshot = {}
        for name, var in self.symbol_table.global_context.variables.items():
            if var.is_array:
                for indices, slot in var.elements():
                    if slot.initialized:
                        key = f"{name}[{','.join(str(i) for i in indices)}]"
                        snapshot[key] = format_value(slot.value)
            else:
                snapshot[name] = format_value(var.value) if var.initialized else UNSET
        return snapshot

    # ══════════════════════════════════════════════════════
    #  INPUT from the pre-supplied queue
    # ══════════════════════════════════════════════════════

    def _consume_next_input(self, name, type_name):
        if self.input_index < len(self.input_queue):
            value = self.input_queue[self.input_index]
            self.input_index += 1
            return value
        raise InterpreterError(
            f"Dry run ran out of input values: input #{self.input_index + 1} "
            f"for '{name}' needed but only {len(self.input_queue)} provided"
        )

    # ══════════════════════════════════════════════════════
    #  Results and formatting
    # ══════════════════════════════════════════════════════

    def get_all_var_names(self) -> List[str]:
        """Scalars alphabetically, then array elements in index order."""
        names = set()
        for entry in self.trace:
            names.update(entry['variables'])
        scalars = sorted(n for n in names if '[' not in n)
        elements = sorted((n for n in names if '[' in n), key=_element_sort_key)
        return scalars + elements

    def trace_rows(self) -> List[List[str]]:
        var_names = self.get_all_var_names()
        headers = ['Step', 'Line', 'Statement'] + var_names + ['Output']
        rows = [headers]
        for entry in self.trace:
            values = [entry['variables'].get(n, UNSET) for n in var_names]
            rows.append([str(entry['step']), str(entry['line']), entry['statement']]
                        + values + [entry['output']])
        return rows

    def format_trace_text(self) -> str:
        """Format the trace as an ASCII table string."""
        if not self.trace:
            return "No trace data recorded."
        headers, *rows = self.trace_rows()
        return _format_ascii_table(headers, rows)

    def format_trace_csv(self) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerows(self.trace_rows())
        return buffer.getvalue().rstrip("\n")

    def format_trace_markdown(self) -> str:
        headers, *rows = self.trace_rows()
        lines = ["| " + " | ".join(headers) + " |",
                 "|" + "|".join("---" for _ in headers) + "|"]
        for row in rows:
            lines.append("| " + " | ".join(cell.replace("|", "\\|") for cell in row) + " |")
        return "\n".join(lines)

    TRACE_FORMATS = {
        'text': format_trace_text,
        'csv': format_trace_csv,
        'markdown': format_trace_markdown,
    }

    def format_trace(self, fmt: str = 'text') -> str:
        return self.TRACE_FORMATS[fmt](self)


# ══════════════════════════════════════════════════════
#  Module-level helpers
# ══════════════════════════════════════════════════════

def _target_name(target) -> str:
    if isinstance(target, ArrayAccessExpr):
        return target.array + "[...]"
    return target.name


_STMT_DESCRIPTIONS = {
    DeclareStmt:   lambda s: f"DECLARE {s.name} : {'ARRAY OF ' if s.is_array else ''}{s.type_name}",
    AssignStmt:    lambda s: f"{_target_name(s.target)} ← ...",
    InputStmt:     lambda s: f"INPUT {_target_name(s.target)}",
    ReadFileStmt:  lambda s: f"READFILE {_target_name(s.target)}",
    ForStmt:       lambda s: f"FOR {s.identifier}",
    CallStmt:      lambda s: f"CALL {s.name}",
    ProcedureDecl: lambda s: f"PROCEDURE {s.name}",
    FunctionDecl:  lambda s: f"FUNCTION {s.name}",
}


def describe_statement(stmt) -> str:
    """Short human-readable description of a statement."""
    desc_fn = _STMT_DESCRIPTIONS.get(type(stmt))
    if desc_fn:
        return desc_fn(stmt)
    return STATEMENT_KEYWORDS.get(type(stmt), type(stmt).__name__)


# ── AST child walker ──

_COMPOUND_CHILDREN = {
    IfStmt:        lambda s: [s.then_branch] + [b for _, b in s.elif_branches]
                             + ([s.else_branch] if s.else_branch else []),
    WhileStmt:     lambda s: [s.body],
    RepeatStmt:    lambda s: [s.body],
    ForStmt:       lambda s: [s.body],
    CaseStmt:      lambda s: [b.statements for b in s.branches]
                             + ([s.otherwise_branch] if s.otherwise_branch else []),
    ProcedureDecl: lambda s: [s.body],
    FunctionDecl:  lambda s: [s.body],
}


def _walk_for_inputs(stmts, results):
    for stmt in stmts:
        if isinstance(stmt, (InputStmt, ReadFileStmt)):
            results.append({
                'line': stmt.line,
                'variable': _target_name(stmt.target),
                'source': 'INPUT' if isinstance(stmt, InputStmt) else 'READFILE',
            })
        getter = _COMPOUND_CHILDREN.get(type(stmt))
        if getter:
            for child_list in getter(stmt):
                _walk_for_inputs(child_list, results)


# ── Trace table formatting ──

def _element_sort_key(name):
    """'Scores[2,3]' -> ('Scores', (2, 3)) so elements sort numerically."""
    base, _, idx_part = name.partition('[')
    try:
        return base, tuple(int(x) for x in idx_part.rstrip(']').split(','))
    except ValueError:
        return base, ()


def _format_ascii_table(headers, rows):
    """Render headers + rows as a fixed-width ASCII table."""
    col_w = [len(h) for h in headers]
    for row in rows:
        for i, c in enumerate(row):
            col_w[i] = max(col_w[i], len(str(c)))
    col_w = [min(w, 30) for w in col_w]

    def pad(s, w):
        return str(s)[:w].ljust(w)

    sep = '+' + '+'.join('-' * (w + 2) for w in col_w) + '+'
    hdr = '|' + '|'.join(f" {pad(h, w)} " for h, w in zip(headers, col_w)) + '|'
    lines = [sep, hdr, sep]
    for row in rows:
        lines.append('|' + '|'.join(f" {pad(c, w)} " for c, w in zip(row, col_w)) + '|')
    lines.append(sep)
    return '\n'.join(lines)
