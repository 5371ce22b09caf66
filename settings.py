from dataclasses import dataclass, fields
from typing import Any, Mapping

MAX_ITERATIONS = 10000
MAX_RECURSION_DEPTH = 1000


@dataclass
class InterpreterSettings:
    """Run-time limits and switches for one Interpreter instance."""
    max_iterations: int = MAX_ITERATIONS        # total statement dispatches per run
    max_recursion_depth: int = MAX_RECURSION_DEPTH
    echo_file_writes: bool = True               # emit "[Write to f] data" lines
    debug_mode: bool = False

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> 'InterpreterSettings':
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in values.items() if k in known})
