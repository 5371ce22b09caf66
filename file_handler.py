"""
Simulated file system for OPENFILE / READFILE / WRITEFILE / CLOSEFILE.

Files live in a per-interpreter table keyed by filename and never touch
the real disk. Content for READ comes either from a buffer written earlier
in the same run or from the host's file-upload handler.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from errors import InterpreterError

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class FileHandlerError(InterpreterError):
    """Raised when a file operation fails."""


@dataclass
class FileHandle:
    mode: str                       # READ, WRITE or APPEND
    lines: List[str] = field(default_factory=list)
    position: int = 0
    is_open: bool = True


class SimulatedFileSystem:
    def __init__(self, upload_handler: Optional[Callable[[str], str]] = None,
                 echo_writes: bool = True):
        self.upload_handler = upload_handler
        self.echo_writes = echo_writes
        self.files: Dict[str, FileHandle] = {}

    def _require_open(self, filename: str) -> FileHandle:
        """Guard clause: raise if a file is not open."""
        handle = self.files.get(filename)
        if handle is None or not handle.is_open:
            raise FileHandlerError(f"File '{filename}' is not open")
        return handle

    @staticmethod
    def _check_name(filename: str):
        if not filename:
            raise FileHandlerError("Filename cannot be empty")

    # ── Individual file operations ──

    def open(self, filename: str, mode: str) -> str:
        """OPENFILE <filename> FOR <mode>. Returns the status line to output."""
        self._check_name(filename)
        existing = self.files.get(filename)
        if existing is not None and existing.is_open:
            raise FileHandlerError(f"File '{filename}' is already open")

        if mode == "READ":
            handle = FileHandle("READ", self._load(filename, existing))
        elif mode == "WRITE":
            handle = FileHandle("WRITE")
        elif mode == "APPEND":
            lines = list(existing.lines) if existing is not None else []
            handle = FileHandle("APPEND", lines, len(lines))
        else:
            raise FileHandlerError(f"Unknown file mode '{mode}'")

        self.files[filename] = handle
        logger.debug("opened %r for %s (%d lines)", filename, mode, len(handle.lines))
        return f"Opened file '{filename}' in {mode} mode"

    def _load(self, filename: str, existing: Optional[FileHandle]) -> List[str]:
        # A buffer written earlier in this run takes priority over an upload
        if existing is not None:
            return list(existing.lines)
        if self.upload_handler is None:
            raise FileHandlerError(
                "Cannot open file for reading: No file upload handler available"
            )
        content = self.upload_handler(filename)
        if content is None:
            raise FileHandlerError(f"Cannot open file for reading: '{filename}' was not provided")
        return content.splitlines()

    def close(self, filename: str) -> str:
        """CLOSEFILE <filename>. Written buffers stay resident for a later APPEND or READ."""
        self._check_name(filename)
        handle = self._require_open(filename)
        if handle.mode == "READ":
            del self.files[filename]
            logger.debug("closed %r", filename)
            return f"Closed file '{filename}'"
        handle.is_open = False
        logger.debug("closed %r with %d lines", filename, len(handle.lines))
        return f"Closed file '{filename}' ({len(handle.lines)} lines written)"

    def read_line(self, filename: str) -> str:
        """READFILE <filename>, <target>"""
        self._check_name(filename)
        handle = self._require_open(filename)
        if handle.mode != "READ":
            raise FileHandlerError(f"File '{filename}' not opened for reading")
        if handle.position >= len(handle.lines):
            raise FileHandlerError(f"Attempt to read past end of file '{filename}'")
        line = handle.lines[handle.position]
        handle.position += 1
        return line

    def write_line(self, filename: str, data: str) -> Optional[str]:
        """WRITEFILE <filename>, <data>. Returns the echo line, if enabled."""
        self._check_name(filename)
        handle = self._require_open(filename)
        if handle.mode == "READ":
            raise FileHandlerError(f"File '{filename}' not opened for writing")
        handle.lines.append(data)
        handle.position = len(handle.lines)
        if self.echo_writes:
            return f"[Write to {filename}] {data}"
        return None

    def eof(self, filename: str) -> bool:
        handle = self._require_open(filename)
        if handle.mode != "READ":
            raise FileHandlerError("EOF can only be used with files opened for reading")
        return handle.position >= len(handle.lines)

    # ── Inspection ──

    def get_content(self, filename: str) -> Optional[str]:
        handle = self.files.get(filename)
        if handle is None:
            return None
        return "\n".join(handle.lines)

    def list_files(self) -> List[Tuple[str, str, int]]:
        return [(name, h.mode, len(h.lines)) for name, h in self.files.items()]
