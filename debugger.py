"""
Single-step debugging host.

The interpreter itself is single-threaded and only calls a blocking step
callback before each statement. DebugSession runs it on a worker thread and
turns that callback into step / resume / stop actions for a front end.
"""
import logging
import threading
from dataclasses import replace
from typing import Callable, List, Optional

from errors import ExecutionCancelled, PseudocodeError
from interpreter import Interpreter
from settings import InterpreterSettings
from symbol_table import DebugState

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class DebugSession:
    """Runs a parsed program one statement at a time."""

    def __init__(self, statements, input_handler=None, file_upload_handler=None,
                 settings: Optional[InterpreterSettings] = None,
                 on_output: Optional[Callable[[str], None]] = None):
        settings = replace(settings or InterpreterSettings(), debug_mode=True)
        self.interpreter = Interpreter(
            input_handler=input_handler,
            step_callback=self._wait_for_step,
            file_upload_handler=file_upload_handler,
            settings=settings,
        )
        self.statements = statements
        self.on_output = on_output
        self.output: List[str] = []
        self.error: Optional[PseudocodeError] = None
        self.cancelled = False
        self.run_thread = None
        self._resume = threading.Event()
        self._paused = threading.Event()
        self._finished = threading.Event()

    def start(self):
        if self.run_thread is not None:
            return
        self.run_thread = threading.Thread(target=self._execute, daemon=True)
        self.run_thread.start()

    def _execute(self):
        try:
            for line in self.interpreter.execute(self.statements):
                self.output.append(line)
                if self.on_output is not None:
                    self.on_output(line)
        except ExecutionCancelled:
            self.cancelled = True
            logger.debug("debug session cancelled")
        except PseudocodeError as exc:
            self.error = exc
            logger.debug("debug session stopped with error: %s", exc)
        finally:
            self._finished.set()
            # Wake anyone blocked in wait_for_pause
            self._paused.set()

    def _wait_for_step(self):
        self._paused.set()
        self._resume.wait()
        self._resume.clear()

    # ── Host actions ──

    def step(self):
        """Let exactly one more statement run."""
        self._paused.clear()
        self._resume.set()

    def resume(self):
        """Stop pausing and run to the end."""
        self.interpreter.disable_debug_mode()
        self.step()

    def stop(self):
        self.interpreter.cancel()
        self.step()

    def wait_for_pause(self, timeout: Optional[float] = None) -> bool:
        """Block until the run pauses before a statement. False once it has finished."""
        self._paused.wait(timeout)
        return self._paused.is_set() and not self._finished.is_set()

    def join(self, timeout: Optional[float] = None) -> bool:
        return self._finished.wait(timeout)

    @property
    def finished(self) -> bool:
        return self._finished.is_set()

    def state(self) -> DebugState:
        return self.interpreter.get_debug_state()
