"""
Supervised execution of external encoder processes.

Every encoder invocation runs under a timeout, is registered in a shared
ProcessRegistry so shutdown can stop it, and is classified on failure:
SIGKILL from the OS means memory exhaustion, SIGTERM or our own timeout
means a timeout/shutdown, anything else is a plain (non-retryable) failure.
"""
import time
import signal
import logging
import threading
import subprocess
from dataclasses import dataclass, field
from typing import Callable, Optional, Set, Tuple

from .config import settings
from .errors import CutEngineError, EncoderError, ProcessTimeoutError, ResourceExhaustionError

logger = logging.getLogger(__name__)

SIGTERM = int(signal.SIGTERM)
SIGKILL = int(getattr(signal, "SIGKILL", 9))
STDERR_TAIL_CHARS = 2000


@dataclass(frozen=True)
class CommandSpec:
    """A fully serialized external command plus a label for logs."""
    argv: Tuple[str, ...]
    context: str = "ffmpeg"


@dataclass
class ProcessConfig:
    timeout: float = field(default_factory=lambda: settings.encoder_timeout)
    max_attempts: int = field(default_factory=lambda: settings.encoder_max_attempts)
    retry_delay: float = field(default_factory=lambda: settings.encoder_retry_delay)
    kill_grace: float = field(default_factory=lambda: settings.encoder_kill_grace)


@dataclass
class ProcessOutcome:
    """Result of one attempt (or, from ``run``, of the last attempt)."""
    success: bool
    signal: Optional[int] = None
    exit_code: Optional[int] = None
    is_timeout: bool = False
    is_memory_kill: bool = False
    is_retryable: bool = False
    attempts: int = 1
    stderr_tail: str = ""

    def describe(self) -> str:
        if self.success:
            return "completed"
        if self.is_memory_kill:
            return "killed by the system (likely out of memory)"
        if self.is_timeout:
            return "timed out or was terminated"
        if self.signal is not None:
            return f"killed with signal {self.signal}"
        return f"failed with exit code {self.exit_code}"


def classify_exit(returncode: int, timed_out: bool = False, stderr_tail: str = "") -> ProcessOutcome:
    """Map a child's return code to a ProcessOutcome."""
    sig = None
    if returncode < 0:
        sig = -returncode
    elif returncode in (128 + SIGKILL, 128 + SIGTERM):
        # Killed child reported through a shell wrapper
        sig = returncode - 128

    if returncode == 0 and not timed_out:
        return ProcessOutcome(success=True, exit_code=0, stderr_tail=stderr_tail)

    is_timeout = timed_out or sig == SIGTERM
    is_memory_kill = sig == SIGKILL and not timed_out
    return ProcessOutcome(
        success=False,
        signal=sig,
        exit_code=None if returncode < 0 else returncode,
        is_timeout=is_timeout,
        is_memory_kill=is_memory_kill,
        is_retryable=is_timeout or is_memory_kill,
        stderr_tail=stderr_tail,
    )


def outcome_error(outcome: ProcessOutcome, context: str = "ffmpeg") -> CutEngineError:
    """The error surfaced to callers for a final failed outcome."""
    message = f"[{context}] Process {outcome.describe()} after {outcome.attempts} attempt(s)"
    if outcome.is_memory_kill:
        return ResourceExhaustionError(message, outcome=outcome)
    if outcome.is_timeout:
        return ProcessTimeoutError(message, outcome=outcome)

    user_message = None
    if "No such file" in outcome.stderr_tail:
        user_message = "The input file could not be found. It may have been deleted during processing."
    elif "Invalid data" in outcome.stderr_tail:
        user_message = "The video file may be corrupted or in an unsupported format."
    return EncoderError(message, user_message=user_message, outcome=outcome)


class ProcessRegistry:
    """Thread-safe set of in-flight child processes, owned by whoever composes the supervisor."""

    def __init__(self):
        self._processes: Set[subprocess.Popen] = set()
        self._lock = threading.Lock()
        self._closing = False

    @property
    def closing(self) -> bool:
        return self._closing

    def register(self, proc: subprocess.Popen):
        """Track ``proc``. Once terminate_all has run, the process is killed instead."""
        with self._lock:
            if not self._closing:
                self._processes.add(proc)
                return

        logger.warning(f"Killing pid {proc.pid}, started after shutdown began")
        proc.kill()
        proc.communicate()
        raise ProcessTimeoutError(
            f"Process {proc.pid} started after shutdown began",
            user_message="The server is restarting. Please try again shortly.",
        )

    def deregister(self, proc: subprocess.Popen):
        with self._lock:
            self._processes.discard(proc)

    def active_count(self) -> int:
        with self._lock:
            return len(self._processes)

    def terminate_all(self, grace: Optional[float] = None) -> int:
        """Stop accepting retries, SIGTERM every live process, SIGKILL whatever outlives ``grace``."""
        grace = settings.encoder_kill_grace if grace is None else grace
        with self._lock:
            self._closing = True
            processes = list(self._processes)

        logger.info(f"Terminating {len(processes)} active encoder processes")
        for proc in processes:
            if proc.poll() is None:
                try:
                    proc.terminate()
                except OSError as e:
                    logger.debug(f"terminate failed for pid {proc.pid}: {e}")

        deadline = time.monotonic() + grace
        for proc in processes:
            try:
                proc.wait(timeout=max(0.0, deadline - time.monotonic()))
            except subprocess.TimeoutExpired:
                logger.warning(f"Process {proc.pid} ignored SIGTERM, killing")
                proc.kill()
        return len(processes)


class ProcessSupervisor:
    def __init__(self, registry: ProcessRegistry, sleep: Callable[[float], None] = time.sleep):
        self.registry = registry
        self._sleep = sleep

    def run_once(self, command: CommandSpec, config: ProcessConfig) -> ProcessOutcome:
        """One attempt: Running -> Completed | Failed | TimedOut."""
        try:
            proc = subprocess.Popen(
                list(command.argv),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except FileNotFoundError as e:
            raise EncoderError(f"[{command.context}] Executable not found: {command.argv[0]}") from e

        self.registry.register(proc)
        timed_out = False
        try:
            try:
                _, stderr = proc.communicate(timeout=config.timeout)
            except subprocess.TimeoutExpired:
                timed_out = True
                logger.warning(f"[{command.context}] Timed out after {config.timeout}s, terminating")
                proc.terminate()
                try:
                    _, stderr = proc.communicate(timeout=config.kill_grace)
                except subprocess.TimeoutExpired:
                    logger.warning(f"[{command.context}] Still alive after {config.kill_grace}s, killing")
                    proc.kill()
                    _, stderr = proc.communicate()
        finally:
            self.registry.deregister(proc)

        return classify_exit(proc.returncode, timed_out, (stderr or "")[-STDERR_TAIL_CHARS:])

    def run(self, command: CommandSpec, config: Optional[ProcessConfig] = None) -> ProcessOutcome:
        """
        Run with retries. Only transient failures (timeout, SIGTERM, SIGKILL)
        are retried, with exponential backoff, and never once shutdown began.
        Returns the successful outcome or raises the classified error.
        """
        config = config or ProcessConfig()
        if self.registry.closing:
            raise ProcessTimeoutError(
                f"[{command.context}] Not started, shutting down",
                user_message="The server is restarting. Please try again shortly.",
            )

        outcome = None
        max_attempts = max(1, config.max_attempts)
        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                delay = config.retry_delay * 2 ** (attempt - 2)
                logger.info(f"[{command.context}] Retry attempt {attempt}/{max_attempts} in {delay:.1f}s")
                self._sleep(delay)

            outcome = self.run_once(command, config)
            outcome.attempts = attempt
            if outcome.success:
                logger.info(f"[{command.context}] Completed on attempt {attempt}")
                return outcome

            logger.warning(f"[{command.context}] Attempt {attempt} {outcome.describe()}")
            if not outcome.is_retryable or self.registry.closing:
                break

        logger.error(f"[{command.context}] Giving up: {outcome.describe()}\n{outcome.stderr_tail[-500:]}")
        raise outcome_error(outcome, command.context)


def run_supervised(
    command: CommandSpec,
    config: Optional[ProcessConfig] = None,
    registry: Optional[ProcessRegistry] = None,
) -> ProcessOutcome:
    return ProcessSupervisor(registry or ProcessRegistry()).run(command, config)
