"""Shared dependencies: structured logger, error taxonomy and CommandRunner."""

import asyncio
import contextlib
import json
import logging
import shutil
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Self

from everysearch.config import get_settings

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RESERVED_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        data: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "message": record.getMessage(),
            "module": record.module,
        }
        data.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RESERVED_RECORD_ATTRS
        )
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


def setup_logging() -> logging.Logger:
    """Configure and return the application logger."""
    settings = get_settings()
    logger = logging.getLogger("everysearch")
    logger.setLevel(getattr(logging, settings.log_level.upper()))
    logger.handlers.clear()
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger


logger = setup_logging()


# =============================================================================
# Errors
# =============================================================================


class SearchError(Exception):
    """Base exception for search operations.

    Every subclass carries a stable machine-readable ``code`` and the HTTP
    status the front-end reports it with.
    """

    code: str = "UNKNOWN_ERROR"
    status_code: int = 500

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(SearchError):
    """Raised when caller-supplied input is rejected."""

    status_code = 400

    def __init__(self, message: str, code: str) -> None:
        super().__init__(message, code)


class UnsupportedPlatformError(SearchError):
    """Raised when the running OS has no search adapter."""

    code = "UNSUPPORTED_PLATFORM"
    status_code = 501


class EngineError(SearchError):
    """Base exception for failures of the external search tool."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        *,
        operation: str | None = None,
        target: str | None = None,
    ) -> None:
        super().__init__(message, code)
        self.operation = operation
        self.target = target

    def with_context(self, operation: str, target: str) -> Self:
        """Return a copy of this error tagged with the operation and its target.

        The class and code are preserved so callers can still branch on them.
        """
        return type(self)(
            f"{operation} failed for '{target}': {self.message}",
            self.code,
            operation=operation,
            target=target,
        )


class EngineUnavailableError(EngineError):
    """Raised when the external search tool is not installed."""

    code = "ENGINE_NOT_FOUND"
    status_code = 503


class EngineTimeoutError(EngineError):
    """Raised when the external search tool exceeds its wall-clock budget."""

    code = "SEARCH_TIMEOUT"
    status_code = 504


class EngineFailureError(EngineError):
    """Raised when the external search tool reports an unexpected diagnostic."""

    code = "ENGINE_FAILURE"
    status_code = 502


class TargetNotFoundError(EngineError):
    """Raised when a file-info lookup finds nothing at the given path."""

    code = "FILE_NOT_FOUND"
    status_code = 404


# =============================================================================
# Command execution
# =============================================================================


@dataclass
class CommandResult:
    """Captured output of one external process."""

    returncode: int
    stdout: str
    stderr: str


@dataclass
class CommandRunner:
    """Runs external search tools as argument vectors, never through a shell.

    Each run is bounded by a wall-clock timeout and a per-stream byte ceiling.
    A semaphore caps how many processes run at once.
    """

    timeout: float = 30.0
    max_output_bytes: int = 50 * 1024 * 1024
    max_concurrent: int = 4
    _semaphore: asyncio.Semaphore = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._semaphore = asyncio.Semaphore(self.max_concurrent)

    def which(self, name: str) -> str | None:
        """Return the resolved path of an executable on PATH, if any."""
        return shutil.which(name)

    async def run(self, argv: Sequence[str], *, timeout: float | None = None) -> CommandResult:
        """Run a command and capture its output.

        Args:
            argv: Executable followed by its arguments
            timeout: Override for the default timeout in seconds

        Returns:
            CommandResult with decoded stdout and stderr

        Raises:
            EngineUnavailableError: If the executable does not exist
            EngineTimeoutError: If the process outlives the timeout
            EngineFailureError: If the process cannot start or floods its output
        """
        budget = self.timeout if timeout is None else timeout
        async with self._semaphore:
            logger.debug("engine_command_started", extra={"argv": list(argv)})
            try:
                process = await asyncio.create_subprocess_exec(
                    *argv,
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            except FileNotFoundError as e:
                raise EngineUnavailableError(f"{argv[0]} not found") from e
            except OSError as e:
                raise EngineFailureError(f"Could not start {argv[0]}: {e}") from e

            try:
                stdout, stderr = await asyncio.wait_for(self._communicate(process), budget)
            except TimeoutError as e:
                await self._terminate(process)
                logger.warning(
                    "engine_command_timed_out",
                    extra={"command": argv[0], "timeout": budget},
                )
                raise EngineTimeoutError(
                    "Search operation timed out. Please try a narrower query."
                ) from e
            except EngineFailureError:
                await self._terminate(process)
                raise

        return CommandResult(
            returncode=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )

    async def _communicate(self, process: asyncio.subprocess.Process) -> tuple[bytes, bytes]:
        stdout, stderr = await asyncio.gather(
            self._read_limited(process.stdout),
            self._read_limited(process.stderr),
        )
        await process.wait()
        return stdout, stderr

    async def _read_limited(self, stream: asyncio.StreamReader | None) -> bytes:
        if stream is None:
            return b""
        chunks: list[bytes] = []
        total = 0
        while chunk := await stream.read(64 * 1024):
            total += len(chunk)
            if total > self.max_output_bytes:
                raise EngineFailureError(
                    f"Output exceeded maximum buffer size of {self.max_output_bytes} bytes"
                )
            chunks.append(chunk)
        return b"".join(chunks)

    @staticmethod
    async def _terminate(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
        await process.wait()


@lru_cache
def get_command_runner() -> CommandRunner:
    """Get the shared CommandRunner configured from settings."""
    settings = get_settings()
    return CommandRunner(
        timeout=settings.command_timeout,
        max_output_bytes=settings.max_output_bytes,
        max_concurrent=settings.max_concurrent_searches,
    )


@dataclass
class ToolDependencies:
    """Dependencies passed to tool functions for one request."""

    runner: CommandRunner
    trace_id: str


async def get_runner() -> AsyncIterator[CommandRunner]:
    """FastAPI dependency provider for CommandRunner."""
    yield get_command_runner()
