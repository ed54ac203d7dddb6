"""Shared pytest fixtures."""

from collections.abc import Sequence
from dataclasses import dataclass, field

import pytest
from dotenv import load_dotenv

# Load environment variables before importing app modules
load_dotenv()

from fastapi.testclient import TestClient  # noqa: E402

from everysearch.dependencies import CommandResult, ToolDependencies, get_runner  # noqa: E402
from everysearch.main import app  # noqa: E402


@dataclass
class FakeRunner:
    """Scripted stand-in for CommandRunner.

    Each call to ``run`` records its argv and consumes the next outcome:
    a CommandResult is returned, an exception is raised.
    """

    outcomes: list[CommandResult | Exception] = field(default_factory=list)
    available: set[str] = field(default_factory=set)
    calls: list[list[str]] = field(default_factory=list)

    def which(self, name: str) -> str | None:
        return f"/usr/bin/{name}" if name in self.available else None

    async def run(self, argv: Sequence[str], *, timeout: float | None = None) -> CommandResult:
        self.calls.append(list(argv))
        if not self.outcomes:
            raise AssertionError(f"unexpected command: {argv}")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def respond(self, stdout: str = "", stderr: str = "", returncode: int = 0) -> "FakeRunner":
        """Queue a CommandResult and return self for chaining."""
        self.outcomes.append(CommandResult(returncode=returncode, stdout=stdout, stderr=stderr))
        return self

    def fail(self, error: Exception) -> "FakeRunner":
        """Queue an exception and return self for chaining."""
        self.outcomes.append(error)
        return self


@pytest.fixture
def fake_runner() -> FakeRunner:
    """Create an empty FakeRunner."""
    return FakeRunner()


@pytest.fixture
def tool_deps(fake_runner: FakeRunner) -> ToolDependencies:
    """Create ToolDependencies around the fake runner."""
    return ToolDependencies(runner=fake_runner, trace_id="test-123")


@pytest.fixture
def linux_platform(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make the dispatcher route to the Linux adapter."""
    monkeypatch.setattr("everysearch.search.unified.sys.platform", "linux")


@pytest.fixture
def client(fake_runner: FakeRunner):
    """Create a FastAPI test client whose runner is the fake runner."""

    async def _fake_runner():
        yield fake_runner

    app.dependency_overrides[get_runner] = _fake_runner
    yield TestClient(app)
    app.dependency_overrides.clear()
