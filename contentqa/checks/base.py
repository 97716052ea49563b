"""Base classes for check results and run bookkeeping."""

from dataclasses import dataclass, field
from typing import Any, Callable

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class CheckDefinition:
    """Static metadata describing a check."""

    id: str
    label: str
    description: str
    step_ids: tuple[str, ...] = ()
    uses_batch: bool = False

    @property
    def steps(self) -> int:
        """Expected number of steps, at least one."""
        return max(len(self.step_ids), 1)


@dataclass
class Result:
    """Outcome of one check step or one scanned unit."""

    step_id: str
    passed: bool
    payload: Any = None
    errors: dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        return f"{status}: {self.step_id}"


@dataclass
class Lifecycle:
    """Progress of a pass through its steps."""

    total_steps: int = 1
    current_step: int = 0
    ended: bool = False
    on_progress: ProgressCallback | None = field(default=None, repr=False)

    def advance(self) -> None:
        """Move to the next step."""
        if self.ended:
            raise RuntimeError("Cannot advance a lifecycle that has ended")
        self.current_step += 1
        self._notify()

    def end(self) -> None:
        """Mark the pass complete."""
        if self.ended:
            return
        self.ended = True
        self.current_step = self.total_steps
        self._notify()

    def _notify(self) -> None:
        if self.on_progress is not None:
            self.on_progress(self.current_step, self.total_steps)


@dataclass
class Pass:
    """One run of a check, accumulating its results."""

    check: CheckDefinition
    results: dict[str, Result] = field(default_factory=dict)
    life: Lifecycle = field(default_factory=Lifecycle)
    summary: Result | None = None

    @classmethod
    def start(
        cls, check: CheckDefinition, on_progress: ProgressCallback | None = None
    ) -> "Pass":
        """Begin a pass for a check."""
        return cls(
            check=check,
            life=Lifecycle(total_steps=check.steps, on_progress=on_progress),
        )

    @property
    def passed(self) -> bool:
        """Check if every recorded result passed."""
        return all(r.passed for r in self.results.values())

    @property
    def failures(self) -> dict[str, Result]:
        """Get the recorded results that failed."""
        return {k: r for k, r in self.results.items() if not r.passed}

    def record(self, result: Result | None) -> None:
        """Record a step result. A missing result means no findings."""
        if result is None:
            return
        self.results[result.step_id] = result

    def get(self, step_id: str) -> Result | None:
        """Get the result recorded for a step."""
        return self.results.get(step_id)
