"""
Progress tracking shared by the export and import pipelines
"""

from typing import Callable, List, Optional

from ..utils.pydantic_models import ProgressSnapshot

ProgressListener = Callable[[ProgressSnapshot], None]


class ProgressReporter:
    """
    Observable step/percent/error accumulator.

    One pipeline writes to a reporter at a time; it is not thread-safe.
    Percentages are clamped to 0..100 and never move backwards until
    reset(). cancel() asks a running import to stop before its next record.
    """

    def __init__(self, on_update: Optional[ProgressListener] = None):
        self._on_update = on_update
        self._step = ""
        self._percent = 0
        self._errors: List[str] = []
        self._cancelled = False

    @classmethod
    def from_callback(
        cls, callback: Callable[[str, int, int], None]
    ) -> "ProgressReporter":
        """Adapt a progress_callback(stage, current, total) function"""
        return cls(on_update=lambda snap: callback(snap.step, snap.percent, 100))

    @property
    def step(self) -> str:
        return self._step

    @property
    def percent(self) -> int:
        return self._percent

    @property
    def errors(self) -> List[str]:
        return list(self._errors)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def reset(self) -> None:
        """Start a new run"""
        self._step = ""
        self._percent = 0
        self._errors = []
        self._cancelled = False

    def set_step(self, label: str) -> None:
        self._step = label
        self._notify()

    def set_percent(self, percent: int) -> None:
        clamped = max(0, min(100, int(percent)))
        self._percent = max(self._percent, clamped)
        self._notify()

    def advance(self, label: str, percent: int) -> None:
        """Set step and percent with a single notification"""
        self._step = label
        self._percent = max(self._percent, max(0, min(100, int(percent))))
        self._notify()

    def add_error(self, message: str) -> None:
        self._errors.append(message)
        self._notify()

    def cancel(self) -> None:
        self._cancelled = True
        self._notify()

    def snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot(
            step=self._step,
            percent=self._percent,
            errors=tuple(self._errors),
            cancelled=self._cancelled,
        )

    def _notify(self) -> None:
        if self._on_update is not None:
            self._on_update(self.snapshot())
