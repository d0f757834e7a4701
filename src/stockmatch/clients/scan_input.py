"""
Scan input throttling at the camera boundary.

A camera keeps decoding the same label for as long as it is in frame. After
each accepted camera scan, input is paused for a short window so a single
box is not counted several times. Manual text entry is never throttled, and
the ledger itself counts every scan it is given.
"""

from collections.abc import Callable

from ..core.ledger import epoch_millis

DEFAULT_COOLDOWN_MS = 800


class ScanCooldown:
    """Pause-after-scan gate for camera input."""

    def __init__(
        self,
        window_ms: int = DEFAULT_COOLDOWN_MS,
        clock: Callable[[], int] = epoch_millis,
    ):
        if window_ms < 0:
            raise ValueError("window_ms must be non-negative")
        self.window_ms = window_ms
        self._clock = clock
        self._paused_until: int | None = None

    @property
    def is_paused(self) -> bool:
        return self._paused_until is not None and self._clock() < self._paused_until

    def accept(self) -> bool:
        """Return True and start a new pause if input is not currently paused."""
        now = self._clock()
        if self._paused_until is not None and now < self._paused_until:
            return False
        self._paused_until = now + self.window_ms
        return True

    def reset(self) -> None:
        self._paused_until = None
