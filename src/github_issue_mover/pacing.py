"""Write pacing to stay below GitHub's secondary (abuse) rate limits."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Callable

logger: logging.Logger = logging.getLogger(__name__)

COOLDOWN_EVERY_WRITES: Final[int] = 25
COOLDOWN_SECONDS: Final[float] = 60.0


@dataclass
class WritePacer:
    """Sleeps after every remote write, and longer after every ``cooldown_every`` writes."""

    pause: float = 5.0
    cooldown_every: int = COOLDOWN_EVERY_WRITES
    cooldown_seconds: float = COOLDOWN_SECONDS
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)
    writes: int = 0

    def after_write(self) -> None:
        """Account for one successful write and block for the configured pause."""
        self.writes += 1
        if self.pause > 0:
            self.sleep(self.pause)
        if self.cooldown_every > 0 and self.writes % self.cooldown_every == 0:
            print(f" <cool-down {self.cooldown_seconds:g}s> ", end="", flush=True)
            logger.debug(f"Cool-down after {self.writes} writes")
            self.sleep(self.cooldown_seconds)
