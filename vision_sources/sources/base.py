from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

from ..vs_types import ObjectObservation, PoseCandidate

Clock = Callable[[], float]


def default_clock() -> float:
    return time.monotonic()


class PoseSource(ABC):
    """A vision backend that can produce a robot pose candidate each cycle."""

    source_id: str = "pose"

    @abstractmethod
    def poll(self) -> Optional[PoseCandidate]:
        """Latest candidate, or None when there is no fresh solve this cycle."""
        ...

    def configure(self) -> None:
        """Push startup settings to the device. Optional."""
        return None


class ObservationSource(ABC):
    """A vision backend that reports bearing/elevation to a detected object."""

    source_id: str = "observation"

    @abstractmethod
    def poll(self) -> ObjectObservation: ...

    def configure(self) -> None:
        return None
