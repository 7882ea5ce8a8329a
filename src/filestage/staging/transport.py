"""Upload transports.

A transport moves a staged record's bytes somewhere and reports cumulative
progress while doing so. Only a simulated transport ships with the engine.
"""

import asyncio
import random
from abc import ABC, abstractmethod
from typing import Callable, Optional

from filestage.staging.records import FileRecord

# Receives cumulative progress in percent. Raises StaleMutation once the
# record is no longer staged; transports let it propagate.
ProgressReporter = Callable[[float], None]


class Transport(ABC):
    """Abstract base class for upload transports."""

    @abstractmethod
    async def transfer(self, record: FileRecord, report_progress: ProgressReporter) -> None:
        """Transfer a record.

        Args:
            record: Snapshot of the record being uploaded
            report_progress: Callback for cumulative progress (0-100)

        Raises:
            TransportError: If the transfer fails
        """
        pass

    @abstractmethod
    def get_transport_name(self) -> str:
        """Return transport identifier."""
        pass


class SimulatedTransport(Transport):
    """Transport that fakes progress with random increments.

    Every tick adds a random amount in (0, max_increment] percentage points,
    clamped to 100. The transfer ends when 100 is reported. It never fails.
    """

    def __init__(
        self,
        tick_interval: float = 0.1,
        max_increment: float = 15.0,
        rng: Optional[random.Random] = None,
    ):
        if max_increment <= 0:
            raise ValueError("max_increment must be positive")
        self.tick_interval = tick_interval
        self.max_increment = max_increment
        self._rng = rng or random.Random()

    def next_increment(self) -> float:
        # 1 - random() lies in (0, 1], so the increment is never zero
        return self.max_increment * (1.0 - self._rng.random())

    async def transfer(self, record: FileRecord, report_progress: ProgressReporter) -> None:
        progress = record.progress
        while progress < 100.0:
            await asyncio.sleep(self.tick_interval)
            progress = min(progress + self.next_increment(), 100.0)
            report_progress(progress)

    def get_transport_name(self) -> str:
        return "simulated"
