"""Synthetic machine readings driven by a RUN/IDLE/FAULT state machine."""

from __future__ import annotations

import logging
import random
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from models.telemetry import MachineState

logger = logging.getLogger(__name__)

FAULT_COUNTDOWN_RANGE = (30, 50)
FAULT_DURATION_RANGE = (5.0, 15.0)
RESUME_PROBABILITY = 0.3
PART_PROBABILITY = 0.7
GOOD_PART_RATE = 0.95
IDLE_COOLING_STEP = 0.5
IDLE_FLOOR_TEMPERATURE = 20.0


class MachineSimulator:
    """Pure state machine that produces one telemetry payload per tick.

    RUN counts down to a fault, FAULT lasts for a randomized period of
    wall-clock time and then drops to IDLE, and IDLE resumes RUN with a fixed
    per-tick probability. The random source and the monotonic clock are
    injectable so the transitions can be driven deterministically.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
        now: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._rng = rng or random.Random()
        self._clock = clock
        self._now = now or (lambda: datetime.now(timezone.utc))
        self.state = MachineState.RUN
        self.temperature = 65.0
        self.cycle_time_ms = 2500.0
        self.good_count = 0
        self.reject_count = 0
        self.fault_countdown = self._draw_countdown()
        self.fault_until: Optional[float] = None

    def tick(self) -> Dict[str, Any]:
        """Advance one step and return the wire payload for it."""
        if self.state is MachineState.RUN:
            self._step_run()
        elif self.state is MachineState.IDLE:
            self._step_idle()
        else:
            self._step_fault()
        return self.to_payload()

    def to_payload(self) -> Dict[str, Any]:
        return {
            "timestamp": self._now().isoformat().replace("+00:00", "Z"),
            "machineState": self.state.value,
            "temperature": round(self.temperature, 1),
            "cycleTimeMs": int(round(self.cycle_time_ms)),
            "goodCount": self.good_count,
            "rejectCount": self.reject_count,
        }

    def _draw_countdown(self) -> int:
        low, high = FAULT_COUNTDOWN_RANGE
        return self._rng.randint(low, high)

    def _step_run(self) -> None:
        self.temperature = self._rng.uniform(60.0, 70.0)
        self.cycle_time_ms = self._rng.uniform(2250.0, 2750.0)

        if self._rng.random() < PART_PROBABILITY:
            if self._rng.random() < GOOD_PART_RATE:
                self.good_count += 1
            else:
                self.reject_count += 1

        self.fault_countdown -= 1
        if self.fault_countdown <= 0:
            self.state = MachineState.FAULT
            self.fault_until = self._clock() + self._rng.uniform(*FAULT_DURATION_RANGE)
            logger.warning("FAULT condition triggered", extra={"state": self.state.value})

    def _step_idle(self) -> None:
        self.temperature = max(IDLE_FLOOR_TEMPERATURE, self.temperature - IDLE_COOLING_STEP)
        self.cycle_time_ms = 0.0

        if self._rng.random() < RESUME_PROBABILITY:
            self.state = MachineState.RUN
            logger.info("Machine resumed from IDLE", extra={"state": self.state.value})

    def _step_fault(self) -> None:
        if self.fault_until is not None and self._clock() >= self.fault_until:
            self.state = MachineState.IDLE
            self.fault_until = None
            self.fault_countdown = self._draw_countdown()
            logger.info("Machine entering IDLE after FAULT", extra={"state": self.state.value})
            self._step_idle()
            return

        self.temperature = self._rng.uniform(80.0, 95.0)
        self.cycle_time_ms = 0.0
