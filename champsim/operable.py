"""Clocked simulation components."""

from __future__ import annotations

from abc import ABC, abstractmethod

__all__ = ["Deadlock", "Operable"]


class Deadlock(Exception):
    """Raised when a core stops making progress."""

    def __init__(self, cpu: int):
        super().__init__(f"deadlock detected on cpu {cpu}")
        self.which = cpu


class Operable(ABC):
    """A component that is stepped once per clock at its own frequency scale."""

    def __init__(self, scale: float):
        self.clock_scale = scale - 1
        self.leap_operation = 0.0
        self.current_cycle = 0
        self.warmup = True
        self.phase_begin_cycle = 0
        self.phase_end_cycle: int | None = None

    def tick(self) -> int:
        """Advance one global cycle, skipping operation to honour the clock scale."""
        if self.leap_operation >= 1:
            self.leap_operation -= 1
            return 0

        result = self.operate()
        self.leap_operation += self.clock_scale
        self.current_cycle += 1
        return result

    @abstractmethod
    def operate(self) -> int:
        """Do one cycle of work and return a measure of progress."""

    def initialize(self) -> None:
        """Prepare the component before simulation starts by clearing any pending clock skip."""
        self.leap_operation = 0.0

    def begin_phase(self) -> None:
        """Record the cycle at which the current phase starts."""
        self.phase_begin_cycle = self.current_cycle
        self.phase_end_cycle = None

    def end_phase(self, cpu: int) -> None:
        """Record the cycle at which the phase finished for the given cpu."""
        self.phase_end_cycle = self.current_cycle

    def print_deadlock(self) -> None:
        """Report internal state when a deadlock is detected."""
        print(f"{type(self).__name__} deadlocked at cycle {self.current_cycle}")