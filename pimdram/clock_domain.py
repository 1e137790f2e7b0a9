"""Driving a callback at a fixed clock ratio."""

from __future__ import annotations

from typing import Callable, Optional


class ClockDomainCrosser:
    """Calls ``callback`` clock2/clock1 times per ``update`` on average (1:1 by default)."""

    def __init__(self, callback: Optional[Callable[[], object]] = None) -> None:
        self.callback = callback
        self.clock1 = 1
        self.clock2 = 1
        self.counter1 = 0
        self.counter2 = 0

    def update(self) -> None:
        """Advance the first domain by one tick, firing the second as needed."""
        if self.clock1 == self.clock2 and self.callback is not None:
            self.callback()
            return

        self.counter1 += self.clock1
        while self.counter2 < self.counter1:
            self.counter2 += self.clock2
            if self.callback is not None:
                self.callback()

        if self.counter1 == self.counter2:
            self.counter1 = 0
            self.counter2 = 0