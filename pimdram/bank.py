"""Sparse functional storage for one DRAM bank."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from .bank_state import BankState
from .burst import Burst
from .bus_packet import BusPacket

logger = logging.getLogger(__name__)


class Bank:
    """Keeps the bursts written to a bank, keyed by column and row."""

    def __init__(self, num_cols: int) -> None:
        if num_cols <= 0:
            raise ValueError("a bank needs at least one column")
        self.num_cols = num_cols
        self.current_state = BankState()
        self._cells: Dict[Tuple[int, int], Burst] = {}

    def _check_column(self, column: int) -> None:
        if not 0 <= column < self.num_cols:
            raise IndexError(f"bus packet column {column} out of bounds")

    def read(self, packet: BusPacket) -> Optional[Burst]:
        """Copy stored data into ``packet.data``; return it, or None if never written."""
        self._check_column(packet.column)
        stored = self._cells.get((packet.column, packet.row))
        if stored is None:
            return None
        if packet.data is None:
            packet.data = Burst(stored.data)
        else:
            packet.data.copy_from(stored)
        return packet.data

    def write(self, packet: BusPacket) -> None:
        """Store a copy of ``packet.data`` (zeros when absent) at its column and row."""
        self._check_column(packet.column)
        key = (packet.column, packet.row)
        value = Burst(packet.data.data) if packet.data is not None else Burst()
        overwrite = key in self._cells
        self._cells[key] = value
        if overwrite:
            logger.debug(
                " -- Bank %d writing to physical address %#x:%s",
                packet.bank,
                packet.physical_address,
                value.fp16_to_str(),
            )