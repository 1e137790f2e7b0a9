"""Commands and data travelling between the controller and the ranks."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .burst import Burst


class BusPacketType(Enum):
    """Kind of a bus packet."""

    READ = 0
    WRITE = 1
    ACTIVATE = 2
    PRECHARGE = 3
    REF = 4
    DATA = 5
    RFCSB = 6


_SHORT_NAMES = {
    BusPacketType.READ: "READ",
    BusPacketType.WRITE: "WRITE",
    BusPacketType.ACTIVATE: "ACT",
    BusPacketType.PRECHARGE: "PRE",
    BusPacketType.REF: "REF",
    BusPacketType.DATA: "DATA",
    BusPacketType.RFCSB: "RFCSB",
}


@dataclass
class BusPacket:
    """One command or data transfer addressed to a rank, bank, row and column."""

    packet_type: BusPacketType
    physical_address: int
    column: int
    row: int
    rank: int
    bank: int
    data: Optional[Burst] = None
    tag: str = ""

    def __post_init__(self) -> None:
        self.packet_type = BusPacketType(self.packet_type)

    def data_text(self) -> str:
        """The packet's data rendered as fp16 values."""
        if self.data is None:
            raise ValueError("bus packet carries no data")
        return self.data.fp16_to_str()

    def describe(self) -> str:
        """One-line human-readable description of the packet."""
        text = (
            f"BP [{_SHORT_NAMES[self.packet_type]}] pa[0x{self.physical_address:x}] "
            f"r[{self.rank}] b[{self.bank}] row[{self.row}] col[{self.column}]"
        )
        if self.packet_type is BusPacketType.DATA:
            data = self.data_text()
            text += f" data[{data}]={data}"
        return text

    def verification_line(self, clock_cycle: int) -> Optional[str]:
        """Command-trace line for verification output; None for data packets."""
        kind = self.packet_type
        if kind is BusPacketType.READ:
            return f"{clock_cycle}: read ({self.rank},{self.bank},{self.column},0);"
        if kind is BusPacketType.WRITE:
            return f"{clock_cycle}: write ({self.rank},{self.bank},{self.column},0 , 0, 'h0);"
        if kind is BusPacketType.ACTIVATE:
            return f"{clock_cycle}: activate ({self.rank},{self.bank},{self.row});"
        if kind is BusPacketType.PRECHARGE:
            return f"{clock_cycle}: precharge ({self.rank},{self.bank},{self.row});"
        if kind is BusPacketType.REF:
            return f"{clock_cycle}: refresh ({self.rank});"
        if kind is BusPacketType.RFCSB:
            return f"{clock_cycle}: refresh single bank ({self.rank},{self.bank});"
        return None