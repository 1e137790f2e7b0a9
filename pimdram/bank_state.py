"""Per-bank timing and row state as tracked by the memory controller."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .bus_packet import BusPacketType


class CurrentBankState(Enum):
    """What a bank is doing right now."""

    Idle = 0
    RowActive = 1
    Precharging = 2
    Refreshing = 3
    PowerDown = 4


_STATE_NAMES = {
    CurrentBankState.Idle: "Idle",
    CurrentBankState.RowActive: "Active",
    CurrentBankState.Refreshing: "Refreshing",
    CurrentBankState.PowerDown: "Power Down",
}

_SHORT_NAMES = {
    CurrentBankState.Idle: "[idle] ",
    CurrentBankState.Precharging: "[pre] ",
    CurrentBankState.Refreshing: "[ref] ",
    CurrentBankState.PowerDown: "[lowp] ",
}


@dataclass
class BankState:
    """State of one bank; every bank starts idle (precharged)."""

    current_bank_state: CurrentBankState = CurrentBankState.Idle
    open_row_address: int = 0
    next_read: int = 0
    next_write: int = 0
    next_activate: int = 0
    next_precharge: int = 0
    next_power_up: int = 0
    last_command: BusPacketType = BusPacketType.READ
    state_change_countdown: int = 0

    def describe(self) -> str:
        """Multi-line report of the state and the next allowed command cycles."""
        lines = [" == Bank State "]
        name = _STATE_NAMES.get(self.current_bank_state)
        if name is not None:
            lines.append(f"    State : {name}")
        lines.extend(
            [
                f"    OpenRowAddress : {self.open_row_address}",
                f"    nextRead       : {self.next_read}",
                f"    nextWrite      : {self.next_write}",
                f"    nextActivate   : {self.next_activate}",
                f"    nextPrecharge  : {self.next_precharge}",
                f"    nextPowerUp    : {self.next_power_up}",
            ]
        )
        return "\n".join(lines)

    def show_state(self) -> str:
        """Short bracketed tag: the open row when active, else the state name."""
        if self.current_bank_state is CurrentBankState.RowActive:
            return f"[{self.open_row_address}] "
        return _SHORT_NAMES[self.current_bank_state]