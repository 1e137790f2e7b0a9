"""Per-rank (or per-bank) command queues and the scheduling of DRAM commands."""

from __future__ import annotations

from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple, Union

from .bank_state import BankState, CurrentBankState
from .bus_packet import BusPacket, BusPacketType
from .configuration import ConfigurationDB

_BARRIER = "BAR"


class QueuingStructure(Enum):
    """How commands are split into queues."""

    PerRank = "per_rank"
    PerRankPerBank = "per_rank_per_bank"


class SchedulingPolicy(Enum):
    """Order in which rank/bank queues are visited."""

    RankThenBankRoundRobin = "rank_then_bank_round_robin"
    BankThenRankRoundRobin = "bank_then_rank_round_robin"


def _has_barrier(packet: BusPacket) -> bool:
    return _BARRIER in packet.tag


def _parse_enum(enum_cls, value, what: str):
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip()
    for member in enum_cls:
        if text in (member.value, member.name):
            return member
    raise ValueError(f"unknown {what} {value!r}")


class CommandQueue:
    """Holds pending bus packets and picks the next command to issue each cycle."""

    def __init__(
        self,
        bank_states: Sequence[Sequence[BankState]],
        config: ConfigurationDB,
        queuing_structure: Optional[Union[QueuingStructure, str]] = None,
        scheduling_policy: Optional[Union[SchedulingPolicy, str]] = None,
        single_bank_mode: Union[bool, Callable[[int], bool]] = True,
    ) -> None:
        def param(name: str) -> int:
            return int(config.typed_value(name))

        self.bank_states = bank_states
        self.num_ranks = param("NUM_RANKS")
        self.num_banks = param("NUM_BANKS")
        self.cmd_queue_depth = param("CMD_QUEUE_DEPTH")
        self.xaw = param("XAW")
        self.total_row_accesses = param("TOTAL_ROW_ACCESSES")

        if queuing_structure is None:
            queuing_structure = config.typed_value("QUEUING_STRUCTURE")
        if scheduling_policy is None:
            scheduling_policy = config.typed_value("SCHEDULING_POLICY")
        self.queuing_structure = _parse_enum(
            QueuingStructure, queuing_structure, "queuing structure"
        )
        self.scheduling_policy = _parse_enum(
            SchedulingPolicy, scheduling_policy, "scheduling policy"
        )
        self._single_bank_mode = single_bank_mode

        self.current_clock_cycle = 0
        self._next_rank = 0
        self._next_bank = 0
        self._next_rank_pre = 0
        self._next_bank_pre = 0
        self._refresh_rank = 0
        self._refresh_waiting = False

        bank_queues = 1 if self.queuing_structure is QueuingStructure.PerRank else self.num_banks
        self.queues: List[List[List[BusPacket]]] = [
            [[] for _ in range(bank_queues)] for _ in range(self.num_ranks)
        ]
        # Counters that keep a row from staying open too long.
        self.row_access_counters: List[List[int]] = [
            [0] * self.num_banks for _ in range(self.num_ranks)
        ]
        # Decrementing counters for the X-bank activation window, one list per rank.
        self.txaw_countdown: List[List[int]] = [[] for _ in range(self.num_ranks)]

    # Queue access ----------------------------------------------------------
    def get_command_queue(self, rank: int, bank: int) -> List[BusPacket]:
        """The queue holding commands for ``rank``/``bank`` (bank ignored per rank)."""
        if self.queuing_structure is QueuingStructure.PerRankPerBank:
            return self.queues[rank][bank]
        return self.queues[rank][0]

    def enqueue(self, packet: BusPacket) -> None:
        """Add ``packet`` to its queue; raise OverflowError when the queue is full."""
        queue = self.get_command_queue(packet.rank, packet.bank)
        if len(queue) >= self.cmd_queue_depth:
            raise OverflowError(
                "enqueued more than allowed in command queue; check has_room_for first"
            )
        queue.append(packet)

    def has_room_for(self, number: int, rank: int, bank: int) -> bool:
        """True when the rank/bank queue can take ``number`` more packets."""
        return self.cmd_queue_depth - len(self.get_command_queue(rank, bank)) >= number

    def is_empty(self, rank: int) -> bool:
        """True when no commands are queued for ``rank``."""
        return all(not queue for queue in self.queues[rank])

    def need_refresh(self, rank: int) -> None:
        """Mark ``rank`` as waiting for a refresh."""
        self._refresh_waiting = True
        self._refresh_rank = rank

    # Scheduling ------------------------------------------------------------
    def _is_single_bank_mode(self, rank: int) -> bool:
        mode = self._single_bank_mode
        return bool(mode(rank)) if callable(mode) else bool(mode)

    def is_issuable(self, packet: BusPacket) -> bool:
        """Whether ``packet`` may be issued in the current clock cycle."""
        kind = packet.packet_type
        if kind in (BusPacketType.REF, BusPacketType.RFCSB):
            return True

        state = self.bank_states[packet.rank][packet.bank]
        now = self.current_clock_cycle
        if kind is BusPacketType.ACTIVATE:
            if not self._is_single_bank_mode(packet.rank) and packet.bank >= 2:
                return False
            return (
                state.current_bank_state
                in (CurrentBankState.Idle, CurrentBankState.Refreshing)
                and now >= state.next_activate
                and len(self.txaw_countdown[packet.rank]) < self.xaw
            )
        if kind in (BusPacketType.READ, BusPacketType.WRITE):
            ready_at = state.next_read if kind is BusPacketType.READ else state.next_write
            return (
                state.current_bank_state is CurrentBankState.RowActive
                and now >= ready_at
                and packet.row == state.open_row_address
                and self.row_access_counters[packet.rank][packet.bank] < self.total_row_accesses
            )
        if kind is BusPacketType.PRECHARGE:
            return (
                state.current_bank_state is CurrentBankState.RowActive
                and now >= state.next_precharge
            )
        raise ValueError(f"cannot issue a bus packet of type {kind.name}")

    def _next_rank_and_bank(self, rank: int, bank: int) -> Tuple[int, int]:
        if self.scheduling_policy is SchedulingPolicy.RankThenBankRoundRobin:
            rank += 1
            if rank == self.num_ranks:
                rank = 0
                bank = (bank + 1) % self.num_banks
        else:
            bank += 1
            if bank == self.num_banks:
                bank = 0
                rank = (rank + 1) % self.num_ranks
        return rank, bank

    def process_refresh(self) -> Optional[BusPacket]:
        """Precharge open banks of the rank awaiting refresh, then refresh it."""
        if not self._refresh_waiting:
            return None
        rank = self._refresh_rank
        send_ref = True
        for bank in range(self.num_banks):
            state = self.bank_states[rank][bank]
            if state.current_bank_state is CurrentBankState.RowActive:
                send_ref = False
                packet = BusPacket(
                    BusPacketType.PRECHARGE, 0, 0, state.open_row_address, rank, bank
                )
                if self.is_issuable(packet):
                    return packet
        if send_ref:
            packet = BusPacket(BusPacketType.REF, 0, 0, 0, rank, 0)
            if self.is_issuable(packet):
                self._refresh_waiting = False
                return packet
        return None

    def _issuable_from(self, queue: List[BusPacket]) -> Optional[BusPacket]:
        for i, packet in enumerate(queue):
            if not self.is_issuable(packet):
                continue
            if i != 0 and _has_barrier(packet):
                break
            depends = any(
                (
                    earlier.bank == packet.bank
                    and earlier.row == packet.row
                    and earlier.column == packet.column
                )
                or _has_barrier(earlier)
                for earlier in queue[:i]
            )
            if not depends:
                del queue[i]
                return packet
        return None

    def _activate_for(self, queue: List[BusPacket]) -> Optional[BusPacket]:
        for i, packet in enumerate(queue):
            if i != 0 and _has_barrier(packet):
                break
            state = self.bank_states[packet.rank][packet.bank]
            if state.current_bank_state is CurrentBankState.Idle:
                activate = BusPacket(
                    BusPacketType.ACTIVATE,
                    packet.physical_address,
                    packet.column,
                    packet.row,
                    packet.rank,
                    packet.bank,
                    None,
                    packet.tag,
                )
                if self.is_issuable(activate):
                    return activate
        return None

    def process_command(self) -> Optional[BusPacket]:
        """Issue a queued read/write, or an activate that a queued command needs."""
        start = (self._next_rank, self._next_bank)
        while True:
            queue = self.get_command_queue(self._next_rank, self._next_bank)
            packet = self._issuable_from(queue)
            if packet is None:
                packet = self._activate_for(queue)
            if packet is not None:
                return packet
            if self.queuing_structure is QueuingStructure.PerRank:
                self._next_rank = (self._next_rank + 1) % self.num_ranks
            else:
                self._next_rank, self._next_bank = self._next_rank_and_bank(
                    self._next_rank, self._next_bank
                )
            if (self._next_rank, self._next_bank) == start:
                return None

    def process_precharge(self) -> Optional[BusPacket]:
        """Precharge an open bank that no queued command still needs."""
        start = (self._next_rank_pre, self._next_bank_pre)
        while True:
            rank, bank = self._next_rank_pre, self._next_bank_pre
            state = self.bank_states[rank][bank]
            found = False
            for packet in self.get_command_queue(rank, bank):
                if (
                    packet.rank == rank
                    and packet.bank == bank
                    and state.current_bank_state is CurrentBankState.RowActive
                    and packet.row == state.open_row_address
                ):
                    found = True
                if _has_barrier(packet):
                    break
            if not found:
                precharge = BusPacket(
                    BusPacketType.PRECHARGE, 0, 0, state.open_row_address, rank, bank
                )
                if self.is_issuable(precharge):
                    return precharge
            self._next_rank_pre, self._next_bank_pre = self._next_rank_and_bank(rank, bank)
            if (self._next_rank_pre, self._next_bank_pre) == start:
                return None

    def pop(self) -> Optional[BusPacket]:
        """The next command to issue this cycle, or None."""
        if self.queuing_structure is QueuingStructure.PerRankPerBank:
            raise ValueError("pop is not supported with per-rank-per-bank queuing")
        for countdown in self.txaw_countdown:
            countdown[:] = [value - 1 for value in countdown]
            if countdown and countdown[0] == 0:
                del countdown[0]
        return self.process_refresh() or self.process_command() or self.process_precharge()

    def step(self) -> None:
        """Advance the clock by one cycle."""
        self.current_clock_cycle += 1

    def describe(self) -> str:
        """Multi-line listing of every queue's contents."""
        lines: List[str] = []
        if self.queuing_structure is QueuingStructure.PerRank:
            lines.append("\n== Printing Per Rank Queue")
            for rank, rank_queues in enumerate(self.queues):
                queue = rank_queues[0]
                lines.append(f" = Rank {rank}  size : {len(queue)}")
                lines.extend(f"    {j}]{packet.describe()}" for j, packet in enumerate(queue))
        else:
            lines.append("\n== Printing Per Rank, Per Bank Queue")
            for rank, rank_queues in enumerate(self.queues):
                lines.append(f" = Rank {rank}")
                for bank, queue in enumerate(rank_queues):
                    lines.append(f"    Bank {bank}   size : {len(queue)}")
                    lines.extend(
                        f"       {k}]{packet.describe()}" for k, packet in enumerate(queue)
                    )
        return "\n".join(lines)