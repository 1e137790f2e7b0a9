import pytest

from pimdram.bank_state import BankState, CurrentBankState
from pimdram.bus_packet import BusPacket, BusPacketType
from pimdram.command_queue import CommandQueue, QueuingStructure, SchedulingPolicy
from pimdram.configuration import ConfigurationDB, ParamType, VarType

RANKS = 2
BANKS = 4
DEPTH = 4


def make_config(**overrides):
    db = ConfigurationDB()
    db.initialize()
    values = {
        "NUM_RANKS": RANKS,
        "NUM_BANKS": BANKS,
        "CMD_QUEUE_DEPTH": DEPTH,
        "XAW": 4,
        "TOTAL_ROW_ACCESSES": 4,
    }
    values.update(overrides)
    for key, value in values.items():
        db.set_value(key, VarType.UINT, ParamType.SYS_PARAM, value)
    return db


def make_states():
    return [[BankState() for _ in range(BANKS)] for _ in range(RANKS)]


def make_queue(states=None, config=None, **kwargs):
    states = states if states is not None else make_states()
    return CommandQueue(states, config or make_config(), **kwargs), states


def read(rank, bank, row, col=0, tag=""):
    return BusPacket(BusPacketType.READ, 0x40, col, row, rank, bank, None, tag)


def write(rank, bank, row, col=0, tag=""):
    return BusPacket(BusPacketType.WRITE, 0x40, col, row, rank, bank, None, tag)


def activate_bank(states, rank, bank, row):
    states[rank][bank].current_bank_state = CurrentBankState.RowActive
    states[rank][bank].open_row_address = row


def test_defaults_come_from_configuration():
    cq, _ = make_queue()
    assert cq.queuing_structure is QueuingStructure.PerRank
    assert cq.scheduling_policy is SchedulingPolicy.RankThenBankRoundRobin


def test_unknown_queuing_structure_rejected():
    with pytest.raises(ValueError):
        make_queue(queuing_structure="per_channel")


def test_has_room_and_overflow():
    cq, _ = make_queue()
    for _ in range(DEPTH - 1):
        cq.enqueue(read(0, 0, 1))
    assert cq.has_room_for(1, 0, 0)
    assert not cq.has_room_for(2, 0, 0)
    cq.enqueue(read(0, 1, 1))
    with pytest.raises(OverflowError):
        cq.enqueue(read(0, 2, 1))
    assert len(cq.get_command_queue(0, 3)) == DEPTH


def test_is_empty_per_rank():
    cq, _ = make_queue()
    cq.enqueue(read(1, 2, 5))
    assert cq.is_empty(0)
    assert not cq.is_empty(1)


def test_pop_on_idle_bank_gives_activate():
    cq, _ = make_queue()
    cq.enqueue(read(0, 1, 7, col=3, tag="t"))
    packet = cq.pop()
    assert packet.packet_type is BusPacketType.ACTIVATE
    assert (packet.rank, packet.bank, packet.row, packet.column, packet.tag) == (0, 1, 7, 3, "t")
    assert len(cq.get_command_queue(0, 1)) == 1


def test_pop_issues_read_to_open_row():
    cq, states = make_queue()
    activate_bank(states, 0, 1, 7)
    queued = read(0, 1, 7)
    cq.enqueue(queued)
    assert cq.pop() is queued
    assert cq.is_empty(0)


def test_read_waits_for_timing():
    cq, states = make_queue()
    activate_bank(states, 0, 0, 2)
    states[0][0].next_read = 3
    queued = read(0, 0, 2)
    cq.enqueue(queued)
    assert cq.pop() is None
    for _ in range(3):
        cq.step()
    assert cq.pop() is queued


def test_row_access_limit_blocks_reads():
    cq, states = make_queue(config=make_config(TOTAL_ROW_ACCESSES=0))
    activate_bank(states, 0, 0, 2)
    cq.enqueue(read(0, 0, 2))
    assert cq.pop() is None


def test_activation_window_blocks_activates():
    cq, _ = make_queue(config=make_config(XAW=0))
    cq.enqueue(read(0, 0, 2))
    assert cq.pop() is None


def test_refresh_precharges_then_refreshes():
    cq, states = make_queue()
    activate_bank(states, 1, 2, 9)
    cq.need_refresh(1)
    first = cq.pop()
    assert first.packet_type is BusPacketType.PRECHARGE
    assert (first.rank, first.bank, first.row) == (1, 2, 9)
    states[1][2].current_bank_state = CurrentBankState.Idle
    second = cq.pop()
    assert second.packet_type is BusPacketType.REF
    assert second.rank == 1
    assert cq.pop() is None


def test_barrier_blocks_later_commands():
    cq, states = make_queue()
    activate_bank(states, 0, 1, 4)
    cq.enqueue(read(0, 0, 4, tag="BAR"))
    later = read(0, 1, 4)
    cq.enqueue(later)
    packet = cq.pop()
    assert packet.packet_type is BusPacketType.ACTIVATE
    assert packet.bank == 0
    assert cq.get_command_queue(0, 0)[1] is later


def test_same_address_dependency_keeps_order():
    cq, states = make_queue()
    activate_bank(states, 0, 0, 4)
    states[0][0].next_write = 100
    cq.enqueue(write(0, 0, 4, col=1))
    cq.enqueue(read(0, 0, 4, col=1))
    assert cq.pop() is None
    assert len(cq.get_command_queue(0, 0)) == 2


def test_unneeded_open_bank_is_precharged():
    cq, states = make_queue()
    activate_bank(states, 0, 3, 11)
    packet = cq.pop()
    assert packet.packet_type is BusPacketType.PRECHARGE
    assert (packet.rank, packet.bank, packet.row) == (0, 3, 11)


@pytest.mark.parametrize(
    "policy, expected",
    [
        (SchedulingPolicy.RankThenBankRoundRobin, (1, 0)),
        (SchedulingPolicy.BankThenRankRoundRobin, (0, 1)),
    ],
)
def test_precharge_order_follows_policy(policy, expected):
    cq, states = make_queue(scheduling_policy=policy)
    activate_bank(states, 0, 1, 1)
    activate_bank(states, 1, 0, 1)
    packet = cq.pop()
    assert (packet.rank, packet.bank) == expected


def test_single_bank_mode_restricts_activates():
    cq, _ = make_queue(single_bank_mode=lambda rank: False)
    cq.enqueue(read(0, 2, 1))
    assert cq.pop() is None
    cq.enqueue(read(0, 1, 1))
    packet = cq.pop()
    assert packet.packet_type is BusPacketType.ACTIVATE
    assert packet.bank == 1


def test_data_packet_is_not_issuable():
    cq, _ = make_queue()
    with pytest.raises(ValueError):
        cq.is_issuable(BusPacket(BusPacketType.DATA, 0, 0, 0, 0, 0))


def test_per_bank_queues_are_separate_and_pop_rejected():
    cq, _ = make_queue(queuing_structure=QueuingStructure.PerRankPerBank)
    packet = read(1, 3, 2)
    cq.enqueue(packet)
    assert cq.get_command_queue(1, 3) == [packet]
    assert cq.get_command_queue(1, 0) == []
    assert not cq.is_empty(1)
    with pytest.raises(ValueError):
        cq.pop()


def test_describe_lists_queued_packets():
    cq, _ = make_queue()
    packet = read(1, 0, 5)
    cq.enqueue(packet)
    text = cq.describe()
    assert "== Printing Per Rank Queue" in text
    assert " = Rank 1  size : 1" in text
    assert "    0]" + packet.describe() in text