from pimdram.bank_state import BankState, CurrentBankState
from pimdram.bus_packet import BusPacketType


def test_defaults_are_idle_and_zero():
    state = BankState()
    assert state.current_bank_state is CurrentBankState.Idle
    assert state.open_row_address == 0
    assert state.next_read == state.next_write == state.next_activate == 0
    assert state.next_precharge == state.next_power_up == 0
    assert state.last_command is BusPacketType.READ
    assert state.state_change_countdown == 0


def test_show_state_active_shows_open_row():
    state = BankState(current_bank_state=CurrentBankState.RowActive, open_row_address=42)
    assert state.show_state() == "[42] "


def test_show_state_other_states():
    expected = {
        CurrentBankState.Idle: "[idle] ",
        CurrentBankState.Precharging: "[pre] ",
        CurrentBankState.Refreshing: "[ref] ",
        CurrentBankState.PowerDown: "[lowp] ",
    }
    for bank_state, text in expected.items():
        assert BankState(current_bank_state=bank_state).show_state() == text


def test_describe_lists_fields():
    state = BankState(
        current_bank_state=CurrentBankState.RowActive,
        open_row_address=7,
        next_read=11,
        next_write=12,
        next_activate=13,
        next_precharge=14,
        next_power_up=15,
    )
    lines = state.describe().split("\n")
    assert lines[0] == " == Bank State "
    assert lines[1] == "    State : Active"
    assert "    OpenRowAddress : 7" in lines
    assert "    nextRead       : 11" in lines
    assert "    nextWrite      : 12" in lines
    assert "    nextActivate   : 13" in lines
    assert "    nextPrecharge  : 14" in lines
    assert "    nextPowerUp    : 15" in lines


def test_describe_precharging_has_no_state_line():
    text = BankState(current_bank_state=CurrentBankState.Precharging).describe()
    assert "State :" not in text
    assert len(text.split("\n")) == 7


def test_describe_power_down_name():
    text = BankState(current_bank_state=CurrentBankState.PowerDown).describe()
    assert "    State : Power Down" in text.split("\n")