"""Typed simulator parameters and the database that holds them."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import IO, Iterable, Optional, Tuple, Union


class VarType(IntEnum):
    """Type of a parameter's value."""

    STRING = 0
    UINT = 1
    UINT64 = 2
    FLOAT = 3
    BOOL = 4


class ParamType(IntEnum):
    """Whether a parameter describes the system or the device."""

    SYS_PARAM = 0
    DEV_PARAM = 1


@dataclass
class ConfigurationData:
    """One named parameter, its types and its value as text."""

    name: str
    variable_type: VarType
    parameter_type: ParamType
    value: str


_DEFAULT_TEXT = {
    VarType.STRING: "",
    VarType.UINT: "0",
    VarType.UINT64: "0",
    VarType.FLOAT: "0",
    VarType.BOOL: "false",
}


def _entry(name, var_type, param_type, value=None):
    text = _DEFAULT_TEXT[var_type] if value is None else value
    return ConfigurationData(name, var_type, param_type, text)


_U, _F, _B, _S = VarType.UINT, VarType.FLOAT, VarType.BOOL, VarType.STRING
_DEV, _SYS = ParamType.DEV_PARAM, ParamType.SYS_PARAM

DEFAULT_CONFIGURATION: Tuple[ConfigurationData, ...] = (
    *(
        _entry(name, _U, _DEV)
        for name in (
            "NUM_BANKS", "NUM_BANK_GROUPS", "NUM_ROWS", "NUM_COLS", "NUM_PIM_BLOCKS",
            "DEVICE_WIDTH", "tRFC", "tRFCSB", "tREFI", "tREFISB",
        )
    ),
    _entry("tCK", _F, _DEV),
    *(
        _entry(name, _U, _DEV)
        for name in (
            "AL", "BL", "tRAS", "RL", "WL", "tRCDRD", "tRCDWR", "tRC", "tRP", "tWR",
            "tRTRS", "XAW", "tXAW", "tCKE", "tXP", "tCMD", "IDD0", "IDD1", "IDD2P",
            "IDD2Q", "IDD2N", "IDD3Pf", "IDD3Ps", "IDD3N", "IDD4W", "IDD4R", "IDD5",
            "IDD6", "IDD6L", "IDD7", "IDD0C", "IDD0Q", "IDD3NC", "IDD3NQ", "IDD4WC",
            "IDD4WQ", "IDD4RC", "IDD4RQ",
        )
    ),
    *(_entry(name, _F, _DEV) for name in ("Vddc", "Vddq", "Vpp", "Vdd")),
    _entry("Ealu", _U, _DEV),
    _entry("Ereg", _U, _DEV),
    _entry("NUM_CHANS", _U, _SYS),
    _entry("JEDEC_DATA_BUS_BITS", _U, _SYS),
    *(
        _entry(name, _U, _DEV)
        for name in (
            "READ_TO_WRITE_DELAY", "READ_TO_PRE_DELAY", "READ_TO_PRE_DELAY_LONG",
            "READ_TO_PRE_DELAY_SHORT", "WRITE_TO_PRE_DELAY", "READ_TO_WRITE_DELAY",
            "READ_AUTOPRE_DELAY", "WRITE_AUTOPRE_DELAY", "WRITE_TO_READ_DELAY_B_LONG",
            "WRITE_TO_READ_DELAY_B_SHORT", "WRITE_TO_READ_DELAY_R",
        )
    ),
    _entry("TRANS_QUEUE_DEPTH", _U, _SYS),
    _entry("CMD_QUEUE_DEPTH", _U, _SYS),
    _entry("EPOCH_LENGTH", _U, _SYS),
    _entry("USE_LOW_POWER", _B, _SYS),
    _entry("TOTAL_ROW_ACCESSES", _U, _SYS),
    _entry("ROW_BUFFER_POLICY", _S, _SYS),
    _entry("SCHEDULING_POLICY", _S, _SYS),
    _entry("ADDRESS_MAPPING_SCHEME", _S, _SYS),
    _entry("QUEUING_STRUCTURE", _S, _SYS),
    *(
        _entry(name, _B, _SYS)
        for name in (
            "DEBUG_TRANS_Q", "DEBUG_CMD_Q", "DEBUG_ADDR_MAP", "DEBUG_BANKSTATE",
            "DEBUG_BUS", "DEBUG_BANKS", "DEBUG_POWER", "DEBUG_CMD_TRACE",
            "DEBUG_PIM_BLOCK", "DEBUG_PIM_TIME", "VIS_FILE_OUTPUT", "VERIFICATION_OUTPUT",
        )
    ),
    *(_entry(name, _B, _DEV) for name in ("PRINT_CHAN_STAT", "SHOW_SIM_OUTPUT", "LOG_OUTPUT")),
    *(
        _entry(name, _U, _DEV)
        for name in ("tCCDL", "tCCDS", "tRRDL", "tRRDS", "tWTRL", "tWTRS", "tRTPL", "tRTPS")
    ),
    _entry("PIM_PRECISION", _S, _SYS),
    _entry("SIM_TRACE_FILE", _S, _SYS),
    _entry("HISTOGRAM_BIN_SIZE", _U, _SYS, "10"),
    _entry("PIM_MODE", _S, _SYS, "mac_in_bankgroup"),
    _entry("PIM_PRECISION", _S, _SYS, "FP16"),
    _entry("ROW_BUFFER_POLICY", _S, _SYS, "open_page"),
    _entry("SCHEDULING_POLICY", _S, _SYS, "rank_then_bank_round_robin"),
    _entry("QUEUING_STRUCTURE", _S, _SYS, "per_rank"),
    _entry("ADDRESS_MAPPING_SCHEME", _S, _SYS, "Scheme8"),
)

Value = Union[str, int, float, bool]


class ConfigurationDB:
    """A name-keyed store of configuration parameters."""

    def __init__(self) -> None:
        self._entries: dict[str, ConfigurationData] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        """Remove every parameter."""
        self._entries.clear()

    def initialize(
        self, config: Optional[Iterable[ConfigurationData]] = DEFAULT_CONFIGURATION
    ) -> None:
        """Reset the store to ``config``; later entries override earlier ones."""
        self.clear()
        if config is not None:
            for entry in config:
                self.update(entry)

    def find(self, key: str) -> Optional[ConfigurationData]:
        """Return the parameter named ``key``, or None."""
        return self._entries.get(key)

    def update(self, config: ConfigurationData) -> None:
        """Insert ``config`` or replace the parameter of the same name."""
        self._entries[config.name] = replace(config)

    def update_params(self, params: Optional[Iterable[Tuple[str, str]]]) -> None:
        """Set the values of known parameters from (name, value) pairs; unknown names are ignored."""
        if params is None:
            return
        for name, value in params:
            entry = self._entries.get(name)
            if entry is not None:
                entry.value = value

    def typed_value(self, key: str) -> Value:
        """Return the parameter's value converted to its declared type."""
        entry = self._entries.get(key)
        if entry is None:
            raise KeyError(key)
        text = entry.value.strip()
        try:
            if entry.variable_type in (VarType.UINT, VarType.UINT64):
                number = int(text)
                if number < 0:
                    raise ValueError("negative value for unsigned parameter")
                return number
            if entry.variable_type is VarType.FLOAT:
                return float(text)
            if entry.variable_type is VarType.BOOL:
                lowered = text.lower()
                if lowered in ("true", "1"):
                    return True
                if lowered in ("false", "0", ""):
                    return False
                raise ValueError("not a boolean")
        except ValueError as exc:
            raise ValueError(f"invalid value {entry.value!r} for parameter {key}") from exc
        return entry.value

    def set_value(self, key: str, var_type: VarType, param_type: ParamType, value: Value) -> None:
        """Store ``value`` under ``key`` with the given types."""
        if isinstance(value, bool):
            text = "true" if value else "false"
        else:
            text = str(value)
        self.update(ConfigurationData(key, VarType(var_type), ParamType(param_type), text))

    def dump(self, stream: IO[str]) -> None:
        """Write system then device parameter values in the visualiser format."""
        stream.write("!!SYSTEM INI PARAMETER\n")
        for entry in self._entries.values():
            if entry.parameter_type is ParamType.SYS_PARAM:
                stream.write(f"{entry.value}\n")
        stream.write("!!DEVICE INI PARAMETER\n")
        for entry in self._entries.values():
            if entry.parameter_type is ParamType.DEV_PARAM:
                stream.write(f"{entry.value}\n")
        stream.write("!!EPOCH_DATA\n")