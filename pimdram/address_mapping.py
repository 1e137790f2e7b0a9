"""Mapping of physical addresses onto channel, rank, bank, row and column."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from .configuration import ConfigurationDB
from .utils import ulog2

logger = logging.getLogger(__name__)


class AddressMappingScheme(Enum):
    """Order in which address bits are assigned to DRAM coordinates."""

    Scheme1 = 1  # chan:rank:row:col:bank
    Scheme2 = 2  # chan:row:col:bank:rank
    Scheme3 = 3  # chan:rank:bank:col:row
    Scheme4 = 4  # chan:rank:bank:row:col
    Scheme5 = 5  # chan:row:col:rank:bank
    Scheme6 = 6  # chan:row:bank:rank:col
    Scheme7 = 7  # row:col:rank:bank:chan
    Scheme8 = 8  # rank:row:col:bg:bank:chan


@dataclass(frozen=True)
class MappedAddress:
    """DRAM coordinates of one physical address."""

    channel: int
    rank: int
    bank: int
    row: int
    column: int


def diff_bit_width(address: int, width: int) -> Tuple[int, int]:
    """Split off the low ``width`` bits: return (those bits, remaining address)."""
    if width < 0:
        raise ValueError(f"bit width must be non-negative, got {width}")
    remaining = address >> width
    return address ^ (remaining << width), remaining


class AddrMapping:
    """Decodes physical addresses with bit widths taken from a configuration."""

    def __init__(
        self,
        config: ConfigurationDB,
        scheme: Optional[Union[AddressMappingScheme, str]] = None,
    ) -> None:
        def param(name: str) -> int:
            return int(config.typed_value(name))

        bus_bits = param("JEDEC_DATA_BUS_BITS")
        num_banks = param("NUM_BANKS")
        num_bank_groups = param("NUM_BANK_GROUPS")

        self.transaction_size = bus_bits // 8 * param("BL")
        self.transaction_mask = self.transaction_size - 1
        self.channel_bit_width = ulog2(param("NUM_CHANS"))
        self.rank_bit_width = ulog2(param("NUM_RANKS"))
        self.bank_bit_width = ulog2(num_banks)
        self.bankgroup_bit_width = ulog2(num_bank_groups)
        self.row_bit_width = ulog2(param("NUM_ROWS"))
        self.col_bit_width = ulog2(param("NUM_COLS"))
        self.byte_offset_width = ulog2(bus_bits // 8)
        throw_away_bits = ulog2(self.transaction_size)
        self.col_low_bit_width = throw_away_bits - self.byte_offset_width
        self.col_high_bit_width = self.col_bit_width - self.col_low_bit_width
        if self.col_low_bit_width < 0 or self.col_high_bit_width < 0:
            raise ValueError("burst size does not fit the configured column width")
        if self.bankgroup_bit_width > self.bank_bit_width:
            raise ValueError("more bank groups than banks")
        self.num_chans = param("NUM_CHANS")
        self.num_bank_per_bg = num_banks // num_bank_groups if num_bank_groups else 0

        if scheme is None:
            scheme = str(config.typed_value("ADDRESS_MAPPING_SCHEME"))
        if isinstance(scheme, str):
            try:
                scheme = AddressMappingScheme[scheme.strip()]
            except KeyError:
                raise ValueError(f"unknown address mapping scheme {scheme!r}") from None
        self.scheme = AddressMappingScheme(scheme)

    def bankgroup_id(self, bank: int) -> int:
        """Bank group that ``bank`` belongs to."""
        if self.num_bank_per_bg == 0:
            raise ValueError("no bank groups configured")
        return bank // self.num_bank_per_bg

    def is_same_bankgroup(self, bank0: int, bank1: int) -> bool:
        """True when both banks lie in the same bank group."""
        return self.bankgroup_id(bank0) == self.bankgroup_id(bank1)

    def map(self, address: int) -> MappedAddress:
        """Decode ``address`` according to the configured scheme."""
        if address < 0:
            raise ValueError("physical address must be non-negative")
        if address & self.transaction_mask:
            logger.warning(
                "address %#x is not aligned to the request size of %d",
                address,
                self.transaction_size,
            )
        address >>= self.byte_offset_width
        address >>= self.col_low_bit_width

        widths = {
            "channel": self.channel_bit_width,
            "rank": self.rank_bit_width,
            "bank": self.bank_bit_width,
            "row": self.row_bit_width,
            "column": self.col_high_bit_width,
        }
        fields = {}

        if self.scheme is AddressMappingScheme.Scheme8:
            low_bank_width = self.bank_bit_width - self.bankgroup_bit_width
            fields["channel"], address = diff_bit_width(address, self.channel_bit_width)
            bank_low, address = diff_bit_width(address, low_bank_width)
            group, address = diff_bit_width(address, self.bankgroup_bit_width)
            fields["bank"] = bank_low | (group << low_bank_width)
            fields["column"], address = diff_bit_width(address, self.col_high_bit_width)
            fields["row"], address = diff_bit_width(address, self.row_bit_width)
            fields["rank"], address = diff_bit_width(address, self.rank_bit_width)
        else:
            for name in _FIELD_ORDER[self.scheme]:
                fields[name], address = diff_bit_width(address, widths[name])

        mapped = MappedAddress(**fields)
        logger.debug("mapped %s", mapped)
        return mapped


# Fields taken from the address, lowest bits first.
_FIELD_ORDER = {
    AddressMappingScheme.Scheme1: ("bank", "column", "row", "rank", "channel"),
    AddressMappingScheme.Scheme2: ("rank", "bank", "column", "row", "channel"),
    AddressMappingScheme.Scheme3: ("row", "column", "bank", "rank", "channel"),
    AddressMappingScheme.Scheme4: ("column", "row", "bank", "rank", "channel"),
    AddressMappingScheme.Scheme5: ("bank", "rank", "column", "row", "channel"),
    AddressMappingScheme.Scheme6: ("column", "rank", "bank", "row", "channel"),
    AddressMappingScheme.Scheme7: ("channel", "bank", "rank", "column", "row"),
}