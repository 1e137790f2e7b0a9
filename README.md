# pimdram

Building blocks for a cycle-level DRAM simulator with processing-in-memory
support. The package models the pieces a memory controller works with:

- `pimdram.utils`: `ulog2` (base-2 logarithm rounded up), `is_power_of_two`
  and the byte shifts `bytes_to_gb`, `bytes_to_mb`, `bytes_to_kb`.
- `pimdram.fp16`: half-precision helpers `to_half`, `half_bits`,
  `half_from_bits` and `fp16_equal` (comparison within a ULP distance or an
  absolute difference).
- `pimdram.configuration`: `ConfigurationData` entries typed by `VarType` and
  `ParamType`, the `DEFAULT_CONFIGURATION` table, and `ConfigurationDB`, a
  name-keyed store with `initialize`, `find`, `update`, `update_params`,
  `typed_value`, `set_value` and `dump` (the visualiser parameter listing).
- `pimdram.burst`: `Burst`, 128 bytes of data viewed as `fp16`, `fp32`, `u16`,
  `u32` or `u8` lanes, with setters, hex/binary/float renderings, fp16
  element-wise `+` and `*`, reductions (`fp16_reduce_sum`, `fp16_adder_tree`,
  `fp32_reduce_sum`) and `fp16_similar`; and `NumpyBurst`, which loads `.npy`
  files (`load_fp32`, `load_fp16`, `load_fp16_from_fp32`) into bursts and
  writes them out with `dump_fp16` and `dump_int8`.
- `pimdram.address_mapping`: `AddrMapping`, decoding a physical address into a
  `MappedAddress` (channel, rank, bank, row, column) under one of the
  `AddressMappingScheme` members `Scheme1` to `Scheme8`; `diff_bit_width`
  splits the low bits off an address. Unaligned addresses are reported through
  the `logging` module.
- `pimdram.clock_domain`: `ClockDomainCrosser`, which calls a callback on each
  `update` (1:1 clock ratio by default, with counter-based ratios via
  `clock1`/`clock2`).
- `pimdram.bank_state`: `BankState` with `CurrentBankState` and the next-allowed
  cycles for each command, plus `describe` and `show_state` text.
- `pimdram.bus_packet`: `BusPacket` and `BusPacketType`, with `describe`,
  `data_text` and `verification_line` (the command-trace line for a cycle).
- `pimdram.bank`: `Bank`, sparse functional storage of bursts keyed by column
  and row.
- `pimdram.command_queue`: `CommandQueue`, per-rank (or per-rank-per-bank)
  queues that pick the next command each cycle: refresh first, then an
  issuable read/write or the activate it needs, then a precharge of a row no
  queued command still uses. Barrier tags (`"BAR"` in a packet's `tag`) keep
  later commands from overtaking earlier ones.

## Installation

```
pip install .
```

Install with the test extra to run the test suite:

```
pip install ".[test]"
pytest
```

## Examples

```python
from pimdram.burst import Burst
from pimdram.fp16 import to_half

a = Burst.from_fp16([1.0] * 16)
b = Burst.from_fp16([2.0] * 16)
total = (a + b).fp16_adder_tree()
assert total == to_half(48.0)
```

```python
from pimdram.utils import ulog2, is_power_of_two

assert ulog2(64) == 6
assert is_power_of_two(1024)
```

The default configuration has no `NUM_RANKS` entry and zero for the device
geometry, so set the parameters you need before building an `AddrMapping` or a
`CommandQueue`:

```python
from pimdram.address_mapping import AddrMapping, MappedAddress
from pimdram.configuration import ConfigurationDB, ParamType, VarType

db = ConfigurationDB()
db.initialize()
for name, value in {
    "JEDEC_DATA_BUS_BITS": 64, "BL": 4, "NUM_CHANS": 1, "NUM_RANKS": 1,
    "NUM_BANKS": 16, "NUM_BANK_GROUPS": 4, "NUM_ROWS": 16384, "NUM_COLS": 32,
}.items():
    db.set_value(name, VarType.UINT, ParamType.DEV_PARAM, value)

mapping = AddrMapping(db)  # Scheme8, the default ADDRESS_MAPPING_SCHEME
assert mapping.map(0x20) == MappedAddress(channel=0, rank=0, bank=1, row=0, column=0)
```

## What this package does not do

It provides the components only. There is no memory controller, rank or
memory-system model that drives them cycle by cycle, no transaction handling,
no statistics or power reporting, no reading of configuration files (values
are set through `ConfigurationDB`), and no command-line program.