"""Components for cycle-level DRAM and processing-in-memory simulation."""

__version__ = "0.1.0"

__all__ = [
    "utils",
    "fp16",
    "configuration",
    "burst",
    "address_mapping",
    "clock_domain",
    "bank_state",
    "bus_packet",
    "bank",
    "command_queue",
]