"""
Type system: chip families, pin roles and the parsed pin token variants.
"""

import enum
from dataclasses import dataclass
from typing import Tuple, Union

from .errors import ConfigError


class ChipFamily(enum.Enum):
    STM32 = "stm32"
    NRF52 = "nrf52"
    RP2040 = "rp2040"
    ESP32 = "esp32"

    @classmethod
    def from_chip(cls, chip: str) -> "ChipFamily":
        """Map a concrete chip name (e.g. "stm32f411ce") to its family."""
        name = chip.strip().lower()
        for family in cls:
            if name.startswith(family.value):
                return family
        raise ValueError(f"Unsupported chip {chip!r}")


class PinRole(enum.Enum):
    OUTPUT = "output"
    INPUT = "input"
    INTERRUPT_INPUT = "interrupt_input"


class Bank(enum.Enum):
    A = "A"
    B = "B"


# Aggregate pin number offset of each expander bank.
BANK_OFFSET = {
    Bank.A: 0,
    Bank.B: 8,
}

BANK_SIZE = 8


@dataclass(frozen=True)
class McuPin:
    name: str     # as written in the config, e.g. "PD13"
    number: int   # numeric suffix, e.g. 13


@dataclass(frozen=True)
class ExpanderPin:
    address: int  # 7-bit I2C address
    bank: Bank
    index: int    # bank-relative, 0-7


@dataclass(frozen=True)
class Absent:
    pass


ABSENT = Absent()

PinToken = Union[McuPin, ExpanderPin, Absent]


@dataclass(frozen=True)
class CodeFragment:
    """
    A run of generated Rust statements.

    ``bindings`` lists the names the statements introduce, in order.
    ``diagnostics`` holds errors rendered as compile_error! statements;
    the generator refuses to emit a unit that carries any.
    ``unsupported`` marks a fragment standing in for a feature the chip
    family does not have, as opposed to one that is simply empty.
    """
    lines: Tuple[str, ...] = ()
    bindings: Tuple[str, ...] = ()
    diagnostics: Tuple[ConfigError, ...] = ()
    unsupported: bool = False

    def __add__(self, other: "CodeFragment") -> "CodeFragment":
        return CodeFragment(lines=self.lines + other.lines,
                            bindings=self.bindings + other.bindings,
                            diagnostics=self.diagnostics + other.diagnostics,
                            unsupported=self.unsupported or other.unsupported)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def render(self, indent: str = "") -> str:
        return "\n".join(f"{indent}{line}" if line else "" for line in self.lines)
