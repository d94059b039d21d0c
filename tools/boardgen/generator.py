"""
Generator: compiles a BoardConfig into one GeneratedUnit.

Generation either succeeds completely or raises the first ConfigError;
no partial unit is ever returned.
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

from .backends import check_unique, get_backend
from .bus import build_bus
from .diagnostics import check
from .errors import UnsupportedCapability
from .pins import parse_mcu_pin, parse_pin, raw_text
from .schema import BoardConfig
from .types import ChipFamily, CodeFragment, ExpanderPin, PinToken

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedUnit:
    """The initialization code for one board, bus first then pins."""
    board_name: str
    family: ChipFamily
    bus: CodeFragment
    pins: CodeFragment
    source_path: str = ""

    @property
    def bindings(self) -> Tuple[str, ...]:
        return self.bus.bindings + self.pins.bindings

    def render(self) -> str:
        lines = []
        if self.source_path:
            lines.append(f"// Auto-generated from {self.source_path} -- DO NOT EDIT")
        else:
            lines.append("// Auto-generated by boardgen -- DO NOT EDIT")
        lines.append(f"// board: {self.board_name} ({self.family.value})")
        lines.append("")
        if not self.bus.is_empty:
            lines.append(self.bus.render())
            lines.append("")
        lines.append(self.pins.render())
        lines.append("")
        return "\n".join(lines)


def _parse_matrix(config: BoardConfig):
    family = config.family
    matrix = config.matrix
    if matrix.is_direct:
        grid = [[parse_pin(raw, family, allow_absent=True) for raw in row]
                for row in matrix.direct_pins]
        return grid, [pin for row in grid for pin in row]
    rows = [parse_pin(raw, family) for raw in matrix.input_pins]
    cols = [parse_pin(raw, family) for raw in matrix.output_pins]
    return (rows, cols), rows + cols


def _check_expander_bus(bus: CodeFragment, pins: List[PinToken]):
    for pin in pins:
        if isinstance(pin, ExpanderPin) and (bus.is_empty or bus.unsupported):
            raise UnsupportedCapability(
                raw_text(pin), "expander pins need an enabled, supported i2c bus")


def _bus_pins(config: BoardConfig, bus: CodeFragment) -> List[PinToken]:
    """SDA and SCL, when the bus actually claims them."""
    if bus.is_empty or bus.unsupported:
        return []
    return [parse_mcu_pin(config.bus.sda, config.family),
            parse_mcu_pin(config.bus.scl, config.family)]


def generate(config: BoardConfig, source_path: str = "") -> GeneratedUnit:
    """
    Compile ``config`` into initialization code.

    Raises:
        ConfigError: any pin, placement, frequency or capability error.
    """
    log.info("generating %s for %s", config.name, config.family.value)
    backend = get_backend(config.family)

    layout, all_pins = _parse_matrix(config)
    shared = any(isinstance(pin, ExpanderPin) for pin in all_pins)
    bus = build_bus(config.family, config.bus, shared=shared)
    _check_expander_bus(bus, all_pins)
    # a pin taken by the bus cannot also sit in the matrix
    check_unique(_bus_pins(config, bus) + all_pins)

    matrix = config.matrix
    if matrix.is_direct:
        pins = backend.emit_direct_matrix(layout, matrix.async_matrix, matrix.active_low)
    else:
        rows, cols = layout
        pins = backend.emit_matrix(rows, cols, matrix.async_matrix, matrix.active_low)

    check([bus, pins])
    log.debug("generated %d bindings", len(bus.bindings) + len(pins.bindings))
    return GeneratedUnit(board_name=config.name, family=config.family,
                         bus=bus, pins=pins, source_path=source_path)
