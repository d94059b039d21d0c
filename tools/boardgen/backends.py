"""
Backend emitters: one code generator per chip family.

Every backend renders the same four constructs (output pin, input pin,
row/column matrix, direct pin grid) in its HAL's dialect. Expander pins are
rendered by the shared MCP23017 driver call on all families.
"""

import abc
import logging
from typing import Dict, List, Optional, Sequence, Type

from .diagnostics import diagnostic_fragment
from .errors import InvalidPlacement, UnsupportedCapability
from .expander import expander_pin_expr
from .pins import binding_name, raw_text
from .types import Absent, ChipFamily, CodeFragment, ExpanderPin, McuPin, PinRole, PinToken

log = logging.getLogger(__name__)


def _level(active_low: bool) -> str:
    """Idle output level."""
    return "High" if active_low else "Low"


def _pull(active_low: bool) -> str:
    """Idle input pull."""
    return "Up" if active_low else "Down"


class Backend(abc.ABC):
    """Shared emitter surface. Subclasses supply the per-family expressions."""

    family: ChipFamily

    # ── Per-family expressions ───────────────────────────────────────

    @abc.abstractmethod
    def output_expr(self, pin: McuPin, active_low: bool) -> str:
        ...

    @abc.abstractmethod
    def input_expr(self, pin: McuPin, active_low: bool) -> str:
        ...

    def interrupt_input_expr(self, pin: McuPin, active_low: bool) -> str:
        """Families without a distinct interrupt input type use plain inputs."""
        return self.input_expr(pin, active_low)

    # ── Pin dispatch ─────────────────────────────────────────────────

    def pin_expr(self, pin: PinToken, role: PinRole, active_low: bool) -> str:
        """
        Initializer expression for one pin.

        Raises UnsupportedCapability when an interrupt input cannot be
        provided and InvalidPlacement for an absent pin.
        """
        if isinstance(pin, ExpanderPin):
            if role is PinRole.INTERRUPT_INPUT:
                raise UnsupportedCapability(
                    raw_text(pin), "expander pins have no edge-triggered wake source")
            return expander_pin_expr(pin, role)
        if isinstance(pin, McuPin):
            if role is PinRole.OUTPUT:
                return self.output_expr(pin, active_low)
            if role is PinRole.INTERRUPT_INPUT:
                return self.interrupt_input_expr(pin, active_low)
            return self.input_expr(pin, active_low)
        raise InvalidPlacement(raw_text(pin), "an absent pin cannot be initialized")

    def _bind(self, name: str, pin: PinToken, role: PinRole, active_low: bool,
              wrap: str = "{}") -> CodeFragment:
        try:
            expr = self.pin_expr(pin, role, active_low)
        except UnsupportedCapability as e:
            log.debug("diagnostic for %s: %s", name, e.message)
            return diagnostic_fragment(e, name)
        return CodeFragment(lines=(f"let {name} = {wrap.format(expr)};",),
                            bindings=(name,))

    # ── Contract ─────────────────────────────────────────────────────

    def emit_output(self, pin: PinToken, active_low: bool,
                    name: Optional[str] = None) -> CodeFragment:
        name = name or binding_name(raw_text(pin))
        return self._bind(name, pin, PinRole.OUTPUT, active_low)

    def emit_input(self, pin: PinToken, role: PinRole, active_low: bool,
                   name: Optional[str] = None) -> CodeFragment:
        if role is PinRole.OUTPUT:
            raise ValueError("emit_input() needs an input role")
        name = name or binding_name(raw_text(pin))
        return self._bind(name, pin, role, active_low)

    def emit_matrix(self, rows: Sequence[PinToken], cols: Sequence[PinToken],
                    interrupt_capable: bool, active_low: bool = False) -> CodeFragment:
        """
        Row pins become ``input_pins``, column pins ``output_pins``.

        Only the row inputs take the interrupt request; columns are driven.
        """
        check_unique(list(rows) + list(cols))
        for pin in list(rows) + list(cols):
            if isinstance(pin, Absent):
                raise InvalidPlacement(
                    raw_text(pin), "'_' is only allowed in direct pin arrays")

        role = PinRole.INTERRUPT_INPUT if interrupt_capable else PinRole.INPUT
        fragment = CodeFragment()

        names = []
        for pin in rows:
            part = self.emit_input(pin, role, active_low)
            names.extend(part.bindings)
            fragment += part
        fragment += _array("input_pins", names)

        names = []
        for pin in cols:
            part = self.emit_output(pin, active_low)
            names.extend(part.bindings)
            fragment += part
        fragment += _array("output_pins", names)
        return fragment

    def emit_direct_matrix(self, grid: Sequence[Sequence[PinToken]],
                           interrupt_capable: bool, active_low: bool) -> CodeFragment:
        """
        One binding per grid cell: ``Some(pin)`` for a pin, ``None`` for an
        absent slot. Cell names carry (row, col) so absent slots stay
        distinct and the grid shape survives generation.
        """
        if grid:
            width = len(grid[0])
            for row_idx, row in enumerate(grid):
                if len(row) != width:
                    raise InvalidPlacement(
                        f"direct_pins[{row_idx}]",
                        f"row has {len(row)} pins, expected {width}")
        check_unique([pin for row in grid for pin in row])

        role = PinRole.INTERRUPT_INPUT if interrupt_capable else PinRole.INPUT
        fragment = CodeFragment()
        row_names = []
        for row_idx, row in enumerate(grid):
            cell_names = []
            for col_idx, pin in enumerate(row):
                name = f"{binding_name(raw_text(pin))}_{row_idx}_{col_idx}"
                if isinstance(pin, Absent):
                    part = CodeFragment(lines=(f"let {name} = None;",), bindings=(name,))
                else:
                    part = self._bind(name, pin, role, active_low, wrap="Some({})")
                cell_names.append(name)
                fragment += part
            row_name = f"direct_pins_row_{row_idx}"
            fragment += _array(row_name, cell_names)
            row_names.append(row_name)
        fragment += _array("direct_pins", row_names)
        return fragment


def _array(name: str, items: List[str]) -> CodeFragment:
    return CodeFragment(lines=(f"let {name} = [{', '.join(items)}];",), bindings=(name,))


def check_unique(pins: Sequence[PinToken]) -> None:
    seen = set()
    for pin in pins:
        if isinstance(pin, Absent):
            continue
        if pin in seen:
            raise InvalidPlacement(raw_text(pin), "pin is used more than once")
        seen.add(pin)


# ── Families ─────────────────────────────────────────────────────────

class Stm32Backend(Backend):
    family = ChipFamily.STM32
    hal = "::embassy_stm32"

    # EXTI lines 0-15, selected by the pin number within its port.
    EXTI_LINES = 16

    def output_expr(self, pin, active_low):
        return (f"{self.hal}::gpio::Output::new(p.{pin.name}, "
                f"{self.hal}::gpio::Level::{_level(active_low)}, "
                f"{self.hal}::gpio::Speed::VeryHigh).degrade()")

    def input_expr(self, pin, active_low):
        return (f"{self.hal}::gpio::Input::new(p.{pin.name}, "
                f"{self.hal}::gpio::Pull::{_pull(active_low)}).degrade()")

    def exti_line(self, pin: McuPin) -> int:
        if not 0 <= pin.number < self.EXTI_LINES:
            raise UnsupportedCapability(
                pin.name, f"no EXTI line for pin number {pin.number}")
        return pin.number

    def interrupt_input_expr(self, pin, active_low):
        line = self.exti_line(pin)
        return (f"{self.hal}::exti::ExtiInput::new("
                f"{self.input_expr(pin, active_low)}, p.EXTI{line}.degrade())")


class Nrf52Backend(Backend):
    family = ChipFamily.NRF52
    hal = "::embassy_nrf"

    def output_expr(self, pin, active_low):
        return (f"{self.hal}::gpio::Output::new({self.hal}::gpio::AnyPin::from(p.{pin.name}), "
                f"{self.hal}::gpio::Level::{_level(active_low)}, "
                f"{self.hal}::gpio::OutputDrive::Standard)")

    def input_expr(self, pin, active_low):
        return (f"{self.hal}::gpio::Input::new({self.hal}::gpio::AnyPin::from(p.{pin.name}), "
                f"{self.hal}::gpio::Pull::{_pull(active_low)})")


class Rp2040Backend(Backend):
    family = ChipFamily.RP2040
    hal = "::embassy_rp"

    def output_expr(self, pin, active_low):
        return (f"{self.hal}::gpio::Output::new({self.hal}::gpio::AnyPin::from(p.{pin.name}), "
                f"{self.hal}::gpio::Level::{_level(active_low)})")

    def input_expr(self, pin, active_low):
        return (f"{self.hal}::gpio::Input::new({self.hal}::gpio::AnyPin::from(p.{pin.name}), "
                f"{self.hal}::gpio::Pull::{_pull(active_low)})")


class Esp32Backend(Backend):
    family = ChipFamily.ESP32
    hal = "::esp_idf_svc::hal"

    # PinDriver takes level and pull after construction, hence the blocks.
    def output_expr(self, pin, active_low):
        setter = "set_high" if active_low else "set_low"
        return (f"{{ let mut pin = {self.hal}::gpio::PinDriver::output("
                f"p.pins.{pin.name}.downgrade_output()).unwrap(); "
                f"pin.{setter}().unwrap(); pin }}")

    def input_expr(self, pin, active_low):
        return (f"{{ let mut pin = {self.hal}::gpio::PinDriver::input("
                f"p.pins.{pin.name}.downgrade_input()).unwrap(); "
                f"pin.set_pull({self.hal}::gpio::Pull::{_pull(active_low)}).unwrap(); pin }}")


BACKENDS: Dict[ChipFamily, Type[Backend]] = {
    ChipFamily.STM32: Stm32Backend,
    ChipFamily.NRF52: Nrf52Backend,
    ChipFamily.RP2040: Rp2040Backend,
    ChipFamily.ESP32: Esp32Backend,
}


def get_backend(family: ChipFamily) -> Backend:
    """Select the emitter for ``family``; every ChipFamily must have one."""
    try:
        return BACKENDS[family]()
    except KeyError:
        raise UnsupportedCapability(str(family), "no code generator for this chip family")
