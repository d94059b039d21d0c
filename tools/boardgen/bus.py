"""
I2C bus configuration builder.

Renders the bus constructor for a chip family and, when the board declares
one, the MCP23017 bring-up that follows it.
"""

import logging

from .errors import InvalidFrequency, UnsupportedCapability, ValidationError
from .expander import SHARED_BUS, expander_bringup, shared_bus_decl
from .pins import parse_mcu_pin
from .schema import BusConfig
from .types import ChipFamily, CodeFragment

log = logging.getLogger(__name__)

DEFAULT_FREQUENCY_KHZ = 100

# nRF52 TWIM only runs at these rates.
NRF52_FREQUENCIES = {
    100: "K100",
    250: "K250",
    400: "K400",
}


def _frequency(family: ChipFamily, config: BusConfig) -> int:
    freq = config.frequency_khz
    if freq is None:
        return DEFAULT_FREQUENCY_KHZ
    if isinstance(freq, bool) or not isinstance(freq, int):
        raise InvalidFrequency(freq, family)
    if family is ChipFamily.NRF52:
        if freq not in NRF52_FREQUENCIES:
            raise InvalidFrequency(freq, family, sorted(NRF52_FREQUENCIES))
    elif freq <= 0:
        raise InvalidFrequency(freq, family)
    return freq


def _stm32(sda: str, scl: str, freq: int):
    return [
        "let mut i2c = ::embassy_stm32::i2c::I2c::new_blocking(",
        "    p.I2C1,",
        f"    p.{scl},",
        f"    p.{sda},",
        f"    ::embassy_stm32::time::Hertz({freq} * 1000),",
        "    ::embassy_stm32::i2c::Config::default(),",
        ");",
    ]


def _nrf52(sda: str, scl: str, freq: int):
    hal = "::embassy_nrf"
    return [
        "let mut i2c = {",
        f"    let mut config = {hal}::twim::Config::default();",
        f"    config.frequency = {hal}::twim::Frequency::{NRF52_FREQUENCIES[freq]};",
        '    ::defmt::info!("I2C initialized");',
        f"    {hal}::twim::Twim::new(p.TWISPI0, Irqs, p.{sda}, p.{scl}, config)",
        "};",
        f"{hal}::interrupt::SPIM0_SPIS0_TWIM0_TWIS0_SPI0_TWI0"
        f".set_priority({hal}::interrupt::Priority::P2);",
    ]


def _rp2040(sda: str, scl: str, freq: int):
    hal = "::embassy_rp"
    return [
        "let mut i2c = {",
        f"    let mut config = {hal}::i2c::Config::default();",
        f"    config.frequency = {freq} * 1000;",
        f"    {hal}::i2c::I2c::new_blocking(p.I2C0, p.{scl}, p.{sda}, config)",
        "};",
    ]


_BUS_BUILDERS = {
    ChipFamily.STM32: _stm32,
    ChipFamily.NRF52: _nrf52,
    ChipFamily.RP2040: _rp2040,
}


def build_bus(family: ChipFamily, config: BusConfig, shared: bool = False) -> CodeFragment:
    """
    Render the I2C bus setup for ``family``.

    Returns an empty fragment for a disabled bus and a fragment marked
    ``unsupported`` for families without I2C support here.

    With ``shared`` (implied by ``config.expander``) the bus is moved into a
    RefCell so every expander pin and the bring-up can borrow it.

    Raises:
        InvalidFrequency: frequency outside the family's accepted values.
        UnsupportedCapability: expander declared on an unsupported bus.
        ValidationError: SDA or SCL missing.
    """
    if not config.enabled:
        return CodeFragment()

    builder = _BUS_BUILDERS.get(family)
    if builder is None:
        if config.expander:
            raise UnsupportedCapability(
                family.value, "an I2C expander needs a supported I2C bus")
        log.warning("I2C is not supported on %s", family.value)
        return CodeFragment(
            lines=(f"// I2C is not supported on {family.value}",
                   "let i2c: Option<()> = None;"),
            bindings=("i2c",),
            unsupported=True)

    if not config.sda:
        raise ValidationError("I2C SDA pin not set")
    if not config.scl:
        raise ValidationError("I2C SCL pin not set")
    sda = parse_mcu_pin(config.sda, family).name
    scl = parse_mcu_pin(config.scl, family).name
    freq = _frequency(family, config)

    log.debug("I2C on %s: sda=%s scl=%s %d kHz", family.value, sda, scl, freq)
    fragment = CodeFragment(lines=tuple(builder(sda, scl, freq)), bindings=("i2c",))
    if shared or config.expander:
        fragment += CodeFragment(lines=(shared_bus_decl(),), bindings=(SHARED_BUS,))

    # expander bring-up follows the bus it runs on
    if config.expander:
        fragment += CodeFragment(lines=tuple(expander_bringup(config.expander_address)),
                                 bindings=("mcp23x17", "ge"))
    return fragment
