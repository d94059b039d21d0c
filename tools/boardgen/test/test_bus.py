"""Tests for the I2C bus configuration builder."""

import pytest

from tools.boardgen.bus import DEFAULT_FREQUENCY_KHZ, build_bus
from tools.boardgen.errors import (
    InvalidFrequency,
    InvalidPlacement,
    UnknownPin,
    UnsupportedCapability,
    ValidationError,
)
from tools.boardgen.schema import BusConfig
from tools.boardgen.types import ChipFamily


def bus(**kwargs):
    return BusConfig(enabled=True, **kwargs)


STM32_BUS = dict(sda="PB7", scl="PB6")
NRF52_BUS = dict(sda="P0_26", scl="P0_27")
RP2040_BUS = dict(sda="PIN_4", scl="PIN_5")


class TestDisabled:
    @pytest.mark.parametrize("family", list(ChipFamily))
    def test_disabled_bus_is_empty(self, family):
        frag = build_bus(family, BusConfig())
        assert frag.is_empty
        assert not frag.unsupported
        assert frag.bindings == ()

    def test_disabled_ignores_bad_frequency(self):
        frag = build_bus(ChipFamily.NRF52, BusConfig(enabled=False, frequency_khz=333))
        assert frag.is_empty


class TestNrf52:
    @pytest.mark.parametrize("khz, variant", [(100, "K100"), (250, "K250"), (400, "K400")])
    def test_accepted_frequencies(self, khz, variant):
        code = build_bus(ChipFamily.NRF52, bus(frequency_khz=khz, **NRF52_BUS)).render()
        assert f"config.frequency = ::embassy_nrf::twim::Frequency::{variant};" in code

    def test_default_frequency(self):
        code = build_bus(ChipFamily.NRF52, bus(**NRF52_BUS)).render()
        assert "Frequency::K100" in code

    def test_invalid_frequency_is_not_rounded(self):
        with pytest.raises(InvalidFrequency) as exc:
            build_bus(ChipFamily.NRF52, bus(frequency_khz=333, **NRF52_BUS))
        assert exc.value.raw == 333
        assert "100, 250, 400" in str(exc.value)

    def test_twim_pins_and_priority(self):
        code = build_bus(ChipFamily.NRF52, bus(**NRF52_BUS)).render()
        assert "::embassy_nrf::twim::Twim::new(p.TWISPI0, Irqs, p.P0_26, p.P0_27, config)" in code
        assert ".set_priority(::embassy_nrf::interrupt::Priority::P2);" in code


class TestStm32AndRp2040:
    def test_stm32_hertz(self):
        frag = build_bus(ChipFamily.STM32, bus(frequency_khz=333, **STM32_BUS))
        assert frag.bindings == ("i2c",)
        code = frag.render()
        assert code.startswith("let mut i2c = ::embassy_stm32::i2c::I2c::new_blocking(")
        assert "::embassy_stm32::time::Hertz(333 * 1000)," in code
        assert "    p.PB6,\n    p.PB7," in code

    def test_stm32_default(self):
        code = build_bus(ChipFamily.STM32, bus(**STM32_BUS)).render()
        assert f"Hertz({DEFAULT_FREQUENCY_KHZ} * 1000)" in code

    def test_rp2040_frequency(self):
        code = build_bus(ChipFamily.RP2040, bus(frequency_khz=1000, **RP2040_BUS)).render()
        assert "config.frequency = 1000 * 1000;" in code
        assert "::embassy_rp::i2c::I2c::new_blocking(p.I2C0, p.PIN_5, p.PIN_4, config)" in code

    @pytest.mark.parametrize("family, pins", [
        (ChipFamily.STM32, STM32_BUS),
        (ChipFamily.RP2040, RP2040_BUS),
    ])
    @pytest.mark.parametrize("khz", [0, -100])
    def test_non_positive_frequency(self, family, pins, khz):
        with pytest.raises(InvalidFrequency):
            build_bus(family, bus(frequency_khz=khz, **pins))

    def test_non_integer_frequency(self):
        with pytest.raises(InvalidFrequency):
            build_bus(ChipFamily.STM32, bus(frequency_khz="fast", **STM32_BUS))


class TestUnsupported:
    def test_esp32_is_marked_unsupported(self):
        frag = build_bus(ChipFamily.ESP32, bus(sda="gpio8", scl="gpio9"))
        assert frag.unsupported
        assert not frag.is_empty
        assert "let i2c: Option<()> = None;" in frag.lines

    def test_esp32_expander_is_error(self):
        with pytest.raises(UnsupportedCapability):
            build_bus(ChipFamily.ESP32, bus(sda="gpio8", scl="gpio9", expander=True))


class TestBusPins:
    def test_missing_sda(self):
        with pytest.raises(ValidationError, match="SDA"):
            build_bus(ChipFamily.STM32, bus(scl="PB6"))

    def test_missing_scl(self):
        with pytest.raises(ValidationError, match="SCL"):
            build_bus(ChipFamily.STM32, bus(sda="PB7"))

    def test_unknown_bus_pin(self):
        with pytest.raises(UnknownPin):
            build_bus(ChipFamily.STM32, bus(sda="PIN_4", scl="PB6"))

    def test_expander_pin_as_bus_pin(self):
        with pytest.raises(InvalidPlacement):
            build_bus(ChipFamily.STM32, bus(sda="MI20_A0", scl="PB6"))


class TestExpanderBringup:
    def test_bringup_follows_bus(self):
        frag = build_bus(ChipFamily.RP2040, bus(expander=True, **RP2040_BUS))
        assert frag.bindings == ("i2c", "i2c_bus", "mcp23x17", "ge")
        bus_line = next(i for i, l in enumerate(frag.lines) if l.startswith("let mut i2c"))
        exp_line = next(i for i, l in enumerate(frag.lines) if "new_mcp23017" in l)
        assert bus_line < exp_line

    def test_bringup_address(self):
        frag = build_bus(ChipFamily.STM32,
                         bus(expander=True, expander_address=0x27, **STM32_BUS))
        assert "RefCellDevice::new(&i2c_bus), true, true, true);" in frag.render()

    def test_no_bringup_without_expander(self):
        frag = build_bus(ChipFamily.STM32, bus(**STM32_BUS))
        assert "mcp23017" not in frag.render()


class TestSharedBus:
    def test_shared_bus_follows_constructor(self):
        frag = build_bus(ChipFamily.STM32, bus(**STM32_BUS), shared=True)
        assert frag.bindings == ("i2c", "i2c_bus")
        assert frag.lines[-1] == "let i2c_bus = ::core::cell::RefCell::new(i2c);"

    def test_expander_implies_shared(self):
        frag = build_bus(ChipFamily.NRF52, bus(expander=True, **NRF52_BUS))
        code = frag.render()
        assert code.count("RefCell::new(i2c)") == 1
        assert code.index("RefCell::new(i2c)") < code.index("new_mcp23017")

    def test_plain_bus_keeps_i2c(self):
        frag = build_bus(ChipFamily.RP2040, bus(**RP2040_BUS))
        assert frag.bindings == ("i2c",)
        assert "RefCell" not in frag.render()
