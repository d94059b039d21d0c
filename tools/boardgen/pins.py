"""
Pin token model: parses configuration pin strings into typed tokens.
"""

import re

from .errors import InvalidPlacement, UnknownPin
from .expander import format_token, is_expander_token, pin_number, resolve_expander
from .types import ABSENT, ChipFamily, ExpanderPin, McuPin, PinToken

ABSENT_MARKER = "_"

# Pin naming grammar per family. Group "num" is the numeric suffix.
PIN_GRAMMAR = {
    ChipFamily.STM32:  re.compile(r"^P[A-K](?P<num>0|[1-9]\d?)$"),  # PA0, PD13
    ChipFamily.NRF52:  re.compile(r"^P[01]_(?P<num>\d{2})$"),      # P0_13, P1_05
    ChipFamily.RP2040: re.compile(r"^PIN_(?P<num>0|[1-9]\d?)$"),    # PIN_5
    ChipFamily.ESP32:  re.compile(r"^gpio(?P<num>0|[1-9]\d?)$"),    # gpio4
}


def parse_pin(raw: str, family: ChipFamily, allow_absent: bool = False) -> PinToken:
    """
    Parse one pin string for the given chip family.

    ``allow_absent`` is set only for direct pin arrays, the one place the
    ``_`` placeholder is legal.

    Raises:
        InvalidPlacement: ``_`` outside a direct pin array.
        InvalidExpanderPin: malformed expander token.
        UnknownPin: anything that does not match the family grammar.
    """
    if not isinstance(raw, str):
        raise UnknownPin(str(raw), family)

    if raw == ABSENT_MARKER:
        if not allow_absent:
            raise InvalidPlacement(raw, "'_' is only allowed in direct pin arrays")
        return ABSENT

    if is_expander_token(raw):
        pin = resolve_expander(raw)
        pin_number(pin)
        return pin

    m = PIN_GRAMMAR[family].match(raw)
    if not m:
        raise UnknownPin(raw, family)
    return McuPin(name=raw, number=int(m.group("num")))


def parse_mcu_pin(raw: str, family: ChipFamily) -> McuPin:
    """Parse a pin that must live on the MCU itself, e.g. a bus pin."""
    pin = parse_pin(raw, family)
    if not isinstance(pin, McuPin):
        raise InvalidPlacement(raw, "must be a microcontroller pin")
    return pin


def binding_name(raw: str) -> str:
    """Identifier derived from a raw pin string: "PD13" -> "pd13"."""
    name = re.sub(r"[^0-9a-zA-Z]+", "_", raw).strip("_").lower()
    return name or "none"


def raw_text(token: PinToken) -> str:
    """Canonical config spelling of a parsed token."""
    if isinstance(token, McuPin):
        return token.name
    if isinstance(token, ExpanderPin):
        return format_token(token)
    return ABSENT_MARKER
