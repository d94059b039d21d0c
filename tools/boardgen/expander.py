"""
Expander address resolver: decodes MCP23017 pin tokens and renders the
family-independent driver calls for them.

Token form is ``MI<hh>_<bank><index>``, e.g. ``MI20_A2`` is pin 2 of bank A
on the expander at I2C address 0x20. ``MI20_B_7`` is also accepted.
"""

import logging
import re

from .errors import InvalidExpanderPin
from .types import BANK_OFFSET, BANK_SIZE, Bank, ExpanderPin, PinRole

log = logging.getLogger(__name__)

EXPANDER_PREFIX = "MI"

# MCP23017 address range; A2..A0 straps select 0x20-0x27.
EXPANDER_BASE_ADDRESS = 0x20
EXPANDER_MAX_ADDRESS = 0x27

RE_EXPANDER_PIN = re.compile(
    r"^MI(?P<addr>[0-9A-Fa-f]{2})_(?P<bank>[A-Za-z])_?(?P<index>\d+)$")

DRIVER = "::rmk::gpio::mcp230xx"

# Expander pins and the bring-up all borrow the bus through this RefCell.
SHARED_BUS = "i2c_bus"


def is_expander_token(raw: str) -> bool:
    return raw.startswith(EXPANDER_PREFIX)


def resolve_expander(raw: str) -> ExpanderPin:
    """
    Parse an expander pin token into (address, bank, index).

    Raises InvalidExpanderPin for a malformed address, bank or index.
    The address must be one the MCP23017 straps can select (0x20-0x27).
    The index is kept bank-relative and is not range-checked here; see
    ``pin_number``.
    """
    m = RE_EXPANDER_PIN.match(raw)
    if not m:
        raise InvalidExpanderPin(raw, "expected MI<hex address>_<A|B><index>")

    address = int(m.group("addr"), 16)
    if not EXPANDER_BASE_ADDRESS <= address <= EXPANDER_MAX_ADDRESS:
        raise InvalidExpanderPin(raw, "expander address must be 0x20-0x27")

    bank_letter = m.group("bank")
    try:
        bank = Bank(bank_letter)
    except ValueError:
        raise InvalidExpanderPin(raw, f"bank must be A or B, got {bank_letter!r}")

    return ExpanderPin(address=address,
                       bank=bank,
                       index=int(m.group("index")))


def pin_number(pin: ExpanderPin) -> int:
    """Aggregate 0-15 pin number: bank A is 0-7, bank B is 8-15."""
    if not 0 <= pin.index < BANK_SIZE:
        raise InvalidExpanderPin(
            format_token(pin), f"index {pin.index} out of range 0-{BANK_SIZE - 1}")
    return BANK_OFFSET[pin.bank] + pin.index


def format_token(pin: ExpanderPin) -> str:
    return f"{EXPANDER_PREFIX}{pin.address:02X}_{pin.bank.value}{pin.index}"


def expander_pin_expr(pin: ExpanderPin, role: PinRole) -> str:
    """Driver constructor for an expander pin, identical on every chip family."""
    # validates the index
    pin_number(pin)
    kind = "Output" if role is PinRole.OUTPUT else "Input"
    log.debug("Using MCP23017 for %s pin %s", role.value, format_token(pin))
    return (f"{DRIVER}::{kind}::new({shared_bus_device()}, {DRIVER}::Pin::new("
            f"0x{pin.address:02x}, {DRIVER}::Bank::{pin.bank.value}, {pin.index})).unwrap()")


def shared_bus_decl() -> str:
    """Moves the constructed bus into the RefCell shared by expander users."""
    return f"let {SHARED_BUS} = ::core::cell::RefCell::new(i2c);"


def shared_bus_device() -> str:
    return f"::embedded_hal_bus::i2c::RefCellDevice::new(&{SHARED_BUS})"


def strap_bits(address: int):
    """A0, A1, A2 strap levels for an expander address in 0x20-0x27."""
    offset = address - EXPANDER_BASE_ADDRESS
    return bool(offset & 0x1), bool(offset & 0x2), bool(offset & 0x4)


def expander_bringup(address: int = EXPANDER_BASE_ADDRESS):
    """Statements that construct the expander on the shared i2c bus."""
    if not EXPANDER_BASE_ADDRESS <= address <= EXPANDER_MAX_ADDRESS:
        raise InvalidExpanderPin(f"0x{address:02x}",
                                 "expander address must be 0x20-0x27")
    a0, a1, a2 = (str(b).lower() for b in strap_bits(address))
    return [
        f"let mut mcp23x17 = ::port_expander::Mcp23x17::new_mcp23017("
        f"{shared_bus_device()}, {a0}, {a1}, {a2});",
        "let ge = mcp23x17.split();",
        '::defmt::info!("MCP23017 initialized");',
    ]
