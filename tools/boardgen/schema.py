"""
YAML board description parser and validator for boardgen.

Parses a YAML board description into a BoardConfig dataclass, validating
required fields and types. Pin strings are kept raw here; they are parsed
against the chip family's grammar during generation.
"""

import yaml
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .errors import ValidationError
from .expander import EXPANDER_BASE_ADDRESS
from .types import ChipFamily


@dataclass(frozen=True)
class MatrixSpec:
    """Row/column pins, or a direct pin grid. Exactly one form is set."""
    input_pins: Tuple[str, ...] = ()
    output_pins: Tuple[str, ...] = ()
    direct_pins: Optional[Tuple[Tuple[str, ...], ...]] = None
    async_matrix: bool = False
    active_low: bool = False

    @property
    def is_direct(self) -> bool:
        return self.direct_pins is not None


@dataclass(frozen=True)
class BusConfig:
    """I2C bus wiring."""
    enabled: bool = False
    sda: Optional[str] = None
    scl: Optional[str] = None
    frequency_khz: Optional[int] = None
    expander: bool = False
    expander_address: int = EXPANDER_BASE_ADDRESS


@dataclass(frozen=True)
class BoardConfig:
    """Parsed board description."""
    name: str
    chip: str
    family: ChipFamily
    matrix: MatrixSpec
    bus: BusConfig = field(default_factory=BusConfig)


def _require(data: dict, key: str, context: str = "root") -> object:
    """Require a key in a dict, raising ValidationError if missing."""
    if key not in data or data[key] is None:
        raise ValidationError(
            f"Missing required field '{key}' in {context} section"
        )
    return data[key]


def _pin_list(value, context: str) -> Tuple[str, ...]:
    if not isinstance(value, list):
        raise ValidationError(f"'{context}' must be a list of pin names")
    return tuple(value)


def _flag(section: dict, key: str, context: str, default: bool = False) -> bool:
    value = section.get(key, default)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValidationError(f"'{context}.{key}' must be true or false")
    return value


def parse_matrix(section: dict) -> MatrixSpec:
    """Parse the matrix section into a MatrixSpec."""
    if not isinstance(section, dict):
        raise ValidationError("matrix section must be a mapping")

    async_matrix = _flag(section, "async_matrix", "matrix")
    active_low = _flag(section, "active_low", "matrix")

    has_direct = section.get("direct_pins") is not None
    has_rows = section.get("input_pins") is not None or section.get("output_pins") is not None

    if has_direct and has_rows:
        raise ValidationError(
            "matrix section must use either input_pins/output_pins or direct_pins, not both"
        )

    if has_direct:
        rows = section["direct_pins"]
        if not isinstance(rows, list) or not rows:
            raise ValidationError("'matrix.direct_pins' must be a non-empty list of rows")
        grid = tuple(_pin_list(row, f"matrix.direct_pins[{i}]") for i, row in enumerate(rows))
        return MatrixSpec(direct_pins=grid, async_matrix=async_matrix,
                          active_low=active_low)

    input_pins = _pin_list(_require(section, "input_pins", "matrix"), "matrix.input_pins")
    output_pins = _pin_list(_require(section, "output_pins", "matrix"), "matrix.output_pins")
    return MatrixSpec(input_pins=input_pins, output_pins=output_pins,
                      async_matrix=async_matrix, active_low=active_low)


def parse_bus(section: Optional[dict]) -> BusConfig:
    """Parse the optional i2c section. A present section is enabled unless
    it says otherwise."""
    if section is None:
        return BusConfig()
    if not isinstance(section, dict):
        raise ValidationError("i2c section must be a mapping")

    enabled = _flag(section, "enabled", "i2c", default=True)
    if not enabled:
        return BusConfig()

    freq = section.get("frequency_khz")
    if freq is not None and (isinstance(freq, bool) or not isinstance(freq, int)):
        raise ValidationError("'i2c.frequency_khz' must be an integer", raw=freq)

    address = section.get("expander_address", EXPANDER_BASE_ADDRESS)
    if isinstance(address, bool) or not isinstance(address, int):
        raise ValidationError("'i2c.expander_address' must be an integer", raw=address)

    return BusConfig(
        enabled=True,
        sda=str(_require(section, "sda", "i2c")),
        scl=str(_require(section, "scl", "i2c")),
        frequency_khz=freq,
        expander=_flag(section, "expander", "i2c"),
        expander_address=address,
    )


def parse_board_yaml(yaml_str: str) -> BoardConfig:
    """Parse a YAML board description string into a BoardConfig.

    Args:
        yaml_str: YAML string containing the board description.

    Returns:
        BoardConfig with all parsed fields.

    Raises:
        ValidationError: If required fields are missing or invalid.
    """
    if not yaml_str or not yaml_str.strip():
        raise ValidationError("Empty YAML input")

    try:
        data = yaml.safe_load(yaml_str)
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid YAML: {e}")

    if not isinstance(data, dict):
        raise ValidationError("YAML root must be a mapping")

    # ---- board section ----
    board_section = _require(data, "board")
    if not isinstance(board_section, dict):
        raise ValidationError("board section must be a mapping")
    name = str(_require(board_section, "name", "board"))
    chip = str(_require(board_section, "chip", "board"))
    try:
        family = ChipFamily.from_chip(chip)
    except ValueError as e:
        raise ValidationError(str(e), raw=chip)

    # ---- matrix section ----
    matrix = parse_matrix(_require(data, "matrix"))

    # ---- i2c section (optional) ----
    bus = parse_bus(data.get("i2c"))

    return BoardConfig(name=name, chip=chip, family=family, matrix=matrix, bus=bus)
