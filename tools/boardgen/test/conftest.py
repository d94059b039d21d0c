"""Shared fixtures for boardgen tests."""

import pytest
import sys
import os

# Add the project root to sys.path so 'tools.boardgen' is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "..", ".."))

from tools.boardgen.schema import parse_board_yaml


STM32_MATRIX_YAML = """\
board:
  name: Corne
  chip: stm32f411ce

matrix:
  input_pins: [PB12, PB13, PB14]
  output_pins: [PA8, PA9, PA10, PA15]
  async_matrix: true

i2c:
  sda: PB7
  scl: PB6
  frequency_khz: 400
"""


NRF52_DIRECT_YAML = """\
board:
  name: Macropad
  chip: nrf52840

matrix:
  direct_pins:
    - [P0_13, _]
    - [_, P1_05]
  active_low: true
"""


EXPANDER_YAML = """\
board:
  name: SplitExpander
  chip: rp2040

matrix:
  input_pins: [PIN_2, MI20_A0, MI20_B7]
  output_pins: [PIN_3, MI20_A1]

i2c:
  sda: PIN_4
  scl: PIN_5
  expander: true
"""


ESP32_YAML = """\
board:
  name: EspPad
  chip: esp32c3

matrix:
  input_pins: [gpio4, gpio5]
  output_pins: [gpio6, gpio7]
"""


@pytest.fixture
def stm32_yaml():
    """STM32 row/column board with async matrix and I2C."""
    return STM32_MATRIX_YAML


@pytest.fixture
def nrf52_direct_yaml():
    """nRF52 direct-pin board with absent slots."""
    return NRF52_DIRECT_YAML


@pytest.fixture
def expander_yaml():
    """RP2040 board with an MCP23017 on I2C."""
    return EXPANDER_YAML


@pytest.fixture
def esp32_yaml():
    """ESP32 board with no bus."""
    return ESP32_YAML


@pytest.fixture
def stm32_board(stm32_yaml):
    return parse_board_yaml(stm32_yaml)


@pytest.fixture
def nrf52_direct_board(nrf52_direct_yaml):
    return parse_board_yaml(nrf52_direct_yaml)


@pytest.fixture
def expander_board(expander_yaml):
    return parse_board_yaml(expander_yaml)
