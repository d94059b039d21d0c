"""
boardgen: board configuration compiler for keyboard firmware.

Turns a chip-agnostic description of a board's GPIO wiring (matrix or direct
pins, optional I2C bus and MCP23017 expander) into Rust initialization code
for STM32, nRF52, RP2040 or ESP32 targets.
"""
