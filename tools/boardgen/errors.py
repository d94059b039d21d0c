"""
Error taxonomy for boardgen.

Every error carries the raw configuration value that caused it so the build
log points straight at the offending entry.
"""


class ConfigError(Exception):
    """Base class for all board configuration failures."""

    kind = "ConfigError"

    def __init__(self, raw, message: str):
        super().__init__(message)
        self.raw = raw
        self.message = message


class UnknownPin(ConfigError):
    kind = "UnknownPin"

    def __init__(self, raw: str, family=None):
        where = f" for {family.value}" if family is not None else ""
        super().__init__(raw, f"Unknown pin {raw!r}{where}")


class InvalidPlacement(ConfigError):
    kind = "InvalidPlacement"

    def __init__(self, raw: str, reason: str):
        super().__init__(raw, f"Invalid placement of pin {raw!r}: {reason}")


class InvalidExpanderPin(ConfigError):
    kind = "InvalidExpanderPin"

    def __init__(self, raw: str, reason: str = ""):
        suffix = f" ({reason})" if reason else ""
        super().__init__(raw, f"Invalid expander pin {raw!r}{suffix}")


class InvalidFrequency(ConfigError):
    kind = "InvalidFrequency"

    def __init__(self, value, family=None, accepted=None):
        msg = f"Invalid I2C frequency {value} kHz"
        if family is not None:
            msg += f" for {family.value}"
        if accepted:
            msg += f", accepted: {', '.join(str(v) for v in accepted)}"
        super().__init__(value, msg)


class UnsupportedCapability(ConfigError):
    kind = "UnsupportedCapability"

    def __init__(self, raw: str, reason: str):
        super().__init__(raw, f"Unsupported capability on {raw!r}: {reason}")


class ValidationError(ConfigError):
    """Raised when a board YAML file fails validation."""

    kind = "ValidationError"

    def __init__(self, message: str, raw=None):
        super().__init__(raw, message)
