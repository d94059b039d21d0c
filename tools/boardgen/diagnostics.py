"""
Diagnostics: turns configuration errors into build-time failures.
"""

import json
from typing import Iterable

from .errors import ConfigError
from .types import CodeFragment


def format_error(err: ConfigError) -> str:
    """One-line build log message, e.g. ``error[UnknownPin]: Unknown pin 'PZ1'``."""
    return f"error[{err.kind}]: {err.message}"


def compile_error(message: str) -> str:
    """A Rust expression that fails the firmware build with ``message``."""
    # json string escaping is a subset of Rust's for printable text
    return f"::core::compile_error!({json.dumps(message, ensure_ascii=False)})"


def diagnostic_fragment(err: ConfigError, name: str = "") -> CodeFragment:
    """
    Fragment standing in for code that could not be generated.

    With ``name`` the error takes the place of that binding's initializer so
    the surrounding arrays still reference a declared name.
    """
    if name:
        return CodeFragment(lines=(f"let {name} = {compile_error(err.message)};",),
                            bindings=(name,),
                            diagnostics=(err,))
    return CodeFragment(lines=(f"{compile_error(err.message)};",), diagnostics=(err,))


def check(fragments: Iterable[CodeFragment]) -> None:
    """Raise the first diagnostic carried by any of ``fragments``."""
    for fragment in fragments:
        if fragment.diagnostics:
            raise fragment.diagnostics[0]
