from __future__ import annotations

import importlib
from typing import Any


def load_symbol(dotted: str) -> Any:
    """
    Resolve an engine, exporter or adapter class from a dotted path.
    Accepts "package.module:ClassName" and "package.module.ClassName".
    Raises ValueError with the offending path when it cannot be resolved.
    """
    if ":" in dotted:
        module_name, _, symbol_name = dotted.partition(":")
    elif "." in dotted:
        module_name, _, symbol_name = dotted.rpartition(".")
    else:
        raise ValueError(f"Not a dotted path: {dotted!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ValueError(f"Cannot import module {module_name!r} for {dotted!r}") from exc

    try:
        return getattr(module, symbol_name)
    except AttributeError as exc:
        raise ValueError(f"Module {module_name!r} has no attribute {symbol_name!r}") from exc
