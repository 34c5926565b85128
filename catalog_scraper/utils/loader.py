from __future__ import annotations

import importlib
from typing import Any


def load_symbol(dotted: str) -> Any:
    """
    Load a class or function from a dotted path.
    Supports both "package.module:name" and "package.module.name".
    """
    if ":" in dotted:
        module_name, symbol_name = dotted.split(":", 1)
    else:
        module_name, symbol_name = dotted.rsplit(".", 1)

    module = importlib.import_module(module_name)
    try:
        return getattr(module, symbol_name)
    except AttributeError as exc:
        raise ImportError(f"{module_name} has no attribute {symbol_name!r}") from exc
