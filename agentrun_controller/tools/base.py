"""Input helpers shared by the built-in tools.

Tool input arrives as decoded JSON from the model, so numbers may be ``int``
or ``float`` and any key may be missing or of the wrong type.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .errors import ToolInputError


def require_str(args: Dict[str, Any], key: str) -> str:
    value = args.get(key)
    if not isinstance(value, str) or not value:
        raise ToolInputError(f"{key} is required")
    return value


def optional_str(args: Dict[str, Any], key: str) -> str:
    value = args.get(key)
    return value if isinstance(value, str) else ""


def bounded_int(args: Dict[str, Any], key: str, *, default: int, maximum: int) -> int:
    """Read an integer option, falling back to ``default`` and clamping to ``maximum``."""
    value = args.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        n = default
    else:
        n = int(value)
    return min(n, maximum)


def optional_list(args: Dict[str, Any], key: str) -> Optional[List[Any]]:
    if key not in args:
        return None
    value = args[key]
    if not isinstance(value, list):
        raise ToolInputError(f"{key} must be an array")
    return value
