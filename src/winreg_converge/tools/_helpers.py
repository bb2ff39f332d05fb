"""Shared helper functions for MCP tool handlers."""


def _coerce_bool(value: bool | str, default: bool = False) -> bool:
    """Convert a bool-or-string MCP parameter to a proper bool.

    MCP clients may send boolean parameters as strings ("true"/"false").
    This normalises both forms to a Python bool.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() == "true"
    return default


def _optional_architecture(value: str | None) -> str | None:
    """Map the tool's ``default`` architecture choice to the engine sentinel."""
    if value is None or value.strip().lower() in ("", "default"):
        return None
    return value
