"""Hive-qualified registry path parsing.

Accepts shorthand paths (``HKCU\\Software\\MyApp``), long-form paths
(``HKEY_LOCAL_MACHINE\\SOFTWARE\\Key``) and PowerShell drive paths
(``HKLM:\\SOFTWARE``). Pure functions, no registry access.
"""

from enum import IntEnum
from typing import Iterator

from winreg_converge.registry.errors import HiveMissingError


class Hive(IntEnum):
    """Predefined root handles. Values are the Win32 ``HKEY_*`` constants."""

    HKCR = 0x80000000
    HKCU = 0x80000001
    HKLM = 0x80000002
    HKU = 0x80000003
    HKCC = 0x80000005


_HIVE_MAP = {
    "HKLM": Hive.HKLM,
    "HKEY_LOCAL_MACHINE": Hive.HKLM,
    "HKU": Hive.HKU,
    "HKEY_USERS": Hive.HKU,
    "HKCU": Hive.HKCU,
    "HKEY_CURRENT_USER": Hive.HKCU,
    "HKCR": Hive.HKCR,
    "HKEY_CLASSES_ROOT": Hive.HKCR,
    "HKCC": Hive.HKCC,
    "HKEY_CURRENT_CONFIG": Hive.HKCC,
}


def _normalize(path: str) -> str:
    normalized = path.replace(":/", "\\").replace(":\\", "\\").replace("/", "\\")
    return normalized.rstrip(":")


def resolve_path(path: str) -> tuple[Hive, str]:
    """Split *path* into its hive and the key path relative to that hive.

    Raises HiveMissingError when the first segment is not a known hive.
    """
    parts = _normalize(path).split("\\", 1)
    hive = _HIVE_MAP.get(parts[0].upper())
    if hive is None:
        raise HiveMissingError(f"Unknown registry hive: {parts[0]!r}", path=path)
    key = parts[1].strip("\\") if len(parts) > 1 else ""
    return hive, key


def hive_exists(path: str) -> bool:
    try:
        resolve_path(path)
    except HiveMissingError:
        return False
    return True


def split_parent(key: str) -> tuple[str, str]:
    """Return ``(parent, leaf)`` for a relative key path."""
    parent, _, leaf = key.rpartition("\\")
    return parent, leaf


def ancestors(key: str) -> Iterator[str]:
    """Yield every proper ancestor of *key*, shallowest first.

    ``ancestors("A\\B\\C")`` yields ``"A"`` then ``"A\\B"``.
    """
    segments = [s for s in key.split("\\") if s]
    for depth in range(1, len(segments)):
        yield "\\".join(segments[:depth])
