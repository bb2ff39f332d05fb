"""Human-readable registry operations for the MCP tool surface.

Accepts the same path forms as the engine (HKCU\\..., HKCU:\\...,
HKEY_CURRENT_USER\\...) and reports results and failures as strings.

Security: mutations under sensitive registry paths (Run, RunOnce, Services,
Policies, SAM, Security) are blocked by default.  Set
WINREG_CONVERGE_UNRESTRICTED=true to bypass.
"""

import logging
import os
import re

from winreg_converge.registry.engine import RegistryEngine
from winreg_converge.registry.errors import RegistryError
from winreg_converge.registry.paths import resolve_path
from winreg_converge.registry.resource import ACTIONS, RegistryProvider, RegistryResource
from winreg_converge.registry.values import Value, ValueType

logger = logging.getLogger(__name__)

# Security-sensitive registry subkeys, matched case-insensitively against the
# normalized subkey portion. Software\ roots also cover their WOW6432Node copy.
_SENSITIVE_KEY_ROOTS = [
    r"Software\Microsoft\Windows\CurrentVersion\Run",
    r"Software\Microsoft\Windows\CurrentVersion\RunOnce",
    r"Software\Microsoft\Windows\CurrentVersion\RunServices",
    r"Software\Microsoft\Windows\CurrentVersion\Policies",
    r"Software\Microsoft\Windows\CurrentVersion\Explorer\Shell Folders",
    r"Software\Microsoft\Windows\CurrentVersion\Explorer\User Shell Folders",
    r"SYSTEM\CurrentControlSet\Services",
    r"SYSTEM\CurrentControlSet\Control\Session Manager",
    r"SAM",
    r"SECURITY",
    r"SOFTWARE\Policies",
]
_SENSITIVE_KEY_ROOTS += [
    "Software\\WOW6432Node\\" + root.split("\\", 1)[1]
    for root in _SENSITIVE_KEY_ROOTS
    if root.lower().startswith("software\\")
]

_SENSITIVE_KEY_PATTERNS = [
    re.compile("^" + re.escape(root) + r"\b", re.IGNORECASE) for root in _SENSITIVE_KEY_ROOTS
]

_MUTATING_ACTIONS = {"create", "create_if_missing", "delete", "delete_key"}


def _normalize_subkey(subkey: str) -> str:
    return subkey.replace("/", "\\").strip("\\")


def _is_sensitive_key(subkey: str) -> bool:
    """Return True if the subkey matches a sensitive registry path."""
    normalized = _normalize_subkey(subkey)
    return any(pat.search(normalized) for pat in _SENSITIVE_KEY_PATTERNS)


def _contains_sensitive_key(subkey: str) -> bool:
    """Return True if a sensitive registry path lies below *subkey*."""
    normalized = _normalize_subkey(subkey).casefold()
    prefix = normalized + "\\" if normalized else ""
    return any(root.casefold().startswith(prefix) for root in _SENSITIVE_KEY_ROOTS)


def _check_registry_write(subkey: str, subtree: bool = False) -> None:
    """Raise PermissionError if writing to a sensitive key without override.

    With *subtree*, keys that hold a sensitive path below them are refused too.
    """
    unrestricted = os.environ.get("WINREG_CONVERGE_UNRESTRICTED", "").lower() == "true"
    if unrestricted:
        return
    if _is_sensitive_key(subkey) or (subtree and _contains_sensitive_key(subkey)):
        raise PermissionError(
            f"Write/delete to sensitive registry path '{subkey}' is blocked. "
            "Set WINREG_CONVERGE_UNRESTRICTED=true to bypass."
        )


def _format_data(value: Value) -> str:
    data = value.data
    if isinstance(data, (bytes, bytearray)):
        return data.hex(" ") if data else "(empty)"
    if isinstance(data, list):
        return " | ".join(str(item) for item in data)
    return str(data)


class RegistryService:
    """Registry convergence with string results for tool handlers."""

    def __init__(self, engine: RegistryEngine | None = None):
        self._engine = engine
        self._provider: RegistryProvider | None = None

    @property
    def engine(self) -> RegistryEngine:
        if self._engine is None:
            self._engine = RegistryEngine()
        return self._engine

    @property
    def provider(self) -> RegistryProvider:
        if self._provider is None:
            self._provider = RegistryProvider(self.engine)
        return self._provider

    def registry_list(self, path: str, architecture: str | None = None) -> str:
        from tabulate import tabulate

        try:
            values = self.engine.get_values(path, architecture)
            subkeys = self.engine.get_subkeys(path, architecture)
        except (RegistryError, OSError, ValueError) as e:
            return f"Error listing registry: {e}"

        parts = []
        if values:
            table = tabulate(
                [[v.name or "(Default)", str(v.type), _format_data(v)] for v in values],
                headers=["Name", "Type", "Data"],
                tablefmt="simple",
            )
            parts.append(f"Values:\n{table}")
        if subkeys:
            parts.append("Sub-Keys:\n" + "\n".join(f"  {sk}" for sk in subkeys))
        if not parts:
            parts.append("No values or sub-keys found.")
        return f"Registry key [{path}]:\n" + "\n\n".join(parts)

    def registry_subkeys(self, path: str, architecture: str | None = None) -> str:
        try:
            subkeys = self.engine.get_subkeys(path, architecture)
        except (RegistryError, OSError, ValueError) as e:
            return f"Error listing registry sub-keys: {e}"
        if not subkeys:
            return f"Registry key [{path}] has no sub-keys."
        return f"Sub-Keys of [{path}]:\n" + "\n".join(f"  {sk}" for sk in subkeys)

    def registry_exists(
        self, path: str, name: str | None = None, architecture: str | None = None
    ) -> str:
        try:
            if name is None:
                found = self.engine.key_exists(path, architecture)
                return f"Registry key [{path}] {'exists' if found else 'does not exist'}."
            if not self.engine.key_exists(path, architecture):
                return f"Registry key [{path}] does not exist."
            found = self.engine.value_exists(path, name, architecture)
            return f'Registry value [{path}] "{name}" {"exists" if found else "does not exist"}.'
        except (RegistryError, OSError, ValueError) as e:
            return f"Error checking registry: {e}"

    def registry_apply(
        self,
        action: str,
        path: str,
        values: list[Value] | None = None,
        recursive: bool = False,
        architecture: str | None = None,
    ) -> str:
        """Converge *path* with *action* and report whether anything changed."""
        if action not in ACTIONS:
            return f"Error: invalid registry action '{action}'. Allowed: {', '.join(ACTIONS)}"
        try:
            _, subkey = resolve_path(path)
            if action in _MUTATING_ACTIONS:
                _check_registry_write(subkey, subtree=action == "delete_key" and recursive)
            resource = RegistryResource(
                key=path, values=list(values or []), architecture=architecture, recursive=recursive
            )
            updated = self.provider.run(resource, action)
        except (RegistryError, OSError, ValueError) as e:
            return f"Error applying registry {action}: {e}"

        logger.info("Registry %s on %s: updated=%s", action, path, updated)
        if updated:
            return f"Registry [{path}] {action}: changed."
        return f"Registry [{path}] {action}: no change needed."


def build_value(name: str, data: str, reg_type: str) -> Value:
    """Build a Value from string tool parameters.

    ``dword``/``qword``/``dword_big_endian`` parse as integers (decimal or
    0x-prefixed hex), ``binary`` as hex digits, and ``multi_string`` splits
    on a literal ``\\0``.
    """
    value_type = ValueType(reg_type)
    match value_type:
        case ValueType.DWORD | ValueType.QWORD | ValueType.DWORD_BIG_ENDIAN:
            typed = int(data, 0)
        case ValueType.BINARY:
            typed = bytes.fromhex(data)
        case ValueType.MULTI_STRING:
            typed = data.split("\\0")
        case _:
            typed = data
    return Value(name=name, type=value_type, data=typed)
