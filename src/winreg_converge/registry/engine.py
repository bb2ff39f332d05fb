"""Registry convergence engine.

Every operation re-queries the live registry; nothing is cached between
calls. Checks and writes are not atomic with respect to other writers, so
idempotence is best-effort.

Each public method accepts an optional ``architecture``; ``None`` uses the
engine's configured default.
"""

import logging
from enum import Enum

from winreg_converge.registry.arch import Architecture, EngineConfig, select_view
from winreg_converge.registry.errors import (
    KeyMissingError,
    TypesMismatchError,
    ValueExistsError,
    ValueMissingError,
)
from winreg_converge.registry.paths import Hive, ancestors, resolve_path, split_parent
from winreg_converge.registry.transport import (
    KEY_QUERY_VALUE,
    KEY_READ,
    KEY_SET_VALUE,
    KEY_WRITE,
    RegistryTransport,
    WinregTransport,
)
from winreg_converge.registry.values import Value, decode_type

logger = logging.getLogger(__name__)


class Outcome(Enum):
    CHANGED = "changed"
    UNCHANGED = "unchanged"
    DECLINED = "declined"

    def __str__(self):
        return self.value

    @property
    def changed(self) -> bool:
        return self is Outcome.CHANGED


def _same_name(a: str, b: str) -> bool:
    return a.casefold() == b.casefold()


def _join(hive: Hive, key: str) -> str:
    return f"{hive.name}\\{key}" if key else hive.name


class RegistryEngine:
    """Converges registry keys and values towards a declared state."""

    def __init__(
        self,
        config: EngineConfig | None = None,
        transport: RegistryTransport | None = None,
    ):
        self.config = config if config is not None else EngineConfig()
        self.transport = transport if transport is not None else WinregTransport()

    def _view(self, architecture) -> int:
        if architecture is None:
            return self.config.view
        return select_view(Architecture.parse(architecture), self.config.host_architecture)

    def _resolve(self, path: str):
        hive, key = resolve_path(path)
        logger.debug("Registry hive resolved to %s for %s", hive.name, path)
        return hive, key

    # ------------------------------------------------------------------
    # Existence checks
    # ------------------------------------------------------------------

    def key_exists(self, path: str, architecture=None) -> bool:
        hive, key = self._resolve(path)
        try:
            with self.transport.open(hive, key, KEY_READ | self._view(architecture)):
                return True
        except FileNotFoundError:
            return False

    def key_exists_or_raise(self, path: str, architecture=None) -> None:
        if not self.key_exists(path, architecture):
            raise KeyMissingError(f"Registry key {path} does not exist", path=path)

    def _find_value(self, path: str, name: str, architecture) -> tuple[object, int] | None:
        """Return ``(data, native_type)`` of the live value *name*, or None."""
        self.key_exists_or_raise(path, architecture)
        hive, key = self._resolve(path)
        with self.transport.open(hive, key, KEY_READ | self._view(architecture)) as handle:
            for live_name, data, reg_type in self.transport.enum_values(handle):
                if _same_name(live_name, name):
                    return data, reg_type
        return None

    def value_exists(self, path: str, name: str, architecture=None) -> bool:
        return self._find_value(path, name, architecture) is not None

    def value_exists_or_raise(self, path: str, name: str, architecture=None) -> None:
        if not self.value_exists(path, name, architecture):
            raise ValueMissingError(
                f"Registry value {name!r} does not exist under {path}", path=path, name=name
            )

    def type_matches(self, path: str, value: Value, architecture=None) -> bool:
        found = self._find_value(path, value.name, architecture)
        if found is None:
            raise ValueMissingError(
                f"Registry value {value.name!r} does not exist under {path}",
                path=path,
                name=value.name,
            )
        return found[1] == value.native_type

    def has_subkeys(self, path: str, architecture=None) -> bool:
        self.key_exists_or_raise(path, architecture)
        hive, key = self._resolve(path)
        with self.transport.open(hive, key, KEY_READ | self._view(architecture)) as handle:
            for _ in self.transport.enum_keys(handle):
                return True
        return False

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def get_values(self, path: str, architecture=None) -> list[Value]:
        self.key_exists_or_raise(path, architecture)
        hive, key = self._resolve(path)
        with self.transport.open(hive, key, KEY_READ | self._view(architecture)) as handle:
            return [
                Value(name=name, type=decode_type(reg_type), data=data)
                for name, data, reg_type in self.transport.enum_values(handle)
            ]

    def create_value(self, path: str, value: Value, architecture=None) -> Outcome:
        if self.value_exists(path, value.name, architecture):
            raise ValueExistsError(
                f"Registry value {value.name!r} already exists under {path}",
                path=path,
                name=value.name,
            )
        self._write(path, value, architecture)
        logger.info("Created registry value %s\\%s", path, value.name)
        return Outcome.CHANGED

    def update_value(self, path: str, value: Value, architecture=None) -> Outcome:
        found = self._find_value(path, value.name, architecture)
        if found is None:
            raise ValueMissingError(
                f"Registry value {value.name!r} does not exist under {path}",
                path=path,
                name=value.name,
            )
        live_data, live_type = found
        if live_type != value.native_type:
            raise TypesMismatchError(
                f"Registry value {value.name!r} under {path} has type {decode_type(live_type)}, "
                f"not {value.type}",
                path=path,
                name=value.name,
            )
        if live_data == value.native_data():
            logger.debug("Registry value %s\\%s already up to date", path, value.name)
            return Outcome.UNCHANGED
        self._write(path, value, architecture)
        logger.info("Updated registry value %s\\%s", path, value.name)
        return Outcome.CHANGED

    def delete_value(self, path: str, value: Value | str, architecture=None) -> Outcome:
        name = value if isinstance(value, str) else value.name
        try:
            exists = self.value_exists(path, name, architecture)
        except KeyMissingError:
            logger.debug("Registry key %s missing, value %s already absent", path, name)
            return Outcome.UNCHANGED
        if not exists:
            return Outcome.UNCHANGED
        hive, key = self._resolve(path)
        with self.transport.open(hive, key, KEY_SET_VALUE | self._view(architecture)) as handle:
            self.transport.delete_value(handle, name)
        logger.info("Deleted registry value %s\\%s", path, name)
        return Outcome.CHANGED

    def _write(self, path: str, value: Value, architecture) -> None:
        hive, key = self._resolve(path)
        access = KEY_SET_VALUE | KEY_QUERY_VALUE | self._view(architecture)
        with self.transport.open(hive, key, access) as handle:
            self.transport.set_value(handle, value.name, value.native_type, value.native_data())

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    def get_subkeys(self, path: str, architecture=None) -> list[str]:
        self.key_exists_or_raise(path, architecture)
        hive, key = self._resolve(path)
        with self.transport.open(hive, key, KEY_READ | self._view(architecture)) as handle:
            return list(self.transport.enum_keys(handle))

    def create_key(
        self, path: str, value: Value | None = None, recursive: bool = False, architecture=None
    ) -> Outcome:
        """Create the key at *path* and make sure *value* exists under it.

        Missing ancestors are only created when *recursive* is set; otherwise
        nothing is created and DECLINED is returned.
        """
        hive, key = self._resolve(path)
        view = self._view(architecture)
        parent, _ = split_parent(key)
        changed = False

        if not self.key_exists(_join(hive, parent), architecture):
            if not recursive:
                logger.info("Key %s not created: parent is missing and recursive is off", path)
                return Outcome.DECLINED
            for ancestor in ancestors(key):
                if not self.key_exists(_join(hive, ancestor), architecture):
                    self.transport.create_key(hive, ancestor, KEY_WRITE | view)
                    logger.info("Created registry key %s", _join(hive, ancestor))
                    changed = True

        if not self.key_exists(path, architecture):
            self.transport.create_key(hive, key, KEY_WRITE | view)
            logger.info("Created registry key %s", path)
            changed = True

        if value is not None and not self.value_exists(path, value.name, architecture):
            self.create_value(path, value, architecture)
            changed = True

        return Outcome.CHANGED if changed else Outcome.UNCHANGED

    def delete_key(self, path: str, recursive: bool = False, architecture=None) -> Outcome:
        """Delete the key at *path*.

        A key with subkeys is only removed, with its whole subtree, when
        *recursive* is set; otherwise DECLINED is returned.
        """
        hive, key = self._resolve(path)
        if not key:
            raise ValueError(f"Refusing to delete registry hive {path}")
        if not self.key_exists(path, architecture):
            return Outcome.UNCHANGED

        subtree = self.has_subkeys(path, architecture)
        if subtree and not recursive:
            logger.info("Key %s not deleted: it has subkeys and recursive is off", path)
            return Outcome.DECLINED

        parent, leaf = split_parent(key)
        view = self._view(architecture)
        with self.transport.open(hive, parent, KEY_READ | KEY_WRITE | view) as handle:
            self.transport.delete_key(handle, leaf, KEY_WRITE | view, recursive=subtree)
        logger.info("Deleted registry key %s", path)
        return Outcome.CHANGED
