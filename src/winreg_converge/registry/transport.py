"""Native registry access primitives.

The engine talks to the registry only through a RegistryTransport.
WinregTransport is the real implementation over the ``winreg`` stdlib
module; the module is imported when the transport is constructed so the
rest of the package imports on any platform.
"""

import logging
from typing import Any, ContextManager, Iterator, Protocol

from winreg_converge.registry.arch import KEY_WOW64_32KEY, KEY_WOW64_64KEY

logger = logging.getLogger(__name__)

KEY_QUERY_VALUE = 0x0001
KEY_SET_VALUE = 0x0002
KEY_CREATE_SUB_KEY = 0x0004
KEY_ENUMERATE_SUB_KEYS = 0x0008
KEY_READ = 0x20019
KEY_WRITE = 0x20006
KEY_ALL_ACCESS = 0xF003F


class RegistryTransport(Protocol):
    def open(self, hive: int, key: str, access: int) -> ContextManager[Any]: ...

    def enum_values(self, handle: Any) -> Iterator[tuple[str, Any, int]]: ...

    def enum_keys(self, handle: Any) -> Iterator[str]: ...

    def set_value(self, handle: Any, name: str, reg_type: int, data: Any) -> None: ...

    def delete_value(self, handle: Any, name: str) -> None: ...

    def create_key(self, hive: int, key: str, access: int) -> None: ...

    def delete_key(self, handle: Any, name: str, access: int, recursive: bool) -> None: ...


class WinregTransport:
    """RegistryTransport backed by ``winreg``."""

    def __init__(self, module=None):
        if module is None:
            import winreg as module
        self._winreg = module

    def open(self, hive: int, key: str, access: int):
        return self._winreg.OpenKey(hive, key, 0, access)

    def enum_values(self, handle) -> Iterator[tuple[str, Any, int]]:
        i = 0
        while True:
            try:
                name, data, reg_type = self._winreg.EnumValue(handle, i)
            except OSError:
                return
            yield name, data, reg_type
            i += 1

    def enum_keys(self, handle) -> Iterator[str]:
        i = 0
        while True:
            try:
                name = self._winreg.EnumKey(handle, i)
            except OSError:
                return
            yield name
            i += 1

    def set_value(self, handle, name: str, reg_type: int, data: Any) -> None:
        self._winreg.SetValueEx(handle, name, 0, reg_type, data)

    def delete_value(self, handle, name: str) -> None:
        self._winreg.DeleteValue(handle, name)

    def create_key(self, hive: int, key: str, access: int) -> None:
        with self._winreg.CreateKeyEx(hive, key, 0, access):
            pass

    def delete_key(self, handle, name: str, access: int, recursive: bool) -> None:
        """Delete subkey *name* of *handle*.

        ``DeleteKeyEx`` refuses keys that still have children, so a recursive
        delete empties the subtree leaves-first. *access* carries the view bit.
        """
        view = access & (KEY_WOW64_64KEY | KEY_WOW64_32KEY)
        if recursive:
            with self._winreg.OpenKey(handle, name, 0, KEY_READ | KEY_WRITE | view) as child:
                # Enumeration indexes shift as children go; list them first.
                for grandchild in list(self.enum_keys(child)):
                    self.delete_key(child, grandchild, access, recursive=True)
        self._winreg.DeleteKeyEx(handle, name, view, 0)
        logger.debug("Deleted registry key %s", name)
