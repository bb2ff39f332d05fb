"""Shared fixtures: an in-memory registry transport and engines bound to it."""

from dataclasses import dataclass, field

import pytest

from winreg_converge.registry import EngineConfig, RegistryEngine, RegistryService
from winreg_converge.registry.paths import Hive, resolve_path
from winreg_converge.registry.transport import KEY_SET_VALUE
from winreg_converge.registry.values import REG_MULTI_SZ, REG_SZ


@dataclass
class FakeKey:
    name: str
    # casefolded value name -> [name, data, type]
    values: dict = field(default_factory=dict)
    # casefolded child name -> FakeKey
    children: dict = field(default_factory=dict)


class FakeHandle:
    def __init__(self, transport, node: FakeKey, access: int):
        self.transport = transport
        self.node = node
        self.access = access
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.closed = True
        return False


class FakeTransport:
    """A case-insensitive, insertion-ordered in-memory registry.

    Missing keys raise FileNotFoundError like ``winreg``; deleting a key
    that still has children without ``recursive`` raises PermissionError.
    """

    def __init__(self):
        self.roots = {hive: FakeKey(hive.name) for hive in Hive}
        self.handles: list[FakeHandle] = []
        self.accesses: list[int] = []
        self.writes = 0
        self.denied: set[str] = set()

    # -- seeding and inspection helpers --------------------------------

    def _lookup(self, hive: int, key: str) -> FakeKey | None:
        node = self.roots[Hive(hive)]
        for segment in (s for s in key.split("\\") if s):
            node = node.children.get(segment.casefold())
            if node is None:
                return None
        return node

    def add_key(self, path: str) -> None:
        hive, key = resolve_path(path)
        self._create(hive, key)

    def set(self, path: str, name: str, reg_type: int, data) -> None:
        hive, key = resolve_path(path)
        node = self._create(hive, key)
        self._store(node, name, reg_type, data)

    def exists(self, path: str) -> bool:
        hive, key = resolve_path(path)
        return self._lookup(hive, key) is not None

    def read(self, path: str, name: str):
        """Return ``(data, type)`` of a value, or None."""
        hive, key = resolve_path(path)
        node = self._lookup(hive, key)
        if node is None or name.casefold() not in node.values:
            return None
        _, data, reg_type = node.values[name.casefold()]
        return data, reg_type

    def open_handles(self) -> list[FakeHandle]:
        return [h for h in self.handles if not h.closed]

    # -- RegistryTransport ---------------------------------------------

    def open(self, hive: int, key: str, access: int) -> FakeHandle:
        self.accesses.append(access)
        if key.casefold() in self.denied:
            raise PermissionError("Access is denied.")
        node = self._lookup(hive, key)
        if node is None:
            raise FileNotFoundError("The system cannot find the file specified.")
        handle = FakeHandle(self, node, access)
        self.handles.append(handle)
        return handle

    def enum_values(self, handle: FakeHandle):
        for name, data, reg_type in list(handle.node.values.values()):
            yield name, data, reg_type

    def enum_keys(self, handle: FakeHandle):
        for child in list(handle.node.children.values()):
            yield child.name

    def set_value(self, handle: FakeHandle, name: str, reg_type: int, data) -> None:
        if not handle.access & KEY_SET_VALUE:
            raise PermissionError("Access is denied.")
        self.writes += 1
        self._store(handle.node, name, reg_type, data)

    def delete_value(self, handle: FakeHandle, name: str) -> None:
        if not handle.access & KEY_SET_VALUE:
            raise PermissionError("Access is denied.")
        if handle.node.values.pop(name.casefold(), None) is None:
            raise FileNotFoundError("The system cannot find the file specified.")

    def create_key(self, hive: int, key: str, access: int) -> None:
        self.accesses.append(access)
        self._create(hive, key)

    def delete_key(self, handle: FakeHandle, name: str, access: int, recursive: bool) -> None:
        child = handle.node.children.get(name.casefold())
        if child is None:
            raise FileNotFoundError("The system cannot find the file specified.")
        if child.children and not recursive:
            raise PermissionError("Access is denied.")
        del handle.node.children[name.casefold()]

    # -- internals -----------------------------------------------------

    def _create(self, hive: int, key: str) -> FakeKey:
        node = self.roots[Hive(hive)]
        for segment in (s for s in key.split("\\") if s):
            node = node.children.setdefault(segment.casefold(), FakeKey(segment))
        return node

    @staticmethod
    def _store(node: FakeKey, name: str, reg_type: int, data) -> None:
        existing = node.values.get(name.casefold())
        stored_name = existing[0] if existing else name
        node.values[name.casefold()] = [stored_name, data, reg_type]


ROOT = r"HKCU\Software\Root"
BRANCH = r"HKCU\Software\Root\Branch"
FLOWER = r"HKCU\Software\Root\Branch\Flower"


@pytest.fixture
def fake_registry():
    """The Root/Branch/Flower tree with a few string and multi-string values."""
    fake = FakeTransport()
    fake.set(ROOT, "RootType1", REG_SZ, "fibrous")
    fake.set(ROOT, "Roots", REG_MULTI_SZ, ["strong roots", "healthy tree"])
    fake.set(BRANCH, "Strong", REG_SZ, "bird nest")
    fake.set(FLOWER, "Petals", REG_MULTI_SZ, ["Pink", "Delicate"])
    return fake


@pytest.fixture
def engine(fake_registry):
    return RegistryEngine(EngineConfig(host_architecture="x86_64"), transport=fake_registry)


@pytest.fixture
def service(engine):
    return RegistryService(engine)
