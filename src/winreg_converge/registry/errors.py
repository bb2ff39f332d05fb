"""Exceptions raised by the registry convergence engine."""


class RegistryError(Exception):
    """Base class for all engine failures."""

    def __init__(self, message: str, path: str | None = None, name: str | None = None):
        super().__init__(message)
        self.path = path
        self.name = name


class HiveMissingError(RegistryError, ValueError):
    """The first path segment does not name a known registry hive."""


class KeyMissingError(RegistryError):
    pass


class ValueMissingError(RegistryError):
    pass


class ValueExistsError(RegistryError):
    pass


class TypesMismatchError(RegistryError):
    """The live value's native type differs from the desired type."""


class ArchitectureIncorrectError(RegistryError):
    """A 64-bit registry view was requested on a 32-bit Windows host."""
