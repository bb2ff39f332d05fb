from winreg_converge.registry.arch import (
    Architecture,
    EngineConfig,
    host_architecture,
    select_view,
)
from winreg_converge.registry.engine import Outcome, RegistryEngine
from winreg_converge.registry.errors import (
    ArchitectureIncorrectError,
    HiveMissingError,
    KeyMissingError,
    RegistryError,
    TypesMismatchError,
    ValueExistsError,
    ValueMissingError,
)
from winreg_converge.registry.paths import Hive, hive_exists, resolve_path
from winreg_converge.registry.resource import RegistryProvider, RegistryResource
from winreg_converge.registry.service import RegistryService
from winreg_converge.registry.transport import RegistryTransport, WinregTransport
from winreg_converge.registry.values import Value, ValueType

__all__ = [
    "Architecture",
    "ArchitectureIncorrectError",
    "EngineConfig",
    "Hive",
    "HiveMissingError",
    "KeyMissingError",
    "Outcome",
    "RegistryEngine",
    "RegistryError",
    "RegistryProvider",
    "RegistryResource",
    "RegistryService",
    "RegistryTransport",
    "TypesMismatchError",
    "Value",
    "ValueExistsError",
    "ValueMissingError",
    "ValueType",
    "WinregTransport",
    "hive_exists",
    "host_architecture",
    "resolve_path",
    "select_view",
]
