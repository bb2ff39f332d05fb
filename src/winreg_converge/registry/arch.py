"""Registry view selection for the 32-bit/64-bit split on 64-bit Windows."""

import logging
import platform
from dataclasses import dataclass, field
from enum import Enum

from winreg_converge.registry.errors import ArchitectureIncorrectError

logger = logging.getLogger(__name__)

KEY_WOW64_64KEY = 0x0100
KEY_WOW64_32KEY = 0x0200

_X64_MACHINES = {"x86_64", "amd64", "arm64", "aarch64", "ia64"}
_X86_MACHINES = {"i386", "i486", "i586", "i686", "x86"}


class Architecture(Enum):
    MACHINE = "machine"
    X86 = "i386"
    X64 = "x86_64"

    def __str__(self):
        return self.value

    @classmethod
    def parse(cls, token: "str | Architecture | None") -> "Architecture":
        """Accept an enum member, a token (``machine``/``i386``/``x86_64``) or None."""
        if token is None:
            return cls.MACHINE
        if isinstance(token, cls):
            return token
        normalized = str(token).strip().lower()
        if normalized in ("", "machine", "native"):
            return cls.MACHINE
        if normalized in _X64_MACHINES:
            return cls.X64
        if normalized in _X86_MACHINES:
            return cls.X86
        raise ValueError(f"Unknown architecture: {token!r}. Use machine, i386 or x86_64.")


def _normalize_host(machine: str) -> str:
    machine = machine.lower()
    if machine in _X86_MACHINES:
        return Architecture.X86.value
    if machine not in _X64_MACHINES:
        logger.debug("Unrecognised machine type %r, assuming x86_64", machine)
    return Architecture.X64.value


def host_architecture() -> str:
    """Return the running machine's native architecture as ``x86_64`` or ``i386``."""
    return _normalize_host(platform.machine())


def select_view(requested: Architecture, host: str) -> int:
    """Return the ``KEY_WOW64_*`` access bit for *requested* on a *host* machine.

    Raises ArchitectureIncorrectError for a 64-bit view on a 32-bit host.
    """
    host = _normalize_host(host)
    if requested is Architecture.MACHINE:
        applied = host
    else:
        if requested is Architecture.X64 and host == Architecture.X86.value:
            raise ArchitectureIncorrectError(
                "Cannot access the 64-bit registry on a 32-bit Windows host"
            )
        applied = requested.value
    return KEY_WOW64_64KEY if applied == Architecture.X64.value else KEY_WOW64_32KEY


@dataclass(frozen=True)
class EngineConfig:
    """Immutable engine settings, validated when constructed."""

    architecture: Architecture = Architecture.MACHINE
    host_architecture: str = field(default_factory=host_architecture)

    def __post_init__(self):
        object.__setattr__(self, "architecture", Architecture.parse(self.architecture))
        object.__setattr__(self, "host_architecture", _normalize_host(self.host_architecture))
        select_view(self.architecture, self.host_architecture)

    @property
    def view(self) -> int:
        return select_view(self.architecture, self.host_architecture)
