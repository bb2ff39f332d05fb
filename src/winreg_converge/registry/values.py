"""Value types and their native registry type codes."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

REG_SZ = 1
REG_EXPAND_SZ = 2
REG_BINARY = 3
REG_DWORD = 4
REG_DWORD_BIG_ENDIAN = 5
REG_MULTI_SZ = 7
REG_QWORD = 11


class ValueType(Enum):
    BINARY = "binary"
    STRING = "string"
    MULTI_STRING = "multi_string"
    EXPAND_STRING = "expand_string"
    DWORD = "dword"
    DWORD_BIG_ENDIAN = "dword_big_endian"
    QWORD = "qword"

    def __str__(self):
        return self.value

    @property
    def native(self) -> int:
        return _NATIVE_CODES[self]

    @classmethod
    def from_native(cls, code: int) -> "ValueType":
        try:
            return _FROM_NATIVE[code]
        except KeyError:
            raise ValueError(f"Unsupported registry type code: {code}") from None


_NATIVE_CODES: dict[ValueType, int] = {
    ValueType.BINARY: REG_BINARY,
    ValueType.STRING: REG_SZ,
    ValueType.MULTI_STRING: REG_MULTI_SZ,
    ValueType.EXPAND_STRING: REG_EXPAND_SZ,
    ValueType.DWORD: REG_DWORD,
    ValueType.DWORD_BIG_ENDIAN: REG_DWORD_BIG_ENDIAN,
    ValueType.QWORD: REG_QWORD,
}
_FROM_NATIVE: dict[int, ValueType] = {code: vt for vt, code in _NATIVE_CODES.items()}


def decode_type(code: int) -> "ValueType | int":
    """Map a native code read from the registry, keeping unknown codes as ints."""
    return _FROM_NATIVE.get(code, code)


@dataclass(frozen=True)
class Value:
    """A named, typed registry value.

    ``type`` is a ValueType, or the raw native code for values read back
    from the registry with a type outside the supported set.
    """

    name: str
    type: ValueType | int
    data: Any

    def __post_init__(self):
        if isinstance(self.type, str):
            object.__setattr__(self, "type", ValueType(self.type))

    @property
    def native_type(self) -> int:
        return self.type.native if isinstance(self.type, ValueType) else self.type

    def native_data(self) -> Any:
        return to_native_data(self.type, self.data)


def to_native_data(value_type: ValueType | int, data: Any) -> Any:
    """Normalise *data* to the form ``winreg`` writes and reads back for *value_type*."""
    match value_type:
        case ValueType.DWORD_BIG_ENDIAN if isinstance(data, int):
            return data.to_bytes(4, "big")
        case ValueType.BINARY if isinstance(data, (bytearray, memoryview)):
            return bytes(data)
        case ValueType.MULTI_STRING if isinstance(data, tuple):
            return list(data)
        case ValueType.MULTI_STRING if isinstance(data, str):
            return [data]
        case _:
            return data
