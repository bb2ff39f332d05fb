"""Registry MCP tools.

Registers: Registry (1 tool).
"""

from typing import Literal

from fastmcp import Context
from mcp.types import ToolAnnotations

from winreg_converge.registry.service import RegistryService, build_value
from winreg_converge.tools import _state
from winreg_converge.tools._helpers import _coerce_bool, _optional_architecture

Mode = Literal["list", "subkeys", "exists", "create", "create_if_missing", "delete", "delete_key"]
TypeName = Literal[
    "string", "expand_string", "multi_string", "binary", "dword", "dword_big_endian", "qword"
]
ArchitectureName = Literal["default", "machine", "i386", "x86_64"]


def handle_registry(
    service: RegistryService,
    mode: str,
    path: str,
    name: str | None = None,
    value: str | None = None,
    type: str = "string",
    recursive: bool | str = False,
    architecture: str | None = None,
) -> str:
    """Dispatch one Registry tool call to *service*."""
    recursive = _coerce_bool(recursive)
    architecture = _optional_architecture(architecture)
    match mode:
        case "list":
            return service.registry_list(path, architecture)
        case "subkeys":
            return service.registry_subkeys(path, architecture)
        case "exists":
            return service.registry_exists(path, name, architecture)
        case "create" | "create_if_missing":
            values = []
            if name is not None:
                if value is None:
                    return f"Error: value parameter is required when name is given in {mode} mode."
                try:
                    values.append(build_value(name, value, type))
                except ValueError as e:
                    return f"Error: invalid {type} data {value!r}: {e}"
            return service.registry_apply(mode, path, values, recursive, architecture)
        case "delete":
            if name is None:
                return "Error: name parameter is required for delete mode."
            values = [build_value(name, "", "string")]
            return service.registry_apply(mode, path, values, recursive, architecture)
        case "delete_key":
            return service.registry_apply(mode, path, [], recursive, architecture)
        case _:
            return (
                f'Error: Unknown mode "{mode}". '
                "Use: list, subkeys, exists, create, create_if_missing, delete, delete_key."
            )


def register(mcp):
    """Register registry tools on *mcp*."""

    @mcp.tool(
        name="Registry",
        description='Converges Windows Registry state. Read modes: "list" (values and sub-keys of a key), "subkeys", "exists" (key, or value when name is given). Write modes report whether anything changed: "create" (create the key and value, or update the value if its data differs), "create_if_missing" (only create what is absent), "delete" (remove the named value), "delete_key" (remove the key; set recursive=true to remove a key that has sub-keys). With recursive=true, "create" also creates missing parent keys. Paths look like "HKCU\\Software\\MyApp" or "HKLM:\\SOFTWARE\\Vendor". architecture selects the 32-bit (i386) or 64-bit (x86_64) registry view.',
        annotations=ToolAnnotations(
            title="Registry",
            readOnlyHint=False,
            destructiveHint=True,
            idempotentHint=True,
            openWorldHint=False,
        ),
    )
    def registry_tool(
        mode: Mode,
        path: str,
        name: str | None = None,
        value: str | None = None,
        type: TypeName = "string",
        recursive: bool | str = False,
        architecture: ArchitectureName = "default",
        ctx: Context = None,
    ) -> str:
        try:
            return handle_registry(
                _state.registry,
                mode,
                path,
                name=name,
                value=value,
                type=type,
                recursive=recursive,
                architecture=architecture,
            )
        except Exception as e:
            return f"Error accessing registry: {str(e)}"
