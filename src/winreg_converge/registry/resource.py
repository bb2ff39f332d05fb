"""Declarative registry resources and the provider that applies them."""

import logging
from dataclasses import dataclass, field
from typing import Literal

from winreg_converge.registry.arch import Architecture
from winreg_converge.registry.engine import Outcome, RegistryEngine
from winreg_converge.registry.errors import TypesMismatchError
from winreg_converge.registry.values import Value

logger = logging.getLogger(__name__)

Action = Literal["create", "create_if_missing", "delete", "delete_key"]
ACTIONS: tuple[str, ...] = ("create", "create_if_missing", "delete", "delete_key")


@dataclass
class RegistryResource:
    """Desired state of one registry key and the values under it."""

    key: str
    values: list[Value] = field(default_factory=list)
    architecture: Architecture | str | None = None
    recursive: bool = False


class RegistryProvider:
    """Applies a RegistryResource with one of the supported actions.

    ``run`` returns True when the registry was modified.
    """

    def __init__(self, engine: RegistryEngine):
        self.engine = engine

    def run(self, resource: RegistryResource, action: Action) -> bool:
        logger.debug("Registry action %s on %s", action, resource.key)
        match action:
            case "create":
                outcomes = self._create(resource, update=True)
            case "create_if_missing":
                outcomes = self._create(resource, update=False)
            case "delete":
                outcomes = [
                    self.engine.delete_value(resource.key, value, resource.architecture)
                    for value in resource.values
                ]
            case "delete_key":
                outcomes = [
                    self.engine.delete_key(resource.key, resource.recursive, resource.architecture)
                ]
            case _:
                raise ValueError(f"Unknown registry action {action!r}. Use: {', '.join(ACTIONS)}.")
        return any(outcome.changed for outcome in outcomes)

    def _create(self, resource: RegistryResource, update: bool) -> list[Outcome]:
        engine, arch = self.engine, resource.architecture
        if not resource.values:
            return [engine.create_key(resource.key, None, resource.recursive, arch)]

        outcomes = []
        for value in resource.values:
            if engine.key_exists(resource.key, arch) and engine.value_exists(
                resource.key, value.name, arch
            ):
                if update:
                    outcomes.append(self._converge_value(resource.key, value, arch))
                continue
            outcomes.append(engine.create_key(resource.key, value, resource.recursive, arch))
        return outcomes

    def _converge_value(self, path: str, value: Value, arch) -> Outcome:
        try:
            return self.engine.update_value(path, value, arch)
        except TypesMismatchError:
            logger.info("Replacing %s\\%s with a %s value", path, value.name, value.type)
            self.engine.delete_value(path, value, arch)
            return self.engine.create_value(path, value, arch)
