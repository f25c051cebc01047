"""Configuration of the actions server."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

import yaml

DEFAULT_PORT = 3000
_UINT_MAX = 2**64 - 1


@dataclass
class ActionsConfig:
    """The port to listen on and, optionally, the node to query instead of the default one."""

    port: int = 0
    node: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise ValueError(f"invalid actions port: {self.port!r}")
        if not 0 <= self.port <= _UINT_MAX:
            raise ValueError(f"invalid actions port: {self.port}")
        if self.node is not None:
            if not isinstance(self.node, Mapping):
                raise ValueError("invalid actions node configuration")
            self.node = dict(self.node)


def default_config() -> ActionsConfig:
    """Return the default configuration."""
    return ActionsConfig(port=DEFAULT_PORT, node=None)


def parse_config(data: bytes | str) -> ActionsConfig | None:
    """Read the actions section of a YAML document; None when it is absent."""
    try:
        document = yaml.safe_load(data)
    except yaml.YAMLError as err:
        raise ValueError(f"invalid configuration: {err}") from err
    if document is None:
        return None
    if not isinstance(document, Mapping):
        raise ValueError("invalid configuration: expected a mapping")

    section = document.get("actions")
    if section is None:
        return None
    if not isinstance(section, Mapping):
        raise ValueError("invalid actions configuration: expected a mapping")
    return ActionsConfig(port=section.get("port", 0), node=section.get("node"))