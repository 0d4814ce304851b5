from __future__ import annotations

"""Entity kind configuration: where to find each kind's repository."""

from dataclasses import dataclass, field
from typing import Any, Mapping

from SearchSync.config.common import expect_str_mapping

_IMPORT_PATH_SEP = ":"


@dataclass(frozen=True, slots=True)
class EntitiesConfig:
    """Entity kind to repository import path (``"package.module:attribute"``)."""

    repositories: Mapping[str, str] = field(default_factory=dict)


def load_entities(raw: Mapping[str, Any]) -> EntitiesConfig:
    """Load the optional ``entities`` section."""
    section = raw.get("entities")
    if section is None:
        return EntitiesConfig()
    return EntitiesConfig(repositories=expect_str_mapping(section, "entities"))


def check_entities(config: EntitiesConfig) -> None:
    """Validate that every import path names a module and an attribute."""
    for kind, path in config.repositories.items():
        module, sep, attribute = path.partition(_IMPORT_PATH_SEP)
        if not sep or not module.strip() or not attribute.strip():
            raise ValueError(f"entities.{kind} must look like 'package.module:attribute', got {path!r}")
