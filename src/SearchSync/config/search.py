"""Search domain configuration: backend endpoint and request defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping

from SearchSync.config.common import (
    expect_float,
    expect_int,
    expect_str,
    get_optional_value,
    get_required_value,
    get_section,
)


@dataclass(frozen=True, slots=True)
class SearchConfig:
    """Store validated search backend settings."""

    endpoint: str
    endpoint_env: str
    document_endpoint: str
    api_version: str
    timeout: float
    default_size: int
    type_field: str


def load_search(raw: Mapping[str, Any]) -> SearchConfig:
    """Load search domain config from raw mapping.

    The endpoint may be left empty in YAML and supplied through the
    environment variable named by ``search.endpoint_env``.

    Args:
        raw: Root configuration mapping.

    Returns:
        Parsed search configuration.

    Raises:
        TypeError: If config types are invalid.
        ValueError: If required keys are missing.
    """
    section = get_section(raw, "search", required=True)
    endpoint_env = expect_str(
        get_optional_value(section, "endpoint_env", "CLOUDSEARCH_ENDPOINT"),
        "search.endpoint_env",
    )
    endpoint = expect_str(get_optional_value(section, "endpoint", ""), "search.endpoint").strip()
    return SearchConfig(
        endpoint=endpoint or _load_endpoint_from_env(endpoint_env),
        endpoint_env=endpoint_env,
        document_endpoint=expect_str(
            get_optional_value(section, "document_endpoint", ""),
            "search.document_endpoint",
        ).strip(),
        api_version=expect_str(
            get_required_value(section, "api_version", "search.api_version"),
            "search.api_version",
        ),
        timeout=expect_float(get_required_value(section, "timeout", "search.timeout"), "search.timeout"),
        default_size=expect_int(
            get_optional_value(section, "default_size", 10),
            "search.default_size",
        ),
        type_field=expect_str(
            get_optional_value(section, "type_field", "searchable_type"),
            "search.type_field",
        ),
    )


def check_search(config: SearchConfig) -> None:
    """Validate search domain constraints.

    The endpoint itself is checked lazily by commands that talk to the
    backend, so queue-only commands work without one.
    """
    if not config.api_version.strip():
        raise ValueError("search.api_version must not be empty")
    if config.timeout <= 0:
        raise ValueError("search.timeout must be positive")
    if config.default_size <= 0:
        raise ValueError("search.default_size must be positive")
    if not config.type_field.strip():
        raise ValueError("search.type_field must not be empty")


def _load_endpoint_from_env(endpoint_env: str) -> str:
    """Load the endpoint URL from an environment variable."""
    return os.getenv(endpoint_env, "").strip() if endpoint_env else ""
