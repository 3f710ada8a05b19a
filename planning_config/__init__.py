"""
planning_config -- single public entrypoint for planning configuration.

Responsibility:
    Provides the ONLY way to obtain business parameters at runtime through
    ``get_active_config()``.  Returns a frozen ``PlanningPolicy``; callers
    turn it into the kernel's ``ValidationPolicy`` with
    ``planning_config.bridges.build_validation_policy``.

Architecture position:
    Configuration -- YAML-driven parameters.  This package sits above
    ``planning_kernel`` and below ``planning_services``.  The kernel MUST
    NEVER import from ``planning_config``.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - Deterministic: the same YAML always produces the same checksum.

Failure modes:
    - ``FileNotFoundError`` -- the requested configuration file is missing.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``ConfigurationError`` (a ``ValueError``) -- structural validation
      failed.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``PLANNING_CONFIG_TRACE`` log entry carrying the config id, version and
    checksum, tying validation decisions back to the exact parameters that
    governed them.
"""

from __future__ import annotations

import logging
from pathlib import Path

from planning_config.loader import load_policy
from planning_config.schema import ConfigurationError, PlanningPolicy

_logger = logging.getLogger("planning_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | str | None = None) -> PlanningPolicy:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Override path to a configuration set file.
            Defaults to planning_config/sets/default.yaml.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If configuration validation fails.
    """
    path = Path(config_path) if config_path is not None else _DEFAULT_CONFIG_PATH
    policy = load_policy(path)

    _logger.info(
        "PLANNING_CONFIG_TRACE",
        extra={
            "trace_type": "PLANNING_CONFIG_TRACE",
            "config_set_id": policy.config_id,
            "config_set_version": policy.version,
            "checksum": policy.checksum,
            "field_bound_count": len(policy.field_bounds),
        },
    )
    return policy


__all__ = [
    "ConfigurationError",
    "PlanningPolicy",
    "get_active_config",
]
