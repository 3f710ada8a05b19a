"""
Configuration Loader (``planning_config.loader``).

Responsibility
--------------
Loads a YAML configuration set, parses it into typed
``planning_config.schema`` dataclass instances and validates its
structure.  This is internal tooling; the single public entry point for
runtime config is ``planning_config.get_active_config()``.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Reads the kernel's field
catalogue to check coverage; never imported by the kernel.

Invariants enforced
-------------------
* Every plan input field is bounded exactly once.
* ``minimum <= maximum`` for every bound; an exclusive bound may not
  collapse the range to nothing.
* Text lengths are positive and ``min_length <= max_length``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing keys or structural problems  -> ``ConfigurationError`` listing
  every problem found.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from planning_config.schema import (
    ConfigurationError,
    FieldBound,
    PlanningPolicy,
    TextPolicy,
)
from planning_kernel.domain.plan_inputs import FIELD_NAMES, INTEGER_FIELDS


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_decimal(value: Any, where: str, errors: list[str]) -> Decimal | None:
    if value is None:
        return None
    if isinstance(value, bool):
        errors.append(f"{where}: expected a number, got {value!r}")
        return None
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        errors.append(f"{where}: expected a number, got {value!r}")
        return None
    if not number.is_finite():
        errors.append(f"{where}: must be finite")
        return None
    return number


def parse_field_bound(data: dict[str, Any], errors: list[str]) -> FieldBound | None:
    """Parse one ``field_bounds`` item."""
    if not isinstance(data, dict):
        errors.append(f"field_bounds item is not a mapping: {data!r}")
        return None
    name = data.get("field")
    if not name:
        errors.append(f"field_bounds item without 'field': {data!r}")
        return None
    where = f"field_bounds[{name}]"
    return FieldBound(
        field=name,
        minimum=parse_decimal(data.get("min"), f"{where}.min", errors),
        maximum=parse_decimal(data.get("max"), f"{where}.max", errors),
        min_inclusive=bool(data.get("min_inclusive", True)),
        max_inclusive=bool(data.get("max_inclusive", True)),
        integer=bool(data.get("integer", name in INTEGER_FIELDS)),
    )


def parse_text_policy(data: Any, name: str, errors: list[str]) -> TextPolicy:
    if not isinstance(data, dict):
        errors.append(f"text.{name}: missing or not a mapping")
        return TextPolicy(min_length=0, max_length=0)
    min_length = data.get("min_length")
    max_length = data.get("max_length")
    valid = True
    for key, value in (("min_length", min_length), ("max_length", max_length)):
        if not isinstance(value, int) or isinstance(value, bool):
            errors.append(f"text.{name}.{key}: expected an integer, got {value!r}")
            valid = False
    if not valid:
        return TextPolicy(min_length=0, max_length=0)
    return TextPolicy(min_length=min_length, max_length=max_length)


def validate_policy(policy: PlanningPolicy) -> list[str]:
    """Return every structural problem with a parsed policy."""
    errors: list[str] = []

    seen: dict[str, int] = {}
    for bound in policy.field_bounds:
        seen[bound.field] = seen.get(bound.field, 0) + 1
        if bound.field not in FIELD_NAMES:
            errors.append(f"field_bounds[{bound.field}]: unknown plan input field")
        if bound.minimum is not None and bound.maximum is not None:
            if bound.minimum > bound.maximum:
                errors.append(f"field_bounds[{bound.field}]: min is greater than max")
            elif bound.minimum == bound.maximum and not (
                bound.min_inclusive and bound.max_inclusive
            ):
                errors.append(f"field_bounds[{bound.field}]: range is empty")
    for name, count in seen.items():
        if count > 1:
            errors.append(f"field_bounds[{name}]: bounded {count} times")
    for name in FIELD_NAMES:
        if name not in seen:
            errors.append(f"field_bounds[{name}]: missing")

    for label, text_policy in (
        ("justification", policy.justification),
        ("decision_notes", policy.decision_notes),
    ):
        if text_policy.min_length <= 0 or text_policy.max_length <= 0:
            errors.append(f"text.{label}: lengths must be positive")
        elif text_policy.min_length > text_policy.max_length:
            errors.append(f"text.{label}: min_length is greater than max_length")

    if policy.plan_year_window < 0:
        errors.append("plan_year_window: must not be negative")
    return errors


def parse_policy(data: dict[str, Any]) -> PlanningPolicy:
    """
    Parse and validate a ``PlanningPolicy`` from a loaded YAML dict.

    Postconditions:
        - Returns a frozen policy carrying the checksum of ``data``.
    Raises:
        ConfigurationError: listing every problem found.
    """
    errors: list[str] = []

    for key in ("config_id", "version", "field_bounds", "text"):
        if key not in data:
            errors.append(f"missing required key '{key}'")
    if errors:
        raise ConfigurationError(errors)

    raw_bounds = data["field_bounds"]
    if not isinstance(raw_bounds, list):
        raise ConfigurationError(["field_bounds: expected a list"])
    bounds = tuple(
        b for b in (parse_field_bound(item, errors) for item in raw_bounds)
        if b is not None
    )

    text = data["text"] if isinstance(data["text"], dict) else {}
    justification = parse_text_policy(text.get("justification"), "justification", errors)
    decision_notes = parse_text_policy(text.get("decision_notes"), "decision_notes", errors)

    window = data.get("plan_year_window", 5)
    if not isinstance(window, int) or isinstance(window, bool):
        errors.append(f"plan_year_window: expected an integer, got {window!r}")
        window = 0
    if errors:
        raise ConfigurationError(errors)

    policy = PlanningPolicy(
        config_id=str(data["config_id"]),
        version=int(data["version"]),
        field_bounds=bounds,
        justification=justification,
        decision_notes=decision_notes,
        plan_year_window=window,
        description=str(data.get("description", "")),
        checksum=compute_checksum(data),
    )

    problems = validate_policy(policy)
    if problems:
        raise ConfigurationError(problems)
    return policy


def load_policy(path: Path) -> PlanningPolicy:
    """Load, parse and validate one configuration set file."""
    return parse_policy(load_yaml_file(path))
