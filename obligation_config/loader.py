"""
Configuration Loader (``obligation_config.loader``).

Responsibility
--------------
Loads a lifecycle configuration YAML file and parses it into the frozen
``obligation_config.schema`` dataclasses.  Runtime callers go through
``obligation_config.get_active_config()``, not this module.

Invariants enforced
-------------------
* Required keys raise ``KeyError``; malformed values raise ``ValueError``.
  There are no silent defaults for required fields.
* ``compute_checksum`` is deterministic for identical data.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from obligation_config.schema import (
    ConcurrencyDef,
    EvidencePolicyDef,
    InvoicingDef,
    LifecycleConfig,
    RolePolicyDef,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any) -> Decimal:
    """Parse a Decimal from YAML; floats are refused to keep rates exact."""
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"Quote decimal values in YAML to keep them exact: {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Cannot parse decimal from {value!r}") from exc


def parse_roles(data: dict[str, Any]) -> RolePolicyDef:
    allowed: dict[str, tuple[str, ...]] = {}
    for command, roles in data.items():
        if not isinstance(roles, list):
            raise ValueError(f"roles.{command} must be a list of role names")
        allowed[str(command)] = tuple(str(r) for r in roles)
    return RolePolicyDef(allowed=allowed)


def parse_evidence(data: dict[str, Any]) -> EvidencePolicyDef:
    require_review = data.get("require_voucher_review", False)
    if not isinstance(require_review, bool):
        raise ValueError("evidence.require_voucher_review must be true or false")
    return EvidencePolicyDef(
        accepted_content_types=tuple(data["accepted_content_types"]),
        max_size_bytes=int(data["max_size_bytes"]),
        require_voucher_review=require_review,
    )


def parse_concurrency(data: dict[str, Any]) -> ConcurrencyDef:
    return ConcurrencyDef(max_retries=int(data.get("max_retries", 3)))


def parse_invoicing(data: dict[str, Any]) -> InvoicingDef:
    return InvoicingDef(
        series=str(data.get("series", "FAC")),
        tax_rate=parse_decimal(data.get("tax_rate", "0.12")),
    )


def parse_lifecycle_config(data: dict[str, Any]) -> LifecycleConfig:
    """
    Parse a ``LifecycleConfig`` from the YAML root mapping.

    Raises:
        KeyError: if a required key is missing.
        ValueError: if a value cannot be parsed.
    """
    return LifecycleConfig(
        config_id=data["config_id"],
        version=int(data["version"]),
        currency=str(data["currency"]),
        description=data.get("description", ""),
        roles=parse_roles(data.get("roles", {})),
        evidence=parse_evidence(data["evidence"]),
        concurrency=parse_concurrency(data.get("concurrency", {})),
        invoicing=parse_invoicing(data.get("invoicing", {})),
        checksum=compute_checksum(data),
    )


def load_lifecycle_config(path: Path) -> LifecycleConfig:
    return parse_lifecycle_config(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
