"""
obligation_config -- single public entrypoint for lifecycle configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Returns a validated, frozen
    ``LifecycleConfig``; ``obligation_config.bridges`` turns it into the
    kernel's RolePolicy, EvidencePolicy, invoice issuer and service.

Architecture position:
    Configuration -- sits above ``obligation_kernel``.  The kernel MUST
    NEVER import from ``obligation_config``.

Invariants enforced:
    - Validation before use: a configuration with errors never reaches
      the kernel.
    - Deterministic checksum: the same YAML always produces the same
      ``LifecycleConfig.checksum``.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``KeyError`` / ``ValueError`` -- required keys missing or malformed.
    - ``ConfigurationError`` -- validation failed; ``.errors`` lists why.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``LIFECYCLE_CONFIG_TRACE`` log entry with the config id, version and
    checksum, tying each command back to the configuration that governed it.
"""

from __future__ import annotations

from pathlib import Path

from obligation_config.loader import load_lifecycle_config
from obligation_config.schema import LifecycleConfig
from obligation_config.validator import validate_configuration
from obligation_kernel.exceptions import ConfigurationError
from obligation_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | None = None) -> LifecycleConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: YAML file to load.  Defaults to
            obligation_config/sets/default.yaml.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If validation fails.
    """
    path = Path(config_path) if config_path is not None else _DEFAULT_CONFIG_PATH
    config = load_lifecycle_config(path)

    validation = validate_configuration(config)
    if not validation.is_valid:
        raise ConfigurationError(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in validation.errors),
            errors=validation.errors,
        )
    for warning in validation.warnings:
        _logger.warning("config_validation_warning", extra={"warning": warning})

    _logger.info(
        "LIFECYCLE_CONFIG_TRACE",
        extra={
            "trace_type": "LIFECYCLE_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "currency": config.currency,
            "max_retries": config.concurrency.max_retries,
            "require_voucher_review": config.evidence.require_voucher_review,
            "invoice_series": config.invoicing.series,
        },
    )
    return config


__all__ = ["LifecycleConfig", "get_active_config"]
