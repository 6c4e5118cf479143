"""
Configuration Validator (``obligation_config.validator``).

Checks a parsed ``LifecycleConfig`` before it is handed to the kernel:

* every command and role name is known;
* the decide set, if listed, is exactly finance, board and super_admin
  (separation of duties);
* every command that has an override keeps at least one role;
* the evidence policy is non-empty with a positive size ceiling;
* the currency is a known ISO 4217 code;
* retry budget and tax rate are in range.

Errors block use of the configuration; warnings are informational.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from obligation_config.schema import LifecycleConfig
from obligation_kernel.domain.actors import DEFAULT_ALLOWED_ROLES, CommandType, Role
from obligation_kernel.domain.currency import CurrencyRegistry

_MAX_RETRIES_CEILING = 20


@dataclass
class ConfigValidationResult:
    """``is_valid`` is True only when ``errors`` is empty."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0


def validate_configuration(config: LifecycleConfig) -> ConfigValidationResult:
    result = ConfigValidationResult()
    known_commands = {c.value for c in CommandType}
    known_roles = {r.value for r in Role}

    for command, roles in config.roles.allowed.items():
        if command not in known_commands:
            result.errors.append(f"Unknown command in roles: {command!r}")
            continue
        if not roles:
            result.errors.append(f"Command {command!r} must allow at least one role")
        for role in roles:
            if role not in known_roles:
                result.errors.append(f"Unknown role {role!r} for command {command!r}")

    decide_roles = config.roles.allowed.get(CommandType.DECIDE.value)
    fixed_decide = {r.value for r in DEFAULT_ALLOWED_ROLES[CommandType.DECIDE]}
    if decide_roles is not None and set(decide_roles) != fixed_decide:
        result.errors.append(
            "roles.decide is fixed to "
            f"{sorted(fixed_decide)}; got {sorted(decide_roles)}"
        )

    if not config.evidence.accepted_content_types:
        result.errors.append("evidence.accepted_content_types must not be empty")
    if config.evidence.max_size_bytes <= 0:
        result.errors.append("evidence.max_size_bytes must be positive")

    if not CurrencyRegistry.is_valid(config.currency.upper()):
        result.errors.append(f"Unknown currency: {config.currency!r}")

    if config.concurrency.max_retries < 0:
        result.errors.append("concurrency.max_retries must not be negative")
    elif config.concurrency.max_retries > _MAX_RETRIES_CEILING:
        result.warnings.append(
            f"concurrency.max_retries={config.concurrency.max_retries} is unusually high"
        )

    if not config.invoicing.series.strip():
        result.errors.append("invoicing.series must not be empty")
    if not Decimal(0) <= config.invoicing.tax_rate < Decimal(1):
        result.errors.append(
            f"invoicing.tax_rate must be in [0, 1): {config.invoicing.tax_rate}"
        )

    return result
