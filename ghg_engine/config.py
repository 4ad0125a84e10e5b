# -*- coding: utf-8 -*-
"""
Emissions Engine Configuration

Centralized configuration for the emissions calculation engine covering:
- Logging level
- Reference factor sources (bundled YAML registry or SQL database)
- Unit normalization policy (permissive passthrough or strict)
- Gas decomposition fallback split (95% CO2, 3% CH4, 2% N2O by default)
- Rendering precision for calculation method and methodology text
- Batch calculation limits
- Prometheus metrics toggle

All settings can be overridden via environment variables with the
``GHG_ENGINE_`` prefix (e.g. ``GHG_ENGINE_STRICT_UNITS=true``).

Environment Variable Reference (GHG_ENGINE_ prefix):
    GHG_ENGINE_LOG_LEVEL                - Logging level
    GHG_ENGINE_DATABASE_URL             - SQLAlchemy URL for the SQL factor store
    GHG_ENGINE_FACTOR_REGISTRY_PATH     - YAML reference table (bundled if unset)
    GHG_ENGINE_STRICT_UNITS             - Reject unrecognized activity units
    GHG_ENGINE_FALLBACK_CO2_SHARE       - CO2 share of the estimated gas split
    GHG_ENGINE_FALLBACK_CH4_SHARE       - CH4 share of the estimated gas split
    GHG_ENGINE_FALLBACK_N2O_SHARE       - N2O share of the estimated gas split
    GHG_ENGINE_SPLIT_NON_COMBUSTION     - Apply the split to refrigerants too
    GHG_ENGINE_METHOD_PRECISION         - Decimals in calculation_method
    GHG_ENGINE_METHODOLOGY_PRECISION    - Decimals in the methodology trail
    GHG_ENGINE_MAX_BATCH_SIZE           - Maximum records per batch
    GHG_ENGINE_BATCH_WORKERS            - Thread pool size for batches
    GHG_ENGINE_ENABLE_METRICS           - Enable Prometheus metrics

Example:
    >>> from ghg_engine.config import get_config
    >>> cfg = get_config()
    >>> cfg.fallback_co2_share
    0.95

    >>> # Override for testing
    >>> from ghg_engine.config import EngineConfig, set_config, reset_config
    >>> set_config(EngineConfig(strict_units=True))
    >>> reset_config()  # teardown
"""

from __future__ import annotations

import logging
import math
import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

_ENV_PREFIX = "GHG_ENGINE_"

_VALID_LOG_LEVELS = frozenset(
    {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
)


@dataclass
class EngineConfig:
    """Complete configuration for the emissions calculation engine.

    Attributes:
        log_level: Logging verbosity level.
        database_url: SQLAlchemy connection URL used by ``SQLFactorStore``.
        factor_registry_path: Path to a YAML reference table. Empty string
            means the bundled registry.
        strict_units: Raise ``UnitNotRecognizedError`` for units outside the
            conversion tables instead of passing them through.
        fallback_co2_share: CO2 share applied when a factor has no per-gas rates.
        fallback_ch4_share: CH4 share applied when a factor has no per-gas rates.
        fallback_n2o_share: N2O share applied when a factor has no per-gas rates.
        split_non_combustion: Apply the fallback split to categories without
            combustion byproducts (refrigerants). When False their whole
            CO2e is reported under CO2.
        method_precision: Decimal places for the activity value in
            ``calculation_method``.
        methodology_precision: Decimal places for values in the methodology text.
        max_batch_size: Maximum records accepted by one batch call.
        batch_workers: Thread pool size for batch calculation.
        enable_metrics: Enable Prometheus metrics recording.
    """

    log_level: str = "INFO"

    database_url: str = "sqlite:///:memory:"
    factor_registry_path: str = ""

    strict_units: bool = False

    fallback_co2_share: float = 0.95
    fallback_ch4_share: float = 0.03
    fallback_n2o_share: float = 0.02
    split_non_combustion: bool = True

    method_precision: int = 2
    methodology_precision: int = 4

    max_batch_size: int = 10_000
    batch_workers: int = 4

    enable_metrics: bool = True

    def __post_init__(self) -> None:
        """Validate configuration constraints after initialisation.

        Collects all validation errors before raising a single ValueError.

        Raises:
            ValueError: If any configuration value is outside its valid range.
        """
        errors: list[str] = []

        normalised_log = self.log_level.upper()
        if normalised_log not in _VALID_LOG_LEVELS:
            errors.append(
                f"log_level must be one of {sorted(_VALID_LOG_LEVELS)}, "
                f"got '{self.log_level}'"
            )
        else:
            self.log_level = normalised_log

        if not self.database_url:
            errors.append("database_url must not be empty")

        shares = {
            "fallback_co2_share": self.fallback_co2_share,
            "fallback_ch4_share": self.fallback_ch4_share,
            "fallback_n2o_share": self.fallback_n2o_share,
        }
        for field_name, value in shares.items():
            if not (0.0 <= value <= 1.0):
                errors.append(f"{field_name} must be in [0.0, 1.0], got {value}")
        if not math.isclose(sum(shares.values()), 1.0, abs_tol=1e-9):
            errors.append(
                f"fallback gas shares must sum to 1.0, got {sum(shares.values())}"
            )

        for field_name, value in (
            ("method_precision", self.method_precision),
            ("methodology_precision", self.methodology_precision),
        ):
            if not (0 <= value <= 12):
                errors.append(f"{field_name} must be in [0, 12], got {value}")

        if self.max_batch_size <= 0:
            errors.append(f"max_batch_size must be > 0, got {self.max_batch_size}")
        if self.max_batch_size > 1_000_000:
            errors.append(
                f"max_batch_size must be <= 1000000, got {self.max_batch_size}"
            )
        if self.batch_workers <= 0:
            errors.append(f"batch_workers must be > 0, got {self.batch_workers}")

        if errors:
            raise ValueError(
                "EngineConfig validation failed:\n"
                + "\n".join(f"  - {e}" for e in errors)
            )

        logger.debug(
            "EngineConfig validated successfully: strict_units=%s, "
            "split=%.2f/%.2f/%.2f, split_non_combustion=%s, "
            "max_batch_size=%d, metrics=%s",
            self.strict_units,
            self.fallback_co2_share,
            self.fallback_ch4_share,
            self.fallback_n2o_share,
            self.split_non_combustion,
            self.max_batch_size,
            self.enable_metrics,
        )

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Build an EngineConfig from environment variables.

        Every field can be overridden via ``GHG_ENGINE_<FIELD_UPPER>``.
        Boolean values accept ``true/1/yes`` (case-insensitive).
        Malformed numeric values fall back to the class-level default
        and emit a WARNING log.

        Returns:
            Populated EngineConfig instance, validated via ``__post_init__``.

        Example:
            >>> import os
            >>> os.environ["GHG_ENGINE_STRICT_UNITS"] = "true"
            >>> EngineConfig.from_env().strict_units
            True
        """
        prefix = _ENV_PREFIX

        def _env(name: str) -> Optional[str]:
            return os.environ.get(f"{prefix}{name}")

        def _bool(name: str, default: bool) -> bool:
            val = _env(name)
            if val is None:
                return default
            return val.strip().lower() in ("true", "1", "yes")

        def _int(name: str, default: int) -> int:
            val = _env(name)
            if val is None:
                return default
            try:
                return int(val.strip())
            except ValueError:
                logger.warning(
                    "Invalid integer for %s%s=%r, using default %d",
                    prefix, name, val, default,
                )
                return default

        def _float(name: str, default: float) -> float:
            val = _env(name)
            if val is None:
                return default
            try:
                return float(val.strip())
            except ValueError:
                logger.warning(
                    "Invalid float for %s%s=%r, using default %f",
                    prefix, name, val, default,
                )
                return default

        def _str(name: str, default: str) -> str:
            val = _env(name)
            if val is None:
                return default
            return val.strip()

        return cls(
            log_level=_str("LOG_LEVEL", cls.log_level),
            database_url=_str("DATABASE_URL", cls.database_url),
            factor_registry_path=_str(
                "FACTOR_REGISTRY_PATH", cls.factor_registry_path,
            ),
            strict_units=_bool("STRICT_UNITS", cls.strict_units),
            fallback_co2_share=_float(
                "FALLBACK_CO2_SHARE", cls.fallback_co2_share,
            ),
            fallback_ch4_share=_float(
                "FALLBACK_CH4_SHARE", cls.fallback_ch4_share,
            ),
            fallback_n2o_share=_float(
                "FALLBACK_N2O_SHARE", cls.fallback_n2o_share,
            ),
            split_non_combustion=_bool(
                "SPLIT_NON_COMBUSTION", cls.split_non_combustion,
            ),
            method_precision=_int("METHOD_PRECISION", cls.method_precision),
            methodology_precision=_int(
                "METHODOLOGY_PRECISION", cls.methodology_precision,
            ),
            max_batch_size=_int("MAX_BATCH_SIZE", cls.max_batch_size),
            batch_workers=_int("BATCH_WORKERS", cls.batch_workers),
            enable_metrics=_bool("ENABLE_METRICS", cls.enable_metrics),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the configuration with the database URL redacted."""
        return {
            "log_level": self.log_level,
            "database_url": "***" if self.database_url else "",
            "factor_registry_path": self.factor_registry_path,
            "strict_units": self.strict_units,
            "fallback_co2_share": self.fallback_co2_share,
            "fallback_ch4_share": self.fallback_ch4_share,
            "fallback_n2o_share": self.fallback_n2o_share,
            "split_non_combustion": self.split_non_combustion,
            "method_precision": self.method_precision,
            "methodology_precision": self.methodology_precision,
            "max_batch_size": self.max_batch_size,
            "batch_workers": self.batch_workers,
            "enable_metrics": self.enable_metrics,
        }

    def __repr__(self) -> str:
        pairs = ", ".join(f"{k}={v!r}" for k, v in self.to_dict().items())
        return f"EngineConfig({pairs})"


# ---------------------------------------------------------------------------
# Thread-safe singleton accessor
# ---------------------------------------------------------------------------

_config_instance: Optional[EngineConfig] = None
_config_lock = threading.Lock()


def get_config() -> EngineConfig:
    """Return the singleton EngineConfig, creating from env if needed.

    Uses double-checked locking for thread safety with minimal
    contention on the hot path.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = EngineConfig.from_env()
    return _config_instance


def set_config(config: EngineConfig) -> None:
    """Replace the singleton EngineConfig.

    Primarily intended for testing and dependency injection.

    Args:
        config: New EngineConfig to install as the singleton.
    """
    global _config_instance
    with _config_lock:
        _config_instance = config
    logger.info(
        "EngineConfig replaced programmatically: strict_units=%s, "
        "split_non_combustion=%s, batch=%d",
        config.strict_units,
        config.split_non_combustion,
        config.max_batch_size,
    )


def reset_config() -> None:
    """Reset the singleton so the next get_config() re-reads the environment."""
    global _config_instance
    with _config_lock:
        _config_instance = None
    logger.debug("EngineConfig singleton reset")


__all__ = [
    "EngineConfig",
    "get_config",
    "set_config",
    "reset_config",
]
