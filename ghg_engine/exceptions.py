"""Exception hierarchy for the GHG emissions engine.

Every exception carries rich context so that callers can turn an engine
failure into an actionable message without parsing strings.

Exception Hierarchy:
    GHGEngineException (base)
    ├── CalculationException
    │   ├── NoFactorFoundError
    │   └── UnitNotRecognizedError
    ├── DataException
    │   ├── InvalidFactorData
    │   └── FactorStoreError
    └── ConfigurationError

All exceptions include:
- error_code: Unique error identifier
- context: Dictionary with error-specific details
- timestamp: When the error occurred

Example:
    >>> from ghg_engine.exceptions import NoFactorFoundError
    >>> raise NoFactorFoundError(
    ...     category="diesel",
    ...     subcategory=None,
    ...     region="DOES_NOT_EXIST",
    ...     unit="liter",
    ... )
"""

import json
import re
from datetime import datetime
from typing import Any, Dict, Optional


# ==============================================================================
# Base Exception
# ==============================================================================

class GHGEngineException(Exception):
    """Base exception for all engine errors.

    Attributes:
        message: Human-readable error message
        error_code: Unique error identifier (e.g., "GHG_CALC_NO_FACTOR_FOUND_ERROR")
        context: Dictionary with error-specific details
        timestamp: When the error occurred
    """

    ERROR_PREFIX = "GHG"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self._generate_error_code()
        self.context = context or {}
        self.timestamp = datetime.now()

    def _generate_error_code(self) -> str:
        """Generate error code from the class name (CamelCase to SNAKE_CASE)."""
        error_type = re.sub(r'(?<!^)(?=[A-Z])', '_', self.__class__.__name__).upper()
        return f"{self.ERROR_PREFIX}_{error_type}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization.

        Returns:
            Dictionary with all error details
        """
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> str:
        """Convert exception to JSON string."""
        return json.dumps(self.to_dict(), indent=2, default=str)

    def __str__(self) -> str:
        return f"[{self.error_code}] - {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}')"
        )


# ==============================================================================
# Calculation Exceptions
# ==============================================================================

class CalculationException(GHGEngineException):
    """Base exception for errors raised while calculating emissions."""
    ERROR_PREFIX = "GHG_CALC"


class NoFactorFoundError(CalculationException):
    """Every step of the factor fallback chain was exhausted.

    Callers should map this to a user-correctable validation error (for
    example by prompting for a different region or a custom factor), never
    to a generic server fault and never to zero emissions.

    Example:
        >>> err = NoFactorFoundError("diesel", None, "XX", "liter")
        >>> err.context["region"]
        'XX'
    """

    REMEDIATION = "Please add a custom emission factor or try a different region."

    def __init__(
        self,
        category: str,
        subcategory: Optional[str],
        region: str,
        unit: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.category = category
        self.subcategory = subcategory
        self.region = region
        self.unit = unit

        context = dict(context or {})
        context.update({
            "category": category,
            "subcategory": subcategory,
            "region": region,
            "unit": unit,
        })
        message = (
            f'No emission factor found for category="{category}", '
            f'subcategory="{subcategory or "none"}", region="{region}", '
            f'unit="{unit}"'
        )
        super().__init__(message, context=context)

    @property
    def user_message(self) -> str:
        """Message suitable for showing to the person who entered the activity."""
        return f"{self.message}. {self.REMEDIATION}"


class UnitNotRecognizedError(CalculationException):
    """Activity unit is not in any conversion table for its category.

    Only raised when ``EngineConfig.strict_units`` is enabled; otherwise an
    unrecognized unit passes through unconverted.
    """

    def __init__(
        self,
        value: float,
        unit: str,
        category: str,
        supported_units: Optional[list] = None,
    ):
        self.value = value
        self.unit = unit
        self.category = category

        context: Dict[str, Any] = {
            "value": value,
            "unit": unit,
            "category": category,
        }
        if supported_units:
            context["supported_units"] = supported_units
        super().__init__(
            f'Unit "{unit}" is not recognized for category "{category}"',
            context=context,
        )


# ==============================================================================
# Data Exceptions
# ==============================================================================

class DataException(GHGEngineException):
    """Base exception for reference-data errors."""
    ERROR_PREFIX = "GHG_DATA"


class InvalidFactorData(DataException):
    """An emission factor record is malformed.

    Example:
        >>> raise InvalidFactorData(
        ...     message="Missing co2e_per_unit",
        ...     record={"category": "diesel"},
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        record: Optional[Dict[str, Any]] = None,
        data_source: Optional[str] = None,
    ):
        context = context or {}
        if record is not None:
            context["record"] = record
        if data_source:
            context["data_source"] = data_source
        super().__init__(message, context=context)


class FactorStoreError(DataException):
    """Reading from the factor store failed.

    The engine does not retry; the failure is terminal for the calculation.
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        operation: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        context = context or {}
        if operation:
            context["operation"] = operation
        if cause:
            context["cause"] = str(cause)
            context["cause_type"] = type(cause).__name__
        super().__init__(message, context=context)


# ==============================================================================
# Configuration Exceptions
# ==============================================================================

class ConfigurationError(GHGEngineException):
    """Engine configuration is invalid or a required resource is missing."""
    ERROR_PREFIX = "GHG_CONFIG"


# ==============================================================================
# Exception Utilities
# ==============================================================================

def format_exception_chain(exc: Exception) -> str:
    """Format exception chain for logging/display.

    Args:
        exc: Exception to format

    Returns:
        Formatted string with full exception chain
    """
    lines = []
    current = exc

    while current is not None:
        if isinstance(current, GHGEngineException):
            lines.append(str(current))
            lines.append(f"  Context: {current.context}")
        else:
            lines.append(f"{type(current).__name__}: {current}")
        current = getattr(current, "__cause__", None)

    return "\n".join(lines)
