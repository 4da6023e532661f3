"""GMAO Exception Hierarchy.

Exceptions raised by the outer layers of the maintenance toolkit: data
repositories, the service facade and configuration loading. The
calculation engines themselves never raise for bad data; they degrade to
documented fallback values and log a warning instead.

Exception Hierarchy:
    GMAOException (base)
    ├── ConfigurationError
    └── DataException
        ├── InvalidSchema
        ├── MissingData
        │   └── EquipmentNotFoundError
        └── DataAccessError

All exceptions include rich context:
- error_code: Unique error identifier
- context: Dictionary with error-specific details
- timestamp: When the error occurred
- traceback: Stack trace captured at construction

Example:
    >>> from gmao.exceptions import EquipmentNotFoundError
    >>> raise EquipmentNotFoundError("eq-042")
"""

from typing import Any, Dict, Optional
from datetime import datetime, timezone
import traceback as tb
import json
import re


# ==============================================================================
# Base Exception
# ==============================================================================

class GMAOException(Exception):
    """Base exception for all GMAO errors.

    Attributes:
        message: Human-readable error message
        error_code: Unique error identifier (e.g., "GMAO_DATA_MISSING_DATA")
        context: Dictionary with error-specific details
        timestamp: When the error occurred (UTC)
        traceback_str: Stack trace for debugging
    """

    ERROR_PREFIX = "GMAO"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """Initialize exception with rich context.

        Args:
            message: Human-readable error message
            error_code: Unique error identifier (auto-generated if not provided)
            context: Dictionary with error-specific details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self._generate_error_code()
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)
        self.traceback_str = "".join(tb.format_stack()[:-1])

    def _generate_error_code(self) -> str:
        """Generate an error code from the exception class name.

        Returns:
            Error code like "GMAO_DATA_INVALID_SCHEMA"
        """
        error_type = re.sub(r'(?<!^)(?=[A-Z])', '_', self.__class__.__name__).upper()
        return f"{self.ERROR_PREFIX}_{error_type}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "traceback": self.traceback_str,
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


class ConfigurationError(GMAOException, ValueError):
    """Engine configuration is invalid.

    Also a ValueError.

    Example:
        >>> raise ConfigurationError(
        ...     message="Unknown degradation method",
        ...     context={"degradation_method": "spline"}
        ... )
    """
    ERROR_PREFIX = "GMAO_CONFIG"


# ==============================================================================
# Data Exceptions
# ==============================================================================

class DataException(GMAOException):
    """Base exception for data-related errors."""
    ERROR_PREFIX = "GMAO_DATA"


class InvalidSchema(DataException):
    """Records do not match the expected shape.

    Example:
        >>> raise InvalidSchema(
        ...     message="Breakdown record failed validation",
        ...     collection="breakdowns",
        ...     schema_errors=["startTime: field required"]
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        collection: Optional[str] = None,
        schema_errors: Optional[list] = None,
    ):
        """Initialize schema error.

        Args:
            message: Error message
            context: Error context
            collection: Name of the record collection that failed
            schema_errors: List of validation error descriptions
        """
        context = context or {}
        if collection:
            context["collection"] = collection
        if schema_errors:
            context["schema_errors"] = schema_errors
        super().__init__(message, context=context)


class MissingData(DataException):
    """Required data is missing."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        data_type: Optional[str] = None,
    ):
        context = context or {}
        if data_type:
            context["data_type"] = data_type
        super().__init__(message, context=context)


class EquipmentNotFoundError(MissingData):
    """No equipment with the requested identifier exists in the repository."""

    def __init__(self, equipment_id: str, context: Optional[Dict[str, Any]] = None):
        context = context or {}
        context["equipment_id"] = equipment_id
        super().__init__(
            f"Equipment not found: {equipment_id}",
            context=context,
            data_type="equipment",
        )
        self.equipment_id = equipment_id


class DataAccessError(DataException):
    """Data could not be read from its source.

    Example:
        >>> raise DataAccessError(
        ...     message="Failed to read snapshot",
        ...     data_source="/var/lib/gmao/snapshot.json",
        ...     operation="read",
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        data_source: Optional[str] = None,
        operation: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        """Initialize data access error.

        Args:
            message: Error message
            context: Error context
            data_source: Data source that failed
            operation: Operation that failed (read, parse)
            cause: Original exception
        """
        context = context or {}
        if data_source:
            context["data_source"] = data_source
        if operation:
            context["operation"] = operation
        if cause:
            context["cause"] = str(cause)
            context["cause_type"] = type(cause).__name__
        super().__init__(message, context=context)


# ==============================================================================
# Exception Utilities
# ==============================================================================

def format_exception_chain(exc: Exception) -> str:
    """Format an exception and its causes for logging.

    Args:
        exc: Exception to format

    Returns:
        One line per exception in the ``__cause__`` chain
    """
    lines = []
    current: Optional[BaseException] = exc

    while current is not None:
        if isinstance(current, GMAOException):
            lines.append(str(current))
            lines.append(f"  Context: {current.context}")
        else:
            lines.append(f"{type(current).__name__}: {current}")
        current = getattr(current, "__cause__", None)

    return "\n".join(lines)


def is_retriable(exc: Exception) -> bool:
    """Check if the failed operation may succeed on retry.

    Only data access failures (unreadable file, locked store) are
    retriable. Validation and lookup failures are not.
    """
    if isinstance(exc, DataAccessError):
        return True
    return False


__all__ = [
    "GMAOException",
    "ConfigurationError",
    "DataException",
    "InvalidSchema",
    "MissingData",
    "EquipmentNotFoundError",
    "DataAccessError",
    "format_exception_chain",
    "is_retriable",
]
