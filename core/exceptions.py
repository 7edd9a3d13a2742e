"""
Custom exceptions for the migration pipeline with structured error context.

This module provides the exception hierarchy used while streaming JSON
sources into a target store. Each exception includes context information
for debugging and for the end-of-run report.

Exception Hierarchy:
    MigrationException (base)
    ├── ExtractionError
    │   └── ParseError
    ├── TransformationError
    │   ├── ValidationError
    │   └── MappingError
    ├── AssetFetchError
    ├── LoadError
    │   └── PersistenceError
    ├── CheckpointError
    │   ├── CheckpointReadError
    │   └── CheckpointDirectoryError
    ├── MigrationConfigError
    └── RetryableError / NonRetryableError (mixins)
"""

from typing import Optional, Dict, Any, List
from datetime import datetime, timezone


class MigrationException(Exception):
    """
    Base exception for all migration-related errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (source, index, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        # Add timestamp to context
        self.context["error_timestamp"] = self.timestamp.isoformat()

        # Chain original exception if provided
        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Retry Strategy Mixins
# ============================================================================

class RetryableError(MigrationException):
    """
    Mixin for errors that may succeed when attempted again.

    Use this for transient errors like:
    - Deadlocks and lock wait timeouts
    - Serialization failures
    - Temporary connection issues
    """
    pass


class NonRetryableError(MigrationException):
    """
    Mixin for errors that must NOT be retried.

    Use this for permanent errors like:
    - Malformed source records
    - Invalid field mappings
    - Invalid migration configuration
    """
    pass


# ============================================================================
# Extraction Errors
# ============================================================================

class ExtractionError(MigrationException):
    """
    Exception raised when a source file cannot be opened or read.

    Context should include:
        - file_path: Path to the source file
    """
    pass


class ParseError(NonRetryableError, ExtractionError):
    """
    Exception raised when a record in the source is not valid JSON.

    Aborts the current pass immediately. The offending line (for
    line-delimited sources) is kept on ``line``.
    """

    def __init__(
        self,
        message: str,
        line: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(message, context, original_exception)
        self.line = line
        if line is not None:
            self.context["line"] = line


# ============================================================================
# Transformation Errors
# ============================================================================

class TransformationError(MigrationException):
    """Base exception for record mapping failures."""
    pass


class ValidationError(NonRetryableError, TransformationError):
    """
    Exception raised when a mapped entity fails validation.

    Only raised when the migration runs with stop_on_error; otherwise the
    failure is logged and the record skipped.
    """

    def __init__(
        self,
        message: str,
        messages: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(message, context, original_exception)
        self.messages = list(messages or [])


class MappingError(NonRetryableError, TransformationError):
    """
    Exception raised when a field mapping cannot be applied.

    Context should include:
        - source_field: Field in the source record
        - field_type: Kind of the mapping
    """
    pass


class AssetFetchError(MigrationException):
    """
    Exception raised when a remote asset cannot be retrieved.

    Context should include:
        - url: The asset URL
        - status_code: HTTP status code (if applicable)
    """
    pass


# ============================================================================
# Load Errors
# ============================================================================

class LoadError(MigrationException):
    """Base exception for target store failures."""
    pass


class PersistenceError(LoadError):
    """
    Exception raised when an entity write fails.

    The backend's own error text is kept in the message so transient
    conditions (deadlocks, lock timeouts) can be recognised.

    Context should include:
        - target_kind: Kind of entity being written
        - operation: Type of operation (INSERT, UPDATE)
    """
    pass


# ============================================================================
# Checkpoint Errors
# ============================================================================

class CheckpointError(MigrationException):
    """
    Exception raised when checkpoint management fails.

    Context should include:
        - checkpoint_file: Path to the checkpoint file
        - operation: Operation that failed (read, write, mkdir)
    """
    pass


class CheckpointReadError(CheckpointError):
    """Missing or corrupt checkpoint file. Treated as 'start from 0'."""
    pass


class CheckpointDirectoryError(CheckpointError):
    """The checkpoint directory cannot be created."""
    pass


# ============================================================================
# Configuration Errors
# ============================================================================

class MigrationConfigError(NonRetryableError):
    """
    Exception raised when a migration definition cannot be loaded.

    Context should include:
        - config_path: Path to the YAML file
        - migration_index: Position of the migration (if applicable)
    """
    pass
