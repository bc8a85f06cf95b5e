"""
fleetcache/exceptions.py - Exception hierarchy

Exception tree:
    FleetCacheError (base)
    ├── ComputeClientError (compute API call failed)
    ├── SnapshotDecodeError (stored on-demand graph could not be decoded)
    └── ConfigError (invalid configuration)

Usage:
    from fleetcache.exceptions import ComputeClientError

    try:
        groups = autoscaling.describe_auto_scaling_groups()
    except ClientError as e:
        raise ComputeClientError.from_client_error("describe_auto_scaling_groups", e) from e
"""

from typing import Any, Dict, Optional


class FleetCacheError(Exception):
    """Base exception for fleetcache

    Attributes:
        message: Error message
        cause: Underlying exception (for chaining)
        details: Extra structured details
    """

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details or {}

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Exception as a dictionary (for logging)"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "cause": str(self.cause) if self.cause else None,
            "details": self.details,
        }


class ComputeClientError(FleetCacheError):
    """A compute API call failed

    Distinct from "resource not found", which clients report by returning None.
    """

    def __init__(
        self,
        operation: str,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        message = f"compute.{operation}"
        if error_code:
            message = f"{message} failed ({error_code})"
        if error_message:
            message = f"{message}: {error_message}"

        super().__init__(message, cause)
        self.operation = operation
        self.error_code = error_code
        self.error_message = error_message
        self.details.update(
            {
                "operation": operation,
                "error_code": error_code,
            }
        )

    @classmethod
    def from_client_error(cls, operation: str, client_error: Exception) -> "ComputeClientError":
        """Build from a botocore ClientError"""
        error_code = None
        error_message = None

        if hasattr(client_error, "response"):
            error_info = client_error.response.get("Error", {})
            error_code = error_info.get("Code")
            error_message = error_info.get("Message")

        return cls(
            operation=operation,
            error_code=error_code,
            error_message=error_message,
            cause=client_error,
        )


class SnapshotDecodeError(FleetCacheError):
    """A serialized entity graph could not be decoded"""

    def __init__(self, reason: str, key: Optional[str] = None, cause: Optional[Exception] = None):
        message = f"cannot decode snapshot [{key}]: {reason}" if key else f"cannot decode snapshot: {reason}"
        super().__init__(message, cause)
        self.key = key
        self.reason = reason
        if key:
            self.details["key"] = key


class ConfigError(FleetCacheError):
    """Invalid configuration"""

    def __init__(self, key: str, message: str, cause: Optional[Exception] = None):
        super().__init__(f"config error [{key}]: {message}", cause)
        self.config_key = key
        self.details["config_key"] = key
