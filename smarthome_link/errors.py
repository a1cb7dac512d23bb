"""
Exceptions raised by the smart device link.

Only ConfigurationError is terminal for a node. Every other error is
reported through the status sink and the node keeps running.
"""
from typing import Any, Dict, Optional


class SmartHomeError(Exception):
    """
    Base exception for all smart device link errors.

    Carries a machine readable code and optional details so errors
    can be rendered by the discovery API or logged uniformly.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            'error': self.code,
            'message': self.message,
            'details': self.details
        }


class ConfigurationError(SmartHomeError):
    """Raised when a node cannot run with the configuration it was given."""

    def __init__(
        self,
        message: str = "Not configured",
        field: Optional[str] = None
    ):
        self.field = field
        super().__init__(
            message=message,
            code='CONFIGURATION_ERROR',
            details={'field': field} if field else {}
        )


class DeviceConnectionError(SmartHomeError):
    """
    Raised when the device cannot be reached.

    Covers lookup, liveness probe and snapshot fetch failures. Always
    results in the connection being demoted to disconnected.
    """

    def __init__(
        self,
        message: str = "Not reachable",
        host: Optional[str] = None,
        operation: Optional[str] = None,
        code: str = 'NOT_REACHABLE'
    ):
        self.host = host
        self.operation = operation
        details = {}
        if host:
            details['host'] = host
        if operation:
            details['operation'] = operation
        super().__init__(message=message, code=code, details=details)


class DeviceCallError(DeviceConnectionError):
    """Raised when a state changing call (power, parameter, erase) fails."""

    def __init__(
        self,
        message: str = "Device call failed",
        host: Optional[str] = None,
        operation: Optional[str] = None
    ):
        super().__init__(
            message=message,
            host=host,
            operation=operation,
            code='DEVICE_CALL_FAILED'
        )


class CommandError(SmartHomeError):
    """Raised for inbound commands that cannot be executed."""

    def __init__(
        self,
        message: str,
        command: Any = None,
        code: str = 'COMMAND_REJECTED'
    ):
        self.command = command
        super().__init__(
            message=message,
            code=code,
            details={'command': repr(command)} if command is not None else {}
        )
