"""
Exception hierarchy for the backrun router.

Provides specific exception types for configuration, ledger and route execution
failures so that fault boundaries can tell a hard failure from a skipped backrun.
"""

from typing import Any, Dict, Optional


class BackrunRouterError(Exception):
    """Base exception for all backrun router related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(BackrunRouterError):
    """Raised when a revenue config or router settings are rejected."""

    pass


class ValidationError(BackrunRouterError):
    """Raised when trigger data or call arguments are malformed."""

    pass


class UnauthorizedError(BackrunRouterError):
    """Raised when a caller is not allowed to use a protected operation."""

    def __init__(
        self,
        message: str,
        caller: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.caller = caller


class LedgerError(BackrunRouterError):
    """Raised when a ledger operation cannot be applied."""

    pass


class InsufficientBalanceError(LedgerError):
    """Raised when an account does not hold enough of an asset."""

    def __init__(
        self,
        message: str,
        asset: Optional[str] = None,
        account: Optional[str] = None,
        required: Optional[int] = None,
        available: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.asset = asset
        self.account = account
        self.required = required
        self.available = available


class ExecutionError(BackrunRouterError):
    """Raised when route execution fails."""

    def __init__(
        self,
        message: str,
        hop_index: Optional[int] = None,
        venue: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.hop_index = hop_index
        self.venue = venue


class RouteValidationError(ExecutionError):
    """Raised when an oracle route is misaligned or inconsistent."""

    pass


class UnsupportedVenueError(ExecutionError):
    """Raised when a hop names a venue kind or venue the executor cannot dispatch."""

    pass


class CallbackSourceError(ExecutionError):
    """Raised when a settlement callback is unexpected, duplicated or missing."""

    pass


class UnprofitableRouteError(ExecutionError):
    """Raised when a route ends without a strictly positive result."""

    def __init__(
        self,
        message: str,
        input_amount: Optional[int] = None,
        final_amount: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details=details)
        self.input_amount = input_amount
        self.final_amount = final_amount


class VenueError(ExecutionError):
    """Raised by a venue when a swap cannot be settled."""

    pass


class PassThroughCallError(BackrunRouterError):
    """Raised when the mandatory pass-through call of a batch fails."""

    def __init__(
        self,
        message: str,
        label: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.label = label
