"""Tests for the exceptions module."""

import pytest
from backrun_router.exceptions import (
    BackrunRouterError,
    CallbackSourceError,
    ConfigurationError,
    ExecutionError,
    InsufficientBalanceError,
    LedgerError,
    PassThroughCallError,
    RouteValidationError,
    UnauthorizedError,
    UnprofitableRouteError,
    UnsupportedVenueError,
    ValidationError,
    VenueError,
)


def test_base_exception():
    """Test the base exception class."""
    error = BackrunRouterError("Test error")
    assert str(error) == "Test error"
    assert error.details == {}

    error_with_details = BackrunRouterError("Test error", {"key": "value"})
    assert error_with_details.details == {"key": "value"}


def test_configuration_error():
    error = ConfigurationError("Config error", {"config_file": "router.yaml"})
    assert str(error) == "Config error"
    assert error.details["config_file"] == "router.yaml"
    assert isinstance(error, BackrunRouterError)


def test_unauthorized_error():
    error = UnauthorizedError("Not admin", caller="0xabc")
    assert error.caller == "0xabc"
    assert isinstance(error, BackrunRouterError)


def test_insufficient_balance_error():
    error = InsufficientBalanceError(
        "Short", asset="0xA", account="0xB", required=10, available=3
    )
    assert error.required == 10
    assert error.available == 3
    assert isinstance(error, LedgerError)


def test_execution_error():
    error = ExecutionError("Hop failed", hop_index=2, venue="0xV")
    assert error.hop_index == 2
    assert error.venue == "0xV"
    assert isinstance(error, BackrunRouterError)


@pytest.mark.parametrize(
    "error_class",
    [RouteValidationError, UnsupportedVenueError, CallbackSourceError, VenueError],
)
def test_execution_error_subclasses(error_class):
    error = error_class("failed", hop_index=0, venue="0xV")
    assert isinstance(error, ExecutionError)
    assert error.hop_index == 0


def test_unprofitable_route_error():
    error = UnprofitableRouteError("No profit", input_amount=100, final_amount=98)
    assert error.input_amount == 100
    assert error.final_amount == 98
    assert error.hop_index is None
    assert isinstance(error, ExecutionError)


def test_pass_through_call_error():
    error = PassThroughCallError("Call failed", label="user swap")
    assert error.label == "user swap"
    assert not isinstance(error, ExecutionError)


def test_exception_inheritance():
    """Every package error can be caught through the base class."""
    for error_class in (
        ConfigurationError,
        ValidationError,
        LedgerError,
        ExecutionError,
        PassThroughCallError,
    ):
        with pytest.raises(BackrunRouterError):
            raise error_class("boom")
