"""
Common utilities and helper functions for the backrun router.

This module provides centralized helpers for logging, address and bytes32
normalization, basis-point arithmetic and token amount formatting.
"""

import logging
import re
from typing import Any, Dict, Optional, Union

from web3 import Web3

from .constants import BPS_DENOMINATOR
from .exceptions import ValidationError

_BYTES32_RE = re.compile(r"^0x[a-fA-F0-9]{64}$")


# Logging utilities
def get_logger(
    name: str,
    level: Union[str, int] = logging.INFO,
    extra: Optional[Dict[str, Any]] = None,
    minimal: bool = False,
) -> logging.Logger:
    """
    Get a structured logger with consistent formatting and extra context.

    Args:
        name: Logger name (typically __name__)
        level: Logging level
        extra: Additional context fields to include in all log messages
        minimal: If True, use simplified format (time + message only)

    Returns:
        Configured logger with structured output
    """
    logger = logging.getLogger(name)

    # Set level if not already set
    if logger.level == logging.NOTSET:
        logger.setLevel(level)

    # Add structured formatter if no handlers exist
    if not logger.handlers:
        handler = logging.StreamHandler()

        if minimal:
            format_str = "%(asctime)s | %(message)s"
        else:
            format_str = (
                "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | " "%(message)s"
            )

        if extra:
            extra_fields = " | ".join([f"{k}=%(extra_{k})s" for k in extra.keys()])
            format_str = format_str.replace(
                " | %(message)s", f" | {extra_fields} | %(message)s"
            )

        formatter = logging.Formatter(format_str, datefmt="%H:%M:%S")
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        if extra:
            logger = logging.LoggerAdapter(
                logger, {"extra_" + k: v for k, v in extra.items()}
            )

    return logger


def set_log_level(level: Union[str, int]) -> None:
    """Set the level of every backrun_router logger."""
    logging.getLogger("backrun_router").setLevel(level)
    for name, logger in logging.root.manager.loggerDict.items():
        if name.startswith("backrun_router.") and isinstance(logger, logging.Logger):
            logger.setLevel(level)


# Address utilities
def is_valid_address(address: Any) -> bool:
    """Check if value is a 20-byte hex address."""
    return isinstance(address, str) and Web3.is_address(address)


def normalize_address(address: Any, field: str = "address") -> str:
    """
    Return the checksum form of an address.

    Raises:
        ValidationError: If the value is not a valid address
    """
    if not is_valid_address(address):
        raise ValidationError(f"Invalid {field}: {address!r}", {field: address})
    return Web3.to_checksum_address(address)


def is_valid_bytes32(value: Any) -> bool:
    """Check if value is a 0x-prefixed 32-byte hex string."""
    return isinstance(value, str) and bool(_BYTES32_RE.match(value))


def normalize_bytes32(value: Any, field: str = "bytes32") -> str:
    """
    Return a lowercase 0x-prefixed bytes32 string.

    Accepts raw 32-byte ``bytes`` as well as hex strings.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 32:
            raise ValidationError(f"Invalid {field}: expected 32 bytes, got {len(value)}")
        return "0x" + bytes(value).hex()
    if not is_valid_bytes32(value):
        raise ValidationError(f"Invalid {field}: {value!r}", {field: value})
    return value.lower()


def pool_id_for(address: str) -> str:
    """Derive the bytes32 venue id of a pool as keccak256 of its lowercase address."""
    return Web3.to_hex(Web3.keccak(text=address.lower()))


# Basis point utilities
def bps_share(amount: int, bps: int) -> int:
    """Floor of ``amount * bps / 10000`` in integer arithmetic."""
    return amount * bps // BPS_DENOMINATOR


# Token amount utilities
def format_token_amount(value: int, decimals: int = 18) -> str:
    """
    Format an integer token amount as a decimal string.

    Examples:
        >>> format_token_amount(1500000000000000000)
        '1.5'
        >>> format_token_amount(2, decimals=0)
        '2'
    """
    divisor = 10**decimals
    whole, remainder = divmod(value, divisor)
    if remainder == 0:
        return str(whole)
    fraction = str(remainder).rjust(decimals, "0").rstrip("0")
    return f"{whole}.{fraction}"


def parse_token_amount(amount: str, decimals: int = 18) -> int:
    """Parse a decimal string (e.g. "1.5") into an integer token amount."""
    whole, _, fraction = amount.partition(".")
    whole_units = int(whole or "0") * 10**decimals
    if not fraction:
        return whole_units
    fraction = fraction.ljust(decimals, "0")[:decimals]
    return whole_units + int(fraction)


def calculate_profit_percentage(profit: int, investment: int) -> float:
    """Profit as a percentage of investment, with two decimal places."""
    if investment == 0:
        return 0.0
    return (profit * 10000 // investment) / 100
