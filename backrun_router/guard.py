"""
Graceful reentrancy guard.

Unlike a conventional lock, a reentrant call is not an error: the nested call
returns a safe default result without running, and the outer call carries on
unaffected. The flag is reset on every exit path of the guarded body.
"""

import functools
from typing import Any, Callable, Optional, TypeVar

from .types import ExecutionOutcome
from .utils import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class GracefulGuard:
    """Transient ``entered`` flag for one component instance."""

    def __init__(self, on_reject: Optional[Callable[[str], None]] = None):
        self.entered = False
        self.rejections = 0
        self._on_reject = on_reject

    def run(self, name: str, body: Callable[[], Any], default: Callable[[], Any]) -> Any:
        """
        Run ``body`` with the flag held, or return ``default()`` if already entered.

        Args:
            name: Entry point name, for logging
            body: Guarded section
            default: Factory for the result handed to a reentrant caller
        """
        if self.entered:
            self.rejections += 1
            logger.info(f"Reentrant call to {name} skipped")
            if self._on_reject is not None:
                self._on_reject(name)
            return default()

        self.entered = True
        try:
            return body()
        finally:
            self.entered = False


def graceful_nonreentrant(default: Callable[[], Any] = ExecutionOutcome.none) -> Callable[[F], F]:
    """
    Decorate a method of an object exposing a ``guard`` attribute.

    Example:
        class Router:
            @graceful_nonreentrant()
            def trigger_backrun(self, caller, trigger): ...
    """

    def decorator(method: F) -> F:
        @functools.wraps(method)
        def wrapper(self, *args, **kwargs):
            return self.guard.run(
                method.__name__,
                lambda: method(self, *args, **kwargs),
                default,
            )

        return wrapper  # type: ignore[return-value]

    return decorator
