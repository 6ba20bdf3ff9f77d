"""
In-process asset ledger standing in for chain state.

Tracks integer balances per (asset, account), per-account storage, the
ordered log of emitted records, and flash advances. ``atomic()`` scopes a unit of work: everything
changed inside it is rolled back together if the block raises.
"""

from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Type, TypeVar

from .exceptions import InsufficientBalanceError, LedgerError, ValidationError
from .utils import get_logger, normalize_address

logger = get_logger(__name__)

R = TypeVar("R")

# hook(asset, sender, amount) runs after the receiving account is credited
ReceiveHook = Callable[[str, str, int], None]


def _check_amount(amount: Any) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError(f"Amount must be an integer, got {type(amount).__name__}")
    if amount < 0:
        raise ValidationError(f"Amount must be non-negative: {amount}")
    return amount


class Ledger:
    """Balances, emitted records and flash advances for one simulated chain."""

    def __init__(self):
        self._balances: Dict[str, Dict[str, int]] = {}
        self._advances: Dict[Tuple[str, str], int] = {}
        self._events: List[Any] = []
        self._hooks: Dict[str, ReceiveHook] = {}
        self._storage: Dict[Tuple[str, str], Any] = {}
        self._depth = 0

    # ----- balances -----
    def balance_of(self, asset: str, account: str) -> int:
        asset = normalize_address(asset, "asset")
        account = normalize_address(account, "account")
        return self._balances.get(asset, {}).get(account, 0)

    def credit(self, asset: str, account: str, amount: int) -> None:
        """Create ``amount`` of ``asset`` in ``account`` (funding and test setup)."""
        amount = _check_amount(amount)
        asset = normalize_address(asset, "asset")
        account = normalize_address(account, "account")
        holdings = self._balances.setdefault(asset, {})
        holdings[account] = holdings.get(account, 0) + amount

    def _debit(self, asset: str, account: str, amount: int) -> None:
        holdings = self._balances.setdefault(asset, {})
        available = holdings.get(account, 0)
        if available < amount:
            raise InsufficientBalanceError(
                f"{account} holds {available} of {asset}, needs {amount}",
                asset=asset,
                account=account,
                required=amount,
                available=available,
            )
        holdings[account] = available - amount

    def transfer(self, asset: str, sender: str, recipient: str, amount: int) -> None:
        """
        Move ``amount`` of ``asset`` and run the recipient's receive hook.

        Raises:
            InsufficientBalanceError: If the sender cannot cover the amount
        """
        amount = _check_amount(amount)
        asset = normalize_address(asset, "asset")
        sender = normalize_address(sender, "sender")
        recipient = normalize_address(recipient, "recipient")

        self._debit(asset, sender, amount)
        holdings = self._balances[asset]
        holdings[recipient] = holdings.get(recipient, 0) + amount

        hook = self._hooks.get(recipient)
        if hook is not None:
            hook(asset, sender, amount)

    def register_receive_hook(self, account: str, hook: Optional[ReceiveHook]) -> None:
        """Install (or clear with ``None``) the code an account runs when it receives funds."""
        account = normalize_address(account, "account")
        if hook is None:
            self._hooks.pop(account, None)
        else:
            self._hooks[account] = hook

    # ----- flash advances -----
    def advance(self, asset: str, account: str, amount: int) -> None:
        """Lend ``amount`` to ``account`` for the rest of the current unit of work."""
        if self._depth == 0:
            raise LedgerError("Advances are only available inside a unit of work")
        self.credit(asset, account, amount)
        key = (normalize_address(asset, "asset"), normalize_address(account, "account"))
        self._advances[key] = self._advances.get(key, 0) + amount

    def repay(self, asset: str, account: str, amount: int) -> None:
        amount = _check_amount(amount)
        key = (normalize_address(asset, "asset"), normalize_address(account, "account"))
        outstanding = self._advances.get(key, 0)
        if amount > outstanding:
            raise LedgerError(
                f"Repayment of {amount} exceeds outstanding advance {outstanding}",
                {"asset": key[0], "account": key[1]},
            )
        self._debit(key[0], key[1], amount)
        if amount == outstanding:
            del self._advances[key]
        else:
            self._advances[key] = outstanding - amount

    def outstanding_advance(self, asset: str, account: str) -> int:
        key = (normalize_address(asset, "asset"), normalize_address(account, "account"))
        return self._advances.get(key, 0)

    # ----- contract storage -----
    def load(self, account: str, key: str, default: Any = None) -> Any:
        """Read a value an account keeps on the ledger (e.g. a venue's reserves)."""
        return self._storage.get((normalize_address(account, "account"), key), default)

    def store(self, account: str, key: str, value: Any) -> None:
        self._storage[(normalize_address(account, "account"), key)] = value

    # ----- records -----
    def emit(self, record: Any) -> None:
        self._events.append(record)

    @property
    def events(self) -> List[Any]:
        return list(self._events)

    def events_of(self, record_type: Type[R]) -> List[R]:
        return [e for e in self._events if isinstance(e, record_type)]

    # ----- units of work -----
    @property
    def in_unit_of_work(self) -> bool:
        return self._depth > 0

    def _snapshot(self):
        return (
            {asset: dict(holdings) for asset, holdings in self._balances.items()},
            dict(self._advances),
            dict(self._storage),
            len(self._events),
        )

    def _restore(self, snapshot) -> None:
        balances, advances, storage, event_count = snapshot
        self._balances = balances
        self._advances = advances
        self._storage = storage
        del self._events[event_count:]

    @contextmanager
    def atomic(self) -> Iterator["Ledger"]:
        """
        Run a block as one all-or-nothing unit of work.

        Advances taken inside the block must be repaid before it exits.
        """
        snapshot = self._snapshot()
        self._depth += 1
        try:
            yield self
            if self._advances != snapshot[1]:
                raise LedgerError(
                    "Unit of work ended with an outstanding advance",
                    {"advances": dict(self._advances)},
                )
        except BaseException:
            self._restore(snapshot)
            logger.debug(f"Unit of work rolled back at depth {self._depth}")
            raise
        finally:
            self._depth -= 1
