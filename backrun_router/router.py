"""
Backrun orchestrator: the entry points callers invoke.

Each backrun runs guard -> oracle quote -> route execution -> revenue split ->
record emission inside one unit of work on the ledger. Two entry points share
that flow:

- ``trigger_backrun``: one trigger; execution failures propagate to the caller
- ``backruned_execute``: a mandatory pass-through call followed by triggers, each
  run behind a self-call fault boundary that turns its failure into a zero outcome

A reentrant call into either entry point returns the zero outcome without running.
"""

import dataclasses
from typing import Any, List, Optional, Sequence

from .config_schema import RevenueConfig, RouterSettings
from .constants import (
    DEFAULT_ADMIN_SHARE_BPS,
    DEFAULT_CONFIG_ID,
    MAX_UINT112,
    NATIVE_ASSET,
)
from .exceptions import (
    BackrunRouterError,
    ConfigurationError,
    PassThroughCallError,
    UnauthorizedError,
    UnsupportedVenueError,
    ValidationError,
)
from .executor import RouteExecutor
from .guard import GracefulGuard, graceful_nonreentrant
from .ledger import Ledger
from .metrics import RouterMetrics
from .oracle import RouteOracle
from .revenue import RevenueDistributor
from .types import (
    BackrunExecuted,
    BackrunSkipped,
    BackrunTrigger,
    BatchOutcome,
    CallResult,
    ExecutionOutcome,
    OracleUpdated,
    PassThroughCall,
    Withdrawal,
)
from .utils import (
    calculate_profit_percentage,
    get_logger,
    normalize_address,
    normalize_bytes32,
    set_log_level,
)
from .venues import VenueRegistry

logger = get_logger(__name__)


def _rejected_batch() -> BatchOutcome:
    return BatchOutcome(success=False, return_data=None, outcomes=[])


def _oracle_label(oracle: Any) -> Optional[str]:
    if oracle is None:
        return None
    return getattr(oracle, "address", None) or type(oracle).__name__


class BackrunRouter:
    """
    Backrun execution and profit distribution for one router account.

    Attributes:
        address: Router account; holds profit until it is split
        ledger: Ledger all effects are applied to
        venues: Venues the executor may route through
        guard: Reentrancy guard shared by both entry points
        executor: Route executor acting on behalf of ``address``
        distributor: Revenue distributor paying out of ``address``
    """

    def __init__(
        self,
        address: str,
        ledger: Ledger,
        venues: VenueRegistry,
        admin: str,
        oracle: Optional[RouteOracle] = None,
        default_admin_share_bps: int = DEFAULT_ADMIN_SHARE_BPS,
        max_route_hops: int = 8,
        metrics: Optional[RouterMetrics] = None,
    ):
        self.address = normalize_address(address, "router")
        self.admin = normalize_address(admin, "admin")
        self.ledger = ledger
        self.venues = venues
        self.metrics = metrics if metrics is not None else RouterMetrics()
        self._oracle = oracle
        self._self_call_ticket: Optional[object] = None

        self.guard =GracefulGuard(on_reject=self._on_guard_reject)
        self.executor = RouteExecutor(
            ledger, venues, self.address, max_hops=max_route_hops, metrics=self.metrics
        )
        self.distributor = RevenueDistributor(
            ledger,
            holder=self.address,
            owner=self.admin,
            default_admin_share_bps=default_admin_share_bps,
            metrics=self.metrics,
        )

    @classmethod
    def from_settings(
        cls,
        settings: RouterSettings,
        address: str,
        ledger: Ledger,
        venues: VenueRegistry,
        oracle: Optional[RouteOracle] = None,
        metrics: Optional[RouterMetrics] = None,
    ) -> "BackrunRouter":
        """Build a router from validated settings, preloading their revenue configs."""
        set_log_level(settings.log_level)
        router = cls(
            address,
            ledger,
            venues,
            admin=settings.admin,
            oracle=oracle,
            default_admin_share_bps=settings.default_admin_share_bps,
            max_route_hops=settings.max_route_hops,
            metrics=metrics,
        )
        for config_id, config in settings.revenue_configs.items():
            router.distributor.store_config(config_id, config)
        logger.info(
            f"Router {router.address} ready: admin={router.admin}, "
            f"{len(settings.revenue_configs)} revenue configs"
        )
        return router

    # ----- entry points -----
    @graceful_nonreentrant()
    def trigger_backrun(self, caller: str, trigger: BackrunTrigger) -> ExecutionOutcome:
        """
        Run one backrun.

        Returns:
            (profit, profit asset), or the zero outcome when there is no opportunity

        Raises:
            ValidationError: If the trigger is malformed
            ExecutionError: If the route fails; every effect is rolled back
        """
        trigger = self.validate_trigger(trigger)
        logger.debug(f"trigger_backrun from {caller}: {trigger}")
        try:
            with self.ledger.atomic():
                return self._run_backrun(trigger)
        except BackrunRouterError as e:
            self.metrics.record_outcome("failed")
            logger.error(f"Backrun for {trigger.source_venue_id} failed: {e}")
            raise

    @graceful_nonreentrant(default=_rejected_batch)
    def backruned_execute(
        self, caller: str, call: PassThroughCall, triggers: Sequence[BackrunTrigger]
    ) -> BatchOutcome:
        """
        Run a pass-through call, then backrun each trigger in isolation.

        The pass-through call must succeed; its failure aborts the whole batch.
        A failing trigger yields the zero outcome at its index and leaves the
        pass-through effects and the other triggers untouched.

        Malformed triggers fail inside their own fault boundary like any other
        trigger failure.

        Raises:
            PassThroughCallError: If the pass-through call fails
        """
        triggers = list(triggers)
        logger.debug(f"backruned_execute from {caller}: {len(triggers)} triggers")

        with self.ledger.atomic():
            result = self._pass_through(call)
            if not result.success:
                raise PassThroughCallError(
                    f"Pass-through call {call.label or call.target!r} failed: {result.error}",
                    label=call.label,
                ) from result.error

            outcomes: List[ExecutionOutcome] = []
            for index, trigger in enumerate(triggers):
                backrun = self._self_call(trigger)
                if backrun.success:
                    outcomes.append(backrun.value)
                    continue

                # Isolated failure: report the zero outcome, keep going
                self.metrics.record_outcome("failed")
                source = getattr(trigger, "source_venue_id", type(trigger).__name__)
                logger.warning(
                    f"Backrun {index} for {source} isolated: "
                    f"{type(backrun.error).__name__}: {backrun.error}"
                )
                if isinstance(trigger, BackrunTrigger):
                    self._emit_skipped(trigger)
                outcomes.append(ExecutionOutcome.none())

        return BatchOutcome(success=True, return_data=result.value, outcomes=outcomes)

    def execute_backrun_from_self(
        self, caller: str, trigger: BackrunTrigger, ticket: Optional[object] = None
    ) -> ExecutionOutcome:
        """
        Unguarded backrun body, reachable only through the router's own self-call.

        ``ticket`` is the one-shot token issued by the batch fault boundary for
        this trigger. Passing the router's address is not enough: a call without
        the live ticket made while an entry point is running gets the zero
        outcome, like any other reentrant call.

        Raises:
            UnauthorizedError: If ``caller`` is not the router itself, or the
                call does not come from a running batch
        """
        if not isinstance(caller, str) or caller.lower() != self.address.lower():
            raise UnauthorizedError("Self-call entry used by another account", caller=caller)
        if ticket is None or ticket is not self._self_call_ticket:
            if self.guard.entered:
                return self.guard.run(
                    "execute_backrun_from_self", ExecutionOutcome.none, ExecutionOutcome.none
                )
            raise UnauthorizedError(
                "Self-call entry used outside of a batch", caller=caller
            )
        self._self_call_ticket = None
        return self._run_backrun(self.validate_trigger(trigger))

    def settlement_callback(
        self, source: str, amount0_delta: int, amount1_delta: int, data: Any = None
    ) -> None:
        """Settlement entry for callback-settled venues; see RouteExecutor."""
        self.executor.settlement_callback(source, amount0_delta, amount1_delta, data)

    # ----- internals -----
    def validate_trigger(self, trigger: BackrunTrigger) -> BackrunTrigger:
        """Return a normalized copy of ``trigger`` or raise ValidationError."""
        if not isinstance(trigger, BackrunTrigger):
            raise ValidationError(f"Expected BackrunTrigger, got {type(trigger).__name__}")
        amount = trigger.input_amount
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValidationError(f"input_amount must be an integer: {amount!r}")
        if not 0 <= amount <= MAX_UINT112:
            raise ValidationError(
                f"input_amount out of uint112 range: {amount}", {"input_amount": amount}
            )
        if not isinstance(trigger.input_is_primary, bool):
            raise ValidationError("input_is_primary must be a bool")

        return dataclasses.replace(
            trigger,
            source_venue_id=normalize_bytes32(trigger.source_venue_id, "source_venue_id"),
            beneficiary=normalize_address(trigger.beneficiary, "beneficiary"),
            config_id=normalize_bytes32(trigger.config_id, "config_id"),
        )

    def _pass_through(self, call: PassThroughCall) -> CallResult[Any]:
        if not isinstance(call, PassThroughCall) or not callable(call.target):
            return CallResult.failed(ValidationError("Pass-through target is not callable"))
        try:
            return CallResult.ok(call.target(*call.args, **call.kwargs))
        except Exception as e:
            return CallResult.failed(e)

    def _self_call(self, trigger: BackrunTrigger) -> CallResult[ExecutionOutcome]:
        """Fault boundary around one trigger of a batch."""
        ticket = object()
        self._self_call_ticket = ticket
        try:
            with self.ledger.atomic():
                outcome = self.execute_backrun_from_self(self.address, trigger, ticket)
        except Exception as e:
            return CallResult.failed(e)
        finally:
            self._self_call_ticket = None
        return CallResult.ok(outcome)

    def _run_backrun(self, trigger: BackrunTrigger) -> ExecutionOutcome:
        if self._oracle is None:
            raise ConfigurationError("No route oracle configured")

        estimated_profit, route = self._oracle.get_quote(
            trigger.source_venue_id, trigger.input_is_primary, trigger.input_amount
        )
        if route is None or estimated_profit <= 0:
            self.metrics.record_outcome("skipped")
            self._emit_skipped(trigger)
            return ExecutionOutcome.none()

        source = self.venues.find_by_id(trigger.source_venue_id)
        if source is None:
            raise UnsupportedVenueError(f"Unknown trigger venue {trigger.source_venue_id}")
        input_asset = source.token0 if trigger.input_is_primary else source.token1

        final_amount = self.executor.execute(route, trigger.input_amount, input_asset)
        profit = final_amount - trigger.input_amount

        self.distributor.split(trigger.config_id, input_asset, profit, trigger.beneficiary)
        self.ledger.emit(
            BackrunExecuted(
                trigger_venue_id=trigger.source_venue_id,
                input_amount=trigger.input_amount,
                input_is_primary=trigger.input_is_primary,
                profit=profit,
                profit_asset=input_asset,
                beneficiary=trigger.beneficiary,
            )
        )
        self.metrics.record_outcome("settled")
        self.metrics.record_profit(input_asset, profit)

        settled = {
            "trigger_venue_id": trigger.source_venue_id,
            "input_amount": trigger.input_amount,
            "estimated_profit": estimated_profit,
            "profit": profit,
            "profit_asset": input_asset,
            "profit_pct": calculate_profit_percentage(profit, trigger.input_amount),
            "hops": route.hop_count,
            "beneficiary": trigger.beneficiary,
        }
        logger.info(f"BACKRUN_SETTLED: {settled}")
        return ExecutionOutcome(realized_profit=profit, profit_asset=input_asset)

    def _emit_skipped(self, trigger: BackrunTrigger) -> None:
        self.ledger.emit(
            BackrunSkipped(
                trigger_venue_id=trigger.source_venue_id,
                input_amount=trigger.input_amount,
                input_is_primary=trigger.input_is_primary,
                beneficiary=trigger.beneficiary,
            )
        )
        skipped = {
            "trigger_venue_id": trigger.source_venue_id,
            "input_amount": trigger.input_amount,
            "beneficiary": trigger.beneficiary,
        }
        logger.info(f"BACKRUN_SKIPPED: {skipped}")

    def _on_guard_reject(self, name: str) -> None:
        self.metrics.record_outcome("rejected")

    def _require_admin(self, caller: str) -> None:
        if not isinstance(caller, str) or caller.lower() != self.admin.lower():
            raise UnauthorizedError("Caller is not the router admin", caller=caller)

    # ----- administration -----
    def get_admin(self) -> str:
        return self.admin

    @property
    def oracle(self) -> Optional[RouteOracle]:
        return self._oracle

    def set_oracle(self, caller: str, oracle: RouteOracle) -> None:
        self._require_admin(caller)
        if not isinstance(oracle, RouteOracle):
            raise ValidationError(f"{type(oracle).__name__} does not implement get_quote")
        previous = _oracle_label(self._oracle)
        self._oracle = oracle
        self.ledger.emit(OracleUpdated(previous=previous, current=_oracle_label(oracle)))
        logger.info(f"Oracle changed from {previous} to {_oracle_label(oracle)}")

    def get_revenue_config(self, config_id: str = DEFAULT_CONFIG_ID) -> RevenueConfig:
        return self.distributor.get_config(config_id)

    def set_revenue_config(
        self,
        caller: str,
        config_id: str,
        recipients: Sequence[str],
        shares_bps: Sequence[int],
        dust_share_bps: int,
    ) -> RevenueConfig:
        """
        Replace a revenue config.

        Raises:
            UnauthorizedError: If caller is not the admin
            ConfigurationError: If the config is malformed or uses the zero id
        """
        self._require_admin(caller)
        return self.distributor.set_config(
            caller, config_id, recipients, shares_bps, dust_share_bps
        )

    def withdraw_token(self, caller: str, asset: str, amount: int, to: str) -> None:
        """Move ``amount`` of a held asset out of the router."""
        self._require_admin(caller)
        asset = normalize_address(asset, "asset")
        to = normalize_address(to, "to")
        with self.ledger.atomic():
            self.ledger.transfer(asset, self.address, to, amount)
            self.ledger.emit(Withdrawal(asset=asset, amount=amount, recipient=to))
        logger.info(f"Withdrew {amount} of {asset} to {to}")

    def withdraw_native(self, caller: str, amount: int, to: str) -> None:
        self.withdraw_token(caller, NATIVE_ASSET, amount, to)
