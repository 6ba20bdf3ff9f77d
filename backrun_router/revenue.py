"""
Revenue distribution with exact-accounting dust handling.

Splits an amount among the recipients of a named revenue config. Each
recipient gets ``floor(total * share / 10000)``; the dust share plus every
rounding remainder goes to the dust recipient, so a split with a real dust
recipient always pays out exactly ``total``.
"""

from typing import Dict, Optional, Sequence

from .config_schema import RevenueConfig, validate_revenue_config
from .constants import BPS_DENOMINATOR, DEFAULT_ADMIN_SHARE_BPS, DEFAULT_CONFIG_ID, ZERO_ADDRESS
from .exceptions import ConfigurationError, UnauthorizedError
from .ledger import Ledger
from .metrics import RouterMetrics
from .types import RevenueConfigUpdated, SplitExecuted
from .utils import bps_share, get_logger, normalize_address, normalize_bytes32

logger = get_logger(__name__)


class RevenueDistributor:
    """
    Owns the named revenue configs and performs splits out of ``holder``'s balance.

    Attributes:
        ledger: Ledger the transfers are applied to
        holder: Account paying out the splits (the router)
        owner: Account allowed to write configs; receives the default admin share
    """

    def __init__(
        self,
        ledger: Ledger,
        holder: str,
        owner: str,
        default_admin_share_bps: int = DEFAULT_ADMIN_SHARE_BPS,
        metrics: Optional[RouterMetrics] = None,
    ):
        self.ledger = ledger
        self.holder = normalize_address(holder, "holder")
        self.owner = normalize_address(owner, "owner")
        self.metrics = metrics
        self._configs: Dict[str, RevenueConfig] = {}

        if default_admin_share_bps:
            self._default_config = RevenueConfig(
                recipients=[self.owner],
                shares_bps=[default_admin_share_bps],
                dust_share_bps=BPS_DENOMINATOR - default_admin_share_bps,
            )
        else:
            self._default_config = RevenueConfig(dust_share_bps=BPS_DENOMINATOR)

    # ----- configuration -----
    @property
    def default_config(self) -> RevenueConfig:
        return self._default_config

    def has_config(self, config_id: str) -> bool:
        return normalize_bytes32(config_id, "config_id") in self._configs

    def get_config(self, config_id: str) -> RevenueConfig:
        """Stored config for ``config_id``, or the default config."""
        return self._configs.get(normalize_bytes32(config_id, "config_id"), self._default_config)

    def set_config(
        self,
        caller: str,
        config_id: str,
        recipients: Sequence[str],
        shares_bps: Sequence[int],
        dust_share_bps: int,
    ) -> RevenueConfig:
        """
        Replace the config stored under ``config_id``.

        Raises:
            UnauthorizedError: If caller is not the owner
            ConfigurationError: If the config is malformed or the id is reserved
        """
        if normalize_address(caller, "caller") != self.owner:
            raise UnauthorizedError("Only the owner can set revenue configs", caller=caller)

        config_id = normalize_bytes32(config_id, "config_id")
        if config_id == DEFAULT_CONFIG_ID:
            raise ConfigurationError("The zero config id is reserved for the default config")

        config = validate_revenue_config(
            {
                "recipients": list(recipients),
                "shares_bps": list(shares_bps),
                "dust_share_bps": dust_share_bps,
            }
        )
        self.store_config(config_id, config)
        return config

    def store_config(self, config_id: str, config: RevenueConfig) -> None:
        """Store an already-validated config (settings preload path)."""
        config_id = normalize_bytes32(config_id, "config_id")
        if config_id == DEFAULT_CONFIG_ID:
            raise ConfigurationError("The zero config id is reserved for the default config")
        self._configs[config_id] = config
        self.ledger.emit(
            RevenueConfigUpdated(
                config_id=config_id,
                recipients=tuple(config.recipients),
                shares_bps=tuple(config.shares_bps),
                dust_share_bps=config.dust_share_bps,
            )
        )
        logger.info(
            f"Revenue config {config_id} set: {len(config.recipients)} recipients, "
            f"dust share {config.dust_share_bps} bps"
        )

    # ----- splitting -----
    def split(
        self, config_id: str, asset: str, total_amount: int, dust_recipient: str
    ) -> SplitExecuted:
        """
        Pay out ``total_amount`` of ``asset`` according to a config.

        Recipients are paid in configured order, then the dust recipient. A null
        dust recipient leaves the dust amount with the holder.
        """
        config_id = normalize_bytes32(config_id, "config_id")
        asset = normalize_address(asset, "asset")
        dust_recipient = normalize_address(dust_recipient, "dust_recipient")
        config = self.get_config(config_id)

        amounts = tuple(bps_share(total_amount, share) for share in config.shares_bps)
        dust_amount = total_amount - sum(amounts)

        if total_amount > 0:
            for recipient, amount in zip(config.recipients, amounts):
                if amount > 0:
                    self.ledger.transfer(asset, self.holder, recipient, amount)

        stranded = 0
        if dust_amount > 0:
            if dust_recipient == ZERO_ADDRESS:
                stranded = dust_amount
                logger.warning(
                    f"No dust recipient for split under {config_id}: "
                    f"{dust_amount} of {asset} left with {self.holder}"
                )
            else:
                self.ledger.transfer(asset, self.holder, dust_recipient, dust_amount)

        record = SplitExecuted(
            config_id=config_id,
            asset=asset,
            total_amount=total_amount,
            recipients=tuple(config.recipients),
            amounts=amounts,
            dust_recipient=dust_recipient,
            dust_amount=dust_amount,
        )
        self.ledger.emit(record)
        if self.metrics is not None:
            self.metrics.record_split(asset, stranded)

        logger.info(
            f"SPLIT_EXECUTED: {{'config_id': '{config_id}', 'asset': '{asset}', "
            f"'total': {total_amount}, 'amounts': {list(amounts)}, "
            f"'dust_recipient': '{dust_recipient}', 'dust': {dust_amount}}}"
        )
        return record
