"""
Unit tests for revenue distribution and dust accounting
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from prometheus_client import CollectorRegistry

from backrun_router.constants import DEFAULT_CONFIG_ID, ZERO_ADDRESS
from backrun_router.exceptions import ConfigurationError, UnauthorizedError
from backrun_router.ledger import Ledger
from backrun_router.metrics import RouterMetrics
from backrun_router.revenue import RevenueDistributor
from backrun_router.types import RevenueConfigUpdated, SplitExecuted

from conftest import ADMIN, OUTSIDER, ROUTER, TOKEN_A, addr

A = addr(0xA1)
B = addr(0xB1)
C = addr(0xC1)
CONFIG_ID = "0x" + "00" * 31 + "01"


def make_distributor(holder_balance=10**30, **kwargs):
    ledger = Ledger()
    ledger.credit(TOKEN_A, ROUTER, holder_balance)
    return ledger, RevenueDistributor(ledger, ROUTER, ADMIN, **kwargs)


def balances(ledger, *accounts):
    return [ledger.balance_of(TOKEN_A, account) for account in accounts]


class TestSplitExamples:
    def test_shares_and_dust_share(self):
        ledger, distributor = make_distributor()
        distributor.set_config(ADMIN, CONFIG_ID, [A, B], [3000, 5000], 2000)

        record = distributor.split(CONFIG_ID, TOKEN_A, 1000, C)

        assert balances(ledger, A, B, C) == [300, 500, 200]
        assert record.amounts == (300, 500)
        assert record.dust_amount == 200

    def test_remainder_joins_dust_recipient_share(self):
        """Shares [3333, 3333, 3334] floor to 33 each; the remainder lands on the dust recipient."""
        ledger, distributor = make_distributor()
        distributor.set_config(ADMIN, CONFIG_ID, [A, B, C], [3333, 3333, 3334], 0)

        record = distributor.split(CONFIG_ID, TOKEN_A, 100, C)

        assert record.amounts == (33, 33, 33)
        assert record.dust_amount == 1
        assert balances(ledger, A, B, C) == [33, 33, 34]
        assert sum(balances(ledger, A, B, C)) == 100

    def test_remainder_goes_to_unconfigured_dust_recipient(self):
        ledger, distributor = make_distributor()
        distributor.set_config(ADMIN, CONFIG_ID, [A, B], [3333, 6667], 0)

        distributor.split(CONFIG_ID, TOKEN_A, 100, C)

        assert balances(ledger, A, B, C) == [33, 66, 1]

    def test_zero_amount_split_moves_nothing_but_is_recorded(self):
        ledger, distributor = make_distributor()
        distributor.set_config(ADMIN, CONFIG_ID, [A, B], [3000, 5000], 2000)
        before = ledger.balance_of(TOKEN_A, ROUTER)

        record = distributor.split(CONFIG_ID, TOKEN_A, 0, C)

        assert ledger.balance_of(TOKEN_A, ROUTER) == before
        assert record.amounts == (0, 0)
        assert record.dust_amount == 0
        assert ledger.events_of(SplitExecuted) == [record]

    def test_transfers_follow_recipient_order_then_dust(self):
        ledger, distributor = make_distributor()
        distributor.set_config(ADMIN, CONFIG_ID, [B, A], [5000, 3000], 2000)
        order = []
        for name, account in (("A", A), ("B", B), ("C", C)):
            ledger.register_receive_hook(account, lambda *args, name=name: order.append(name))

        distributor.split(CONFIG_ID, TOKEN_A, 1000, C)

        assert order == ["B", "A", "C"]

    def test_repeated_recipient_is_paid_per_entry(self):
        ledger, distributor = make_distributor()
        distributor.set_config(ADMIN, CONFIG_ID, [A, A], [2500, 2500], 5000)

        distributor.split(CONFIG_ID, TOKEN_A, 1000, C)

        assert balances(ledger, A, C) == [500, 500]


class TestDefaultConfig:
    def test_unknown_and_zero_ids_use_default(self):
        ledger, distributor = make_distributor()
        assert distributor.get_config(DEFAULT_CONFIG_ID) == distributor.default_config
        assert distributor.get_config("0x" + "ff" * 32) == distributor.default_config
        assert not distributor.has_config(DEFAULT_CONFIG_ID)

    def test_default_split_pays_admin_and_beneficiary(self):
        ledger, distributor = make_distributor()

        distributor.split(DEFAULT_CONFIG_ID, TOKEN_A, 1001, C)

        assert balances(ledger, ADMIN, C) == [200, 801]

    def test_custom_default_admin_share(self):
        ledger, distributor = make_distributor(default_admin_share_bps=500)
        assert distributor.default_config.shares_bps == [500]
        assert distributor.default_config.dust_share_bps == 9500

    def test_zero_default_admin_share(self):
        ledger, distributor = make_distributor(default_admin_share_bps=0)
        assert distributor.default_config.recipients == []

        distributor.split(DEFAULT_CONFIG_ID, TOKEN_A, 1000, C)
        assert balances(ledger, ADMIN, C) == [0, 1000]


class TestNullDustRecipient:
    def test_dust_is_stranded_with_holder(self, caplog):
        metrics = RouterMetrics(CollectorRegistry())
        ledger, distributor = make_distributor(holder_balance=1000, metrics=metrics)
        distributor.set_config(ADMIN, CONFIG_ID, [A, B], [3000, 5000], 2000)

        with caplog.at_level("WARNING"):
            record = distributor.split(CONFIG_ID, TOKEN_A, 1000, ZERO_ADDRESS)

        assert balances(ledger, A, B, ZERO_ADDRESS) == [300, 500, 0]
        assert ledger.balance_of(TOKEN_A, ROUTER) == 200
        assert record.dust_amount == 200
        assert record.distributed == 800
        assert "No dust recipient" in caplog.text
        assert metrics.sample("backrun_router_stranded_dust_total", asset=TOKEN_A) == 200

    def test_no_warning_when_nothing_is_stranded(self, caplog):
        ledger, distributor = make_distributor()
        distributor.set_config(ADMIN, CONFIG_ID, [A, B], [5000, 5000], 0)

        with caplog.at_level("WARNING"):
            record = distributor.split(CONFIG_ID, TOKEN_A, 1000, ZERO_ADDRESS)

        assert record.dust_amount == 0
        assert "No dust recipient" not in caplog.text


class TestConfigWrites:
    def test_only_owner_can_write(self):
        ledger, distributor = make_distributor()
        with pytest.raises(UnauthorizedError):
            distributor.set_config(OUTSIDER, CONFIG_ID, [A], [10_000], 0)
        assert not distributor.has_config(CONFIG_ID)

    def test_zero_id_is_reserved(self):
        ledger, distributor = make_distributor()
        with pytest.raises(ConfigurationError):
            distributor.set_config(ADMIN, DEFAULT_CONFIG_ID, [A], [10_000], 0)

    @pytest.mark.parametrize(
        "recipients,shares,dust",
        [
            ([A, B], [5000], 5000),
            ([A], [5000], 4000),
            ([A], [0], 10_000),
            ([ZERO_ADDRESS], [5000], 5000),
            (["0x1234"], [5000], 5000),
            ([A], [11_000], -1000),
        ],
    )
    def test_malformed_configs_rejected(self, recipients, shares, dust):
        ledger, distributor = make_distributor()
        with pytest.raises(ConfigurationError) as exc_info:
            distributor.set_config(ADMIN, CONFIG_ID, recipients, shares, dust)
        assert exc_info.value.details["errors"]
        assert not distributor.has_config(CONFIG_ID)

    def test_write_replaces_and_emits(self):
        ledger, distributor = make_distributor()
        distributor.set_config(ADMIN, CONFIG_ID, [A], [10_000], 0)
        distributor.set_config(ADMIN, CONFIG_ID, [B], [4000], 6000)

        assert distributor.get_config(CONFIG_ID).recipients == [B]
        updates = ledger.events_of(RevenueConfigUpdated)
        assert [u.recipients for u in updates] == [(A,), (B,)]
        assert updates[-1].config_id == CONFIG_ID


recipient_shares = st.lists(st.integers(min_value=1, max_value=2000), max_size=5)


@settings(max_examples=200, deadline=None)
@given(shares=recipient_shares, total=st.integers(min_value=0, max_value=10**30))
def test_split_conserves_total(shares, total):
    ledger, distributor = make_distributor(holder_balance=total)
    recipients = [addr(0x1000 + i) for i in range(len(shares))]
    dust_recipient = addr(0xD0D0)
    distributor.set_config(ADMIN, CONFIG_ID, recipients, shares, 10_000 - sum(shares))

    record = distributor.split(CONFIG_ID, TOKEN_A, total, dust_recipient)

    paid = sum(ledger.balance_of(TOKEN_A, r) for r in set(recipients + [dust_recipient]))
    assert paid == total
    assert ledger.balance_of(TOKEN_A, ROUTER) == 0
    assert record.distributed == total


@settings(max_examples=200, deadline=None)
@given(
    shares=st.lists(st.integers(min_value=-5, max_value=10_005), max_size=4),
    dust=st.integers(min_value=-5, max_value=10_005),
)
def test_accepted_configs_always_total_10000(shares, dust):
    ledger, distributor = make_distributor()
    recipients = [addr(0x2000 + i) for i in range(len(shares))]
    well_formed = all(s > 0 for s in shares) and 0 <= dust and sum(shares) + dust == 10_000

    try:
        distributor.set_config(ADMIN, CONFIG_ID, recipients, shares, dust)
    except ConfigurationError:
        assert not well_formed
        return

    assert well_formed
    stored = distributor.get_config(CONFIG_ID)
    assert sum(stored.shares_bps) + stored.dust_share_bps == 10_000
