"""
Unit tests for the voucher fulfillment pipeline.
"""
import re
import pytest
from datetime import timedelta

from stageboard.domains import vouchers
from stageboard.models import FulfillmentStage, Order, VoucherCode, VoucherItem
from stageboard.utils.seeded import SeededRandom

CODE_PATTERN = re.compile(r"^GUD-[ABCDEFGHJKLMNPQRSTUVWXYZ23456789]{4}-[ABCDEFGHJKLMNPQRSTUVWXYZ23456789]{4}$")


@pytest.fixture
def order(now):
    items = [
        VoucherItem(type="Bio Genuss", value=25, quantity=1),
        VoucherItem(type="Gruener Konsum", value=50, quantity=2),
    ]
    return vouchers.create_order("ORD-9000", "Anna Weber", "anna.weber@mail.de", items, now=now)


class TestCreateOrder:
    """Test building new orders."""

    def test_one_code_per_voucher(self, order):
        """Items of quantity 1 and 2 give three codes."""
        assert len(order.voucher_codes) == 3
        assert [c.type for c in order.voucher_codes] == ["Bio Genuss", "Gruener Konsum", "Gruener Konsum"]

    def test_new_order_starts_at_order_received(self, order, now):
        assert order.current_stage == FulfillmentStage.ORDER_RECEIVED.value
        assert len(order.stage_history) == 1
        assert order.stage_history[0].timestamp == now

    def test_codes_not_generated_yet(self, order):
        assert not any(c.generated for c in order.voucher_codes)

    def test_code_format(self, order):
        for code in order.voucher_codes:
            assert CODE_PATTERN.match(code.code)

    def test_totals(self, order):
        """Total is the sum of value times quantity."""
        assert order.total == 125
        assert order.total_quantity == 3

    def test_code_count_must_match_quantity(self, now):
        """An order whose codes do not match its quantities is rejected."""
        with pytest.raises(ValueError):
            Order(
                id="ORD-BAD",
                customer_name="X",
                customer_email="x@mail.de",
                items=[VoucherItem(type="Bio Genuss", value=25, quantity=2)],
                voucher_codes=[VoucherCode(code="GUD-AAAA-AAAA", type="Bio Genuss", value=25)],
                current_stage="order_received",
                stage_history=vouchers.TRACKER.initial_history(now),
            )

    def test_default_code_source_is_stable(self, now):
        """Without an explicit generator the codes depend only on the order id."""
        items = [VoucherItem(type="Bio Genuss", value=25, quantity=2)]
        first = vouchers.create_order("ORD-1234", "A", "a@mail.de", items, now=now)
        second = vouchers.create_order("ORD-1234", "A", "a@mail.de", items, now=now)

        assert [c.code for c in first.voucher_codes] == [c.code for c in second.voucher_codes]


class TestAdvanceOrder:
    """Test fulfillment transitions."""

    def test_three_advances_reach_pdfs_created(self, order, now):
        """Three advances from order_received reach pdfs_created with four history entries."""
        for hour in range(1, 4):
            order = vouchers.advance_order(order, now + timedelta(hours=hour))

        assert order.current_stage == FulfillmentStage.PDFS_CREATED.value
        assert len(order.stage_history) == 4
        assert all(c.generated for c in order.voucher_codes)

    def test_codes_generated_on_entering_codes_stage(self, order, now):
        after_invoice = vouchers.advance_order(order, now)
        after_codes = vouchers.advance_order(after_invoice, now)

        assert not any(c.generated for c in after_invoice.voucher_codes)
        assert all(c.generated for c in after_codes.voucher_codes)

    def test_codes_never_ungenerate(self, order, now):
        """Generated codes stay generated through to delivery and beyond."""
        for _ in range(10):
            order = vouchers.advance_order(order, now)
            if order.current_stage in (FulfillmentStage.CODES_GENERATED.value, FulfillmentStage.DELIVERED.value):
                assert all(c.generated for c in order.voucher_codes)

        assert order.current_stage == FulfillmentStage.DELIVERED.value

    def test_delivered_is_terminal(self, order, now):
        for _ in range(4):
            order = vouchers.advance_order(order, now)

        assert vouchers.advance_order(order, now) is order
        assert order.stage_history[-1].completed is True

    def test_original_order_untouched(self, order, now):
        vouchers.advance_order(order, now)

        assert order.current_stage == FulfillmentStage.ORDER_RECEIVED.value
        assert not any(c.generated for c in order.voucher_codes)


class TestOrderFlag:
    """Test manual flagging."""

    def test_default_reason(self, order):
        flagged = vouchers.toggle_order_flag(order)

        assert flagged.flagged
        assert flagged.flag_reason == vouchers.MANUAL_FLAG_REASON

    def test_unflag(self, order):
        assert vouchers.toggle_order_flag(vouchers.toggle_order_flag(order)).flag_reason is None


class TestGenerateOrders:
    """Test the seeded demo orders."""

    def test_deterministic(self, now):
        first = vouchers.generate_orders(now=now)
        second = vouchers.generate_orders(now=now)

        assert [o.model_dump() for o in first] == [o.model_dump() for o in second]

    def test_count_and_ids(self, now):
        orders = vouchers.generate_orders(count=28, now=now)

        assert len(orders) == 28
        assert orders[0].id == "ORD-0000"
        assert orders[27].id == "ORD-0027"

    def test_different_seed_changes_data(self, now):
        a = vouchers.generate_orders(count=5, seed=1, now=now)
        b = vouchers.generate_orders(count=5, seed=2, now=now)

        assert [o.customer_name for o in a] != [o.customer_name for o in b]

    def test_generated_orders_are_consistent(self, now):
        """Every generated order satisfies the pipeline invariants."""
        for order in vouchers.generate_orders(count=40, now=now):
            vouchers.TRACKER.validate_history(order)
            assert len(order.voucher_codes) == order.total_quantity
            generated = order.stage_history[-1].stage in vouchers.VOUCHER_STAGES.keys[vouchers.CODES_STAGE_INDEX:]
            assert all(c.generated == generated for c in order.voucher_codes)
            assert now - timedelta(days=1) <= order.created_at <= now
            if order.flagged:
                assert order.flag_reason == vouchers.PAYMENT_FLAG_REASON

    def test_voucher_codes_format(self):
        rng = SeededRandom(1)

        assert CODE_PATTERN.match(vouchers.generate_voucher_code(rng))


class TestVoucherStats:
    """Test header figures."""

    def test_stats_for_new_orders(self, order, now):
        delivered = order
        for _ in range(4):
            delivered = vouchers.advance_order(delivered, now)

        stats = vouchers.voucher_stats([order, delivered], now)

        assert stats["orders_today"] == 2
        assert stats["pending_fulfillment"] == 1
        assert stats["completed_today"] == 1
        assert stats["revenue_today"] == 250

    def test_old_orders_not_counted_today(self, order, now):
        stats = vouchers.voucher_stats([order], now + timedelta(days=2))

        assert stats["orders_today"] == 0
        assert stats["revenue_today"] == 0
        assert stats["pending_fulfillment"] == 1
