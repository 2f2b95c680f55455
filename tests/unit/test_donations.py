"""
Unit tests for the donation workflow pipeline.
"""
import pytest
from datetime import timedelta

from stageboard.domains import donations
from stageboard.domains.donations import SortState
from stageboard.models import AccountingStatus, Donation, DonationStage, ReceiptStatus
from stageboard.utils.exceptions import ValidationError


def make_donation(now, donation_id="DON-90000", stage=DonationStage.PAYMENT_CAPTURED,
                  amount=100, age_hours=1, failed=False):
    captured = now - timedelta(hours=age_hours)
    index = donations.DONATION_STAGES.index(stage)
    return Donation(
        id=donation_id,
        created_at=captured,
        current_stage=stage.value,
        stage_history=donations._history(captured, index),
        flagged=failed,
        flag_reason=donations.RECEIPT_FAILED_REASON if failed else None,
        donor_name="Mary Smith",
        email="mary.smith@gmail.com",
        address="12 Oak St, Chicago, IL 60601",
        amount=amount,
        payment_method="PayPal",
        transaction_id="ABCDEFGHIJ1234567",
    )


class TestDonationStatus:
    """Test receipt and accounting status derived from the stage."""

    def test_receipt_pending_before_sent(self, now):
        donation = make_donation(now, stage=DonationStage.RECEIPT_GENERATED)

        assert donation.receipt_status == ReceiptStatus.PENDING
        assert donation.accounting_status == AccountingStatus.PENDING

    def test_receipt_sent(self, now):
        assert make_donation(now, stage=DonationStage.RECEIPT_SENT).receipt_status == ReceiptStatus.SENT

    def test_booked_into_accounting(self, now):
        donation = make_donation(now, stage=DonationStage.ACCOUNTING_ENTRY)

        assert donation.receipt_status == ReceiptStatus.SENT
        assert donation.accounting_status == AccountingStatus.LOGGED

    def test_flagged_receipt_failed(self, now):
        donation = make_donation(now, stage=DonationStage.DATA_LOGGED, failed=True)

        assert donation.receipt_status == ReceiptStatus.FAILED
        assert donation.flag_reason == donations.RECEIPT_FAILED_REASON

    def test_toggle_flag_uses_default_reason(self, now):
        flagged = donations.toggle_donation_flag(make_donation(now))

        assert flagged.receipt_status == ReceiptStatus.FAILED
        assert donations.toggle_donation_flag(flagged).receipt_status == ReceiptStatus.PENDING

    def test_advance_through_to_accounting(self, now):
        donation = make_donation(now)
        for _ in range(len(donations.DONATION_STAGES) + 1):
            donation = donations.advance_donation(donation, now)

        assert donation.current_stage == DonationStage.ACCOUNTING_ENTRY.value
        assert donation.stage_history[-1].completed
        donations.TRACKER.validate_history(donation)


class TestSorting:
    """Test the donation table sort and filter."""

    @pytest.fixture
    def collection(self, now):
        return [
            make_donation(now, "DON-1", amount=50, age_hours=3),
            make_donation(now, "DON-2", amount=500, age_hours=1, stage=DonationStage.RECEIPT_SENT),
            make_donation(now, "DON-3", amount=10, age_hours=2, stage=DonationStage.DATA_LOGGED, failed=True),
        ]

    def test_default_is_newest_first(self, collection):
        assert [d.id for d in donations.filter_and_sort_donations(collection)] == ["DON-2", "DON-3", "DON-1"]

    def test_sort_by_amount_ascending(self, collection):
        result = donations.filter_and_sort_donations(collection, sort=SortState("amount", "asc"))

        assert [d.amount for d in result] == [10, 50, 500]

    def test_filter_by_receipt_status(self, collection):
        assert [d.id for d in donations.filter_and_sort_donations(collection, "failed")] == ["DON-3"]
        assert [d.id for d in donations.filter_and_sort_donations(collection, "sent")] == ["DON-2"]

    def test_unknown_status_filter(self, collection):
        with pytest.raises(ValidationError):
            donations.filter_and_sort_donations(collection, "refunded")

    def test_invalid_sort(self, collection):
        with pytest.raises(ValidationError):
            donations.filter_and_sort_donations(collection, sort=SortState("donor", "desc"))

    def test_toggle_same_field_flips_direction(self):
        state = donations.toggle_sort(SortState(), "date")

        assert state == SortState("date", "asc")
        assert donations.toggle_sort(state, "date") == SortState("date", "desc")

    def test_toggle_new_field_starts_descending(self):
        assert donations.toggle_sort(SortState("date", "asc"), "amount") == SortState("amount", "desc")

    def test_toggle_unknown_field(self):
        with pytest.raises(ValidationError):
            donations.toggle_sort(SortState(), "email")


class TestDonationStats:
    """Test header figures and the activity feed."""

    def test_stats(self, now):
        collection = [
            make_donation(now, "DON-1", amount=50, stage=DonationStage.ACCOUNTING_ENTRY),
            make_donation(now, "DON-2", amount=25, stage=DonationStage.RECEIPT_SENT),
            make_donation(now, "DON-3", amount=100, stage=DonationStage.DATA_LOGGED, failed=True),
        ]

        assert donations.donation_stats(collection) == {
            "total": 3,
            "total_amount": 175,
            "receipts_sent": 2,
            "pending": 2,
        }

    def test_activity_feed_events(self, now):
        booked = make_donation(now, "DON-1", stage=DonationStage.ACCOUNTING_ENTRY, age_hours=2)
        failed = make_donation(now, "DON-2", stage=DonationStage.DATA_LOGGED, failed=True, age_hours=1)

        feed = donations.activity_feed([booked, failed])

        assert [e.type for e in feed] == ["error", "payment", "accounting", "receipt", "payment"]
        assert feed == sorted(feed, key=lambda e: e.timestamp, reverse=True)
        assert "Mary Smith" in feed[0].message

    def test_activity_feed_is_capped(self, now):
        feed = donations.activity_feed(donations.generate_donations(count=60, now=now))

        assert len(feed) <= donations.FEED_LIMIT


class TestGenerateDonations:
    """Test the seeded demo donations."""

    def test_deterministic(self, now):
        first = donations.generate_donations(now=now)
        second = donations.generate_donations(now=now)

        assert [d.model_dump() for d in first] == [d.model_dump() for d in second]

    def test_seed_changes_data(self, now):
        first = donations.generate_donations(seed=1, now=now)
        second = donations.generate_donations(seed=2, now=now)

        assert [d.donor_name for d in first] != [d.donor_name for d in second]

    def test_generated_donations_are_consistent(self, now):
        generated = donations.generate_donations(count=100, now=now)

        assert len(generated) == 100
        assert generated == sorted(generated, key=lambda d: d.created_at, reverse=True)
        for donation in generated:
            donations.TRACKER.validate_history(donation)
            assert now - timedelta(days=31) <= donation.created_at <= now
            assert donation.payment_method in ("PayPal", "Stripe")
            assert len(donation.transaction_id) == 17
            if donation.flagged:
                assert donation.current_stage == DonationStage.DATA_LOGGED.value
