"""
Unit tests for the in-memory boards.
"""
import pytest
from datetime import datetime

from stageboard.boards import PIPELINES, Board, BoardStore, Pipeline, get_pipeline
from stageboard.domains import tickets
from stageboard.utils.exceptions import NotFoundError, StageboardError

from tests.conftest import FIXED_NOW, make_settings


@pytest.fixture
def store():
    return BoardStore(make_settings(), clock=lambda: FIXED_NOW)


class TestPipelines:
    """Test pipeline lookup."""

    def test_known_pipelines(self):
        assert list(PIPELINES) == ["vouchers", "tickets", "donations", "billing"]

    def test_get_pipeline(self):
        assert get_pipeline("tickets").tracker is tickets.TRACKER

    def test_unknown_pipeline(self):
        with pytest.raises(NotFoundError) as exc_info:
            get_pipeline("payroll")

        assert exc_info.value.details["available"] == list(PIPELINES)


class TestBoardStore:
    """Test board generation and reset."""

    def test_boards_use_configured_counts(self):
        store = BoardStore(
            make_settings(VOUCHER_COUNT=5, TICKET_COUNT=6, DONATION_COUNT=7, BILLING_CUSTOMER_COUNT=3),
            clock=lambda: FIXED_NOW,
        )

        assert len(store.board("vouchers").entities) == 5
        assert len(store.board("tickets").entities) == 6
        assert len(store.board("donations").entities) == 7
        billing_runs = store.board("billing").entities
        assert len(billing_runs) == 1
        assert len(billing_runs[0].customers) == 3

    def test_same_settings_same_boards(self):
        first = BoardStore(make_settings(), clock=lambda: FIXED_NOW)
        second = BoardStore(make_settings(), clock=lambda: FIXED_NOW)

        for name in first.names():
            assert [e.model_dump() for e in first.board(name).entities] == \
                [e.model_dump() for e in second.board(name).entities]

    def test_unknown_board(self, store):
        with pytest.raises(NotFoundError):
            store.board("payroll")

    def test_reset_restores_generated_entities(self, store):
        board = store.board("tickets")
        original = [t.model_dump() for t in board.entities]
        board.transform(lambda items: items[1:])

        store.reset("tickets")

        assert [t.model_dump() for t in store.board("tickets").entities] == original

    def test_generation_failure_is_wrapped(self, monkeypatch):
        def broken(settings, now):
            raise RuntimeError("bad seed")

        store = BoardStore(make_settings(), clock=lambda: FIXED_NOW)
        monkeypatch.setitem(PIPELINES, "donations", Pipeline(
            name="donations",
            title="Donation Workflow",
            tracker=PIPELINES["donations"].tracker,
            generate=broken,
            stats=PIPELINES["donations"].stats,
        ))

        with pytest.raises(StageboardError, match="Failed to generate the donations board"):
            store.reset("donations")


class TestBoard:
    """Test entity replacement and the board view."""

    def test_apply_replaces_entity(self, store):
        board = store.board("tickets")
        ticket = board.entities[0]

        updated = board.apply(ticket.id, lambda t: tickets.confirm_and_dispatch(t, FIXED_NOW))

        assert board.get(ticket.id) is updated
        assert updated.current_stage == "dispatched"

    def test_entities_is_a_copy(self, store):
        board = store.board("vouchers")
        board.entities.clear()

        assert board.entities

    def test_missing_entity(self, store):
        board = store.board("donations")

        with pytest.raises(NotFoundError, match="DON-99999 not found"):
            board.get("DON-99999")
        with pytest.raises(NotFoundError):
            board.apply("DON-99999", lambda d: d)

    def test_transform_dismisses_ticket(self, store):
        board = store.board("tickets")
        first = board.entities[0]

        remaining = board.transform(lambda items: tickets.dismiss_ticket(items, first.id))

        assert len(remaining) == 41
        assert board.entities == remaining
        with pytest.raises(NotFoundError):
            board.get(first.id)

    def test_failed_transform_leaves_board_unchanged(self, store):
        board = store.board("tickets")
        before = board.entities

        with pytest.raises(NotFoundError):
            board.transform(lambda items: tickets.dismiss_ticket(items, "TKT-99999"))

        assert board.entities == before

    def test_view(self, store):
        view = store.board("vouchers").view(FIXED_NOW)

        assert view["pipeline"] == "vouchers"
        assert view["title"] == "Voucher Fulfillment"
        assert [c["key"] for c in view["columns"]] == PIPELINES["vouchers"].tracker.stage_model.keys
        assert sum(view["counts"].values()) == 28
        for column in view["columns"]:
            assert column["count"] == len(column["entities"]) == view["counts"][column["key"]]
            assert all(e["current_stage"] == column["key"] for e in column["entities"])
            dates = [datetime.fromisoformat(e["created_at"]) for e in column["entities"]]
            assert dates == sorted(dates, reverse=True)
        assert set(view["stats"]) == {"orders_today", "pending_fulfillment", "completed_today", "revenue_today"}

    def test_billing_view(self, store):
        view = store.board("billing").view(FIXED_NOW)

        assert view["counts"] == {"review": 1, "invoicing": 0, "financial": 0}
        assert view["stats"]["active"] == 28

    def test_empty_billing_board_has_no_stats(self):
        board = Board(PIPELINES["billing"], [])

        assert board.view(datetime(2025, 1, 1))["stats"] == {}
