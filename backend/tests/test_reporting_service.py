"""
Sales aggregation over a bar's issued tickets.
"""

from datetime import datetime

import pytest

from festgo.errors import NotFound, ValidationError
from festgo.models import Ticket
from festgo.services import cart_service, reporting_service, stock_service, ticket_service
from festgo.time_utils import hour_bucket, parse_iso_datetime


def _sell(principal, event, bar, *tokens, payment_method="cash"):
    for token in tokens:
        cart_service.add_item(principal.id, token, event.id, bartender_name=principal.name)
    ticket, _ = ticket_service.confirm_cart(principal, bar_id=bar.id, payment_method=payment_method)
    return ticket


# =============================================================================
# TOTALS
# =============================================================================


class TestSummary:
    def test_unknown_bar(self, db_session):
        with pytest.raises(NotFound):
            reporting_service.summarize(9999)

    def test_empty_ticket_set(self, db_session, bar):
        summary = reporting_service.summarize(bar.id)

        assert summary["bar"]["id"] == bar.id
        assert summary["totalSales"] == 0
        assert summary["totalTickets"] == 0
        assert summary["totalRevenue"] == 0.0
        assert summary["averageTicketValue"] == 0.0
        assert summary["productsSold"] == []
        assert summary["productsSoldByPaymentMethod"] == {}
        assert summary["salesByUser"] == []
        assert summary["salesByPaymentMethod"] == {}
        assert summary["hourlyDistribution"] == []

    def test_summary_totals(self, app, db_session, event, stocked_bar, products, bartender, other_bartender):
        t1 = _sell(bartender, event, stocked_bar, "CCC3", "CE2", payment_method="cash")
        t2 = _sell(bartender, event, stocked_bar, "AG4", payment_method="card")
        t3 = _sell(other_bartender, event, stocked_bar, "CE", payment_method="cash")

        summary = reporting_service.summarize(stocked_bar.id)
        revenue_cents = t1.total_cents + t2.total_cents + t3.total_cents

        assert summary["totalTickets"] == 3
        assert summary["totalSales"] == 3 + 2 + 4 + 1
        assert summary["totalRevenue"] == revenue_cents / 100
        assert summary["averageTicketValue"] == round(revenue_cents / 3 / 100, 2)

        by_code = {row["productName"]: row for row in summary["productsSold"]}
        assert by_code["Coca Cola"]["quantitySold"] == 3
        assert by_code["Cerveza"]["quantitySold"] == 3
        assert by_code["Agua"]["revenue"] == 10.0
        # Highest revenue first
        assert summary["productsSold"][0]["productName"] == "Coca Cola"
        assert sum(row["percentage"] for row in summary["productsSold"]) == pytest.approx(100, abs=0.05)

        by_method = summary["salesByPaymentMethod"]
        assert set(by_method) == {"cash", "card"}
        assert by_method["cash"] == (t1.total_cents + t3.total_cents) / 100
        assert sum(by_method.values()) == pytest.approx(summary["totalRevenue"])

        cash_products = {row["productName"]: row["quantitySold"] for row in summary["productsSoldByPaymentMethod"]["cash"]}
        assert cash_products == {"Coca Cola": 3, "Cerveza": 3}
        for rows in summary["productsSoldByPaymentMethod"].values():
            assert sum(row["percentage"] for row in rows) == pytest.approx(100, abs=0.05)

        users = {row["userId"]: row for row in summary["salesByUser"]}
        assert users[bartender.id]["ticketCount"] == 2
        assert users[bartender.id]["userName"] == "Juan"
        assert users[other_bartender.id]["totalSales"] == t3.total_cents / 100

    def test_hourly_distribution(self, db_session, event, stocked_bar, products, bartender):
        tickets = [_sell(bartender, event, stocked_bar, "CE") for _ in range(3)]
        tickets[0].created_at = datetime(2026, 10, 17, 23, 15)
        tickets[1].created_at = datetime(2026, 10, 18, 1, 5)
        tickets[2].created_at = datetime(2026, 10, 18, 23, 59)
        db_session.commit()

        hourly = reporting_service.summarize(stocked_bar.id)["hourlyDistribution"]

        assert [row["hour"] for row in hourly] == ["01:00", "23:00"]
        assert [row["ticketCount"] for row in hourly] == [1, 2]
        assert sum(row["revenue"] for row in hourly) == pytest.approx(sum(t.total_cents for t in tickets) / 100)


# =============================================================================
# FILTERS
# =============================================================================


class TestSummaryFilters:
    def test_range_filter(self, db_session, event, stocked_bar, products, bartender):
        early = _sell(bartender, event, stocked_bar, "CE")
        late = _sell(bartender, event, stocked_bar, "CCC")
        early.created_at = datetime(2026, 10, 17, 22, 0)
        late.created_at = datetime(2026, 10, 18, 2, 0)
        db_session.commit()

        summary = reporting_service.summarize(stocked_bar.id, start="2026-10-18T00:00:00Z")
        assert summary["totalTickets"] == 1
        assert summary["productsSold"][0]["productName"] == "Coca Cola"

        summary = reporting_service.summarize(stocked_bar.id, end="2026-10-17T23:00:00Z")
        assert summary["totalTickets"] == 1
        assert summary["productsSold"][0]["productName"] == "Cerveza"

        with pytest.raises(ValidationError):
            reporting_service.summarize(stocked_bar.id, start="yesterday")
        with pytest.raises(ValidationError):
            reporting_service.summarize(stocked_bar.id, start="2026-10-19T00:00:00Z", end="2026-10-18T00:00:00Z")

    def test_voided_tickets_are_excluded(self, db_session, event, stocked_bar, products, bartender, admin):
        kept = _sell(bartender, event, stocked_bar, "CE")
        voided = _sell(bartender, event, stocked_bar, "CCC5")
        ticket_service.void_ticket(voided.id, admin)

        summary = reporting_service.summarize(stocked_bar.id)

        assert summary["totalTickets"] == 1
        assert summary["totalRevenue"] == kept.total_cents / 100
        assert [row["productName"] for row in summary["productsSold"]] == ["Cerveza"]
        assert db_session.query(Ticket).count() == 2

    def test_other_bars_are_excluded(self, db_session, event, stocked_bar, second_bar, products, bartender):
        stock_service.assign(products["CE"].id, second_bar.id, 5)
        _sell(bartender, event, second_bar, "CE")

        assert reporting_service.summarize(stocked_bar.id)["totalTickets"] == 0
        assert reporting_service.summarize(second_bar.id)["totalTickets"] == 1


# =============================================================================
# RANGE BOUNDS / BUCKETS
# =============================================================================


class TestTimeHelpers:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("2026-10-18T02:00:00Z", datetime(2026, 10, 18, 2, 0)),
            ("2026-10-18T02:00:00z", datetime(2026, 10, 18, 2, 0)),
            ("2026-10-18T04:00:00+02:00", datetime(2026, 10, 18, 2, 0)),
            ("2026-10-18T02:00", datetime(2026, 10, 18, 2, 0)),
            ("2026-10-18", datetime(2026, 10, 18)),
        ],
    )
    def test_parse_range_bound(self, raw, expected):
        assert parse_iso_datetime(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_blank_bound_is_open(self, raw):
        assert parse_iso_datetime(raw) is None

    def test_hour_bucket(self):
        assert hour_bucket(0) == "00:00"
        assert hour_bucket(23.0) == "23:00"
