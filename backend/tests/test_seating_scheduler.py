"""Tests for the pure seating scheduler."""

from datetime import datetime, timedelta

import pytest

from hostdesk.models.party import EstimateStatus
from hostdesk.services.seating_scheduler import (
    QueuedParty,
    SchedulerPolicy,
    SeatedTable,
    TableSlot,
    confidence_band,
    fallback_wait,
    minutes_until,
    schedule,
)

NOW = datetime(2026, 3, 6, 19, 0, 0)


class FakeHistory:
    def __init__(self, averages=None, default=45.0, longest_wait=None):
        self.averages = averages or {}
        self.default = default
        self.longest_wait = longest_wait

    def average_duration(self, party_size, window_days=7):
        return self.averages.get(party_size, self.default)

    def longest_observed_wait(self, window_days=7):
        return self.longest_wait


def party(party_id, size, minutes_ago=10):
    return QueuedParty(party_id, size, NOW - timedelta(minutes=minutes_ago))


class TestImmediateSeating:
    def test_best_fit_picks_smallest_table_that_fits(self):
        tables = [TableSlot("t6", 6), TableSlot("t2", 2), TableSlot("t4", 4)]
        results = schedule([party("p1", 3)], tables, {}, FakeHistory(), NOW)

        result = results["p1"]
        assert result.status == EstimateStatus.SEATABLE
        assert result.immediately_seatable == "t4"
        assert result.estimated_wait_minutes == 0
        assert (result.confidence_low, result.confidence_high) == (0, 5)

    def test_equal_capacity_ties_break_on_table_id(self):
        tables = [TableSlot("b", 4), TableSlot("a", 4)]
        results = schedule([party("p1", 4)], tables, {}, FakeHistory(), NOW)
        assert results["p1"].immediately_seatable == "a"

    def test_earlier_party_claims_the_free_table(self):
        tables = [TableSlot("t2", 2)]
        queue = [party("late", 2, minutes_ago=5), party("early", 2, minutes_ago=20)]

        results = schedule(queue, tables, {}, FakeHistory(), NOW)

        assert results["early"].immediately_seatable == "t2"
        assert results["late"].immediately_seatable is None
        assert results["late"].status == EstimateStatus.FALLBACK

    def test_same_check_in_time_orders_by_party_id(self):
        tables = [TableSlot("t2", 2)]
        queue = [party("p-b", 2, minutes_ago=10), party("p-a", 2, minutes_ago=10)]

        results = schedule(queue, tables, {}, FakeHistory(), NOW)

        assert results["p-a"].status == EstimateStatus.SEATABLE
        assert results["p-b"].status != EstimateStatus.SEATABLE

    def test_larger_party_does_not_block_smaller_one_behind_it(self):
        tables = [TableSlot("t2", 2), TableSlot("t4", 4)]
        seated = {"t4": SeatedTable("t4", 4, NOW - timedelta(minutes=10))}
        queue = [party("big", 4, minutes_ago=20), party("small", 2, minutes_ago=5)]

        results = schedule(queue, tables, seated, FakeHistory(), NOW)

        assert results["big"].status == EstimateStatus.TURNOVER
        assert results["small"].immediately_seatable == "t2"

    def test_occupied_tables_are_never_offered(self):
        tables = [TableSlot("t4", 4)]
        seated = {"t4": SeatedTable("t4", 2, NOW - timedelta(minutes=5))}
        results = schedule([party("p1", 2)], tables, seated, FakeHistory(), NOW)
        assert results["p1"].immediately_seatable is None


class TestTurnoverEstimates:
    def test_wait_is_seat_time_plus_average_duration(self):
        tables = [TableSlot("t4", 4)]
        seated = {"t4": SeatedTable("t4", 4, NOW - timedelta(minutes=30))}

        results = schedule([party("p1", 4)], tables, seated, FakeHistory({4: 45.0}), NOW)

        result = results["p1"]
        assert result.status == EstimateStatus.TURNOVER
        assert result.estimated_wait_minutes == 15
        assert (result.confidence_low, result.confidence_high) == (10, 20)
        assert result.expected_free_at == NOW + timedelta(minutes=15)
        assert result.awaited_table_id == "t4"

    def test_partial_minutes_round_up(self):
        tables = [TableSlot("t4", 4)]
        seated = {"t4": SeatedTable("t4", 4, NOW - timedelta(minutes=30, seconds=30))}

        results = schedule([party("p1", 4)], tables, seated, FakeHistory({4: 45.0}), NOW)

        assert results["p1"].estimated_wait_minutes == 15

    def test_overdue_table_means_zero_wait(self):
        tables = [TableSlot("t4", 4)]
        seated = {"t4": SeatedTable("t4", 4, NOW - timedelta(minutes=90))}

        results = schedule([party("p1", 4)], tables, seated, FakeHistory({4: 45.0}), NOW)

        assert results["p1"].status == EstimateStatus.TURNOVER
        assert results["p1"].estimated_wait_minutes == 0
        assert results["p1"].confidence_low == 0

    def test_earliest_turnover_wins(self):
        tables = [TableSlot("t4", 4), TableSlot("t6", 6)]
        seated = {
            "t4": SeatedTable("t4", 4, NOW - timedelta(minutes=10)),
            "t6": SeatedTable("t6", 2, NOW - timedelta(minutes=40)),
        }
        history = FakeHistory({4: 60.0, 2: 50.0})

        results = schedule([party("p1", 3)], tables, seated, history, NOW)

        assert results["p1"].awaited_table_id == "t6"
        assert results["p1"].estimated_wait_minutes == 10

    def test_turnover_ties_break_on_table_id(self):
        tables = [TableSlot("y", 4), TableSlot("x", 4)]
        seated = {
            "x": SeatedTable("x", 4, NOW - timedelta(minutes=20)),
            "y": SeatedTable("y", 4, NOW - timedelta(minutes=20)),
        }
        results = schedule([party("p1", 4)], tables, seated, FakeHistory(), NOW)
        assert results["p1"].awaited_table_id == "x"

    def test_too_small_turnover_is_skipped(self):
        tables = [TableSlot("t2", 2), TableSlot("t6", 6)]
        seated = {
            "t2": SeatedTable("t2", 2, NOW - timedelta(minutes=40)),
            "t6": SeatedTable("t6", 6, NOW - timedelta(minutes=5)),
        }
        results = schedule([party("p1", 5)], tables, seated, FakeHistory(), NOW)
        assert results["p1"].awaited_table_id == "t6"
        assert results["p1"].estimated_wait_minutes == 40


class TestFallbackAndCapacity:
    def test_fallback_uses_ceiling_without_observed_waits(self):
        tables = [TableSlot("t4", 4)]
        queue = [party("p1", 4, minutes_ago=20), party("p2", 4, minutes_ago=10)]

        results = schedule(queue, tables, {}, FakeHistory(), NOW)

        assert results["p2"].status == EstimateStatus.FALLBACK
        assert results["p2"].estimated_wait_minutes == 90
        assert (results["p2"].confidence_low, results["p2"].confidence_high) == (85, 95)

    def test_fallback_pads_longest_observed_wait(self):
        history = FakeHistory(longest_wait=20.2)
        assert fallback_wait(history, SchedulerPolicy()) == 36

    def test_fallback_is_capped(self):
        history = FakeHistory(longest_wait=200)
        assert fallback_wait(history, SchedulerPolicy()) == 90

    def test_party_larger_than_every_table_has_no_capacity(self):
        tables = [TableSlot("t4", 4), TableSlot("t6", 6)]
        results = schedule([party("p1", 8)], tables, {}, FakeHistory(), NOW)

        result = results["p1"]
        assert result.status == EstimateStatus.NO_CAPACITY
        assert result.estimated_wait_minutes is None
        assert not result.has_estimate

    def test_no_tables_means_no_capacity(self):
        results = schedule([party("p1", 2)], [], {}, FakeHistory(), NOW)
        assert results["p1"].status == EstimateStatus.NO_CAPACITY

    def test_no_capacity_party_does_not_consume_tables(self):
        tables = [TableSlot("t2", 2)]
        queue = [party("huge", 10, minutes_ago=30), party("p2", 2, minutes_ago=5)]

        results = schedule(queue, tables, {}, FakeHistory(), NOW)

        assert results["huge"].status == EstimateStatus.NO_CAPACITY
        assert results["p2"].immediately_seatable == "t2"

    def test_empty_queue(self):
        assert schedule([], [TableSlot("t2", 2)], {}, FakeHistory(), NOW) == {}


class TestHelpers:
    @pytest.mark.parametrize(
        "delta, expected",
        [
            (timedelta(0), 0),
            (timedelta(minutes=-5), 0),
            (timedelta(seconds=1), 1),
            (timedelta(minutes=10), 10),
            (timedelta(minutes=10, seconds=1), 11),
        ],
    )
    def test_minutes_until_rounds_up(self, delta, expected):
        assert minutes_until(NOW + delta, NOW) == expected

    def test_confidence_band_floors_at_zero(self):
        assert confidence_band(3, 5) == (0, 8)
        assert confidence_band(12, 5) == (7, 17)
