"""
Unit tests for listing query construction (no database, no HTTP).
"""

from datetime import date, datetime

import pytest

from errorlog.services.filters import (
    DEFAULT_LIMIT,
    EventFilter,
    Pagination,
    build_event_query,
    parse_level,
)
from errorlog.utils.parsers import MAX_INT64, day_end, day_start, parse_calendar_date, parse_int


class TestLevel:
    @pytest.mark.parametrize("level", ["error", "warning", "info"])
    def test_known_levels_kept(self, level):
        assert build_event_query(level=level).filter.level == level

    @pytest.mark.parametrize("level", ["critical", "ERROR", " error", "", "warn"])
    def test_unknown_levels_dropped(self, level):
        query = build_event_query(level=level)
        assert query.filter.level is None
        assert query.filter == build_event_query().filter

    def test_parse_level_none(self):
        assert parse_level(None) is None


class TestDates:
    def test_single_day_range_covers_whole_day(self):
        f = build_event_query(start_date="2024-01-01", end_date="2024-01-01").filter
        assert f.created_gte == datetime(2024, 1, 1, 0, 0, 0)
        assert f.created_lte == datetime(2024, 1, 1, 23, 59, 59, 999000)

    def test_start_only_is_open_ended(self):
        f = build_event_query(start_date="2024-03-10").filter
        assert f.created_gte == datetime(2024, 3, 10)
        assert f.created_lte is None
        assert f.as_predicate() == {"createdAt": {"gte": datetime(2024, 3, 10)}}

    def test_end_only_is_open_ended(self):
        f = build_event_query(end_date="2024-03-10").filter
        assert f.created_gte is None
        assert f.created_lte == datetime(2024, 3, 10, 23, 59, 59, 999000)

    def test_datetime_input_keeps_calendar_day(self):
        f = build_event_query(end_date="2024-03-10T08:15:00").filter
        assert f.created_lte == datetime(2024, 3, 10, 23, 59, 59, 999000)

    @pytest.mark.parametrize("raw", ["yesterday", "2024-13-01", "", "   "])
    def test_unparseable_dates_are_dropped(self, raw):
        f = build_event_query(start_date=raw, end_date=raw).filter
        assert f.created_gte is None and f.created_lte is None

    def test_timezone_shifts_boundaries_to_utc(self):
        # New York is UTC-5 in January
        f = build_event_query(start_date="2024-01-01", end_date="2024-01-01", tz="America/New_York").filter
        assert f.created_gte == datetime(2024, 1, 1, 5, 0, 0)
        assert f.created_lte == datetime(2024, 1, 2, 4, 59, 59, 999000)

    def test_day_helpers(self):
        assert day_start(date(2024, 2, 29)) == datetime(2024, 2, 29)
        assert day_end(date(2024, 2, 29)) == datetime(2024, 2, 29, 23, 59, 59, 999000)
        assert parse_calendar_date("2024-02-29") == date(2024, 2, 29)


class TestPagination:
    def test_defaults(self):
        assert build_event_query().pagination == Pagination(limit=50, offset=0)
        assert DEFAULT_LIMIT == 50

    @pytest.mark.parametrize("raw", ["abc", "12abc", "1.5", "", "-3"])
    def test_bad_values_fall_back(self, raw):
        assert build_event_query(limit=raw, offset=raw).pagination == Pagination(limit=50, offset=0)

    def test_numeric_strings(self):
        assert build_event_query(limit="10", offset=" 20 ").pagination == Pagination(limit=10, offset=20)

    def test_zero_limit_allowed(self):
        assert build_event_query(limit="0").pagination.limit == 0

    def test_ceiling(self):
        assert build_event_query(limit="100000", max_limit=500).pagination.limit == 500
        assert build_event_query(limit="100000").pagination.limit == 100000

    def test_parse_int(self):
        assert parse_int(None, 7) == 7
        assert parse_int("42", 7) == 42

    def test_values_beyond_64_bits_are_clamped(self):
        huge = "99999999999999999999"

        assert parse_int(huge, 7) == MAX_INT64
        assert build_event_query(offset=huge).pagination.offset == MAX_INT64
        assert build_event_query(limit=huge, max_limit=10**30).pagination.limit == MAX_INT64


class TestComposition:
    def test_all_filters_conjoin(self):
        query = build_event_query(
            level="warning",
            start_date="2024-01-01",
            end_date="2024-01-31",
            server_url="https://api.example.com",
            user_id="u1",
        )
        assert query.filter.as_predicate() == {
            "level": "warning",
            "serverUrl": "https://api.example.com",
            "userId": "u1",
            "createdAt": {
                "gte": datetime(2024, 1, 1),
                "lte": datetime(2024, 1, 31, 23, 59, 59, 999000),
            },
        }
        assert len(query.filter.clauses()) == 5

    def test_no_filters(self):
        f = build_event_query().filter
        assert f == EventFilter()
        assert f.as_predicate() == {}
        assert f.clauses() == []

    def test_owner_overrides_user_id(self):
        f = build_event_query(user_id="someone-else", level="info", owner_id="me").filter
        assert f.user_id == "me"
        assert f.level == "info"

    def test_empty_strings_are_absent(self):
        f = build_event_query(server_url="", user_id="").filter
        assert f.as_predicate() == {}

    def test_deterministic(self):
        kwargs = dict(level="error", start_date="2024-05-01", limit="5", offset="x", server_url="s")
        assert build_event_query(**kwargs) == build_event_query(**kwargs)
