"""Tests for occurrence date generation."""

from datetime import date, timedelta

from taskcore.models.recurrence import RecurrenceFrequency, RecurrenceRule, Weekday
from taskcore.recurrence.generator import default_horizon, generate_dates, occurrence_dates


def _rule(frequency, **kwargs):
    return RecurrenceRule(frequency=frequency, **kwargs)


class TestDaily:
    def test_interval_and_count(self):
        dates = generate_dates(date(2024, 1, 1), _rule(RecurrenceFrequency.DAILY, interval=2, count=5))
        assert dates == [
            date(2024, 1, 1),
            date(2024, 1, 3),
            date(2024, 1, 5),
            date(2024, 1, 7),
            date(2024, 1, 9),
        ]

    def test_open_ended_rule_stops_at_one_year_horizon(self):
        anchor = date(2024, 1, 1)
        dates = generate_dates(anchor, _rule(RecurrenceFrequency.DAILY))

        assert dates[0] == anchor
        assert dates[-1] == date(2025, 1, 1)
        assert len(dates) == 367
        assert all(d <= anchor + timedelta(days=366) for d in dates)

    def test_until_before_horizon_wins(self):
        dates = generate_dates(
            date(2024, 1, 1),
            _rule(RecurrenceFrequency.DAILY, until=date(2024, 1, 4)),
            horizon=date(2024, 6, 1),
        )
        assert dates[-1] == date(2024, 1, 4)

    def test_horizon_before_until_wins(self):
        dates = generate_dates(
            date(2024, 1, 1),
            _rule(RecurrenceFrequency.DAILY, until=date(2024, 12, 31)),
            horizon=date(2024, 1, 3),
        )
        assert dates == [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)]

    def test_iteration_ceiling(self):
        dates = generate_dates(
            date(2024, 1, 1),
            _rule(RecurrenceFrequency.DAILY),
            horizon=date(2030, 1, 1),
            max_iterations=10,
        )
        assert len(dates) == 10


class TestWeekly:
    def test_by_day_until_is_inclusive(self):
        dates = generate_dates(
            date(2024, 1, 1),  # Monday
            _rule(RecurrenceFrequency.WEEKLY, by_day=[Weekday.WE, Weekday.FR], until=date(2024, 1, 31)),
        )
        assert dates == [
            date(2024, 1, 3),
            date(2024, 1, 5),
            date(2024, 1, 10),
            date(2024, 1, 12),
            date(2024, 1, 17),
            date(2024, 1, 19),
            date(2024, 1, 24),
            date(2024, 1, 26),
            date(2024, 1, 31),
        ]
        assert all(d.weekday() in (2, 4) for d in dates)

    def test_without_by_day_repeats_anchor_weekday(self):
        dates = generate_dates(date(2024, 1, 1), _rule(RecurrenceFrequency.WEEKLY, interval=2, count=3))
        assert dates == [date(2024, 1, 1), date(2024, 1, 15), date(2024, 1, 29)]

    def test_by_day_with_interval_skips_off_weeks(self):
        dates = generate_dates(
            date(2024, 1, 1),
            _rule(RecurrenceFrequency.WEEKLY, interval=2, by_day=[Weekday.MO, Weekday.WE], count=4),
        )
        assert dates == [date(2024, 1, 1), date(2024, 1, 3), date(2024, 1, 15), date(2024, 1, 17)]


class TestMonthlyAndYearly:
    def test_monthly_same_day(self):
        dates = generate_dates(date(2024, 1, 15), _rule(RecurrenceFrequency.MONTHLY, count=3))
        assert dates == [date(2024, 1, 15), date(2024, 2, 15), date(2024, 3, 15)]

    def test_monthly_skips_months_without_the_day(self):
        dates = generate_dates(date(2024, 1, 31), _rule(RecurrenceFrequency.MONTHLY, count=4))
        assert dates == [date(2024, 1, 31), date(2024, 3, 31), date(2024, 5, 31), date(2024, 7, 31)]

    def test_monthly_interval(self):
        dates = generate_dates(date(2024, 1, 10), _rule(RecurrenceFrequency.MONTHLY, interval=3, count=3))
        assert dates == [date(2024, 1, 10), date(2024, 4, 10), date(2024, 7, 10)]

    def test_yearly_leap_day_only_in_leap_years(self):
        dates = generate_dates(
            date(2024, 2, 29),
            _rule(RecurrenceFrequency.YEARLY, count=2),
            horizon=date(2030, 1, 1),
        )
        assert dates == [date(2024, 2, 29), date(2028, 2, 29)]

    def test_yearly_leap_day_within_default_horizon(self):
        assert generate_dates(date(2024, 2, 29), _rule(RecurrenceFrequency.YEARLY)) == [date(2024, 2, 29)]


class TestOccurrenceDates:
    def test_default_horizon_is_one_year(self):
        assert default_horizon(date(2024, 3, 10)) == date(2025, 3, 10)

    def test_empty_generation_falls_back_to_anchor(self):
        anchor = date(2024, 1, 10)
        rule = _rule(RecurrenceFrequency.DAILY, until=date(2024, 1, 1))
        assert generate_dates(anchor, rule) == []
        assert occurrence_dates(anchor, rule) == [anchor]
