"""Tests for the recurrence rule text codec."""

import pytest
from datetime import date

from taskcore.errors import FormatError
from taskcore.models.recurrence import RecurrenceFrequency, RecurrenceRule, Weekday
from taskcore.recurrence.codec import decode, encode, same_rule


class TestEncode:
    """Canonical text form of a rule."""

    def test_daily_defaults_only_freq(self):
        assert encode(RecurrenceRule(frequency=RecurrenceFrequency.DAILY)) == "FREQ=DAILY"

    def test_full_weekly_rule(self):
        rule = RecurrenceRule(
            frequency=RecurrenceFrequency.WEEKLY,
            interval=2,
            by_day=[Weekday.WE, Weekday.MO],
            until=date(2024, 12, 31),
        )
        assert encode(rule) == "FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE;UNTIL=20241231"

    def test_count_is_emitted(self):
        rule = RecurrenceRule(frequency=RecurrenceFrequency.MONTHLY, count=3)
        assert encode(rule) == "FREQ=MONTHLY;COUNT=3"

    def test_interval_one_is_omitted(self):
        rule = RecurrenceRule(frequency=RecurrenceFrequency.YEARLY, interval=1)
        assert "INTERVAL" not in encode(rule)


class TestDecode:
    """Tolerant parsing of stored rules."""

    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_blank_means_no_rule(self, text):
        assert decode(text) is None

    def test_prefix_and_case_are_ignored(self):
        rule = decode("rrule:freq=weekly;byday=fr,mo")
        assert rule.frequency == RecurrenceFrequency.WEEKLY
        assert rule.by_day == (Weekday.MO, Weekday.FR)

    def test_field_commas_are_accepted_as_separators(self):
        rule = decode("FREQ=WEEKLY,INTERVAL=3,BYDAY=TU,TH")
        assert rule.interval == 3
        assert rule.by_day == (Weekday.TU, Weekday.TH)

    def test_fields_in_any_order(self):
        rule = decode("COUNT=4;FREQ=DAILY")
        assert rule.frequency == RecurrenceFrequency.DAILY
        assert rule.count == 4

    def test_missing_freq_defaults_to_daily(self):
        assert decode("INTERVAL=2").frequency == RecurrenceFrequency.DAILY

    def test_zero_interval_is_clamped(self):
        assert decode("FREQ=DAILY;INTERVAL=0").interval == 1

    def test_zero_count_means_unbounded(self):
        assert decode("FREQ=DAILY;COUNT=0").count is None

    def test_unknown_weekday_tokens_are_dropped(self):
        assert decode("FREQ=WEEKLY;BYDAY=MO,XX").by_day == (Weekday.MO,)

    def test_until_is_parsed(self):
        assert decode("FREQ=DAILY;UNTIL=20240131").until == date(2024, 1, 31)

    def test_unknown_frequency_raises(self):
        with pytest.raises(FormatError):
            decode("FREQ=HOURLY")

    def test_invalid_until_raises(self):
        with pytest.raises(FormatError):
            decode("FREQ=DAILY;UNTIL=20240230")

    def test_until_and_count_together_raise(self):
        with pytest.raises(FormatError):
            decode("FREQ=DAILY;UNTIL=20240131;COUNT=3")

    def test_decode_of_encode_is_identity(self):
        rule = RecurrenceRule(
            frequency=RecurrenceFrequency.WEEKLY,
            interval=2,
            by_day=[Weekday.SU, Weekday.TU],
            count=10,
        )
        assert decode(encode(rule)) == rule


class TestSameRule:
    def test_equivalent_encodings_compare_equal(self):
        rule = RecurrenceRule(frequency=RecurrenceFrequency.WEEKLY, by_day=["mo", "we"])
        assert same_rule("FREQ=WEEKLY;INTERVAL=1;BYDAY=WE,MO", rule)

    def test_different_interval_is_a_change(self):
        rule = RecurrenceRule(frequency=RecurrenceFrequency.DAILY, interval=2)
        assert not same_rule("FREQ=DAILY", rule)

    def test_undecodable_stored_rule_is_a_change(self):
        rule = RecurrenceRule(frequency=RecurrenceFrequency.DAILY)
        assert not same_rule("FREQ=HOURLY", rule)

    def test_no_stored_rule_is_a_change(self):
        assert not same_rule(None, RecurrenceRule(frequency=RecurrenceFrequency.DAILY))


class TestRecurrenceRuleModel:
    def test_by_day_is_deduplicated_and_ordered(self):
        rule = RecurrenceRule(frequency=RecurrenceFrequency.WEEKLY, by_day=["FR", "mo", Weekday.FR])
        assert rule.by_day == (Weekday.MO, Weekday.FR)

    def test_until_and_count_are_exclusive(self):
        with pytest.raises(ValueError):
            RecurrenceRule(frequency=RecurrenceFrequency.DAILY, until=date(2024, 1, 31), count=2)

    def test_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            RecurrenceRule(frequency=RecurrenceFrequency.DAILY, interval=0)
