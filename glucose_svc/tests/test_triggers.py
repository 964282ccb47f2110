"""
Tests for trigger extraction and recurring-pattern detection.
"""
from datetime import datetime, timedelta, timezone

from services.triggers import (
    LookbackWindow,
    extract_tokens,
    find_patterns,
    format_top_triggers,
    top_triggers,
)
from models.reading import Category, Reading

NOW = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)


def make_reading(food=None, activity=None, category=Category.ABNORMAL, hours_ago=1, patient_id="p1"):
    return Reading(
        id=None,
        patient_id=patient_id,
        value=150.0 if category == Category.ABNORMAL else 100.0,
        timestamp=NOW - timedelta(hours=hours_ago),
        category=category,
        food_intake=food,
        activity=activity,
    )


# =============================================================================
# TOKENIZER
# =============================================================================

def test_extract_tokens_combines_food_and_activity():
    reading = make_reading(food="Pizza with extra cheese", activity="Sedentary")
    assert extract_tokens(reading) == ["pizza", "extra", "cheese", "sedentary"]


def test_extract_tokens_splits_on_commas_and_whitespace():
    reading = make_reading(food="pizza,soda ,  fries\tcake")
    assert extract_tokens(reading) == ["pizza", "soda", "fries", "cake"]


def test_extract_tokens_drops_short_words_and_stopwords():
    reading = make_reading(food="an egg after some rice", activity="ran before bed")
    assert extract_tokens(reading) == ["egg", "rice", "ran", "bed"]


def test_extract_tokens_keeps_duplicates():
    reading = make_reading(food="pizza, pizza", activity="pizza party")
    assert extract_tokens(reading) == ["pizza", "pizza", "pizza", "party"]


def test_extract_tokens_with_no_text():
    assert extract_tokens(make_reading()) == []
    assert extract_tokens(make_reading(food="", activity="  ")) == []


def test_extract_tokens_min_length_is_configurable():
    reading = make_reading(food="egg rice")
    assert extract_tokens(reading, min_length=4) == ["rice"]


def test_extract_tokens_custom_stopwords():
    reading = make_reading(food="pizza with cheese")
    assert extract_tokens(reading, stopwords={"Cheese"}) == ["pizza", "with"]


# =============================================================================
# FREQUENCY ANALYSIS
# =============================================================================

def test_three_occurrences_make_a_pattern():
    readings = [make_reading(food="pasta", hours_ago=h) for h in (1, 2, 3)]
    result = find_patterns(readings, repetition_threshold=3, now=NOW)
    assert result.patterns == ["pasta"]
    assert result.counts == {"pasta": 3}
    assert result.readings_analysed == 3


def test_two_occurrences_are_not_a_pattern():
    readings = [make_reading(food="pasta", hours_ago=h) for h in (1, 2)]
    result = find_patterns(readings, repetition_threshold=3, now=NOW)
    assert result.patterns == []
    assert result.counts == {"pasta": 2}


def test_only_abnormal_readings_count():
    readings = [
        make_reading(food="pasta", hours_ago=1),
        make_reading(food="pasta", hours_ago=2),
        make_reading(food="pasta", category=Category.NORMAL, hours_ago=3),
        make_reading(food="pasta", category=Category.BORDERLINE, hours_ago=4),
    ]
    result = find_patterns(readings, now=NOW)
    assert result.patterns == []
    assert result.readings_analysed == 2


def test_readings_outside_lookback_days_ignored():
    readings = [
        make_reading(food="pasta", hours_ago=1),
        make_reading(food="pasta", hours_ago=2),
        make_reading(food="pasta", hours_ago=24 * 31),
    ]
    result = find_patterns(readings, window=LookbackWindow(days=30), now=NOW)
    assert result.patterns == []


def test_future_readings_ignored():
    readings = [make_reading(food="pasta", hours_ago=h) for h in (1, 2, -5)]
    result = find_patterns(readings, now=NOW)
    assert result.patterns == []


def test_max_readings_keeps_most_recent():
    readings = [
        make_reading(food="soda", hours_ago=1),
        make_reading(food="soda", hours_ago=2),
        make_reading(food="pasta", hours_ago=3),
        make_reading(food="pasta", hours_ago=4),
        make_reading(food="pasta", hours_ago=5),
    ]
    result = find_patterns(
        readings,
        window=LookbackWindow(days=30, max_readings=4),
        repetition_threshold=2,
        now=NOW
    )
    assert result.readings_analysed == 4
    assert result.counts == {"soda": 2, "pasta": 2}
    assert result.patterns == ["soda", "pasta"]


def test_patterns_ordered_by_count_then_first_seen():
    readings = [
        make_reading(food="soda pizza", hours_ago=1),
        make_reading(food="pizza soda", hours_ago=2),
        make_reading(food="pizza soda", hours_ago=3),
        make_reading(food="pizza", hours_ago=4),
    ]
    result = find_patterns(readings, now=NOW)
    assert result.patterns == ["pizza", "soda"]


def test_ties_keep_first_seen_order_of_newest_reading():
    # Passed oldest first; the newest reading mentions soda first
    readings = [
        make_reading(food="soda pizza", hours_ago=3),
        make_reading(food="pizza soda", hours_ago=2),
        make_reading(food="soda pizza", hours_ago=1),
    ]
    result = find_patterns(readings, now=NOW)
    assert result.patterns == ["soda", "pizza"]


def test_repeated_token_in_one_reading_counts_each_time():
    readings = [make_reading(food="cake cake cake")]
    result = find_patterns(readings, repetition_threshold=3, now=NOW)
    assert result.patterns == ["cake"]


def test_no_readings():
    result = find_patterns([], now=NOW)
    assert result.patterns == []
    assert result.counts == {}
    assert result.readings_analysed == 0


# =============================================================================
# TOP TRIGGERS
# =============================================================================

def test_top_triggers_stable_ordering():
    counts = {"rice": 2, "soda": 5, "cake": 2, "tea": 1}
    assert top_triggers(counts, 3) == [("soda", 5), ("rice", 2), ("cake", 2)]


def test_top_triggers_with_fewer_tokens_than_k():
    assert top_triggers({"soda": 1}, 3) == [("soda", 1)]
    assert top_triggers({}, 3) == []
    assert top_triggers({"soda": 1}, 0) == []


def test_format_top_triggers():
    assert format_top_triggers([("pizza", 3), ("soda", 2)]) == "pizza (3), soda (2)"
    assert format_top_triggers([]) == "None detected"
