from __future__ import annotations

import random
from dataclasses import replace

import pytest

from table_recommender.domain.models import (
    AREAS,
    BOOKING_COLUMNS,
    FLAG_COLUMNS,
    TABLE_NUMBERS,
    records_to_frame,
)
from table_recommender.services.data_generator import generate_synthetic_bookings
from table_recommender.services.errors import GenerationError
from table_recommender.utils.config import get_settings


def test_generates_requested_row_count() -> None:
    assert len(generate_synthetic_bookings(250, rng=random.Random(1))) == 250


def test_default_count_matches_reference_dataset_size() -> None:
    assert len(generate_synthetic_bookings()) == 15000


def test_default_count_follows_passed_settings() -> None:
    settings = replace(get_settings(), synthetic_row_count=40)
    assert len(generate_synthetic_bookings(rng=random.Random(8), settings=settings)) == 40


def test_zero_count_returns_empty_list() -> None:
    assert generate_synthetic_bookings(0) == []


def test_negative_count_raises() -> None:
    with pytest.raises(GenerationError):
        generate_synthetic_bookings(-1)


def test_booking_ids_are_synthetic_and_unique() -> None:
    records = generate_synthetic_bookings(500, rng=random.Random(2))

    assert all(record.booking_id.startswith("synth_") for record in records)
    assert len({record.booking_id for record in records}) == len(records)


def test_class_weight_follows_label() -> None:
    for record in generate_synthetic_bookings(500, rng=random.Random(3)):
        assert record.class_weight == (7.0 if record.label else 2.0)


def test_flags_are_exactly_zero_or_one() -> None:
    for record in generate_synthetic_bookings(500, rng=random.Random(4)):
        for column in FLAG_COLUMNS:
            assert getattr(record, column) in (0.0, 1.0)


def test_numeric_ranges() -> None:
    for record in generate_synthetic_bookings(1000, rng=random.Random(5)):
        assert 8 <= record.visit_hour <= 22
        assert 1 <= record.visit_day_of_week <= 7
        assert 0.5 <= record.table_occupancy_rate <= 1.0
        assert 0 <= record.special_request_count <= 3
        assert 1 <= record.booking_recency <= 59
        assert 2 <= record.table_top_size <= 11
        assert 1.0 <= record.covers < 10.0
        assert record.area in AREAS
        assert record.table_number in TABLE_NUMBERS
        assert record.membership_id >= 0


def test_seeded_generator_is_reproducible() -> None:
    first = generate_synthetic_bookings(50, rng=random.Random(9))
    second = generate_synthetic_bookings(50, rng=random.Random(9))

    assert first == second


def test_both_labels_appear_in_large_sample() -> None:
    labels = {record.label for record in generate_synthetic_bookings(2000, rng=random.Random(6))}

    assert labels == {True, False}


def test_records_to_frame_keeps_columns_for_empty_input() -> None:
    frame = records_to_frame([])

    assert frame.empty
    assert tuple(frame.columns) == BOOKING_COLUMNS
