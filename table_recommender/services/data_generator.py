"""Synthetic booking generator used to train the table recommendation model."""

from __future__ import annotations

import random
from typing import Optional

from table_recommender.domain.models import (
    AREAS,
    TABLE_NUMBERS,
    BookingRecord,
    class_weight_for,
)
from table_recommender.services.errors import GenerationError
from table_recommender.utils.config import Settings, get_settings
from table_recommender.utils.logger import get_logger


logger = get_logger(__name__)

SYNTHETIC_ID_PREFIX = "synth_"
POSITIVE_LABEL_THRESHOLD = 0.33

# A flag is set when a uniform draw exceeds its threshold.
FLAG_THRESHOLDS = {
    "is_vip": 0.8,
    "handicap_accessible": 0.9,
    "vegetarian": 0.7,
    "requested_booth": 0.6,
    "requested_high_chair": 0.8,
    "requested_stroller": 0.9,
    "is_peak_hour": 0.5,
    "prefers_quiet": 0.7,
    "is_frequent_customer": 0.6,
    "is_weekend": 0.7,
    "seasonal_trend": 0.8,
}


def _flag(rng: random.Random, threshold: float) -> float:
    return 1.0 if rng.random() > threshold else 0.0


def _membership_id(raw_id: int) -> int:
    return abs(hash(raw_id))


def _generate_record(index: int, rng: random.Random) -> BookingRecord:
    is_positive = rng.random() > POSITIVE_LABEL_THRESHOLD
    return BookingRecord(
        booking_id=f"{SYNTHETIC_ID_PREFIX}{index}",
        membership_id=_membership_id(rng.randint(1000, 9999)),
        is_vip=_flag(rng, FLAG_THRESHOLDS["is_vip"]),
        handicap_accessible=_flag(rng, FLAG_THRESHOLDS["handicap_accessible"]),
        vegetarian=_flag(rng, FLAG_THRESHOLDS["vegetarian"]),
        covers=float(rng.randint(1, 9) + rng.random()),
        requested_booth=_flag(rng, FLAG_THRESHOLDS["requested_booth"]),
        requested_high_chair=_flag(rng, FLAG_THRESHOLDS["requested_high_chair"]),
        requested_stroller=_flag(rng, FLAG_THRESHOLDS["requested_stroller"]),
        table_number=rng.choice(TABLE_NUMBERS),
        table_top_size=float(rng.randint(2, 11)),
        area=rng.choice(AREAS),
        label=is_positive,
        visit_hour=float(rng.randint(8, 22)),
        avg_stay_minutes=float(rng.randint(30, 179) + rng.random() * 10),
        class_weight=class_weight_for(is_positive),
        visit_day_of_week=float(rng.randint(1, 7)),
        is_peak_hour=_flag(rng, FLAG_THRESHOLDS["is_peak_hour"]),
        booking_frequency=float(rng.randint(1, 19)),
        prefers_quiet=_flag(rng, FLAG_THRESHOLDS["prefers_quiet"]),
        is_frequent_customer=_flag(rng, FLAG_THRESHOLDS["is_frequent_customer"]),
        table_occupancy_rate=rng.random() * 0.5 + 0.5,
        is_weekend=_flag(rng, FLAG_THRESHOLDS["is_weekend"]),
        special_request_count=float(rng.randint(0, 3)),
        booking_recency=float(rng.randint(1, 59)),
        average_covers_per_booking=float(rng.randint(1, 9) + rng.random()),
        seasonal_trend=_flag(rng, FLAG_THRESHOLDS["seasonal_trend"]),
    )


def generate_synthetic_bookings(
    count: Optional[int] = None,
    rng: Optional[random.Random] = None,
    settings: Optional[Settings] = None,
) -> list[BookingRecord]:
    """Generate ``count`` randomized bookings.

    Flags and the label are drawn independently of each other, so the
    resulting dataset carries no real signal; it exists to exercise the
    feature pipeline and the training loop end to end. Pass a seeded
    ``random.Random`` for reproducible output.
    """

    if count is None:
        resolved_count = (settings or get_settings()).synthetic_row_count
    else:
        resolved_count = count
    if resolved_count < 0:
        raise GenerationError(f"count must be >= 0, got {resolved_count}")

    source = rng if rng is not None else random.Random()
    records = [_generate_record(index, source) for index in range(resolved_count)]
    positives = sum(1 for record in records if record.label)
    logger.info(
        "Synthetic data generated | rows=%s | positives=%s | negatives=%s",
        len(records),
        positives,
        len(records) - positives,
    )
    return records
