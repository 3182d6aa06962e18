"""Utility functions and helpers for the store."""

from credit_store.utils.id_generator import (
    extract_record_kind,
    generate_record_id,
    validate_record_id,
)
from credit_store.utils.time_utils import (
    days_remaining,
    days_to_millis,
    duration_to_millis,
    expiry_from,
    format_date,
    millis_to_iso,
)

__all__ = [
    # Record IDs
    "generate_record_id",
    "validate_record_id",
    "extract_record_kind",
    # Time arithmetic
    "days_to_millis",
    "expiry_from",
    "duration_to_millis",
    "millis_to_iso",
    "format_date",
    "days_remaining",
]
