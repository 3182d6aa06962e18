"""Record ID generation utilities.

Format: {prefix}_{kind}_{hex}_{timestamp}
Example: store_lot_a1b2c3d4e5f6a7b8_1700000000000
"""

import re
import time
import uuid
from typing import Optional

# Record kinds issued by the store
LOT = "lot"
GRANT = "grant"
PURCHASE = "purchase"
USAGE = "usage"
NOTIFICATION = "notif"
PRODUCT = "prod"
PACKAGE = "pkg"

RECORD_KINDS = (LOT, GRANT, PURCHASE, USAGE, NOTIFICATION, PRODUCT, PACKAGE)

_ID_PATTERN = re.compile(
    r"^[a-zA-Z0-9-]+_(" + "|".join(RECORD_KINDS) + r")_[a-f0-9]{16}_\d{13}$"
)

DEFAULT_PREFIX = "store"


def generate_record_id(kind: str, prefix: Optional[str] = None) -> str:
    """Generate a unique record ID.

    Args:
        kind: One of RECORD_KINDS
        prefix: ID prefix (defaults to "store")

    Returns:
        Unique record ID string

    Raises:
        ValueError: If kind is unknown or prefix contains an underscore
    """
    if kind not in RECORD_KINDS:
        raise ValueError(f"Unknown record kind: '{kind}'. Expected one of {RECORD_KINDS}")

    prefix = prefix or DEFAULT_PREFIX
    if "_" in prefix:
        raise ValueError(f"ID prefix must not contain underscores: '{prefix}'")

    record_hex = uuid.uuid4().hex[:16]
    timestamp = int(time.time() * 1000)

    return f"{prefix}_{kind}_{record_hex}_{timestamp}"


def validate_record_id(record_id: str, kind: Optional[str] = None) -> bool:
    """Validate record ID format.

    Args:
        record_id: ID to validate
        kind: Expected kind, or None for any

    Returns:
        True if the ID is well formed (and of the expected kind)
    """
    if not record_id or not isinstance(record_id, str):
        return False

    match = _ID_PATTERN.match(record_id)
    if not match:
        return False

    return kind is None or match.group(1) == kind


def extract_record_kind(record_id: str) -> Optional[str]:
    """Extract the kind segment of a record ID, or None if malformed."""
    match = _ID_PATTERN.match(record_id or "")
    return match.group(1) if match else None
