"""Post reference allocation."""
import logging
from typing import Iterable

from posts.errors import AllocationFailed
from posts.models import PostRecord

logger = logging.getLogger(__name__)

REFERENCE_WIDTH = 5
FIRST_REFERENCE = "1".zfill(REFERENCE_WIDTH)


def next_reference(records: Iterable[PostRecord]) -> str:
    """Return the reference for the next post.

    The next value is the highest existing reference plus one, so gaps left by
    removed records are never refilled. References wider than five digits are
    not truncated.

    Raises:
        AllocationFailed: If any stored reference is not a decimal number
    """
    highest = None
    for record in records:
        reference = record.reference
        if not isinstance(reference, str) or not (reference.isascii() and reference.isdigit()):
            logger.error(f"Non-numeric reference in record store: {reference!r}")
            raise AllocationFailed("Failed to get the next reference number")
        value = int(reference)
        if highest is None or value > highest:
            highest = value

    if highest is None:
        return FIRST_REFERENCE
    return str(highest + 1).zfill(REFERENCE_WIDTH)
