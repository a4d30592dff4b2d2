"""Unit tests for reference allocation."""
import pytest

from posts.errors import AllocationFailed
from posts.models import PostRecord
from posts.references import next_reference


def _record(reference: str) -> PostRecord:
    return PostRecord(
        reference=reference,
        title="Some title",
        description="d",
        main_image_path="images/main.jpg",
        publish_at=1_700_000_000,
    )


def test_empty_store_starts_at_one():
    assert next_reference([]) == "00001"


def test_increments_max():
    assert next_reference([_record("00001"), _record("00002")]) == "00003"


def test_uses_max_not_count():
    # A gap (e.g. a record removed by hand) must not cause a collision
    assert next_reference([_record("00001"), _record("00007")]) == "00008"


def test_storage_order_does_not_matter():
    assert next_reference([_record("00010"), _record("00003")]) == "00011"


def test_widens_past_five_digits():
    assert next_reference([_record("99999")]) == "100000"


@pytest.mark.parametrize("bad", ["abc", "", "12a", "-1", "²"])
def test_non_numeric_reference_fails(bad):
    with pytest.raises(AllocationFailed):
        next_reference([_record("00001"), _record(bad)])
