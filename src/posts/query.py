"""Read-side view of stored posts."""
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from posts.models import PostRecord
from posts.store import RecordStore

logger = logging.getLogger(__name__)

# Characters dropped from titles before slugging
SLUG_REMOVE_PATTERN = re.compile(r"[*+~.()'\"!:@]")
WHITESPACE_PATTERN = re.compile(r"\s+")


def slugify_title(title: str) -> str:
    """Lowercase, punctuation-free, hyphen-separated slug of a title.

    Example:
        >>> slugify_title("Hello  World (Part 2)!")
        'hello-world-part-2'
    """
    cleaned = SLUG_REMOVE_PATTERN.sub("", title).strip()
    return WHITESPACE_PATTERN.sub("-", cleaned).lower()


def format_timestamp(timestamp: int) -> Optional[str]:
    """Render Unix seconds as a UTC ISO-8601 string, e.g. 2024-01-15T10:00:00.000Z.

    Returns None for a timestamp datetime cannot represent.
    """
    try:
        moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (ValueError, OverflowError, OSError) as e:
        logger.warning(f"Cannot render publish time {timestamp}: {e}")
        return None
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def decorate_post(record: PostRecord) -> Dict[str, Any]:
    decorated = record.to_dict()
    decorated["date_time"] = format_timestamp(record.publish_at)
    decorated["title_slug"] = slugify_title(record.title)
    return decorated


class PostQueryService:
    """Lists stored posts with presentation fields added."""

    def __init__(self, store: RecordStore):
        self.store = store

    def list_posts(self) -> List[Dict[str, Any]]:
        """Return every post, decorated, in storage order.

        Raises:
            StoreCorrupt: Propagated from the record store
        """
        return [decorate_post(record) for record in self.store.read_all()]
