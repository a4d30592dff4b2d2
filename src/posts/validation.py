"""
Validation of submitted blog posts.

validate_post() is a pure function: it inspects the submitted fields and
returns the first failing rule as an exception instance, or None. Rules are
checked in a fixed order and only the first failure is reported:

    1. title              -> InvalidTitle
    2. description        -> InvalidDescription
    3. main image present -> MissingMainImage
    4. main image type    -> InvalidMainImageFormat
    5. main image size    -> MainImageTooLarge
    6. publish time       -> InvalidPublishTime (also past year 9999)
    7. additional images  -> InvalidAdditionalImage

The transport layer applies its own type/size filter before this runs; this
module is the authoritative check.
"""
import re
import time
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from posts.errors import (
    InvalidAdditionalImage,
    InvalidDescription,
    InvalidMainImageFormat,
    InvalidPublishTime,
    InvalidTitle,
    MainImageTooLarge,
    MissingMainImage,
    PostValidationError,
)

TITLE_PATTERN = re.compile(r"[A-Za-z0-9\s]+")
TITLE_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 500
JPEG_CONTENT_TYPE = "image/jpeg"
MAX_IMAGE_BYTES = 1024 * 1024
MAX_ADDITIONAL_IMAGES = 5

# ASCII digits only, bounded so int() never hits the string conversion limit
_TIMESTAMP_PATTERN = re.compile(r"\s*[0-9]{1,20}\s*")

# Last second datetime can represent (9999-12-31T23:59:59Z)
MAX_PUBLISH_TIME = int(datetime(9999, 12, 31, 23, 59, 59, tzinfo=timezone.utc).timestamp())


def is_valid_title(title: Any) -> bool:
    if not isinstance(title, str):
        return False
    if not TITLE_MIN_LENGTH <= len(title) <= TITLE_MAX_LENGTH:
        return False
    return TITLE_PATTERN.fullmatch(title) is not None


def parse_publish_time(value: Any) -> Optional[int]:
    """Coerce a submitted publish time to integer Unix seconds.

    Accepts ints and strings of ASCII decimal digits (form fields arrive as
    strings). Returns None for anything else, including bools and floats.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _TIMESTAMP_PATTERN.fullmatch(value):
        return int(value)
    return None


def _is_acceptable_image(image: Any, max_bytes: int) -> bool:
    content_type = getattr(image, "content_type", None)
    size = getattr(image, "size", None)
    if content_type != JPEG_CONTENT_TYPE:
        return False
    return isinstance(size, int) and size <= max_bytes


def validate_post(
    title: Any,
    description: Any,
    main_image: Any,
    additional_images: Optional[Sequence[Any]],
    publish_at: Any,
    now: Optional[float] = None,
    max_image_bytes: int = MAX_IMAGE_BYTES,
    max_additional_images: int = MAX_ADDITIONAL_IMAGES,
) -> Optional[PostValidationError]:
    """Check a candidate post and return the first failure, if any.

    Args:
        title: Post title
        description: Post description
        main_image: ImageUpload (or any object with content_type and size)
        additional_images: Optional list/tuple of ImageUpload
        publish_at: Unix seconds as int or digit string
        now: Reference time in Unix seconds, defaults to time.time()
        max_image_bytes: Per-image size limit
        max_additional_images: Maximum length of additional_images

    Returns:
        A PostValidationError subclass instance, or None when the post is valid
    """
    if not is_valid_title(title):
        return InvalidTitle("Invalid title")

    if not isinstance(description, str) or not description or len(description) > DESCRIPTION_MAX_LENGTH:
        return InvalidDescription("Invalid description")

    if not main_image:
        return MissingMainImage("Main image is required")

    if getattr(main_image, "content_type", None) != JPEG_CONTENT_TYPE:
        return InvalidMainImageFormat("Main image must be in JPEG format")

    size = getattr(main_image, "size", None)
    if not isinstance(size, int) or size > max_image_bytes:
        return MainImageTooLarge("Main image size exceeds 1MB limit")

    if now is None:
        now = time.time()
    timestamp = parse_publish_time(publish_at)
    if timestamp is None or timestamp < now or timestamp > MAX_PUBLISH_TIME:
        return InvalidPublishTime("Invalid date_time")

    if additional_images is not None:
        if not isinstance(additional_images, (list, tuple)) or len(additional_images) > max_additional_images:
            return InvalidAdditionalImage("Invalid additional_images")

        for image in additional_images:
            if not _is_acceptable_image(image, max_image_bytes):
                return InvalidAdditionalImage("Invalid additional image(s)")

    return None
