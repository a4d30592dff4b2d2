"""
Exception hierarchy for the post-ingestion and image-access subsystem.

Categories map one-to-one onto HTTP responses in blog.blog:
    PostValidationError -> 400, message returned verbatim
    NotFoundError       -> 404, generic "Image not found"
    StoreError          -> 500, generic message
    CompressionError    -> 500, generic message

Subclasses exist so callers and logs can tell causes apart even where the
HTTP response deliberately does not (expired token vs missing file vs path
escape all look the same to the client).
"""


class PostboxError(Exception):
    """Base class for all postbox domain errors."""
    pass


# =============================================================================
# Validation (client-caused)
# =============================================================================

class PostValidationError(PostboxError):
    """A submitted post failed validation. The message is safe to show to the client."""
    pass


class InvalidTitle(PostValidationError):
    pass


class InvalidDescription(PostValidationError):
    pass


class MissingMainImage(PostValidationError):
    pass


class InvalidMainImageFormat(PostValidationError):
    pass


class MainImageTooLarge(PostValidationError):
    pass


class InvalidPublishTime(PostValidationError):
    pass


class InvalidAdditionalImage(PostValidationError):
    pass


# =============================================================================
# Not found (image access)
# =============================================================================

class NotFoundError(PostboxError):
    """Requested image is unavailable to this caller."""
    pass


class ImageNotFound(NotFoundError):
    pass


class PathOutsideRoot(ImageNotFound):
    """Image path resolves outside the managed image root."""
    pass


class InvalidOrExpiredToken(NotFoundError):
    pass


# =============================================================================
# Store
# =============================================================================

class StoreError(PostboxError):
    """Record store cannot be read or written."""
    pass


class StoreUnavailable(StoreError):
    pass


class StoreCorrupt(StoreError):
    pass


class AllocationFailed(StoreError):
    """A stored reference is not numeric, so no next reference can be computed."""
    pass


# =============================================================================
# Images
# =============================================================================

class CompressionError(PostboxError):
    pass


class CompressionFailed(CompressionError):
    pass


class IngestionCancelled(PostboxError):
    """Ingestion was aborted before its record was appended."""
    pass
