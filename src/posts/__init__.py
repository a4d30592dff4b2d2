"""Post Ingestion and Image Access Package.

This package holds the core of postbox: everything between an HTTP request
and the files on disk.

Key Components:
    validate_post: Ordered validation of a submitted post
    ImageNormalizer: Re-encodes uploads as JPEG at a fixed quality
    next_reference: Allocates the next zero-padded post reference
    RecordStore: Atomic, lock-protected JSON document of post records
    BlobStorage: Image files confined to the managed image root
    AccessTokenService: Signed, short-lived tokens for image retrieval
    PostQueryService: Decorated, read-only listing of posts
    PostIngestor: The full ingestion pipeline
"""
from .blobs import BlobStorage
from .images import ImageNormalizer, normalize_image
from .ingest import PostIngestor
from .models import ImageUpload, PostRecord
from .query import PostQueryService, slugify_title
from .references import next_reference
from .store import RecordStore
from .tokens import AccessTokenService
from .validation import validate_post

__all__ = [
    "AccessTokenService",
    "BlobStorage",
    "ImageNormalizer",
    "ImageUpload",
    "PostIngestor",
    "PostQueryService",
    "PostRecord",
    "RecordStore",
    "next_reference",
    "normalize_image",
    "slugify_title",
    "validate_post",
]
