"""
Post ingestion pipeline.

Ingesting a post runs these steps:
    1. Validate the submission (no side effects on failure)
    2. Normalize and write every image in parallel
    3. Inside the record store's critical section: re-check the publish time
       and cancellation, allocate the reference, append the record

If anything fails after step 2 has started, the blobs written for this post
are removed before the error propagates, so no record ever references a
missing blob and failed posts leave nothing behind on a best-effort basis.
"""
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from posts.blobs import BlobStorage, make_blob_filename
from posts.errors import IngestionCancelled, InvalidPublishTime, StoreUnavailable
from posts.images import ImageNormalizer
from posts.models import ImageUpload, PostRecord
from posts.store import RecordStore
from posts.validation import (
    MAX_ADDITIONAL_IMAGES,
    MAX_IMAGE_BYTES,
    parse_publish_time,
    validate_post,
)

logger = logging.getLogger(__name__)


class PostIngestor:
    """Validates, stores images for, and records new posts.

    Attributes:
        store: Record store receiving the post records
        blobs: Blob storage receiving normalized images
        normalizer: Image normalizer applied to every upload
    """

    def __init__(
        self,
        store: RecordStore,
        blobs: BlobStorage,
        normalizer: ImageNormalizer,
        max_image_bytes: int = MAX_IMAGE_BYTES,
        max_additional_images: int = MAX_ADDITIONAL_IMAGES,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.blobs = blobs
        self.normalizer = normalizer
        self.max_image_bytes = max_image_bytes
        self.max_additional_images = max_additional_images
        self._clock = clock

    @classmethod
    def from_settings(cls, settings, store: RecordStore, blobs: BlobStorage,
                      clock: Callable[[], float] = time.time) -> "PostIngestor":
        return cls(
            store,
            blobs,
            ImageNormalizer.from_settings(settings),
            max_image_bytes=settings.max_image_bytes,
            max_additional_images=settings.max_additional_images,
            clock=clock,
        )

    def ingest(
        self,
        title: str,
        description: str,
        main_image: Optional[ImageUpload],
        additional_images: Optional[Sequence[ImageUpload]],
        publish_at,
        cancel_event: Optional[threading.Event] = None,
    ) -> PostRecord:
        """Ingest one post and return the stored record.

        Raises:
            PostValidationError: Submission rejected (nothing written)
            CompressionFailed: An image could not be decoded/encoded
            StoreError: Blob or record store failure
            IngestionCancelled: cancel_event was set before the append
        """
        error = validate_post(
            title,
            description,
            main_image,
            additional_images,
            publish_at,
            now=self._clock(),
            max_image_bytes=self.max_image_bytes,
            max_additional_images=self.max_additional_images,
        )
        if error is not None:
            logger.info(f"Rejected post submission: {error}")
            raise error

        timestamp = parse_publish_time(publish_at)
        self._check_cancelled(cancel_event)

        image_paths = self._store_images(main_image, list(additional_images or []))
        try:
            def build(reference: str) -> PostRecord:
                self._check_cancelled(cancel_event)
                if timestamp < self._clock():
                    raise InvalidPublishTime("Invalid date_time")
                return PostRecord(
                    reference=reference,
                    title=title,
                    description=description,
                    main_image_path=image_paths[0],
                    additional_image_paths=tuple(image_paths[1:]),
                    publish_at=timestamp,
                )

            record = self.store.allocate_and_append(build)
        except Exception:
            logger.warning(f"Post ingestion aborted, removing {len(image_paths)} blob(s)")
            self._remove_blobs(image_paths)
            raise

        logger.info(f"Ingested post: reference={record.reference}, title='{record.title}'")
        return record

    @staticmethod
    def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise IngestionCancelled("Ingestion cancelled before the record was appended")

    def _store_one(self, filename: str, data: bytes) -> str:
        compressed = self.normalizer.normalize(data)
        try:
            return self.blobs.write(filename, compressed)
        except OSError as e:
            logger.error(f"Failed to write image blob {filename}: {e}")
            raise StoreUnavailable("Failed to store image") from e

    def _store_images(self, main_image: ImageUpload,
                      additional_images: List[ImageUpload]) -> List[str]:
        """Normalize and write all images of one post; all or nothing.

        Returns:
            Relative paths, main image first, additional images in upload order
        """
        jobs: List[Tuple[str, ImageUpload]] = [(make_blob_filename("main_image"), main_image)]
        for index, upload in enumerate(additional_images, start=1):
            jobs.append((make_blob_filename(f"additional_image_{index}"), upload))

        written: Dict[int, str] = {}
        errors: List[Exception] = []
        with ThreadPoolExecutor(max_workers=len(jobs)) as executor:
            futures = {
                executor.submit(self._store_one, filename, upload.data): position
                for position, (filename, upload) in enumerate(jobs)
            }
            for future in as_completed(futures):
                try:
                    written[futures[future]] = future.result()
                except Exception as e:
                    errors.append(e)

        if errors:
            logger.error(f"Failed to store {len(errors)} of {len(jobs)} image(s): {errors[0]}")
            self._remove_blobs(list(written.values()))
            raise errors[0]

        return [written[position] for position in range(len(jobs))]

    def _remove_blobs(self, image_paths: List[str]) -> None:
        for image_path in image_paths:
            try:
                self.blobs.remove(image_path)
            except OSError as e:
                logger.warning(f"Could not remove orphaned blob {image_path}: {e}")
