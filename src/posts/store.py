"""
JSON-document record store.

The whole store is one JSON array on disk. Every insert reads the document,
appends one record and writes the full document back through a temp file and
os.replace(), so readers see either the old or the new document, never a
partial one.

All writes on a RecordStore instance go through one lock. allocate_and_append()
holds it across read, reference allocation and write; that is what keeps
concurrent ingestions from handing out the same reference. The lock is
per-process, which is why Gunicorn runs a single (threaded) worker.
"""
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Callable, List, Union

from jsonschema import Draft7Validator, ValidationError

from schema import POST_RECORDS_SCHEMA
from posts.errors import StoreCorrupt, StoreUnavailable
from posts.models import PostRecord
from posts.references import next_reference

logger = logging.getLogger(__name__)

validator = Draft7Validator(POST_RECORDS_SCHEMA)


class RecordStore:
    """Append-only store of PostRecords backed by a single JSON file."""

    def __init__(self, records_path: Union[str, Path]):
        self.records_path = Path(records_path)
        self._lock = threading.Lock()
        os.makedirs(self.records_path.parent, mode=0o755, exist_ok=True)

    @classmethod
    def from_settings(cls, settings) -> "RecordStore":
        return cls(settings.records_path)

    def read_all(self) -> List[PostRecord]:
        """Return every stored record in storage order.

        A missing file is an empty store.

        Raises:
            StoreCorrupt: If the document is not valid JSON or fails the schema
            StoreUnavailable: If the file exists but cannot be read
        """
        try:
            with open(self.records_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return []
        except json.JSONDecodeError as e:
            logger.error(f"Malformed JSON in record store {self.records_path}: {e}")
            raise StoreCorrupt("Record store is corrupt") from e
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read record store {self.records_path}: {e}")
            raise StoreUnavailable("Record store is unavailable") from e

        try:
            validator.validate(data)
        except ValidationError as e:
            path_str = ".".join(str(p) for p in e.path)
            logger.error(f"Record store failed schema validation: {e.message} at path: {path_str}")
            raise StoreCorrupt("Record store is corrupt") from e

        return [PostRecord.from_dict(item) for item in data]

    def append_record(self, record: PostRecord) -> None:
        """Append one record, rewriting the document atomically.

        Raises:
            StoreCorrupt: If the existing document cannot be parsed
            StoreUnavailable: If the document cannot be written
        """
        with self._lock:
            records = self.read_all()
            records.append(record)
            self._write(records)
        logger.info(f"Appended post record reference={record.reference}")

    def allocate_and_append(self, build: Callable[[str], PostRecord]) -> PostRecord:
        """Allocate the next reference and append the record built for it.

        Read, allocation, build and write all happen under the store lock, so
        no two calls can observe the same maximum reference. build() may raise
        to abort; nothing is written in that case.

        Args:
            build: Called with the allocated reference, returns the record to store

        Returns:
            The stored record
        """
        with self._lock:
            records = self.read_all()
            reference = next_reference(records)
            record = build(reference)
            records.append(record)
            self._write(records)
        logger.info(f"Appended post record reference={record.reference}")
        return record

    def _write(self, records: List[PostRecord]) -> None:
        payload = [record.to_dict() for record in records]
        directory = self.records_path.parent
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.records_path.name}.", suffix=".tmp", dir=directory
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.records_path)
            tmp_path = None
        except OSError as e:
            logger.error(f"Failed to write record store {self.records_path}: {e}")
            raise StoreUnavailable("Record store is unavailable") from e
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass
