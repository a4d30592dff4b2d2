#!/usr/bin/env python3
"""Validate consistency between the post record document and the image directory."""

import argparse
import json
from pathlib import Path
from typing import Any

from posts.blobs import is_safe_path
from posts.validation import MAX_PUBLISH_TIME

REQUIRED_FIELDS = ("reference", "title", "description", "main_image", "additional_images", "date_time")


def validate_record(record: Any) -> list[str]:
    errors: list[str] = []
    if not isinstance(record, dict):
        return ["record must be an object"]

    for field in REQUIRED_FIELDS:
        if field not in record:
            errors.append(f"missing field '{field}'")

    reference = record.get("reference")
    if not isinstance(reference, str) or not (reference.isascii() and reference.isdigit()):
        errors.append("reference must be a string of digits")
    if not isinstance(record.get("main_image"), str) or not record.get("main_image"):
        errors.append("main_image must be a non-empty string")
    additional = record.get("additional_images")
    if not isinstance(additional, list) or not all(isinstance(p, str) and p for p in additional):
        errors.append("additional_images must be a list of non-empty strings")
    if isinstance(record.get("date_time"), bool) or not isinstance(record.get("date_time"), int):
        errors.append("date_time must be an integer")
    elif not 0 <= record["date_time"] <= MAX_PUBLISH_TIME:
        errors.append("date_time is outside the renderable range")

    return errors


def _blob_issue(data_dir: Path, image_dir: Path, image_path: str) -> str | None:
    target = data_dir / image_path
    if not is_safe_path(image_dir, target):
        return f"image path escapes image root: {image_path}"
    if not target.is_file():
        return f"missing blob: {image_path}"
    return None


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--data-dir", default="./data")
    parser.add_argument("--records-file", default="blogs.json")
    parser.add_argument("--images-dir", default="images")
    args = parser.parse_args()

    data_dir = Path(args.data_dir)
    records_path = data_dir / args.records_file
    image_dir = data_dir / args.images_dir

    issues: list[str] = []

    if not records_path.exists():
        print(f"No record store at {records_path}; nothing to check")
        return 0

    try:
        records = json.loads(records_path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        print("Consistency check failed:")
        print(f"- record store: failed to parse ({exc})")
        return 1

    if not isinstance(records, list):
        print("Consistency check failed:")
        print("- record store root must be an array")
        return 1

    seen_references: set[str] = set()
    referenced_blobs: set[Path] = set()
    for index, record in enumerate(records):
        errors = validate_record(record)
        if errors:
            issues.append(f"record #{index}: " + "; ".join(errors))
            continue

        reference = record["reference"]
        if reference in seen_references:
            issues.append(f"duplicate reference {reference}")
        seen_references.add(reference)

        for image_path in [record["main_image"], *record["additional_images"]]:
            issue = _blob_issue(data_dir, image_dir, image_path)
            if issue:
                issues.append(f"reference {reference}: {issue}")
            else:
                referenced_blobs.add((data_dir / image_path).resolve())

    orphans = []
    if image_dir.exists():
        orphans = [p for p in sorted(image_dir.iterdir()) if p.is_file() and p.resolve() not in referenced_blobs]

    if issues:
        print("Consistency check failed:")
        for issue in issues:
            print(f"- {issue}")
        return 1

    print(
        f"Consistency check passed for {len(records)} records and "
        f"{len(referenced_blobs)} referenced blobs ({len(orphans)} orphaned blobs)"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
