"""Data types shared by the post pipeline."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True)
class ImageUpload:
    """An uploaded image held in memory.

    content_type is whatever the client declared; the validator checks it,
    the normalizer never trusts it.
    """

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class PostRecord:
    """A persisted blog post.

    Attribute names describe the Python side; to_dict()/from_dict() use the
    keys of the stored JSON document and the HTTP responses.
    """

    reference: str
    title: str
    description: str
    main_image_path: str
    additional_image_paths: Tuple[str, ...] = field(default_factory=tuple)
    publish_at: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reference": self.reference,
            "title": self.title,
            "description": self.description,
            "main_image": self.main_image_path,
            "additional_images": list(self.additional_image_paths),
            "date_time": self.publish_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PostRecord":
        return cls(
            reference=data["reference"],
            title=data["title"],
            description=data["description"],
            main_image_path=data["main_image"],
            additional_image_paths=tuple(data.get("additional_images") or ()),
            publish_at=data["date_time"],
        )

    @property
    def image_paths(self) -> List[str]:
        return [self.main_image_path, *self.additional_image_paths]
