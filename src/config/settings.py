"""
Runtime settings object for postbox.

load_config() returns the raw YAML mapping. Settings turns that mapping into
one immutable object, built once at process start and handed to the record
store, blob storage, normalizer, token service and ingestion pipeline.
"""
import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from config import get_default_config, read_secret_file


logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 1024 * 1024
MAX_ADDITIONAL_IMAGES = 5
DEFAULT_QUALITY = 25
DEFAULT_TOKEN_EXPIRY_SECONDS = 300
DEFAULT_TOKEN_ALGORITHM = "HS256"


class ConfigurationError(Exception):
    """Raised when the configuration cannot produce usable settings."""
    pass


@dataclass(frozen=True)
class Settings:
    """Immutable service settings.

    Attributes:
        data_dir: Directory holding the record document and the image root
        records_path: JSON document with every post record
        image_dir: Managed image root; all blobs live under it
        secret_key: Signing key for image access tokens
        quality: JPEG quality (0-100) used when normalizing images
        max_image_bytes: Per-image upload limit
        max_additional_images: Maximum number of additional images per post
        token_expiry_seconds: Lifetime of an image access token
        token_algorithm: JWT signing algorithm
        url_prefix: Prefix under which HTTP routes are mounted
    """

    data_dir: Path
    records_path: Path
    image_dir: Path
    secret_key: str
    quality: int = DEFAULT_QUALITY
    max_image_bytes: int = MAX_IMAGE_BYTES
    max_additional_images: int = MAX_ADDITIONAL_IMAGES
    token_expiry_seconds: int = DEFAULT_TOKEN_EXPIRY_SECONDS
    token_algorithm: str = DEFAULT_TOKEN_ALGORITHM
    url_prefix: str = ""

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "Settings":
        """Build settings from a configuration dictionary.

        Missing sections fall back to get_default_config(). The signing secret
        is resolved in priority order: tokens.secret_key, the file named by
        tokens.secret_key_file, then the SECRET_KEY environment variable.

        Raises:
            ConfigurationError: If no signing secret is available or a numeric
                setting is out of range
        """
        defaults = get_default_config()
        config = config or {}

        storage = {**defaults["storage"], **config.get("storage", {})}
        images = {**defaults["images"], **config.get("images", {})}
        tokens = {**defaults["tokens"], **config.get("tokens", {})}
        http = {**defaults["http"], **config.get("http", {})}

        data_dir = Path(storage["data_dir"])
        records_path = data_dir / storage["records_file"]
        image_dir = data_dir / storage["images_dir"]

        secret_key = tokens.get("secret_key")
        if not secret_key:
            secret_file = tokens.get("secret_key_file")
            if secret_file:
                secret_key = read_secret_file(secret_file)
        if not secret_key:
            secret_key = os.environ.get("SECRET_KEY")
        if not secret_key:
            raise ConfigurationError(
                "No token signing secret configured (tokens.secret_key, "
                "tokens.secret_key_file or SECRET_KEY)"
            )

        quality = int(images["quality"])
        if not 1 <= quality <= 95:
            raise ConfigurationError(f"images.quality must be between 1 and 95, got {quality}")

        expiry = int(tokens["expiry_seconds"])
        if expiry <= 0:
            raise ConfigurationError(f"tokens.expiry_seconds must be positive, got {expiry}")

        settings = cls(
            data_dir=data_dir,
            records_path=records_path,
            image_dir=image_dir,
            secret_key=secret_key,
            quality=quality,
            max_image_bytes=int(images["max_bytes"]),
            max_additional_images=int(images["max_additional"]),
            token_expiry_seconds=expiry,
            token_algorithm=tokens["algorithm"],
            url_prefix=(http.get("url_prefix") or "").rstrip("/"),
        )
        logger.info(
            f"Settings loaded: records={settings.records_path}, images={settings.image_dir}, "
            f"quality={settings.quality}, token_expiry={settings.token_expiry_seconds}s"
        )
        return settings
