"""Unit tests for image normalization."""
import io

import pytest
from PIL import Image

from conftest import make_jpeg
from posts.errors import CompressionFailed
from posts.images import ImageNormalizer, normalize_image


def _png_with_alpha() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (40, 30), (0, 128, 255, 100)).save(buffer, format="PNG")
    return buffer.getvalue()


def test_output_is_decodable_jpeg():
    result = normalize_image(make_jpeg(320, 240))

    img = Image.open(io.BytesIO(result))
    assert img.format == "JPEG"
    assert img.size == (320, 240)


def test_low_quality_output_is_smaller_than_high_quality_input():
    # Noisy content so quality actually matters
    img = Image.effect_noise((256, 256), 64).convert("RGB")
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", quality=95)
    original = buffer.getvalue()

    assert len(normalize_image(original)) < len(original)


def test_non_jpeg_input_with_alpha_is_converted():
    result = normalize_image(_png_with_alpha())

    img = Image.open(io.BytesIO(result))
    assert img.format == "JPEG"
    assert img.mode == "RGB"


def test_garbage_input_raises():
    with pytest.raises(CompressionFailed):
        normalize_image(b"definitely not an image")


def test_truncated_jpeg_raises():
    buffer = io.BytesIO()
    Image.effect_noise((200, 200), 64).convert("RGB").save(buffer, format="JPEG", quality=95)
    data = buffer.getvalue()
    with pytest.raises(CompressionFailed):
        normalize_image(data[: len(data) // 3])


def test_normalizer_uses_configured_quality(settings):
    normalizer = ImageNormalizer.from_settings(settings)
    assert normalizer.quality == 25

    img = Image.open(io.BytesIO(normalizer.normalize(make_jpeg())))
    assert img.format == "JPEG"
