"""
Unit Tests for the Access Token Service.

Covers the token state machine: a token is valid before expiry for its own
path, and rejected after expiry, for any other path, or when tampered with.
"""
from unittest.mock import patch

import jwt
import pytest

from conftest import TEST_SECRET, FakeClock
from posts.errors import ImageNotFound, InvalidOrExpiredToken, NotFoundError, PathOutsideRoot
from posts.tokens import AccessTokenService


@pytest.fixture
def token_service(blobs, clock):
    return AccessTokenService(blobs, TEST_SECRET, clock=clock)


@pytest.fixture
def image_files(blobs, jpeg_bytes):
    a = blobs.write("a.jpg", jpeg_bytes)
    b = blobs.write("b.jpg", b"other image bytes")
    return a, b


def test_issue_and_fetch(token_service, image_files, jpeg_bytes):
    a, _ = image_files

    token = token_service.issue_token(a)

    assert a == "images/a.jpg"
    assert token_service.fetch_image(a, token) == jpeg_bytes


def test_token_payload(token_service, image_files, clock):
    a, _ = image_files

    payload = jwt.decode(token_service.issue_token(a), TEST_SECRET, algorithms=["HS256"])

    assert payload["image_path"] == "images/a.jpg"
    assert payload["exp"] - payload["iat"] == 300
    assert payload["iat"] == int(clock.now)


def test_issue_for_missing_image_never_signs(token_service):
    with patch("posts.tokens.jwt.encode") as encode:
        with pytest.raises(ImageNotFound):
            token_service.issue_token("images/missing.jpg")
        encode.assert_not_called()


@pytest.mark.parametrize("path", [
    "../blogs.json",
    "images/../blogs.json",
    "images/../../etc/passwd",
    "/etc/passwd",
    "images",
    "",
    None,
])
def test_issue_outside_root_is_not_found(token_service, settings, path):
    settings.records_path.write_text("[]")
    with pytest.raises(NotFoundError):
        token_service.issue_token(path)


def test_token_for_other_path_rejected(token_service, image_files):
    a, b = image_files
    token = token_service.issue_token(a)

    with pytest.raises(InvalidOrExpiredToken):
        token_service.fetch_image(b, token)


def test_path_comparison_is_exact(token_service, image_files):
    a, _ = image_files
    token = token_service.issue_token(a)

    # Resolves to the same file, but is not the path the token was issued for
    with pytest.raises(InvalidOrExpiredToken):
        token_service.fetch_image("images/./a.jpg", token)


def test_valid_just_before_expiry(token_service, image_files, clock):
    a, _ = image_files
    token = token_service.issue_token(a)

    clock.advance(299)

    assert token_service.verify_token(a, token) is True


def test_expired_token_rejected(token_service, image_files, clock):
    a, _ = image_files
    token = token_service.issue_token(a)

    clock.advance(301)

    with pytest.raises(InvalidOrExpiredToken):
        token_service.fetch_image(a, token)


def test_expired_token_rejected_even_for_matching_path(token_service, image_files, clock):
    a, _ = image_files
    token = token_service.issue_token(a)
    clock.advance(300)

    assert token_service.verify_token(a, token) is False


def test_token_from_other_secret_rejected(blobs, image_files, clock):
    a, _ = image_files
    forged = AccessTokenService(blobs, "another-secret-key-of-sufficient-length-xyz", clock=clock).issue_token(a)
    service = AccessTokenService(blobs, TEST_SECRET, clock=clock)

    with pytest.raises(InvalidOrExpiredToken):
        service.fetch_image(a, forged)


def test_unsigned_token_rejected(token_service, image_files, clock):
    a, _ = image_files
    unsigned = jwt.encode({"image_path": a, "exp": int(clock.now) + 300}, None, algorithm="none")

    with pytest.raises(InvalidOrExpiredToken):
        token_service.fetch_image(a, unsigned)


@pytest.mark.parametrize("token", [None, "", "not.a.jwt", "abc"])
def test_malformed_token_rejected(token_service, image_files, token):
    a, _ = image_files
    with pytest.raises(InvalidOrExpiredToken):
        token_service.fetch_image(a, token)


def test_token_without_exp_rejected(token_service, image_files):
    a, _ = image_files
    token = jwt.encode({"image_path": a}, TEST_SECRET, algorithm="HS256")

    with pytest.raises(InvalidOrExpiredToken):
        token_service.fetch_image(a, token)


def test_image_removed_after_issuance(token_service, image_files, blobs):
    a, _ = image_files
    token = token_service.issue_token(a)
    blobs.remove(a)

    with pytest.raises(ImageNotFound):
        token_service.fetch_image(a, token)


def test_valid_token_for_escaping_path_still_not_found(blobs, settings):
    # Only reachable with a token signed for a bad path by the real secret
    settings.records_path.write_text("[]")
    clock = FakeClock(1_700_000_000)
    token = jwt.encode(
        {"image_path": "../blogs.json", "exp": 1_700_000_300},
        TEST_SECRET,
        algorithm="HS256",
    )
    service = AccessTokenService(blobs, TEST_SECRET, clock=clock)

    with pytest.raises(PathOutsideRoot):
        service.fetch_image("../blogs.json", token)


def test_many_tokens_for_same_path_are_independent(token_service, image_files, clock):
    a, _ = image_files
    first = token_service.issue_token(a)
    clock.advance(200)
    second = token_service.issue_token(a)
    clock.advance(150)

    assert token_service.verify_token(a, first) is False
    assert token_service.verify_token(a, second) is True
