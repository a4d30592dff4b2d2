"""
Short-lived signed capabilities for image retrieval.

A token is an HS256 JWT carrying {"image_path", "iat", "exp"}. It authorizes
fetching exactly the image path it was issued for, until exp. Nothing is
persisted: validity is recomputed from the signed payload and the clock on
every check, and there is no revocation.

Expiry is checked against the service's own clock rather than PyJWT's, so a
single clock drives both issuance and verification.
"""
import logging
import time
from typing import Any, Callable, Dict, Optional

import jwt

from posts.blobs import BlobStorage
from posts.errors import ImageNotFound, InvalidOrExpiredToken

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_SECONDS = 5 * 60
DEFAULT_ALGORITHM = "HS256"


class AccessTokenService:
    """Issues and verifies image access tokens.

    Attributes:
        blobs: Blob storage the tokens grant access to
        expiry_seconds: Token lifetime
        algorithm: JWT signing algorithm
    """

    def __init__(
        self,
        blobs: BlobStorage,
        secret_key: str,
        expiry_seconds: int = DEFAULT_EXPIRY_SECONDS,
        algorithm: str = DEFAULT_ALGORITHM,
        clock: Callable[[], float] = time.time,
    ):
        self.blobs = blobs
        self._secret_key = secret_key
        self.expiry_seconds = expiry_seconds
        self.algorithm = algorithm
        self._clock = clock

    @classmethod
    def from_settings(cls, settings, blobs: BlobStorage,
                      clock: Callable[[], float] = time.time) -> "AccessTokenService":
        return cls(
            blobs,
            settings.secret_key,
            expiry_seconds=settings.token_expiry_seconds,
            algorithm=settings.token_algorithm,
            clock=clock,
        )

    def issue_token(self, image_path: str) -> str:
        """Sign a token for an existing image.

        Raises:
            ImageNotFound: If the path escapes the managed root or no blob exists
        """
        path = self.blobs.resolve(image_path)
        if not path.is_file():
            raise ImageNotFound(f"Image not found: {image_path[:100]!r}")

        iat = int(self._clock())
        payload = {
            "image_path": image_path,
            "iat": iat,
            "exp": iat + self.expiry_seconds,
        }
        token = jwt.encode(payload, self._secret_key, algorithm=self.algorithm)
        logger.debug(f"Issued image token for {image_path} (expires in {self.expiry_seconds}s)")
        return token

    def _decode(self, token: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(token, str) or not token:
            return None
        try:
            return jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "verify_iat": False, "require": ["exp", "image_path"]},
            )
        except jwt.InvalidTokenError as e:
            logger.debug(f"Rejected image token: {e}")
            return None

    def check_token(self, image_path: str, token: Any) -> None:
        """Verify signature, expiry and path binding.

        Raises:
            InvalidOrExpiredToken: On bad signature, expiry or path mismatch
        """
        payload = self._decode(token)
        if payload is None:
            raise InvalidOrExpiredToken("Invalid or expired token for the specified image")

        exp = payload.get("exp")
        if not isinstance(exp, (int, float)) or exp <= self._clock():
            logger.info(f"Expired image token presented for {str(image_path)[:100]!r}")
            raise InvalidOrExpiredToken("Invalid or expired token for the specified image")

        if payload.get("image_path") != image_path:
            logger.warning(
                f"Image token path mismatch: token for {str(payload.get('image_path'))[:100]!r}, "
                f"requested {str(image_path)[:100]!r}"
            )
            raise InvalidOrExpiredToken("Invalid or expired token for the specified image")

    def verify_token(self, image_path: str, token: Any) -> bool:
        try:
            self.check_token(image_path, token)
        except InvalidOrExpiredToken:
            return False
        return True

    def fetch_image(self, image_path: str, token: Any) -> bytes:
        """Return image bytes for a valid token.

        Raises:
            InvalidOrExpiredToken: If the token does not authorize image_path
            ImageNotFound: If the blob is gone or the path is outside the root
        """
        self.check_token(image_path, token)
        return self.blobs.read(image_path)
