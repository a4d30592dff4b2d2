"""
Blog Post Service - Flask Application.

This module implements the HTTP surface of postbox: post submission, post
listing, and token-gated image retrieval. Route handlers are thin; the work
happens in the posts package and errors are mapped to status codes here.

Endpoints:
    POST /add        multipart form -> 201 stored record | 400 | 500
    GET  /posts      -> 200 decorated posts | 500
    POST /token      {"image_path"} -> 200 {"token"} | 404
    GET  /bytoken    ?image_path=&token= -> 200 image/jpeg | 404
    GET  /health     -> 200 {"status": "healthy"}

All routes except /health are mounted under the configured http.url_prefix.

Upload Filtering:
    Before the validator runs, each uploaded file must be sent as image/jpeg
    and be no larger than the per-image limit. This is a cheap early reject;
    posts.validation repeats both checks authoritatively.

Error Handling:
    - 400: validation or upload-filter failure, message returned verbatim
    - 404: any image access failure; the response never says whether the
           token was bad, expired, for another path, or the file is missing
    - 500: store or image processing failure; generic message only

    The specific cause is always logged.

Example:
    $ curl -X POST http://localhost:5000/add \\
           -F title="My first post" -F description="Hello" \\
           -F date_time=1893456000 -F main_image=@photo.jpg
"""
import logging
import time
from typing import Any, Callable, Dict, List, Optional

from flask import Blueprint, Flask, Response, current_app, jsonify, request
from flask_cors import CORS
from werkzeug.datastructures import FileStorage

from config import load_config
from config.settings import Settings
from posts.blobs import BlobStorage
from posts.errors import (
    CompressionError,
    IngestionCancelled,
    NotFoundError,
    PostValidationError,
    StoreError,
)
from posts.ingest import PostIngestor
from posts.models import ImageUpload
from posts.query import PostQueryService
from posts.store import RecordStore
from posts.tokens import AccessTokenService
from posts.validation import JPEG_CONTENT_TYPE

# Logging is configured in postbox.py main() - this module uses the configured logger
logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Image not found"
INTERNAL_ERROR_MESSAGE = "Internal server error"

# Room for form fields on top of the image payloads
FORM_OVERHEAD_BYTES = 64 * 1024

# A body with one image too many must still fit and get the validator's 400
EXTRA_IMAGE_ALLOWANCE = 1


class UploadRejected(PostValidationError):
    """Raised by the upload filter for a file that is not a small JPEG."""
    pass


def read_upload(file_storage: Optional[FileStorage], max_bytes: int) -> Optional[ImageUpload]:
    """Convert a multipart file into an ImageUpload, applying the upload filter.

    An empty file part (what browsers send for an unselected file input)
    counts as no upload.

    Raises:
        UploadRejected: If the file is not declared as JPEG or exceeds max_bytes
    """
    if file_storage is None:
        return None
    data = file_storage.read(max_bytes + 1)
    if not data and not file_storage.filename:
        return None
    if file_storage.mimetype != JPEG_CONTENT_TYPE:
        raise UploadRejected("Only JPG images are allowed")
    if len(data) > max_bytes:
        raise UploadRejected("File too large")
    return ImageUpload(
        filename=file_storage.filename or "",
        content_type=file_storage.mimetype,
        data=data,
    )


def create_app(config: Optional[Dict[str, Any]] = None, settings: Optional[Settings] = None,
               clock: Callable[[], float] = time.time) -> Flask:
    """Factory function to create and configure the Flask application.

    Args:
        config: Optional configuration dictionary (if None, loaded from config.yml)
        settings: Optional prebuilt Settings (if None, built from config)
        clock: Time source shared by the ingestion pipeline and token service

    Returns:
        Configured Flask application instance

    Raises:
        ConfigurationError: If settings cannot be built (e.g. no signing secret)

    Example:
        >>> app = create_app(settings=Settings.from_config({"tokens": {"secret_key": "s"}}))
        >>> client = app.test_client()
    """
    app = Flask(__name__)

    if config is None:
        config = load_config()
    if settings is None:
        settings = Settings.from_config(config)

    # Configure CORS to allow requests from the blog front-end
    cors_config = config.get("cors", {})
    if cors_config.get("enabled", False):
        cors_origins = cors_config.get("origins", [])
        if cors_origins:
            CORS(app, origins=cors_origins)
            logger.info(f"CORS enabled for origins: {cors_origins}")
        else:
            logger.warning("CORS enabled but no origins configured")
    else:
        logger.info("CORS is disabled in configuration")

    app.config["MAX_CONTENT_LENGTH"] = (
        settings.max_image_bytes * (1 + settings.max_additional_images + EXTRA_IMAGE_ALLOWANCE)
        + FORM_OVERHEAD_BYTES
    )

    # One instance of each service per app; the record store lock lives on it
    store = RecordStore.from_settings(settings)
    blobs = BlobStorage.from_settings(settings)
    app.config["SETTINGS"] = settings
    app.config["RECORD_STORE"] = store
    app.config["BLOB_STORAGE"] = blobs
    app.config["POST_INGESTOR"] = PostIngestor.from_settings(settings, store, blobs, clock=clock)
    app.config["POST_QUERY"] = PostQueryService(store)
    app.config["TOKEN_SERVICE"] = AccessTokenService.from_settings(settings, blobs, clock=clock)

    bp = Blueprint("blog", __name__)

    @bp.route("/add", methods=["POST"])
    def add_post():
        """Create a post from a multipart form submission.

        Form Fields:
            title, description, date_time (Unix seconds)
            main_image: one JPEG file
            additional_images: up to five JPEG files

        Returns:
            tuple: (JSON response, status)
                - 201 with the stored record
                - 400 {"error": message} on validation failure
                - 500 {"error": "Internal server error"} otherwise
        """
        ingestor = current_app.config["POST_INGESTOR"]
        max_bytes = current_app.config["SETTINGS"].max_image_bytes

        try:
            main_image = read_upload(request.files.get("main_image"), max_bytes)
            additional_images: List[ImageUpload] = []
            for file_storage in request.files.getlist("additional_images"):
                upload = read_upload(file_storage, max_bytes)
                if upload is not None:
                    additional_images.append(upload)

            record = ingestor.ingest(
                request.form.get("title"),
                request.form.get("description"),
                main_image,
                additional_images,
                request.form.get("date_time"),
            )
            return jsonify(record.to_dict()), 201

        except PostValidationError as e:
            logger.info(f"Post submission rejected: {e}")
            return jsonify({"error": str(e)}), 400

        except (StoreError, CompressionError, IngestionCancelled) as e:
            logger.error(f"Failed to save the blog post: {type(e).__name__}: {e}")
            return jsonify({"error": INTERNAL_ERROR_MESSAGE}), 500

        except Exception as e:
            logger.error(f"Unexpected error saving blog post: {str(e)}", exc_info=True)
            return jsonify({"error": INTERNAL_ERROR_MESSAGE}), 500

    @bp.route("/posts", methods=["GET"])
    def list_posts():
        """Return every stored post with date_time as ISO-8601 and a title_slug."""
        query = current_app.config["POST_QUERY"]
        try:
            return jsonify(query.list_posts()), 200
        except StoreError as e:
            logger.error(f"Failed to load posts: {type(e).__name__}: {e}")
            return jsonify({"error": "Failed to load posts"}), 500
        except Exception as e:
            logger.error(f"Unexpected error loading posts: {str(e)}", exc_info=True)
            return jsonify({"error": "Failed to load posts"}), 500

    @bp.route("/token", methods=["POST"])
    def generate_image_token():
        """Issue a short-lived token for one image.

        Request Format:
            POST /token
            Content-Type: application/json

            {"image_path": "images/main_image_1700000000000_1a2b3c4d.jpg"}

        Returns:
            tuple: (JSON response, status)
                - 200 {"token": "..."}
                - 400 if the body is not JSON
                - 404 {"error": "Image not found"}
        """
        if not request.is_json:
            logger.warning("Received non-JSON token request")
            return jsonify({"error": "Content-Type must be application/json"}), 400

        payload = request.get_json(silent=True)
        image_path = payload.get("image_path") if isinstance(payload, dict) else None

        token_service = current_app.config["TOKEN_SERVICE"]
        try:
            token = token_service.issue_token(image_path)
        except NotFoundError as e:
            logger.info(f"Token request rejected ({type(e).__name__}): {e}")
            return jsonify({"error": NOT_FOUND_MESSAGE}), 404
        except OSError as e:
            logger.error(f"Failed to check image for token request: {e}")
            return jsonify({"error": NOT_FOUND_MESSAGE}), 404

        return jsonify({"token": token}), 200

    @bp.route("/bytoken", methods=["GET"])
    def get_image_by_token():
        """Return image bytes for a valid, unexpired token bound to image_path."""
        image_path = request.args.get("image_path")
        token = request.args.get("token")

        token_service = current_app.config["TOKEN_SERVICE"]
        try:
            data = token_service.fetch_image(image_path, token)
        except NotFoundError as e:
            logger.info(f"Image request rejected ({type(e).__name__}): {e}")
            return jsonify({"error": NOT_FOUND_MESSAGE}), 404
        except OSError as e:
            logger.error(f"Failed to read image blob: {e}")
            return jsonify({"error": NOT_FOUND_MESSAGE}), 404

        return Response(data, status=200, mimetype=JPEG_CONTENT_TYPE)

    app.register_blueprint(bp, url_prefix=settings.url_prefix or None)

    @app.errorhandler(413)
    def request_too_large(e):
        logger.warning("Rejected request body larger than MAX_CONTENT_LENGTH")
        return jsonify({"error": "File too large"}), 413

    @app.route("/health", methods=["GET"])
    def health_check():
        """Health check endpoint for monitoring and load balancers.

        Returns:
            tuple: (JSON response, 200 status code)

        Example:
            $ curl http://localhost:5000/health
            {"status": "healthy"}
        """
        return jsonify({"status": "healthy"}), 200

    return app
