"""Blog Post Service Package.

This package provides the Flask application that exposes postbox over HTTP:
post submission, post listing, and token-gated image retrieval.

Key Components:
    create_app: Factory building a configured Flask application

Usage:
    Start the server through the console script (embeds Gunicorn):
        $ postbox

    Test with curl:
        $ curl http://localhost:5000/posts
        $ curl -X POST http://localhost:5000/token \\
               -H "Content-Type: application/json" \\
               -d '{"image_path": "images/main_image_1700000000000_1a2b3c4d.jpg"}'
"""
from .blog import create_app

__all__ = ["create_app"]
