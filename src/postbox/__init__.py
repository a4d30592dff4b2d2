"""postbox Package.

Entry point for the postbox blog service, which accepts blog posts with
images, stores them, and serves the images through short-lived tokens.

Exported Functions:
    main: Entry point for the postbox console command
"""
from .postbox import main

__all__ = ["main"]
