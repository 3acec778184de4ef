# ABOUTME: Web module initialization.
# ABOUTME: Exposes the FastAPI application factory.

from legis_track.web.app import create_app

__all__ = ["create_app"]
