"""
API - FastAPI surface over the game service.

Run with: uvicorn --factory unoengine.api:create_app
"""

from .app import create_app

__all__ = ["create_app"]
