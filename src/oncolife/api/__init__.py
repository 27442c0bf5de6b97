"""
Oncolife API

FastAPI surface for the conversation engine.
"""

from oncolife.api.main import create_app

__all__ = ["create_app"]
