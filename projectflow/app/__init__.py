"""
Application package - FastAPI app factory.
"""
from projectflow.app.factory import create_app

__all__ = ["create_app"]
