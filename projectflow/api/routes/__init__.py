"""
API route modules.
"""
from projectflow.api.routes import health, sync, tasks

__all__ = ["health", "sync", "tasks"]
