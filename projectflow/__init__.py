"""
ProjectFlow task store: SQLite persistence, snapshot sync, HTTP API and CLI.
"""
from projectflow.database import TaskDatabase
from projectflow.sync import ProjectFlowSync

__version__ = "1.0.0"

__all__ = ["TaskDatabase", "ProjectFlowSync", "__version__"]
