"""
Storage abstraction layer for the browser-side task snapshot.
"""
from .snapshot import SnapshotStorage, MemorySnapshotStorage, JsonFileSnapshotStorage

__all__ = ['SnapshotStorage', 'MemorySnapshotStorage', 'JsonFileSnapshotStorage']
