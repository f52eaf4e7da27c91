"""
Pydantic models for the browser-side task snapshot.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ExternalTask(BaseModel):
    """A task in the ProjectFlow UI vocabulary (camelCase keys, todo/in-progress/completed)."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    project_id: Optional[str] = Field(None, alias="projectId")
    priority: Optional[str] = None
    status: Optional[str] = None
    due_date: Optional[str] = Field(None, alias="dueDate")
    created_date: Optional[str] = Field(None, alias="createdDate")


class SyncReport(BaseModel):
    """Outcome of importing a snapshot into the store."""
    imported: int = 0
    failed: int = 0
    errors: List[str] = Field(default_factory=list)


class PullResult(BaseModel):
    synced: int
    tasks: List[ExternalTask]
