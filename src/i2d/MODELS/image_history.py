"""
Models for local images and their layer history as reported by the engine.
"""
from typing import List, Dict, Any
from pydantic import BaseModel

class LocalImage(BaseModel):
    """
    An image known to the local engine, with every tag recorded against it.
    """
    id: str
    repo_tags: List[str] = []

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "LocalImage":
        """
        Builds a LocalImage from an entry of the engine's image list.
        The engine reports untagged images with RepoTags set to null.
        """
        return cls(id=data["Id"], repo_tags=data.get("RepoTags") or [])

class HistoryRecord(BaseModel):
    """
    One filesystem layer of an image, as listed by the image history.
    """
    tags: List[str] = []
    created_by: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "HistoryRecord":
        """
        Builds a HistoryRecord from an entry of the engine's image history.
        """
        return cls(
            tags=data.get("Tags") or [],
            created_by=data.get("CreatedBy") or "",
        )
