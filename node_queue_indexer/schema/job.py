from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .node import DimensionCombination

# Stands in for the storage identifier of a node variant that no longer exists
FAKE_PERSISTENCE_IDENTIFIER = "fake"


class JobKind(str, Enum):
    """Index mutation carried by a job"""

    INDEX = "index"
    REMOVE = "remove"


class NodeRecord(BaseModel):
    """
    One node variant inside a job payload.

    Field aliases are the wire names read by queue consumers and must not change.
    Fields can't be reassigned, but the ``dimensions`` dict itself is not
    frozen; treat it as read-only.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    persistence_object_identifier: str = Field(..., alias="persistenceObjectIdentifier", min_length=1)
    identifier: str = Field(..., min_length=1)
    dimensions: DimensionCombination = Field(default_factory=dict)
    workspace: str = Field(..., min_length=1)
    node_type: str = Field(..., alias="nodeType", min_length=1)
    path: str = Field(..., min_length=1)

    @property
    def is_placeholder(self) -> bool:
        return self.persistence_object_identifier == FAKE_PERSISTENCE_IDENTIFIER


class IndexJobPayload(BaseModel):
    """
    What to index or remove, and into which index and workspace.

    ``nodes`` is a tuple so records can't be added after validation.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    index_name_postfix: str = Field("", alias="indexNamePostfix")
    target_workspace_name: Optional[str] = Field(None, alias="targetWorkspaceName")
    nodes: Tuple[NodeRecord, ...] = Field(..., min_length=1)

    @field_validator("nodes")
    @classmethod
    def validate_unique_dimensions(cls, v: Tuple[NodeRecord, ...]) -> Tuple[NodeRecord, ...]:
        """A payload holds at most one record per dimension combination"""
        seen = set()
        for record in v:
            key = tuple(sorted(record.dimensions.items()))
            if key in seen:
                raise ValueError(f"Duplicate dimension combination in payload: {record.dimensions}")
            seen.add(key)
        return v


class Job(BaseModel):
    """
    Unit handed to the job queue.

    Built fully populated and never mutated afterwards; the queue owns it
    once dispatched.
    """

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(default_factory=lambda: str(uuid4()))
    kind: JobKind
    payload: IndexJobPayload
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def label(self) -> str:
        if self.kind == JobKind.REMOVE:
            return f"Search Removal Job ({self.identifier})"
        return f"Search Indexing Job ({self.identifier})"

    def to_message(self) -> Dict[str, Any]:
        """Flat wire representation of the job"""
        payload = self.payload.model_dump(mode="json", by_alias=True)
        return {
            "identifier": self.identifier,
            "kind": self.kind.value,
            "indexNamePostfix": payload["indexNamePostfix"],
            "targetWorkspaceName": payload["targetWorkspaceName"],
            "nodes": payload["nodes"],
            "createdAt": self.created_at.isoformat(),
        }

    def to_message_body(self) -> str:
        return json.dumps(self.to_message())

    @classmethod
    def from_message_body(cls, body: Union[str, Dict[str, Any]]) -> "Job":
        """Re-read a job written by ``to_message_body``"""
        data = json.loads(body) if isinstance(body, str) else body
        return cls(
            identifier=data["identifier"],
            kind=JobKind(data["kind"]),
            payload=IndexJobPayload.model_validate(
                {
                    "indexNamePostfix": data.get("indexNamePostfix", ""),
                    "targetWorkspaceName": data.get("targetWorkspaceName"),
                    "nodes": data["nodes"],
                }
            ),
            created_at=datetime.fromisoformat(data["createdAt"]),
        )
