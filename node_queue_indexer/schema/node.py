from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

# Axis name -> value, e.g. {"language": "de", "country": "ch"}
DimensionCombination = Dict[str, str]


class NodeOperation(str, Enum):
    """What a node event asks the indexer to do"""

    INDEX = "index"
    REMOVE = "remove"


class ContentNode(BaseModel):
    """
    Read-only view of a content repository node.

    ``dimensions`` is the combination the node is currently loaded in,
    ``workspace_name`` the workspace it was read from.
    """

    model_config = ConfigDict(frozen=True)

    aggregate_id: str = Field(..., min_length=1)
    node_type_name: str = Field(..., min_length=1)
    workspace_name: str = Field(..., min_length=1)
    dimensions: DimensionCombination = Field(default_factory=dict)
    removed: bool = False


class NodeEvent(BaseModel):
    """A create/update or deletion of one node, as seen by the indexer"""

    model_config = ConfigDict(frozen=True)

    node: ContentNode
    target_workspace_name: Optional[str] = Field(
        None, description="Set when indexing is triggered by publishing into another workspace"
    )
    operation: NodeOperation = NodeOperation.INDEX

    @property
    def effective_operation(self) -> NodeOperation:
        if self.node.removed:
            return NodeOperation.REMOVE
        return self.operation
