"""
Projection of content nodes into job payload records.
"""

from typing import List

from pydantic import ValidationError

from ..schema.job import FAKE_PERSISTENCE_IDENTIFIER, NodeRecord
from ..schema.node import ContentNode, DimensionCombination
from .exceptions import NodeResolutionException, QueueIndexerException
from .interfaces import ContentGraph, PersistenceLookup


class NodePayloadBuilder:
    """
    Builds the node records that go into index and removal jobs.
    """

    def __init__(self, content_graph: ContentGraph, persistence: PersistenceLookup):
        self.content_graph = content_graph
        self.persistence = persistence

    def node_as_records(self, node: ContentNode) -> List[NodeRecord]:
        """
        Project a node into a single-element record list.

        Uses the node's own dimension combination and its real persistence
        identifier.

        Raises:
            NodeResolutionException: If the identifier or path can't be resolved
        """
        try:
            persistence_identifier = self.persistence.identifier_for(node)
        except QueueIndexerException:
            raise
        except Exception as e:
            raise NodeResolutionException(
                f"Failed to look up persistence identifier for node {node.aggregate_id}: {e}",
                aggregate_id=node.aggregate_id,
            ) from e

        if not persistence_identifier:
            raise NodeResolutionException(
                f"No persistence identifier for node {node.aggregate_id}", aggregate_id=node.aggregate_id
            )

        return [
            self._record(
                node,
                persistence_identifier=persistence_identifier,
                workspace=node.workspace_name,
                dimensions=node.dimensions,
            )
        ]

    def placeholder_record(self, node: ContentNode, dimensions: DimensionCombination) -> NodeRecord:
        """
        Record for a variant of ``node`` that no longer exists.

        The path is resolved for ``node`` itself, a removed variant has no
        subgraph to resolve it in.
        """
        return self._record(
            node,
            persistence_identifier=FAKE_PERSISTENCE_IDENTIFIER,
            workspace=node.workspace_name,
            dimensions=dimensions,
        )

    def resolve_path(self, node: ContentNode) -> str:
        try:
            path = self.content_graph.path_for(node)
        except QueueIndexerException:
            raise
        except Exception as e:
            raise NodeResolutionException(
                f"Failed to resolve path for node {node.aggregate_id}: {e}", aggregate_id=node.aggregate_id
            ) from e

        if not path:
            raise NodeResolutionException(f"Empty path for node {node.aggregate_id}", aggregate_id=node.aggregate_id)
        return str(path)

    def _record(
        self,
        node: ContentNode,
        persistence_identifier: str,
        workspace: str,
        dimensions: DimensionCombination,
    ) -> NodeRecord:
        path = self.resolve_path(node)
        try:
            return NodeRecord(
                persistence_object_identifier=persistence_identifier,
                identifier=node.aggregate_id,
                dimensions=dict(dimensions),
                workspace=workspace,
                node_type=node.node_type_name,
                path=path,
            )
        except ValidationError as e:
            raise NodeResolutionException(
                f"Inconsistent data for node {node.aggregate_id}: {e}", aggregate_id=node.aggregate_id
            ) from e
