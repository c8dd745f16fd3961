"""
Collaborators the queue indexer depends on.

Concrete implementations live outside this package (search engine client,
content graph, persistence layer) except for the job queues in
``node_queue_indexer.queues``.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..schema.job import Job
from ..schema.node import ContentNode, DimensionCombination


class SynchronousIndexer(ABC):
    """Writes to the search index directly, used when async indexing is off."""

    @abstractmethod
    def index_node(self, node: ContentNode, target_workspace_name: Optional[str] = None) -> None:
        pass

    @abstractmethod
    def remove_node(self, node: ContentNode, target_workspace_name: Optional[str] = None) -> None:
        pass


class JobQueue(ABC):
    """Durable queue that later hands jobs to the indexing workers."""

    @abstractmethod
    def enqueue(self, queue_name: str, job: Job) -> None:
        """Store the job or raise."""
        pass


class ContentGraph(ABC):
    """Dimension resolution and node lookups in the content repository."""

    @abstractmethod
    def dimension_combinations_for_indexing(self, node: ContentNode) -> List[DimensionCombination]:
        """Dimension combinations the node has to be indexed (and removed) in."""
        pass

    @abstractmethod
    def find_node(
        self, workspace_name: str, dimensions: DimensionCombination, aggregate_id: str
    ) -> Optional[ContentNode]:
        """The node as visible in the given workspace and dimension combination, if any."""
        pass

    @abstractmethod
    def path_for(self, node: ContentNode) -> str:
        """Tree path of the node within its subgraph."""
        pass


class PersistenceLookup(ABC):
    """Maps a node to the identifier of its stored object."""

    @abstractmethod
    def identifier_for(self, node: ContentNode) -> str:
        pass
