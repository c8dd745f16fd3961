"""
Node indexer that routes index updates through the job queue.

For every node change this decides whether the search index is updated
right away (asynchronous indexing disabled) or through jobs on the live
queue, and expands node removals into one removal job per dimension
combination that no longer has a live node.
"""

from typing import List, Optional

from ..config.settings import QueueIndexerSettings
from ..schema.job import IndexJobPayload, Job, JobKind, NodeRecord
from ..schema.node import ContentNode, NodeEvent, NodeOperation
from ..utils.logging import get_logger
from .dispatcher import JobDispatcher
from .exceptions import NodeResolutionException, QueueIndexerException
from .interfaces import ContentGraph, JobQueue, PersistenceLookup, SynchronousIndexer
from .payload_builder import NodePayloadBuilder
from .workspace_scope import is_eligible

logger = get_logger(__name__)


class QueueNodeIndexer:
    """
    Decides between synchronous indexing and queued index/removal jobs.

    Holds no mutable state; collaborators and flags are fixed at construction,
    so one instance can be shared across callers.
    """

    def __init__(
        self,
        synchronous_indexer: SynchronousIndexer,
        dispatcher: JobDispatcher,
        content_graph: ContentGraph,
        persistence: PersistenceLookup,
        enable_live_async_indexing: bool = True,
        index_all_workspaces: bool = False,
        index_name_postfix: str = "",
    ):
        self.synchronous_indexer = synchronous_indexer
        self.dispatcher = dispatcher
        self.content_graph = content_graph
        self.payload_builder = NodePayloadBuilder(content_graph, persistence)
        self.enable_live_async_indexing = enable_live_async_indexing
        self.index_all_workspaces = index_all_workspaces
        self.index_name_postfix = index_name_postfix

    @classmethod
    def from_settings(
        cls,
        settings: QueueIndexerSettings,
        synchronous_indexer: SynchronousIndexer,
        job_queue: JobQueue,
        content_graph: ContentGraph,
        persistence: PersistenceLookup,
    ) -> "QueueNodeIndexer":
        return cls(
            synchronous_indexer=synchronous_indexer,
            dispatcher=JobDispatcher(job_queue),
            content_graph=content_graph,
            persistence=persistence,
            enable_live_async_indexing=settings.enable_live_async_indexing,
            index_all_workspaces=settings.index_all_workspaces,
            index_name_postfix=settings.index_name_postfix,
        )

    def handle(self, event: NodeEvent) -> None:
        """Apply a node event, removed nodes always take the removal path."""
        if event.effective_operation == NodeOperation.REMOVE:
            self.remove_node(event.node, event.target_workspace_name)
        else:
            self.index_node(event.node, event.target_workspace_name)

    def index_node(self, node: ContentNode, target_workspace_name: Optional[str] = None) -> None:
        """
        Index a node, or queue an indexing job for it.

        Args:
            node: Node that was created or updated
            target_workspace_name: Workspace the node is published into, if indexing
                is triggered by publishing
        """
        if node.removed:
            self.remove_node(node, target_workspace_name)
            return

        if not self.enable_live_async_indexing:
            self.synchronous_indexer.index_node(node, target_workspace_name)
            return

        if not self._in_scope(node, target_workspace_name):
            return

        job = self._build_job(JobKind.INDEX, target_workspace_name, self.payload_builder.node_as_records(node))
        self.dispatcher.dispatch_live(job)

        logger.info(
            "index_job_dispatched",
            aggregate_id=node.aggregate_id,
            job_identifier=job.identifier,
            target_workspace=target_workspace_name,
        )

    def remove_node(self, node: ContentNode, target_workspace_name: Optional[str] = None) -> None:
        """
        Remove a node from the index, or queue removal jobs for it.

        Without dimension combinations a single removal job for the node itself
        is queued. Otherwise one removal job is queued per combination in which
        the node no longer exists in the target workspace. Jobs queued before a
        failure are not taken back.

        Raises:
            NodeResolutionException: If a graph or persistence lookup fails
            JobDispatchException: If the queue rejects a job
        """
        if not self.enable_live_async_indexing:
            self.synchronous_indexer.remove_node(node, target_workspace_name)
            return

        if not self._in_scope(node, target_workspace_name):
            return

        combinations = self._dimension_combinations(node)
        if target_workspace_name is None:
            target_workspace_name = node.workspace_name

        if not any(combinations):
            job = self._build_job(JobKind.REMOVE, target_workspace_name, self.payload_builder.node_as_records(node))
            self.dispatcher.dispatch_live(job)
            logger.info(
                "removal_job_dispatched",
                aggregate_id=node.aggregate_id,
                job_identifier=job.identifier,
                target_workspace=target_workspace_name,
            )
            return

        for combination in combinations:
            if not combination:
                continue

            # TODO: check the workspace of the found node before skipping the variant
            variant = self._find_variant(node, target_workspace_name, combination)
            if variant is not None and not variant.removed:
                logger.debug(
                    "removal_variant_skipped",
                    aggregate_id=node.aggregate_id,
                    dimensions=combination,
                    target_workspace=target_workspace_name,
                )
                continue

            record = self.payload_builder.placeholder_record(node, combination)
            job = self._build_job(JobKind.REMOVE, target_workspace_name, [record])
            self.dispatcher.dispatch_live(job)

            logger.info(
                "removal_job_dispatched",
                aggregate_id=node.aggregate_id,
                job_identifier=job.identifier,
                dimensions=combination,
                target_workspace=target_workspace_name,
            )

    def _in_scope(self, node: ContentNode, target_workspace_name: Optional[str]) -> bool:
        if is_eligible(target_workspace_name, node.workspace_name, self.index_all_workspaces):
            return True

        logger.debug(
            "node_out_of_scope",
            aggregate_id=node.aggregate_id,
            workspace=node.workspace_name,
            target_workspace=target_workspace_name,
        )
        return False

    def _dimension_combinations(self, node: ContentNode):
        try:
            return list(self.content_graph.dimension_combinations_for_indexing(node))
        except QueueIndexerException:
            raise
        except Exception as e:
            raise NodeResolutionException(
                f"Failed to resolve dimension combinations for node {node.aggregate_id}: {e}",
                aggregate_id=node.aggregate_id,
            ) from e

    def _find_variant(self, node: ContentNode, workspace_name: str, combination) -> Optional[ContentNode]:
        try:
            return self.content_graph.find_node(workspace_name, combination, node.aggregate_id)
        except QueueIndexerException:
            raise
        except Exception as e:
            raise NodeResolutionException(
                f"Failed to look up node {node.aggregate_id} in {workspace_name} {combination}: {e}",
                aggregate_id=node.aggregate_id,
            ) from e

    def _build_job(self, kind: JobKind, target_workspace_name: Optional[str], records: List[NodeRecord]) -> Job:
        return Job(
            kind=kind,
            payload=IndexJobPayload(
                index_name_postfix=self.index_name_postfix,
                target_workspace_name=target_workspace_name,
                nodes=records,
            ),
        )
