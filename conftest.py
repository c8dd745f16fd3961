from typing import Dict, List, Optional, Tuple

import pytest

from node_queue_indexer.indexer import (
    ContentGraph,
    JobDispatcher,
    JobQueue,
    PersistenceLookup,
    QueueNodeIndexer,
    SynchronousIndexer,
)
from node_queue_indexer.schema import ContentNode, Job


def combination_key(dimensions: Dict[str, str]) -> Tuple[Tuple[str, str], ...]:
    return tuple(sorted(dimensions.items()))


class RecordingJobQueue(JobQueue):
    """Keeps enqueued jobs in memory, optionally failing on the n-th enqueue."""

    def __init__(self, fail_on_call: Optional[int] = None):
        self.enqueued: List[Tuple[str, Job]] = []
        self.fail_on_call = fail_on_call
        self.calls = 0

    def enqueue(self, queue_name: str, job: Job) -> None:
        self.calls += 1
        if self.fail_on_call is not None and self.calls == self.fail_on_call:
            raise RuntimeError("queue unavailable")
        self.enqueued.append((queue_name, job))

    @property
    def jobs(self) -> List[Job]:
        return [job for _, job in self.enqueued]


class RecordingSynchronousIndexer(SynchronousIndexer):
    def __init__(self):
        self.indexed: List[Tuple[ContentNode, Optional[str]]] = []
        self.removed: List[Tuple[ContentNode, Optional[str]]] = []

    def index_node(self, node, target_workspace_name=None):
        self.indexed.append((node, target_workspace_name))

    def remove_node(self, node, target_workspace_name=None):
        self.removed.append((node, target_workspace_name))


class FakeContentGraph(ContentGraph):
    def __init__(self, combinations=None, paths=None):
        self.combinations: List[Dict[str, str]] = list(combinations or [])
        self.paths: Dict[str, str] = dict(paths or {})
        # (workspace, combination key, aggregate id) -> node
        self.variants: Dict[tuple, ContentNode] = {}
        self.path_requests: List[ContentNode] = []
        self.lookups: List[tuple] = []

    def add_variant(self, workspace_name: str, node: ContentNode) -> None:
        self.variants[(workspace_name, combination_key(node.dimensions), node.aggregate_id)] = node

    def dimension_combinations_for_indexing(self, node):
        return [dict(combination) for combination in self.combinations]

    def find_node(self, workspace_name, dimensions, aggregate_id):
        self.lookups.append((workspace_name, dict(dimensions), aggregate_id))
        return self.variants.get((workspace_name, combination_key(dimensions), aggregate_id))

    def path_for(self, node):
        self.path_requests.append(node)
        return self.paths.get(node.aggregate_id, f"/sites/site/{node.aggregate_id}")


class FakePersistence(PersistenceLookup):
    def __init__(self):
        self.requests: List[ContentNode] = []

    def identifier_for(self, node):
        self.requests.append(node)
        return f"persistence-{node.aggregate_id}"


@pytest.fixture
def job_queue():
    return RecordingJobQueue()


@pytest.fixture
def synchronous_indexer():
    return RecordingSynchronousIndexer()


@pytest.fixture
def content_graph():
    return FakeContentGraph()


@pytest.fixture
def persistence():
    return FakePersistence()


@pytest.fixture
def make_indexer(job_queue, synchronous_indexer, content_graph, persistence):
    def _make(**options) -> QueueNodeIndexer:
        return QueueNodeIndexer(
            synchronous_indexer=synchronous_indexer,
            dispatcher=JobDispatcher(job_queue),
            content_graph=content_graph,
            persistence=persistence,
            **options,
        )

    return _make


@pytest.fixture
def live_node():
    return ContentNode(
        aggregate_id="a1b2c3",
        node_type_name="Acme.Site:Document.Page",
        workspace_name="live",
        dimensions={"language": "en"},
    )
