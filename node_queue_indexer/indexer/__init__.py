"""
Queue indexer core.

Routes content node changes either to a synchronous indexer or to index and
removal jobs on the live job queue:

1. Removed nodes always take the removal path
2. With asynchronous indexing disabled, the synchronous indexer is called
3. Changes outside the indexed workspaces are ignored
4. One indexing job per node change, one removal job per vanished dimension combination
"""

from .dispatcher import LIVE_QUEUE_NAME, JobDispatcher
from .exceptions import (
    ConfigurationException,
    JobDispatchException,
    NodeResolutionException,
    NonRetryableException,
    QueueIndexerException,
    RetryableException,
)
from .interfaces import ContentGraph, JobQueue, PersistenceLookup, SynchronousIndexer
from .node_indexer import QueueNodeIndexer
from .payload_builder import NodePayloadBuilder
from .workspace_scope import LIVE_WORKSPACE_NAME, is_eligible

__all__ = [
    "LIVE_QUEUE_NAME",
    "LIVE_WORKSPACE_NAME",
    "ConfigurationException",
    "ContentGraph",
    "JobDispatchException",
    "JobDispatcher",
    "JobQueue",
    "NodePayloadBuilder",
    "NodeResolutionException",
    "NonRetryableException",
    "PersistenceLookup",
    "QueueIndexerException",
    "QueueNodeIndexer",
    "RetryableException",
    "SynchronousIndexer",
    "is_eligible",
]
