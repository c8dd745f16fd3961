from .job import FAKE_PERSISTENCE_IDENTIFIER, IndexJobPayload, Job, JobKind, NodeRecord
from .node import ContentNode, DimensionCombination, NodeEvent, NodeOperation

__all__ = [
    # node
    "ContentNode",
    "DimensionCombination",
    "NodeEvent",
    "NodeOperation",
    # job
    "FAKE_PERSISTENCE_IDENTIFIER",
    "IndexJobPayload",
    "Job",
    "JobKind",
    "NodeRecord",
]
