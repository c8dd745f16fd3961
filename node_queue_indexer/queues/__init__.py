"""
Job queue backends for the queue indexer.

SQS for deployed environments, a local JSON file queue for development.
"""

from ..config.settings import QueueIndexerSettings
from .local_queue import LocalJobQueue
from .sqs_queue import SQSJobQueue

__all__ = [
    "LocalJobQueue",
    "SQSJobQueue",
    "create_job_queue",
]


def create_job_queue(settings: QueueIndexerSettings):
    """
    Factory function to create the job queue configured in settings.

    Returns:
        SQSJobQueue or LocalJobQueue
    """
    if settings.queue_backend == "sqs":
        return SQSJobQueue(settings)
    return LocalJobQueue(settings.local_queue_dir)
