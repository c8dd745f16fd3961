"""
Thin facade over the job queue.
"""

from ..schema.job import Job
from ..utils.logging import get_logger
from .exceptions import JobDispatchException, QueueIndexerException
from .interfaces import JobQueue

# Shared by index and removal jobs
LIVE_QUEUE_NAME = "live"

logger = get_logger(__name__)


class JobDispatcher:
    """Hands finished jobs to the job queue, one enqueue per job."""

    def __init__(self, job_queue: JobQueue):
        self.job_queue = job_queue

    def dispatch(self, queue_name: str, job: Job) -> None:
        """
        Enqueue a job.

        Raises:
            JobDispatchException: If the queue rejects the job
        """
        try:
            self.job_queue.enqueue(queue_name, job)
        except QueueIndexerException:
            raise
        except Exception as e:
            logger.error(
                "job_dispatch_failed",
                queue_name=queue_name,
                job_identifier=job.identifier,
                kind=job.kind.value,
                error=str(e),
            )
            raise JobDispatchException(
                f"Failed to enqueue {job.label} into queue '{queue_name}': {e}",
                queue_name=queue_name,
                job_identifier=job.identifier,
            ) from e

        logger.debug("job_dispatched", queue_name=queue_name, job_identifier=job.identifier, kind=job.kind.value)

    def dispatch_live(self, job: Job) -> None:
        self.dispatch(LIVE_QUEUE_NAME, job)
