"""
Custom exceptions for the queue indexer.
"""


from typing import Optional


class QueueIndexerException(Exception):
    """Base exception for all queue indexer errors."""

    pass


class RetryableException(QueueIndexerException):
    """Exception that indicates the caller may retry the operation."""

    def __init__(self, message: str, retry_delay: int = 0):
        super().__init__(message)
        self.retry_delay = retry_delay


class NonRetryableException(QueueIndexerException):
    """Exception that indicates retrying the operation will not help."""

    pass


class NodeResolutionException(NonRetryableException):
    """Identity, path, dimension or persistence lookup failed for a node."""

    def __init__(self, message: str, aggregate_id: Optional[str] = None):
        super().__init__(message)
        self.aggregate_id = aggregate_id


class JobDispatchException(RetryableException):
    """The job queue rejected an enqueue."""

    def __init__(
        self,
        message: str,
        queue_name: Optional[str] = None,
        job_identifier: Optional[str] = None,
        retry_delay: int = 5,
    ):
        super().__init__(message, retry_delay)
        self.queue_name = queue_name
        self.job_identifier = job_identifier


class ConfigurationException(NonRetryableException):
    """Configuration-related errors."""

    pass
