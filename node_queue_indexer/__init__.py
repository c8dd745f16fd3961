"""
Queue-backed search indexer for a multi-dimensional content repository.

Decides, for every node change, whether the search index is updated
synchronously or through asynchronous jobs, and fans node removals out
into one removal job per dimension combination.
"""

from .utils.logging import setup_logger

__version__ = "0.1.0"
__all__ = ["setup_logger"]
