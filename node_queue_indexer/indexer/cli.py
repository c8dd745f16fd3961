"""
CLI entry point for the queue indexer.
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from ..config.settings import QueueIndexerSettings, load_settings
from ..queues import LocalJobQueue, SQSJobQueue, create_job_queue
from ..utils.logging import setup_logger
from .dispatcher import LIVE_QUEUE_NAME


def show_config(settings: QueueIndexerSettings) -> None:
    """Print configuration (without sensitive data)."""
    print("Queue Indexer Configuration:")
    print(f"  Async Indexing Enabled: {settings.enable_live_async_indexing}")
    print(f"  Index All Workspaces: {settings.index_all_workspaces}")
    print(f"  Index Name Postfix: {settings.index_name_postfix or '(none)'}")
    print(f"  Queue Backend: {settings.queue_backend}")
    if settings.queue_backend == "sqs":
        print(f"  AWS Region: {settings.aws_region}")
        for queue_name, queue_url in sorted(settings.sqs_queue_urls.items()):
            print(f"  SQS Queue '{queue_name}': {queue_url}")
    else:
        print(f"  Local Queue Directory: {settings.local_queue_dir}")


def health_check(settings: QueueIndexerSettings) -> bool:
    """Check that the configured job queue is reachable."""
    print("Performing health checks...")

    job_queue = create_job_queue(settings)

    if isinstance(job_queue, SQSJobQueue):
        result = job_queue.health_check()
        for queue_name, status in sorted(result["queues"].items()):
            marker = "✅" if status == "healthy" else "❌"
            print(f"{marker} SQS queue '{queue_name}': {status}")
        healthy = result["status"] == "healthy"
    else:
        queue_dir = job_queue.queue_dir
        healthy = job_queue.is_writable()
        status = "writable" if healthy else "not writable"
        print(f"{'✅' if healthy else '❌'} Local queue directory {queue_dir}: {status}")

    if healthy:
        print("🎉 All health checks passed!")
    return healthy


def queue_status(settings: QueueIndexerSettings, queue_name: str) -> None:
    """Print the jobs waiting in a local queue."""
    job_queue = create_job_queue(settings)
    if not isinstance(job_queue, LocalJobQueue):
        print("queue-status is only available for the local queue backend")
        return

    jobs = job_queue.read_jobs(queue_name)
    print(f"Queue '{queue_name}': {len(jobs)} jobs")
    for job in jobs:
        nodes = ", ".join(f"{record.identifier} {record.dimensions or '{}'}" for record in job.payload.nodes)
        print(f"  {job.label} -> {job.payload.target_workspace_name or '-'}: {nodes}")


def main(argv: Optional[Sequence[str]] = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description="Content repository queue indexer")

    parser.add_argument("command", choices=["config", "health", "queue-status"], help="Command to execute")
    parser.add_argument("--queue", default=LIVE_QUEUE_NAME, help="Queue name for queue-status")
    parser.add_argument(
        "--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level"
    )
    parser.add_argument("--json-logs", action="store_true", help="Output logs in JSON format")

    args = parser.parse_args(argv)

    setup_logger("node_queue_indexer", args.log_level, args.json_logs)

    try:
        settings = load_settings()

        if args.command == "config":
            show_config(settings)

        elif args.command == "health":
            success = health_check(settings)
            sys.exit(0 if success else 1)

        elif args.command == "queue-status":
            queue_status(settings, args.queue)

    except Exception as e:
        logging.error(f"Queue indexer command failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
