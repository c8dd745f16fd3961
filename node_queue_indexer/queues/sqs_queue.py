"""
SQS backed job queue.

Each queue name maps to an SQS queue URL. Jobs are sent as JSON message
bodies with attributes that let consumers route without parsing the body.
"""

import hashlib
import logging
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config.settings import QueueIndexerSettings
from ..indexer.exceptions import ConfigurationException, JobDispatchException
from ..indexer.interfaces import JobQueue
from ..schema.job import Job, JobKind

logger = logging.getLogger(__name__)


class SQSJobQueue(JobQueue):
    """
    Job queue that sends every job as one SQS message.

    Unlike a fire-and-forget sender, ``enqueue`` raises when SQS rejects the
    message so the caller knows the job was not stored.
    """

    def __init__(self, settings: QueueIndexerSettings, sqs_client: Optional[Any] = None):
        self.settings = settings
        self.queue_urls: Dict[str, str] = dict(settings.sqs_queue_urls)
        self._sqs_client = sqs_client

        self.stats = {
            "messages_sent": 0,
            "messages_failed": 0,
            "index_jobs": 0,
            "removal_jobs": 0,
        }

        logger.info(f"Initialized SQS job queue for queues: {sorted(self.queue_urls)}")

    def _ensure_sqs_client(self) -> Any:
        """Ensure SQS client is initialized"""
        if self._sqs_client is None:
            if self.settings.localstack_endpoint:
                self._sqs_client = boto3.client(  # type: ignore
                    "sqs",
                    endpoint_url=self.settings.localstack_endpoint,
                    aws_access_key_id=self.settings.aws_access_key_id,
                    aws_secret_access_key=self.settings.aws_secret_access_key,
                    region_name=self.settings.aws_region,
                )
            else:
                self._sqs_client = boto3.client(  # type: ignore
                    "sqs",
                    region_name=self.settings.aws_region,
                )

            logger.debug("Created SQS client for job queue")

        return self._sqs_client

    def queue_url_for(self, queue_name: str) -> str:
        queue_url = self.queue_urls.get(queue_name)
        if not queue_url:
            raise ConfigurationException(f"No SQS queue URL configured for queue '{queue_name}'")
        return queue_url

    def enqueue(self, queue_name: str, job: Job) -> None:
        """
        Send a job to the SQS queue configured for ``queue_name``.

        Raises:
            ConfigurationException: If no URL is configured for the queue
            JobDispatchException: If SQS rejects the message
        """
        queue_url = self.queue_url_for(queue_name)
        message_body = job.to_message_body()

        params: Dict[str, Any] = {
            "QueueUrl": queue_url,
            "MessageBody": message_body,
            "MessageAttributes": {
                "MessageType": {"StringValue": "NodeIndexJob", "DataType": "String"},
                "JobKind": {"StringValue": job.kind.value, "DataType": "String"},
                "QueueName": {"StringValue": queue_name, "DataType": "String"},
            },
        }

        # FIFO queues: keep jobs of one node in order, dedupe on job identity
        if queue_url.endswith(".fifo"):
            params["MessageGroupId"] = job.payload.nodes[0].identifier
            params["MessageDeduplicationId"] = hashlib.sha256(job.identifier.encode("utf-8")).hexdigest()

        try:
            response = self._ensure_sqs_client().send_message(**params)
        except ClientError as e:
            self.stats["messages_failed"] += 1
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"SQS send failed with error {error_code} for {job.label}: {e}")
            raise JobDispatchException(
                f"SQS rejected {job.label}: {error_code}", queue_name=queue_name, job_identifier=job.identifier
            ) from e
        except BotoCoreError as e:
            self.stats["messages_failed"] += 1
            logger.error(f"SQS send failed for {job.label}: {e}")
            raise JobDispatchException(
                f"Could not send {job.label} to SQS: {e}", queue_name=queue_name, job_identifier=job.identifier
            ) from e

        self.stats["messages_sent"] += 1
        if job.kind == JobKind.REMOVE:
            self.stats["removal_jobs"] += 1
        else:
            self.stats["index_jobs"] += 1

        logger.debug(
            f"Sent SQS message: {response.get('MessageId')}",
            extra={"queue_url": queue_url, "job_identifier": job.identifier, "kind": job.kind.value},
        )

    def get_stats(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = dict(self.stats)

        total_messages = stats["messages_sent"] + stats["messages_failed"]
        if total_messages > 0:
            stats["success_rate"] = stats["messages_sent"] / total_messages
        else:
            stats["success_rate"] = 0.0

        stats["configuration"] = {"queues": sorted(self.queue_urls)}
        return stats

    def health_check(self) -> Dict[str, Any]:
        """Check that every configured queue is reachable"""
        queue_health: Dict[str, str] = {}
        sqs_client = self._ensure_sqs_client()

        for queue_name, queue_url in self.queue_urls.items():
            try:
                sqs_client.get_queue_attributes(QueueUrl=queue_url, AttributeNames=["ApproximateNumberOfMessages"])
                queue_health[queue_name] = "healthy"
            except (BotoCoreError, ClientError) as e:
                queue_health[queue_name] = f"unhealthy: {e}"

        healthy = all(status == "healthy" for status in queue_health.values())
        return {"status": "healthy" if healthy else "unhealthy", "queues": queue_health, "stats": self.get_stats()}
