"""Tests for the job dispatcher and the job queue backends."""

import json
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from node_queue_indexer.config.settings import QueueIndexerSettings
from node_queue_indexer.indexer import (
    LIVE_QUEUE_NAME,
    ConfigurationException,
    JobDispatcher,
    JobDispatchException,
)
from node_queue_indexer.queues import LocalJobQueue, SQSJobQueue, create_job_queue
from node_queue_indexer.queues import local_queue
from node_queue_indexer.schema import IndexJobPayload, Job, JobKind, NodeRecord


def make_job(kind: JobKind = JobKind.INDEX, language: str = "en") -> Job:
    record = NodeRecord(
        persistence_object_identifier="p-1",
        identifier="n1",
        dimensions={"language": language},
        workspace="live",
        node_type="Acme:Text",
        path="/sites/site/n1",
    )
    return Job(kind=kind, payload=IndexJobPayload(target_workspace_name="live", nodes=[record]))


def sqs_settings(**overrides) -> QueueIndexerSettings:
    values = {
        "queue_backend": "sqs",
        "sqs_queue_urls": {"live": "https://sqs.us-east-1.amazonaws.com/123456789012/node-index-live"},
    }
    values.update(overrides)
    return QueueIndexerSettings(**values)


# Dispatcher


def test_dispatcher_enqueues_into_named_queue(job_queue):
    job = make_job()

    JobDispatcher(job_queue).dispatch_live(job)

    assert job_queue.enqueued == [(LIVE_QUEUE_NAME, job)]


def test_dispatcher_wraps_queue_errors():
    failing_queue = MagicMock()
    failing_queue.enqueue.side_effect = ConnectionError("broker down")
    job = make_job()

    with pytest.raises(JobDispatchException) as exc_info:
        JobDispatcher(failing_queue).dispatch("live", job)

    assert exc_info.value.job_identifier == job.identifier
    assert exc_info.value.retry_delay > 0
    assert isinstance(exc_info.value.__cause__, ConnectionError)


def test_dispatcher_passes_indexer_errors_through():
    failing_queue = MagicMock()
    failing_queue.enqueue.side_effect = ConfigurationException("no queue")

    with pytest.raises(ConfigurationException):
        JobDispatcher(failing_queue).dispatch("live", make_job())


# Local queue


def test_local_queue_appends_jobs_in_order(tmp_path):
    queue = LocalJobQueue(tmp_path / "queue")
    first = make_job(JobKind.INDEX)
    second = make_job(JobKind.REMOVE, language="de")

    queue.enqueue("live", first)
    queue.enqueue("live", second)

    assert queue.read_jobs("live") == [first, second]
    assert queue.queue_depth("live") == 2
    assert queue.stats["messages_sent"] == 2


def test_local_queue_keeps_queues_apart(tmp_path):
    queue = LocalJobQueue(tmp_path)

    queue.enqueue("live", make_job())

    assert queue.read_jobs("other") == []
    assert queue.queue_file("live").exists()


def test_local_queue_purge(tmp_path):
    queue = LocalJobQueue(tmp_path)
    queue.enqueue("live", make_job())
    queue.enqueue("live", make_job())

    assert queue.purge("live") == 2
    assert queue.read_jobs("live") == []


def test_local_queue_refuses_to_overwrite_corrupt_file(tmp_path):
    queue = LocalJobQueue(tmp_path)
    queue.queue_file("live").write_text("{not json", encoding="utf-8")

    with pytest.raises(JobDispatchException):
        queue.enqueue("live", make_job())

    assert queue.queue_file("live").read_text(encoding="utf-8") == "{not json"
    assert queue.stats["messages_failed"] == 1


def test_local_queue_keeps_earlier_jobs_when_write_fails(tmp_path, monkeypatch):
    """A write that dies halfway leaves the jobs already queued readable."""
    queue = LocalJobQueue(tmp_path)
    queued = [make_job(language=language) for language in ("en", "de", "fr")]
    for job in queued:
        queue.enqueue("live", job)

    def fail_midway(obj, fp, **kwargs):
        fp.write("[")
        raise OSError("No space left on device")

    monkeypatch.setattr(local_queue.json, "dump", fail_midway)

    with pytest.raises(JobDispatchException):
        queue.enqueue("live", make_job(language="it"))

    monkeypatch.undo()
    assert queue.read_jobs("live") == queued
    assert not list(tmp_path.glob("*.tmp"))

    queue.enqueue("live", make_job(language="it"))
    assert queue.queue_depth("live") == 4


def test_local_queue_reports_unwritable_directory(tmp_path):
    queue = LocalJobQueue(tmp_path / "queue")
    assert queue.is_writable() is True

    (tmp_path / "queue").rmdir()

    assert queue.is_writable() is False


# SQS queue


def test_sqs_queue_sends_job_message():
    client = MagicMock()
    client.send_message.return_value = {"MessageId": "m-1"}
    queue = SQSJobQueue(sqs_settings(), sqs_client=client)
    job = make_job(JobKind.REMOVE)

    queue.enqueue("live", job)

    params = client.send_message.call_args.kwargs
    assert params["QueueUrl"].endswith("/node-index-live")
    assert json.loads(params["MessageBody"])["identifier"] == job.identifier
    assert params["MessageAttributes"]["JobKind"]["StringValue"] == "remove"
    assert "MessageGroupId" not in params
    assert queue.get_stats()["removal_jobs"] == 1


def test_sqs_fifo_queue_groups_by_node():
    client = MagicMock()
    client.send_message.return_value = {"MessageId": "m-1"}
    settings = sqs_settings(sqs_queue_urls={"live": "https://sqs.us-east-1.amazonaws.com/1/node-index.fifo"})
    queue = SQSJobQueue(settings, sqs_client=client)

    queue.enqueue("live", make_job())

    params = client.send_message.call_args.kwargs
    assert params["MessageGroupId"] == "n1"
    assert params["MessageDeduplicationId"]


def test_sqs_queue_raises_when_rejected():
    client = MagicMock()
    client.send_message.side_effect = ClientError(
        {"Error": {"Code": "AWS.SimpleQueueService.NonExistentQueue", "Message": "gone"}}, "SendMessage"
    )
    queue = SQSJobQueue(sqs_settings(), sqs_client=client)

    with pytest.raises(JobDispatchException):
        queue.enqueue("live", make_job())

    assert queue.get_stats()["messages_failed"] == 1


def test_sqs_queue_counts_connection_errors():
    client = MagicMock()
    client.send_message.side_effect = EndpointConnectionError(endpoint_url="https://sqs.us-east-1.amazonaws.com")
    queue = SQSJobQueue(sqs_settings(), sqs_client=client)

    with pytest.raises(JobDispatchException) as exc_info:
        queue.enqueue("live", make_job())

    assert isinstance(exc_info.value.__cause__, EndpointConnectionError)
    assert queue.get_stats()["messages_failed"] == 1
    assert queue.get_stats()["messages_sent"] == 0


def test_sqs_queue_requires_configured_url():
    queue = SQSJobQueue(sqs_settings(), sqs_client=MagicMock())

    with pytest.raises(ConfigurationException):
        queue.enqueue("reindex", make_job())


def test_sqs_health_check_reports_each_queue():
    client = MagicMock()
    client.get_queue_attributes.side_effect = ClientError({"Error": {"Code": "AccessDenied"}}, "GetQueueAttributes")
    queue = SQSJobQueue(sqs_settings(), sqs_client=client)

    result = queue.health_check()

    assert result["status"] == "unhealthy"
    assert result["queues"]["live"].startswith("unhealthy")


def test_create_job_queue_picks_backend(tmp_path):
    assert isinstance(create_job_queue(QueueIndexerSettings(local_queue_dir=tmp_path)), LocalJobQueue)
    assert isinstance(create_job_queue(sqs_settings()), SQSJobQueue)
