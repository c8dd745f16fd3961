"""
Local file based job queue.

Stores jobs in one JSON file per queue name for local development and
testing, without requiring AWS services.
"""

import fcntl
import json
import logging
import os
import re
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, List
from uuid import uuid4

from pydantic import BaseModel

from ..indexer.exceptions import JobDispatchException
from ..indexer.interfaces import JobQueue
from ..schema.job import Job

logger = logging.getLogger(__name__)


class LocalMessage(BaseModel):
    """Local message wrapper with metadata"""

    message_id: str
    body: str
    enqueued_at: datetime


class LocalJobQueue(JobQueue):
    """
    File based job queue with the same ``enqueue`` contract as the SQS queue.

    Queue files are only ever replaced whole, so a failed write leaves the
    previously queued jobs in place.
    """

    def __init__(self, queue_dir: Path):
        self.queue_dir = Path(queue_dir)
        self.queue_dir.mkdir(parents=True, exist_ok=True)

        # Serialises threads; the .lock file serialises processes
        self._lock = threading.Lock()

        self.stats: Dict[str, int] = {"messages_sent": 0, "messages_failed": 0}

        logger.info(f"Local job queue initialized in: {self.queue_dir}")

    def queue_file(self, queue_name: str) -> Path:
        safe_name = re.sub(r"[^A-Za-z0-9_.-]", "_", queue_name)
        return self.queue_dir / f"{safe_name}.json"

    @contextmanager
    def _locked(self, file_path: Path) -> Iterator[None]:
        """Exclusive lock on a queue file across threads and processes"""
        lock_path = file_path.with_name(file_path.name + ".lock")
        with self._lock:
            with open(lock_path, "w") as lock_file:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
                try:
                    yield
                finally:
                    fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def _read_queue_file(self, file_path: Path) -> List[LocalMessage]:
        if not file_path.exists():
            return []

        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
            return [LocalMessage(**msg) for msg in data]

    def _write_queue_file(self, file_path: Path, messages: List[LocalMessage]):
        """Write to a temp file next to the queue file and swap it in"""
        tmp_path = file_path.with_name(file_path.name + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump([msg.model_dump(mode="json") for msg in messages], f, indent=2, default=str)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, file_path)
        except BaseException:
            if tmp_path.exists():
                tmp_path.unlink()
            raise

    def enqueue(self, queue_name: str, job: Job) -> None:
        """
        Append a job to the queue file.

        Raises:
            JobDispatchException: If the queue file can't be read or written
        """
        local_msg = LocalMessage(
            message_id=str(uuid4()),
            body=job.to_message_body(),
            enqueued_at=datetime.now(timezone.utc),
        )
        file_path = self.queue_file(queue_name)

        try:
            with self._locked(file_path):
                messages = self._read_queue_file(file_path)
                messages.append(local_msg)
                self._write_queue_file(file_path, messages)
        except (OSError, ValueError) as e:
            self.stats["messages_failed"] += 1
            logger.error(f"Failed to write {job.label} to {file_path}: {e}")
            raise JobDispatchException(
                f"Failed to write {job.label} to local queue '{queue_name}': {e}",
                queue_name=queue_name,
                job_identifier=job.identifier,
            ) from e

        self.stats["messages_sent"] += 1
        logger.debug(f"Queued {job.label} in local queue '{queue_name}'")

    def read_jobs(self, queue_name: str) -> List[Job]:
        """Jobs currently waiting in the queue, oldest first"""
        file_path = self.queue_file(queue_name)
        with self._locked(file_path):
            messages = self._read_queue_file(file_path)
        return [Job.from_message_body(msg.body) for msg in messages]

    def queue_depth(self, queue_name: str) -> int:
        file_path = self.queue_file(queue_name)
        with self._locked(file_path):
            return len(self._read_queue_file(file_path))

    def purge(self, queue_name: str) -> int:
        """Drop all jobs from a queue, returns how many were dropped"""
        file_path = self.queue_file(queue_name)
        with self._locked(file_path):
            dropped = len(self._read_queue_file(file_path))
            self._write_queue_file(file_path, [])

        logger.info(f"Purged {dropped} jobs from local queue '{queue_name}'")
        return dropped

    def is_writable(self) -> bool:
        """Whether jobs can be written to the queue directory"""
        check_path = self.queue_dir / f".write-check-{uuid4().hex}"
        try:
            check_path.write_text("", encoding="utf-8")
            check_path.unlink()
        except OSError as e:
            logger.error(f"Local queue directory {self.queue_dir} is not writable: {e}")
            return False
        return True
