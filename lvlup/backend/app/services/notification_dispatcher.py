# backend/app/services/notification_dispatcher.py
"""
Outbound notification queue.

Domain operations persist a notification and enqueue a ``DeliveryJob``; a
single worker task drains the queue and attempts each channel:

- realtime push, whenever the user holds a live connection
- email, when the job says the user's preferences allow it, retried with
  a per-attempt timeout

Every job produces a ``DeliveryResult``. Channel failures are logged and
recorded on the result, never raised to the code that enqueued the job.
"""
import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional

from app.core.config import settings
from app.core.logging import logger
from app.core.websocket_manager import ConnectionRegistry
from app.services.email_service import EmailService


@dataclass
class DeliveryJob:
    notification_id: str
    user_id: str
    email: Optional[str]
    recipient_name: str
    type: str
    title: str
    message: str
    payload: Dict[str, Any]
    send_email: bool
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class DeliveryResult:
    notification_id: str
    user_id: str
    attempted: List[str] = field(default_factory=list)
    delivered: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    email_attempts: int = 0


class NotificationDispatcher:
    """In-process delivery queue with one worker task"""

    def __init__(
        self,
        registry: ConnectionRegistry,
        email_service: Optional[EmailService] = None,
        max_queue_size: int = settings.NOTIFICATION_QUEUE_SIZE,
        email_max_attempts: int = settings.NOTIFICATION_EMAIL_MAX_ATTEMPTS,
        retry_delay: float = settings.NOTIFICATION_RETRY_DELAY_SECONDS,
        email_timeout: float = settings.EMAIL_TIMEOUT_SECONDS,
        history_size: int = 500,
    ):
        self.registry = registry
        self.email_service = email_service or EmailService()
        self.email_max_attempts = max(1, email_max_attempts)
        self.retry_delay = retry_delay
        self.email_timeout = email_timeout
        self._queue: "asyncio.Queue[DeliveryJob]" = asyncio.Queue(maxsize=max_queue_size)
        self._worker: Optional[asyncio.Task] = None
        self.results: Deque[DeliveryResult] = deque(maxlen=history_size)
        self.counters: Dict[str, int] = {
            "enqueued": 0,
            "dropped": 0,
            "processed": 0,
            "push_delivered": 0,
            "email_delivered": 0,
            "email_failed": 0,
        }

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def start(self) -> None:
        if not self.running:
            self._worker = asyncio.create_task(self._run(), name="notification-dispatcher")
            logger.info("Notification dispatcher started")

    async def stop(self) -> None:
        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        logger.info("Notification dispatcher stopped", extra={"pending": self.pending})

    def enqueue(self, job: DeliveryJob) -> bool:
        """Queue a job without waiting. False when the queue is full."""
        try:
            self._queue.put_nowait(job)
        except asyncio.QueueFull:
            self.counters["dropped"] += 1
            logger.warning(
                "Notification queue full, delivery dropped",
                extra={"user_id": job.user_id, "notification_id": job.notification_id},
            )
            return False
        self.counters["enqueued"] += 1
        return True

    async def drain(self) -> None:
        """Wait until every queued job has been processed"""
        if self.running:
            await self._queue.join()
            return
        while not self._queue.empty():
            job = self._queue.get_nowait()
            try:
                await self._process(job)
            finally:
                self._queue.task_done()

    async def _run(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self._process(job)
            finally:
                self._queue.task_done()

    async def _process(self, job: DeliveryJob) -> None:
        try:
            await self.deliver(job)
        except Exception:
            logger.exception(
                "Notification delivery crashed",
                extra={"user_id": job.user_id, "notification_id": job.notification_id},
            )

    async def deliver(self, job: DeliveryJob) -> DeliveryResult:
        result = DeliveryResult(notification_id=job.notification_id, user_id=job.user_id)

        if self.registry.is_connected(job.user_id):
            result.attempted.append("push")
            if await self.registry.send(job.user_id, {"type": "notification", "data": job.payload}):
                result.delivered.append("push")
                self.counters["push_delivered"] += 1
            else:
                result.errors["push"] = "connection unavailable"

        if job.send_email:
            await self._deliver_email(job, result)

        self.counters["processed"] += 1
        self.results.append(result)
        logger.info(
            f"Notification {job.notification_id} delivered via {result.delivered or 'in-app only'}",
            extra={"user_id": job.user_id, "notification_type": job.type, "errors": result.errors},
        )
        return result

    async def _deliver_email(self, job: DeliveryJob, result: DeliveryResult) -> None:
        if not job.email:
            result.errors["email"] = "no email address"
            return
        if not self.email_service.is_configured:
            result.errors["email"] = "email not configured"
            return

        result.attempted.append("email")
        for attempt in range(1, self.email_max_attempts + 1):
            result.email_attempts = attempt
            try:
                sent = await asyncio.wait_for(
                    self.email_service.send_notification_email(
                        job.email, job.recipient_name, job.title, job.message, job.metadata
                    ),
                    timeout=self.email_timeout,
                )
            except asyncio.TimeoutError:
                sent = False
                result.errors["email"] = "timeout"
            except Exception as e:
                sent = False
                result.errors["email"] = str(e) or e.__class__.__name__

            if sent:
                result.errors.pop("email", None)
                result.delivered.append("email")
                self.counters["email_delivered"] += 1
                return

            result.errors.setdefault("email", "send failed")
            if attempt < self.email_max_attempts:
                await asyncio.sleep(self.retry_delay * (2 ** (attempt - 1)))

        self.counters["email_failed"] += 1
        logger.error(
            f"Email delivery failed after {result.email_attempts} attempts",
            extra={"user_id": job.user_id, "notification_id": job.notification_id},
        )

    def stats(self) -> Dict[str, Any]:
        return {**self.counters, "pending": self.pending, "running": self.running}
