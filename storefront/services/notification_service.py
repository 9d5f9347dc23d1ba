# storefront/services/notification_service.py
import threading
from concurrent.futures import Executor, ThreadPoolExecutor

import requests
from requests import RequestException

from storefront.celery_worker import celery_app
from storefront.domain.schemas import AddressOut, OrderOut
from storefront.services.live_registry import SubscriberRegistry
from storefront.utils.settings import ORDER_WEBHOOK_URL, WEBHOOK_ENQUEUE_WORKERS, WEBHOOK_TIMEOUT_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_executor: ThreadPoolExecutor | None = None
_executor_lock = threading.Lock()


def webhook_executor() -> ThreadPoolExecutor:
    """Process-wide pool that hands webhook jobs to the broker off the request thread."""
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(
                max_workers=WEBHOOK_ENQUEUE_WORKERS,
                thread_name_prefix="webhook-enqueue",
            )
        return _executor


def shutdown_webhook_executor(wait: bool = True):
    global _executor
    with _executor_lock:
        executor, _executor = _executor, None
    if executor is not None:
        executor.shutdown(wait=wait)


def serialize_order(order, user=None, address=None, enriched: bool = False) -> dict:
    """JSON-ready order; return-class events also carry the owner and the address."""
    payload = OrderOut.model_validate(order).model_dump(mode="json")
    if enriched:
        payload["user"] = (
            {"id": user.id, "name": user.name, "phone": user.phone} if user is not None else None
        )
        payload["address"] = (
            AddressOut.model_validate(address).model_dump(mode="json") if address is not None else None
        )
    return payload


class EventFanout:
    """
    Best-effort dispatch of order events to the live registry and the external
    webhook. publish() never raises and never waits on the broker: the triggering
    operation has already succeeded and its outcome must not change.
    """

    def __init__(
        self,
        registry: SubscriberRegistry | None = None,
        webhook_url: str | None = None,
        timeout: float | None = None,
        executor: Executor | None = None,
    ):
        self.registry = registry
        self.webhook_url = ORDER_WEBHOOK_URL if webhook_url is None else webhook_url
        self.timeout = WEBHOOK_TIMEOUT_SECONDS if timeout is None else timeout
        self.executor = executor

    def publish(self, order: dict, event: str | None = None) -> None:
        message = {"order": order}
        if event:
            message["event"] = event

        if self.registry is not None:
            try:
                self.registry.broadcast(message)
            except Exception:
                logger.exception(f"Live broadcast failed for order {order.get('id')}")

        if self.webhook_url:
            try:
                executor = self.executor or webhook_executor()
                executor.submit(enqueue_webhook, self.webhook_url, message, self.timeout)
            except Exception:
                logger.exception(f"Could not schedule webhook for order {order.get('id')}")


def enqueue_webhook(url: str, message: dict, timeout: float):
    """Runs on the enqueue pool; a broker outage is logged here and goes no further."""
    order_id = (message.get("order") or {}).get("id")
    try:
        send_order_webhook_task.apply_async(args=(url, message, timeout), retry=False)
    except Exception:
        logger.exception(f"Could not enqueue webhook for order {order_id}")


@celery_app.task(name="storefront.services.notification_service.send_order_webhook_task")
def send_order_webhook_task(url: str, message: dict, timeout: float = WEBHOOK_TIMEOUT_SECONDS):
    """
    POST {order, event?} to the admin system. Fire-and-forget: no retries,
    failures are only logged.
    """
    order_id = (message.get("order") or {}).get("id")
    try:
        resp = requests.post(url, json=message, timeout=timeout)
    except RequestException as e:
        logger.warning(f"[WEBHOOK] order {order_id}: delivery failed: {e}")
        return {"order_id": order_id, "status": "failed"}

    if not 200 <= resp.status_code < 300:
        logger.warning(f"[WEBHOOK] order {order_id}: endpoint answered {resp.status_code}")
        return {"order_id": order_id, "status": "rejected", "code": resp.status_code}

    logger.info(f"[WEBHOOK] order {order_id}: delivered ({message.get('event')})")
    return {"order_id": order_id, "status": "sent"}
