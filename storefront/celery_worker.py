# storefront/celery_worker.py
from celery import Celery

from storefront.utils.settings import (
    BROKER_CONNECT_TIMEOUT_SECONDS,
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
)

celery_app = Celery(
    "storefront",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# register task modules explicitly
celery_app.conf.imports = (
    "storefront.services.notification_service",
)

celery_app.conf.task_serializer = "json"
celery_app.conf.accept_content = ["json"]
celery_app.conf.task_ignore_result = True
celery_app.conf.timezone = "UTC"

# producers give up quickly on a dead broker; 0 would mean retry forever
celery_app.conf.broker_connection_timeout = BROKER_CONNECT_TIMEOUT_SECONDS
celery_app.conf.broker_connection_max_retries = 1
celery_app.conf.broker_transport_options = {
    "socket_connect_timeout": BROKER_CONNECT_TIMEOUT_SECONDS,
    "socket_timeout": BROKER_CONNECT_TIMEOUT_SECONDS,
    "max_retries": 1,
}
celery_app.conf.redis_socket_connect_timeout = BROKER_CONNECT_TIMEOUT_SECONDS
celery_app.conf.redis_socket_timeout = BROKER_CONNECT_TIMEOUT_SECONDS
