# cartkit/celery_worker.py
from celery import Celery

from cartkit.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "cart",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# WAŻNE: Explicite importuj taski, żeby Celery je zarejestrował
celery_app.conf.imports = (
    "cartkit.services.notification_service",
)

celery_app.conf.timezone = "UTC"
