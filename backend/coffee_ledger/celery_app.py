"""
Celery worker that retries pending SMS notifications.

Rows are claimed with SELECT FOR UPDATE SKIP LOCKED so several workers can run
the sweep at once without delivering the same message twice.
"""
import logging

from celery import Celery

from .config import settings
from .database import SessionLocal
from .services.sms_gateway import build_gateway
from .use_cases.notifications import sweep_pending_sms

logger = logging.getLogger(__name__)

celery_app = Celery(
    "coffee_ledger",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND
)

celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
)


@celery_app.task(name="process_pending_sms")
def process_pending_sms(batch_size: int | None = None):
    """Attempt delivery of every pending notification once."""
    db = SessionLocal()
    try:
        result = sweep_pending_sms(
            db=db,
            gateway=build_gateway(settings),
            batch_size=batch_size or settings.SMS_SWEEP_BATCH_SIZE,
            max_attempts=settings.SMS_MAX_ATTEMPTS,
        )
        logger.info(
            f"Processed {result['locked']} pending SMS: {result['sent']} sent, {result['failed']} failed"
        )
        return result

    except Exception as e:
        db.rollback()
        logger.error(f"Error processing pending SMS: {e}", exc_info=True)
        raise

    finally:
        db.close()


# Schedule periodic processing
celery_app.conf.beat_schedule = {
    'process-pending-sms': {
        'task': 'process_pending_sms',
        'schedule': settings.SMS_SWEEP_INTERVAL_SECONDS,
    },
}
