"""SMS notification dispatch use-cases."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from ..config import settings
from ..domain_errors import ConflictError, ExternalServiceError, NotFoundError, ValidationError
from ..models import SmsNotification
from ..schemas import SmsSend
from ..services.lot_rules import now_utc
from ..services.sms_gateway import SmsDeliveryError, SmsGateway

logger = logging.getLogger(__name__)

MAX_SMS_LENGTH = 160
GATEWAY_NOT_CONFIGURED = "SMS gateway not configured"


def _claim_deadline() -> datetime:
    return now_utc() + timedelta(seconds=settings.SMS_INLINE_CLAIM_SECONDS)


def _get_notification_or_404(*, db: Session, notification_id: UUID) -> SmsNotification:
    notification = db.query(SmsNotification).filter(SmsNotification.id == notification_id).first()
    if not notification:
        raise NotFoundError(
            code="SMS_NOT_FOUND",
            message="Notification not found",
            details={"notificationId": str(notification_id)},
        )
    return notification


def _attempt_delivery(*, notification: SmsNotification, gateway: SmsGateway | None) -> str | None:
    """Try the gateway once; return the error text, or None on success."""
    notification.attempts = (notification.attempts or 0) + 1
    if gateway is None:
        return GATEWAY_NOT_CONFIGURED
    try:
        provider_id = gateway.send(notification.phone, notification.message)
    except SmsDeliveryError as exc:
        return str(exc)
    except Exception as exc:
        logger.error(f"Unexpected SMS gateway error for {notification.id}: {exc}", exc_info=True)
        return f"EXCEPTION: {exc}"

    notification.status = "sent"
    notification.sent_at = now_utc()
    notification.last_error = None
    notification.provider_message_id = provider_id or None
    return None


def _deliver_or_fail(*, db: Session, notification: SmsNotification, gateway: SmsGateway | None) -> SmsNotification:
    error = _attempt_delivery(notification=notification, gateway=gateway)
    if error is not None:
        notification.status = "failed"
        notification.last_error = error
    notification.next_attempt_at = None
    db.commit()
    db.refresh(notification)

    if error is not None:
        logger.warning(f"SMS {notification.id} to {notification.phone} failed: {error}")
        raise ExternalServiceError(
            code="SMS_DELIVERY_FAILED",
            message=f"SMS delivery failed: {error}",
            details={"notificationId": str(notification.id), "status": notification.status},
        )
    logger.info(f"SMS {notification.id} sent to {notification.phone}")
    return notification


def send_sms_use_case(*, db: Session, data: SmsSend, gateway: SmsGateway | None) -> SmsNotification:
    """
    Queue a message as pending, then deliver it.

    The pending row is committed before the gateway call with ``next_attempt_at``
    in the future, so the retry sweep leaves it alone while this call owns it.
    """
    if not data.message or len(data.message) > MAX_SMS_LENGTH:
        raise ValidationError(
            code="SMS_MESSAGE_INVALID",
            message=f"Message must be 1..{MAX_SMS_LENGTH} characters",
            details={"length": len(data.message or "")},
        )

    notification = SmsNotification(
        recipient_id=data.recipient_id,
        phone=data.phone,
        message=data.message,
        status="pending",
        attempts=0,
        next_attempt_at=_claim_deadline(),
        created_at=now_utc(),
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)

    return _deliver_or_fail(db=db, notification=notification, gateway=gateway)


def resend_sms_use_case(*, db: Session, notification_id: UUID, gateway: SmsGateway | None) -> SmsNotification:
    notification = _get_notification_or_404(db=db, notification_id=notification_id)
    current_status = notification.status

    # failed -> pending as one conditional UPDATE: of two concurrent resends only one claims the row.
    claimed = db.execute(
        update(SmsNotification)
        .where(SmsNotification.id == notification.id, SmsNotification.status == "failed")
        .values(status="pending", last_error=None, next_attempt_at=_claim_deadline())
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount != 1:
        db.rollback()
        raise ConflictError(
            code="SMS_NOT_RESENDABLE",
            message="Only failed notifications can be resent",
            details={"notificationId": str(notification_id), "status": current_status},
        )
    db.commit()
    db.refresh(notification)
    return _deliver_or_fail(db=db, notification=notification, gateway=gateway)


def list_pending_sms_use_case(*, db: Session) -> list[SmsNotification]:
    return (
        db.query(SmsNotification)
        .filter(SmsNotification.status == "pending")
        .order_by(SmsNotification.created_at.asc())
        .all()
    )


def sweep_pending_sms(
    *,
    db: Session,
    gateway: SmsGateway | None,
    batch_size: int,
    max_attempts: int,
) -> dict[str, int]:
    """
    Retry pending notifications once each.

    Rows are locked with FOR UPDATE SKIP LOCKED so concurrent workers split the
    batch. Rows claimed by an inline send or resend (``next_attempt_at`` in the
    future) are skipped until the claim lapses.
    """
    notifications = (
        db.query(SmsNotification)
        .filter(
            SmsNotification.status == "pending",
            or_(SmsNotification.next_attempt_at.is_(None), SmsNotification.next_attempt_at <= now_utc()),
        )
        .order_by(SmsNotification.created_at.asc())
        .limit(batch_size)
        .with_for_update(skip_locked=True)
        .all()
    )

    sent = failed = 0
    for notification in notifications:
        error = _attempt_delivery(notification=notification, gateway=gateway)
        notification.next_attempt_at = None
        if error is None:
            sent += 1
            continue

        notification.last_error = error
        if notification.attempts >= max_attempts:
            notification.status = "failed"
            failed += 1
            logger.error(f"SMS {notification.id} failed after {notification.attempts} attempts: {error}")
        else:
            logger.warning(f"SMS {notification.id} retry {notification.attempts}/{max_attempts}: {error}")

    db.commit()
    return {"locked": len(notifications), "sent": sent, "failed": failed}
