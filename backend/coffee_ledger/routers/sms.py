"""SMS notification endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas import SmsResponse, SmsSend
from ..services.sms_gateway import SmsGateway, get_sms_gateway
from ..use_cases.notifications import list_pending_sms_use_case, resend_sms_use_case, send_sms_use_case

router = APIRouter(prefix="/sms", tags=["sms"])


@router.post("/send", response_model=SmsResponse)
def send_sms(
    data: SmsSend,
    db: Session = Depends(get_db),
    gateway: SmsGateway | None = Depends(get_sms_gateway),
):
    return send_sms_use_case(db=db, data=data, gateway=gateway)


@router.post("/{notification_id}/resend", response_model=SmsResponse)
def resend_sms(
    notification_id: UUID,
    db: Session = Depends(get_db),
    gateway: SmsGateway | None = Depends(get_sms_gateway),
):
    return resend_sms_use_case(db=db, notification_id=notification_id, gateway=gateway)


@router.get("/pending", response_model=list[SmsResponse])
def list_pending_sms(db: Session = Depends(get_db)):
    return list_pending_sms_use_case(db=db)
