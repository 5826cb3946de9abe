"""
Traceability payload and QR code rendering for coffee lots.

The QR code embeds the JSON payload itself (not a resolver URL) so a lot can
be identified offline from the printed label.
"""

from __future__ import annotations

import base64
import io
import json
from datetime import datetime
from decimal import Decimal
from typing import Any

import qrcode

PAYLOAD_FIELDS: tuple[str, ...] = ("lotId", "farmerId", "quantity", "processingMethod", "timestamp")


class QrEncodingError(RuntimeError):
    """Payload could not be rendered into a QR image."""


def build_trace_payload(
    *,
    lot_id: str,
    farmer_id: Any,
    quantity: Decimal,
    processing_method: str,
    timestamp: datetime,
) -> dict[str, Any]:
    return {
        "lotId": lot_id,
        "farmerId": str(farmer_id),
        "quantity": str(quantity),
        "processingMethod": processing_method,
        "timestamp": timestamp.isoformat(),
    }


def encode_payload(payload: dict[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"), sort_keys=True)


def render_qr_data_url(data: str, *, box_size: int = 6, border: int = 2) -> str:
    """
    Render ``data`` as a PNG QR code and return it as a data URL.

    Raises:
        QrEncodingError: if the payload does not fit or the image cannot be written.
    """
    try:
        qr = qrcode.QRCode(
            version=None,  # Fit to payload
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=box_size,
            border=border,
        )
        qr.add_data(data)
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")

        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
    except Exception as exc:
        raise QrEncodingError(f"Failed to generate QR code: {exc}") from exc

    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode()


def parse_trace_payload(raw: str) -> dict[str, Any]:
    """Decode a scanned payload; raises ValueError if it is not a lot payload."""
    try:
        payload = json.loads(raw)
    except (TypeError, json.JSONDecodeError) as exc:
        raise ValueError("Invalid QR code data") from exc

    if not isinstance(payload, dict):
        raise ValueError("Invalid QR code data")
    missing = [field for field in PAYLOAD_FIELDS if field not in payload]
    if missing:
        raise ValueError(f"QR payload is missing fields: {', '.join(missing)}")
    if not isinstance(payload["lotId"], str) or not payload["lotId"].strip():
        raise ValueError("QR payload has an empty lotId")
    return payload
