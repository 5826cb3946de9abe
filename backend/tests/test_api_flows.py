from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

from coffee_ledger.models import SmsNotification
from coffee_ledger.services.traceability import parse_trace_payload


def _create_user(client, role: str, name: str) -> str:
    response = client.post("/api/users", json={"name": name, "role": role})
    assert response.status_code == 200, response.text
    return response.json()["id"]


def _create_lot(client, *, quantity=50.5, method="wet") -> dict:
    farmer_user = _create_user(client, "farmer", f"Farmer {uuid4().hex[:6]}")
    farmer = client.post("/api/farmers", json={"userId": farmer_user, "farmId": f"FARM-{uuid4().hex[:8]}"})
    assert farmer.status_code == 200, farmer.text
    lot = client.post(
        "/api/lots",
        json={"farmerId": farmer.json()["id"], "quantity": quantity, "processingMethod": method},
    )
    assert lot.status_code == 200, lot.text
    return lot.json()


def test_health(client) -> None:
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_cooperative_farmer_and_lot_registration(client) -> None:
    coop = client.post("/api/cooperatives", json={"name": "Kiambu Coop", "location": "Kiambu"})
    assert coop.status_code == 200
    coop_id = coop.json()["id"]

    user_id = _create_user(client, "farmer", "Njeri Wambui")
    farmer = client.post(
        "/api/farmers",
        json={"userId": user_id, "farmId": "KIAMBU-001", "farmSize": 1.5, "cooperativeId": coop_id},
    )
    assert farmer.status_code == 200
    assert farmer.json()["cooperativeId"] == coop_id

    lot = client.post(
        "/api/lots",
        json={"farmerId": farmer.json()["id"], "quantity": 50.5, "processingMethod": "wet"},
    )
    assert lot.status_code == 200
    body = lot.json()
    assert body["status"] == "harvested"
    assert body["lotId"].startswith("KC-")
    assert Decimal(body["quantity"]) == Decimal("50.5")
    assert body["qrCode"].startswith("data:image/png;base64,")

    second = _create_lot(client)
    assert second["lotId"] != body["lotId"]

    listed = client.get("/api/farmers", params={"cooperativeId": coop_id})
    assert [f["farmId"] for f in listed.json()] == ["KIAMBU-001"]

    by_code = client.get(f"/api/lots/by-code/{body['lotId']}")
    assert by_code.json()["id"] == body["id"]

    by_farmer = client.get("/api/lots", params={"farmerId": farmer.json()["id"]})
    assert [item["id"] for item in by_farmer.json()] == [body["id"]]


def test_duplicate_farm_id_is_conflict(client) -> None:
    user_id = _create_user(client, "farmer", "Kamau")
    first = client.post("/api/farmers", json={"userId": user_id, "farmId": "DUP-1"})
    second = client.post("/api/farmers", json={"userId": user_id, "farmId": "DUP-1"})

    assert first.status_code == 200
    assert second.status_code == 409
    assert second.json()["code"] == "FARM_ID_TAKEN"


def test_users_listed_by_role(client) -> None:
    _create_user(client, "exporter", "Zawadi Exports")
    _create_user(client, "exporter", "Amani Exports")
    _create_user(client, "mill", "Gikanda Mill")

    response = client.get("/api/users/exporter")

    assert [u["name"] for u in response.json()] == ["Amani Exports", "Zawadi Exports"]


def test_lot_status_moves_through_transition_table(client) -> None:
    lot = _create_lot(client)

    ok = client.put(f"/api/lots/{lot['id']}/status", json={"status": "wet_processing"})
    assert ok.status_code == 200
    assert ok.json()["status"] == "wet_processing"

    skipped = client.put(f"/api/lots/{lot['id']}/status", json={"status": "sold"})
    assert skipped.status_code == 409
    assert skipped.json()["code"] == "LOT_INVALID_TRANSITION"

    unknown = client.put(f"/api/lots/{lot['id']}/status", json={"status": "teleported"})
    assert unknown.status_code == 422
    assert unknown.json()["code"] == "LOT_STATUS_INVALID"

    by_status = client.get("/api/lots", params={"status": "wet_processing"})
    assert [item["id"] for item in by_status.json()] == [lot["id"]]


def test_lot_grading_after_quality_testing(client) -> None:
    lot = _create_lot(client, method="dry")
    too_early = client.put(f"/api/lots/{lot['id']}/grade", json={"grade": "AA"})
    assert too_early.status_code == 409

    for status in ("dry_processing", "quality_testing"):
        assert client.put(f"/api/lots/{lot['id']}/status", json={"status": status}).status_code == 200

    graded = client.put(f"/api/lots/{lot['id']}/grade", json={"grade": "AA"})
    assert graded.status_code == 200
    assert graded.json()["grade"] == "AA"


def test_trace_resolves_lot_from_scanned_payload(client) -> None:
    lot = _create_lot(client)
    db_lot = client.get(f"/api/lots/{lot['id']}").json()

    payload = (
        '{"farmerId":"%s","lotId":"%s","processingMethod":"wet","quantity":"50.5","timestamp":"2026-03-01T09:00:00+00:00"}'
        % (db_lot["farmerId"], db_lot["lotId"])
    )
    assert parse_trace_payload(payload)["lotId"] == lot["lotId"]

    traced = client.post("/api/lots/trace", json={"payload": payload})
    assert traced.status_code == 200
    assert traced.json()["id"] == lot["id"]

    bad = client.post("/api/lots/trace", json={"payload": "garbage"})
    assert bad.status_code == 422
    assert bad.json()["code"] == "LOT_TRACE_PAYLOAD_INVALID"


def test_unknown_lot_is_not_found(client) -> None:
    response = client.get(f"/api/lots/{uuid4()}")
    assert response.status_code == 404
    assert response.json()["code"] == "LOT_NOT_FOUND"


def test_inventory_requires_facility_id(client) -> None:
    response = client.get("/api/inventory", params={"facilityType": "wet_mill"})

    assert response.status_code == 400
    assert response.headers["content-type"].startswith("application/problem+json")
    assert response.json()["code"] == "MISSING_PARAMETER"
    assert response.json()["details"] == {"missing": ["facilityId"]}


def test_inventory_record_and_update(client) -> None:
    lot = _create_lot(client)
    created = client.post(
        "/api/inventory",
        json={"lotId": lot["id"], "facilityType": "wet_mill", "facilityId": "WM-01", "quantity": 50.5},
    )
    assert created.status_code == 200

    again = client.post(
        "/api/inventory",
        json={"lotId": lot["id"], "facilityType": "wet_mill", "facilityId": "WM-01", "quantity": 48},
    )
    assert again.json()["id"] == created.json()["id"]

    updated = client.put(f"/api/inventory/{lot['id']}/WM-01", json={"quantity": 45.25})
    assert updated.status_code == 200
    assert Decimal(updated.json()["quantity"]) == Decimal("45.25")

    listed = client.get("/api/inventory", params={"facilityType": "wet_mill", "facilityId": "WM-01"})
    assert len(listed.json()) == 1
    assert Decimal(listed.json()[0]["quantity"]) == Decimal("45.25")

    missing = client.put(f"/api/inventory/{lot['id']}/DM-99", json={"quantity": 1})
    assert missing.status_code == 404


def test_auction_bidding_and_close(client) -> None:
    lot = _create_lot(client)
    seller = _create_user(client, "cooperative", "Kiambu Coop Office")
    bidder_a = _create_user(client, "exporter", "Exporter A")
    bidder_b = _create_user(client, "roaster", "Roaster B")

    auction = client.post("/api/auctions", json={"lotId": lot["id"], "startingPrice": 100, "sellerId": seller})
    assert auction.status_code == 200
    auction_id = auction.json()["id"]
    assert auction.json()["status"] == "active"

    duplicate = client.post("/api/auctions", json={"lotId": lot["id"], "startingPrice": 100, "sellerId": seller})
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "AUCTION_ALREADY_ACTIVE"

    assert client.post("/api/bids", json={"auctionId": auction_id, "bidderId": bidder_a, "amount": 120}).status_code == 200

    low = client.post("/api/bids", json={"auctionId": auction_id, "bidderId": bidder_b, "amount": 110})
    assert low.status_code == 409
    assert low.json()["code"] == "BID_TOO_LOW"

    equal = client.post("/api/bids", json={"auctionId": auction_id, "bidderId": bidder_b, "amount": 120})
    assert equal.json()["code"] == "BID_TOO_LOW"

    assert client.post("/api/bids", json={"auctionId": auction_id, "bidderId": bidder_b, "amount": 121}).status_code == 200
    assert client.post("/api/bids", json={"auctionId": auction_id, "bidderId": bidder_b, "amount": 150}).status_code == 200

    current = client.get(f"/api/auctions/{auction_id}").json()
    assert Decimal(current["currentPrice"]) == Decimal("150")
    assert current["leadingBidderId"] == bidder_b
    assert current["winnerId"] is None

    bids = client.get(f"/api/auctions/{auction_id}/bids").json()
    assert [Decimal(b["amount"]) for b in bids] == [Decimal("150"), Decimal("121"), Decimal("120")]

    assert [a["id"] for a in client.get("/api/auctions").json()] == [auction_id]

    closed = client.post(f"/api/auctions/{auction_id}/close")
    assert closed.status_code == 200
    assert closed.json()["status"] == "closed"
    assert closed.json()["winnerId"] == bidder_b
    assert closed.json()["endTime"] is not None

    late = client.post("/api/bids", json={"auctionId": auction_id, "bidderId": bidder_a, "amount": 500})
    assert late.status_code == 409
    assert late.json()["code"] == "AUCTION_CLOSED"

    assert client.get("/api/auctions").json() == []


def test_auction_cancel_by_seller_only(client) -> None:
    lot = _create_lot(client)
    seller = _create_user(client, "cooperative", "Seller")
    auction_id = client.post(
        "/api/auctions", json={"lotId": lot["id"], "startingPrice": 80, "sellerId": seller}
    ).json()["id"]

    forbidden = client.post(f"/api/auctions/{auction_id}/cancel", json={"sellerId": str(uuid4())})
    assert forbidden.status_code == 403

    cancelled = client.post(f"/api/auctions/{auction_id}/cancel", json={"sellerId": seller})
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"
    assert cancelled.json()["winnerId"] is None


def test_payment_lifecycle(client) -> None:
    payer = _create_user(client, "exporter", "Payer A")
    payee = _create_user(client, "farmer", "Payee B")

    created = client.post(
        "/api/payments",
        json={"payerId": payer, "payeeId": payee, "amount": 500, "paymentMethod": "m-pesa"},
    )
    assert created.status_code == 200
    payment = created.json()
    assert payment["status"] == "pending"
    assert payment["transactionId"].startswith("TXN-")
    assert payment["processedAt"] is None

    completed = client.put(f"/api/payments/{payment['id']}/status", json={"status": "completed"})
    assert completed.status_code == 200
    assert completed.json()["processedAt"] is not None

    for user_id in (payer, payee):
        listed = client.get(f"/api/payments/{user_id}").json()
        assert [p["id"] for p in listed] == [payment["id"]]

    back = client.put(f"/api/payments/{payment['id']}/status", json={"status": "pending"})
    assert back.status_code == 409
    assert back.json()["code"] == "PAYMENT_INVALID_TRANSITION"


def test_sms_send_and_failure_status(client, sms_gateway) -> None:
    recipient = _create_user(client, "farmer", "SMS Farmer")

    sent = client.post(
        "/api/sms/send",
        json={"recipientId": recipient, "phone": "+254700000001", "message": "Payment received"},
    )
    assert sent.status_code == 200
    assert sent.json()["status"] == "sent"
    assert sms_gateway.sent == [("+254700000001", "Payment received")]

    sms_gateway.error = "HTTP_503: unavailable"
    failed = client.post(
        "/api/sms/send",
        json={"recipientId": recipient, "phone": "+254700000001", "message": "Auction closed"},
    )
    assert failed.status_code == 502
    assert failed.json()["code"] == "SMS_DELIVERY_FAILED"
    notification_id = failed.json()["details"]["notificationId"]

    sms_gateway.error = None
    resent = client.post(f"/api/sms/{notification_id}/resend")
    assert resent.status_code == 200
    assert resent.json()["status"] == "sent"
    assert resent.json()["attempts"] == 2

    not_again = client.post(f"/api/sms/{notification_id}/resend")
    assert not_again.status_code == 409


def test_overlong_sms_rejected_before_persistence(client, db) -> None:
    response = client.post(
        "/api/sms/send",
        json={"recipientId": str(uuid4()), "phone": "+254700000001", "message": "x" * 161},
    )

    assert response.status_code == 422
    assert db.query(SmsNotification).count() == 0
    assert client.get("/api/sms/pending").json() == []


def test_dashboard_stats(client) -> None:
    empty = client.get("/api/dashboard/stats").json()
    assert empty["activeFarmers"] == 0
    assert Decimal(empty["totalInventory"]) == 0

    lot = _create_lot(client, quantity=50.5)
    _create_lot(client, quantity=20)
    seller = _create_user(client, "cooperative", "Seller")
    client.post("/api/auctions", json={"lotId": lot["id"], "startingPrice": 100, "sellerId": seller})

    stats = client.get("/api/dashboard/stats").json()
    assert stats["activeFarmers"] == 2
    assert stats["coffeeLots"] == 2
    assert Decimal(stats["totalInventory"]) == Decimal("70.5")
    assert stats["activeAuctions"] == 1


def test_blank_lot_status_is_rejected_not_ignored(client) -> None:
    lot = _create_lot(client)

    for blank in ("", "   "):
        response = client.put(f"/api/lots/{lot['id']}/status", json={"status": blank})
        assert response.status_code == 422
        assert response.json()["code"] == "LOT_STATUS_INVALID"

    assert client.get(f"/api/lots/{lot['id']}").json()["status"] == "harvested"


def test_blank_payment_status_is_rejected_not_ignored(client) -> None:
    payer = _create_user(client, "exporter", "Payer")
    payee = _create_user(client, "farmer", "Payee")
    payment = client.post(
        "/api/payments",
        json={"payerId": payer, "payeeId": payee, "amount": 25, "paymentMethod": "cash"},
    ).json()

    response = client.put(f"/api/payments/{payment['id']}/status", json={"status": ""})

    assert response.status_code == 422
    assert response.json()["code"] == "PAYMENT_STATUS_INVALID"


def test_lots_listed_newest_first(client) -> None:
    farmer_user = _create_user(client, "farmer", "Wairimu")
    farmer_id = client.post("/api/farmers", json={"userId": farmer_user, "farmId": "ORDER-001"}).json()["id"]
    created = [
        client.post("/api/lots", json={"farmerId": farmer_id, "quantity": qty, "processingMethod": "wet"}).json()["id"]
        for qty in (10, 20, 30)
    ]

    by_farmer = client.get("/api/lots", params={"farmerId": farmer_id}).json()
    assert [lot["id"] for lot in by_farmer] == list(reversed(created))

    by_status = client.get("/api/lots", params={"status": "harvested"}).json()
    assert [lot["id"] for lot in by_status] == list(reversed(created))


def test_user_payments_listed_newest_first(client) -> None:
    payer = _create_user(client, "exporter", "Payer")
    payee = _create_user(client, "farmer", "Payee")
    other = _create_user(client, "mill", "Other Mill")

    created = []
    for amount, (from_id, to_id) in zip((100, 200, 300), [(payer, payee), (payee, other), (other, payer)]):
        response = client.post(
            "/api/payments",
            json={"payerId": from_id, "payeeId": to_id, "amount": amount, "paymentMethod": "bank"},
        )
        created.append(response.json()["id"])

    listed = client.get(f"/api/payments/{payer}").json()
    assert [p["id"] for p in listed] == [created[2], created[0]]

    listed_for_payee = client.get(f"/api/payments/{payee}").json()
    assert [p["id"] for p in listed_for_payee] == [created[1], created[0]]
