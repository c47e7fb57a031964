"""
HTTP surface: envelopes, status codes and error names.
"""


def _property(client, name="Kilimani Heights"):
    response = client.post("/api/properties", json={"property_name": name, "location": "Nairobi"})
    assert response.status_code == 201
    return response.json()["data"]


def _unit(client, property_id, unit_number="A1", monthly_rent=15000):
    response = client.post(
        "/api/units",
        json={"property_id": property_id, "unit_number": unit_number, "monthly_rent": monthly_rent},
    )
    assert response.status_code == 201
    return response.json()["data"]


def _tenant(client, unit_id, phone="0712345678", email="wanjiku@example.com"):
    return client.post(
        "/api/tenants",
        json={"full_name": "Grace Wanjiku", "phone": phone, "email": email, "unit_id": unit_id},
    )


def test_root_and_health(client):
    assert client.get("/").json()["success"] is True
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["database"] == "connected"


def test_tenant_lifecycle_flips_unit(client):
    prop = _property(client)
    unit = _unit(client, prop["id"])

    response = _tenant(client, unit["id"])
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["phone"] == "+254712345678"
    assert body["data"]["rent_amount"] == 15000
    assert client.get(f"/api/units/{unit['id']}").json()["data"]["is_occupied"] is True

    second = _tenant(client, unit["id"], phone="0799000111", email="other@example.com")
    assert second.status_code == 409
    assert second.json()["error"] == "UnitAlreadyOccupied"

    tenant_id = body["data"]["id"]
    moved = client.request("DELETE", f"/api/tenants/{tenant_id}", json={"move_out_date": "2025-06-30"})
    assert moved.status_code == 200
    assert moved.json()["data"]["status"] == "inactive"
    assert moved.json()["data"]["move_out_date"] == "2025-06-30"
    assert client.get(f"/api/units/{unit['id']}").json()["data"]["is_occupied"] is False


def test_validation_errors_use_envelope(client):
    response = client.post("/api/tenants", json={"full_name": "Grace Wanjiku"})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "ValidationError"
    assert "phone" in body["message"]

    prop = _property(client)
    unit = _unit(client, prop["id"])
    bad_phone = _tenant(client, unit["id"], phone="12345")
    assert bad_phone.status_code == 400
    assert "phone" in bad_phone.json()["message"]


def test_duplicate_phone_and_unit_number(client):
    prop = _property(client)
    first = _unit(client, prop["id"], "A1")
    second = _unit(client, prop["id"], "A2")
    assert _tenant(client, first["id"]).status_code == 201

    duplicate = _tenant(client, second["id"], email="new@example.com")
    assert duplicate.status_code == 400
    assert duplicate.json()["error"] == "DuplicateRecord"

    clash = client.post("/api/units", json={"property_id": prop["id"], "unit_number": "A1"})
    assert clash.status_code == 409
    assert clash.json()["error"] == "Conflict"


def test_not_found(client):
    for path in ("/api/tenants/999", "/api/payments/999", "/api/payment-plans/999", "/api/commissions/999"):
        response = client.get(path)
        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"


def test_payment_plan_over_http(client):
    prop = _property(client)
    unit = _unit(client, prop["id"])
    tenant = _tenant(client, unit["id"]).json()["data"]

    bad = client.post("/api/payment-plans", json={
        "tenant_id": tenant["id"], "total_amount": 30000, "installment_amount": 5000,
        "start_date": "2025-01-15", "installment_frequency": "fortnightly",
    })
    assert bad.status_code == 400
    assert bad.json()["error"] == "InvalidFrequency"

    created = client.post("/api/payment-plans", json={
        "tenant_id": tenant["id"], "total_amount": 30000, "installment_amount": 5000,
        "start_date": "2025-01-15", "installment_frequency": "monthly",
    })
    assert created.status_code == 201
    plan = created.json()["data"]
    assert plan["next_due_date"] == "2025-02-15"

    paid = client.put(f"/api/payment-plans/{plan['id']}/pay", json={"amount": 5000, "payment_date": "2025-02-15"})
    assert paid.status_code == 200
    result = paid.json()["data"]
    assert result["new_balance"] == 25000
    assert result["next_due_date"] == "2025-03-15"

    payment = client.get(f"/api/payments/{result['payment_id']}").json()["data"]
    assert payment["plan_id"] == plan["id"]
    assert payment["payment_method"] == "M-Pesa"


def test_payment_cancel_twice(client):
    prop = _property(client)
    unit = _unit(client, prop["id"])
    tenant = _tenant(client, unit["id"]).json()["data"]

    created = client.post("/api/payments", json={
        "tenant_id": tenant["id"], "amount": 15000, "payment_method": "Cash",
    })
    assert created.status_code == 201
    payment_id = created.json()["data"]["id"]

    assert client.delete(f"/api/payments/{payment_id}").json()["data"]["status"] == "cancelled"
    again = client.delete(f"/api/payments/{payment_id}")
    assert again.status_code == 400
    assert again.json()["error"] == "PaymentAlreadyCancelled"


def test_commission_endpoints(client):
    prop = _property(client)
    created = client.post("/api/commissions", json={
        "property_id": prop["id"], "agent_name": "Brian Mwangi", "commission_amount": 1500,
    })
    assert created.status_code == 201
    commission_id = created.json()["data"]["id"]

    paid = client.put(f"/api/commissions/{commission_id}/pay", json={"payment_reference": "QX1"})
    assert paid.status_code == 200
    assert paid.json()["data"]["status"] == "paid"

    again = client.put(f"/api/commissions/{commission_id}/pay", json={})
    assert again.status_code == 400
    assert again.json()["error"] == "AlreadyPaid"

    locked = client.put(f"/api/commissions/{commission_id}", json={"commission_amount": 2000})
    assert locked.status_code == 400
    assert locked.json()["error"] == "StateTransitionError"

    cancel = client.request("DELETE", f"/api/commissions/{commission_id}", json={"reason": "Mistake"})
    assert cancel.status_code == 400
    assert cancel.json()["error"] == "CannotCancelPaid"
    assert cancel.json()["message"] == "Cannot delete paid commissions"


def test_unit_update_and_delete(client):
    prop = _property(client)
    unit = _unit(client, prop["id"])

    edited = client.put(f"/api/units/{unit['id']}", json={"monthly_rent": 16500})
    assert edited.status_code == 200
    assert edited.json()["data"]["monthly_rent"] == 16500

    forced = client.put(f"/api/units/{unit['id']}", json={"is_occupied": True})
    assert forced.status_code == 400
    assert forced.json()["error"] == "ValidationError"

    assert _tenant(client, unit["id"]).status_code == 201
    refused = client.delete(f"/api/units/{unit['id']}")
    assert refused.status_code == 400
    assert refused.json()["error"] == "StateTransitionError"

    spare = _unit(client, prop["id"], "A2")
    assert client.delete(f"/api/units/{spare['id']}").status_code == 200
    assert client.get(f"/api/units/{spare['id']}").status_code == 404


def test_maintenance_endpoints(client):
    prop = _property(client)
    unit = _unit(client, prop["id"])

    missing = client.post("/api/maintenance", json={"property_id": prop["id"], "unit_id": unit["id"]})
    assert missing.status_code == 400

    created = client.post("/api/maintenance", json={
        "property_id": prop["id"], "unit_id": unit["id"],
        "issue_type": "electrical", "description": "No power in bedroom", "priority": "urgent",
    })
    assert created.status_code == 201
    request_id = created.json()["data"]["id"]

    pending = client.get("/api/maintenance/pending").json()
    assert pending["count"] == 1
    assert pending["data"][0]["priority"] == "urgent"

    done = client.put(f"/api/maintenance/{request_id}/complete", json={"cost": 2500, "notes": "Breaker replaced"})
    assert done.status_code == 200
    assert done.json()["data"]["status"] == "completed"
    assert done.json()["data"]["cost"] == 2500
    assert client.get("/api/maintenance/pending").json()["count"] == 0

    again = client.put(f"/api/maintenance/{request_id}/complete")
    assert again.status_code == 400
    assert again.json()["error"] == "StateTransitionError"
    assert client.get("/api/maintenance/999").status_code == 404
