from services.appointment_service import appointment_service
from services.whatsapp_service import whatsapp_service


def appointment_payload(**overrides):
    payload = {
        "client_name": "Maria",
        "client_phone": "(81) 99999-0000",
        "vehicle_plate": "XYZ9A87",
        "services": [{"service_id": "s1", "service_name": "Lavagem", "price": 40.0}],
        "date": "2026-10-20",
        "time": "10:00",
    }
    payload.update(overrides)
    return payload


def test_create_appointment(client):
    response = client.post("/appointments", json=appointment_payload())

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "scheduled"
    assert body["services"][0]["service_name"] == "Lavagem"


def test_taken_slot_is_rejected(client):
    client.post("/appointments", json=appointment_payload())

    response = client.post("/appointments", json=appointment_payload(client_name="Pedro"))

    assert response.status_code == 409


def test_cancelled_appointment_frees_slot(client):
    first = client.post("/appointments", json=appointment_payload()).json()
    client.put(f"/appointments/{first['id']}", json={"status": "cancelled"})

    response = client.post("/appointments", json=appointment_payload(client_name="Pedro"))

    assert response.status_code == 200


def test_reactivating_cancelled_appointment_checks_slot(client):
    first = client.post("/appointments", json=appointment_payload()).json()
    client.put(f"/appointments/{first['id']}", json={"status": "cancelled"})
    client.post("/appointments", json=appointment_payload(client_name="Pedro"))

    response = client.put(f"/appointments/{first['id']}", json={"status": "scheduled"})

    assert response.status_code == 409


def test_editing_keeps_own_slot(client):
    first = client.post("/appointments", json=appointment_payload()).json()

    response = client.put(f"/appointments/{first['id']}", json={"notes": "Trazer chave reserva", "time": "10:00"})

    assert response.status_code == 200
    assert response.json()["notes"] == "Trazer chave reserva"


def test_moving_to_taken_slot_is_rejected(client):
    client.post("/appointments", json=appointment_payload(time="11:00"))
    second = client.post("/appointments", json=appointment_payload(client_name="Pedro")).json()

    response = client.put(f"/appointments/{second['id']}", json={"time": "11:00"})

    assert response.status_code == 409


def test_time_outside_grid_is_rejected(client):
    response = client.post("/appointments", json=appointment_payload(time="10:15"))

    assert response.status_code == 400


def test_available_slots(client):
    client.post("/appointments", json=appointment_payload(time="08:30"))

    response = client.get("/appointments/available-slots", params={"date": "2026-10-20"})

    slots = response.json()
    assert len(slots) == 21
    assert {"time": "08:30", "taken": True} in slots
    assert {"time": "08:00", "taken": False} in slots


def test_available_slots_without_date_are_all_free(client):
    slots = client.get("/appointments/available-slots").json()

    assert not any(slot["taken"] for slot in slots)


def test_grid_follows_business_hours(client):
    response = client.put("/settings", json={"opening_time": "07:00", "closing_time": "12:00"})
    assert response.status_code == 200

    slots = client.get("/appointments/available-slots", params={"date": "2026-10-20"}).json()

    assert slots[0]["time"] == "07:00"
    assert slots[-1]["time"] == "12:00"
    assert client.post("/appointments", json=appointment_payload(time="07:30")).status_code == 200
    assert client.post("/appointments", json=appointment_payload(time="15:00")).status_code == 400


def test_settings_reject_closing_before_opening(client):
    response = client.put("/settings", json={"opening_time": "18:00", "closing_time": "08:00"})

    assert response.status_code == 400


def test_confirmation_sends_whatsapp(client, monkeypatch):
    sent = []
    monkeypatch.setattr(
        whatsapp_service,
        "send_message",
        lambda phone, message: sent.append((phone, message)) or {"success": True},
    )
    appointment = client.post("/appointments", json=appointment_payload()).json()

    client.put(f"/appointments/{appointment['id']}", json={"status": "confirmed"})

    assert len(sent) == 1
    assert sent[0][0] == "(81) 99999-0000"
    assert "20/10/2026" in sent[0][1]


def test_slot_is_guarded_by_the_database(client, monkeypatch):
    # Duas requisições simultâneas passam pela verificação antes de gravar
    monkeypatch.setattr(appointment_service, "_ensure_slot_available", lambda *args, **kwargs: None)

    first = client.post("/appointments", json=appointment_payload())
    second = client.post("/appointments", json=appointment_payload(client_name="Pedro"))

    assert first.status_code == 200
    assert second.status_code == 409
    assert len(client.get("/appointments").json()) == 1


def test_cancelled_appointment_does_not_hold_slot_in_database(client, monkeypatch):
    monkeypatch.setattr(appointment_service, "_ensure_slot_available", lambda *args, **kwargs: None)
    client.post("/appointments", json=appointment_payload(status="cancelled"))

    assert client.post("/appointments", json=appointment_payload()).status_code == 200


def test_confirmation_respects_notifications_setting(client, monkeypatch):
    sent = []
    monkeypatch.setattr(whatsapp_service, "send_message", lambda phone, message: sent.append(phone))
    client.put("/settings", json={"notifications_enabled": False})

    client.post("/appointments", json=appointment_payload(status="confirmed"))

    assert sent == []
    assert client.get("/settings").json()["notifications_enabled"] is False
