import logging

from security import load_secret_key
from tests.conftest import TEST_PASSWORD


def test_login_returns_token_user_and_tenant(api, user):
    response = api.post("/auth/login", json={"email": "admin@carwash.com", "password": TEST_PASSWORD})

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "admin@carwash.com"
    assert body["tenant"]["name"] == "Lava Jato Teste"


def test_login_rejects_wrong_password(api, user):
    response = api.post("/auth/login", json={"email": "admin@carwash.com", "password": "errada"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Credenciais inválidas"


def test_me_with_token(api, user):
    token = api.post(
        "/auth/login", json={"email": "admin@carwash.com", "password": TEST_PASSWORD}
    ).json()["access_token"]

    response = api.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json()["user"]["id"] == user.id
    assert response.json()["tenant"]["id"] == user.tenant_id


def test_me_rejects_invalid_token(api, user):
    response = api.get("/auth/me", headers={"Authorization": "Bearer invalido"})

    assert response.status_code == 401


def test_entities_require_authentication(api):
    response = api.get("/clients")

    assert response.status_code in (401, 403)


def test_logout(api):
    assert api.post("/auth/logout").json() == {"ok": True}


def test_missing_secret_key_is_logged(monkeypatch, caplog):
    monkeypatch.delenv("SECRET_KEY", raising=False)

    with caplog.at_level(logging.WARNING, logger="security"):
        key = load_secret_key()

    assert key
    assert "SECRET_KEY não configurada" in caplog.text


def test_configured_secret_key_is_used(monkeypatch, caplog):
    monkeypatch.setenv("SECRET_KEY", "chave-de-producao")

    with caplog.at_level(logging.WARNING, logger="security"):
        assert load_secret_key() == "chave-de-producao"

    assert caplog.text == ""
