from datetime import timedelta

from models import storage
from models.refresh_token import RefreshToken
from models.user import User, UserStatus
from services.stores import utcnow


def _refresh(client, token):
    return client.post("/auth/refresh-token", json={"refreshToken": token})


def _logout(client, token):
    return client.post("/auth/logout", json={"refreshToken": token})


def test_login_returns_user_and_both_tokens(make_user, login):
    user = make_user()

    resp = login()

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["user"] == {"id": user.id, "name": user.name, "email": "a@x.com", "status": "Ativo"}
    assert body["token"]
    assert body["refreshToken"]
    assert body["expiresIn"] == "1h"
    assert storage.count(RefreshToken) == 1


def test_login_never_returns_password_hash(make_user, login):
    make_user()

    body = login().get_json()

    assert "password" not in body["user"]
    assert "password_hash" not in body["user"]


def test_each_login_creates_a_new_session(make_user, login):
    make_user()

    first = login().get_json()["refreshToken"]
    second = login().get_json()["refreshToken"]

    assert first != second
    assert storage.count(RefreshToken) == 2


def test_login_accepts_email_in_any_case(make_user, login):
    make_user()

    assert login(email="  A@X.com ").status_code == 200


def test_login_requires_email_and_password(client):
    for payload in ({}, {"email": "a@x.com"}, {"password": "secret"}, {"email": "", "password": ""},
                    {"email": 1, "password": ["x"]}):
        resp = client.post("/auth/login", json=payload)
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Email e senha são obrigatórios"


def test_login_without_json_body_is_a_validation_error(client):
    resp = client.post("/auth/login", data="not json", content_type="text/plain")

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "VALIDATION_ERROR"


def test_unknown_email_and_wrong_password_look_the_same(make_user, login):
    make_user()

    unknown = login(email="nobody@x.com")
    wrong = login(password="not-the-password")

    assert unknown.status_code == wrong.status_code == 401
    assert unknown.get_data() == wrong.get_data()
    assert wrong.get_json()["message"] == "Email ou senha incorretos"


def test_inactive_user_cannot_login_even_with_correct_password(make_user, login):
    make_user(status=UserStatus.INACTIVE)

    resp = login()

    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Usuário inativo. Contate o administrador."
    assert storage.count(RefreshToken) == 0


def test_access_token_round_trips_through_the_bearer_gate(client, make_user, login):
    user = make_user()
    token = login().get_json()["token"]

    resp = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 200
    claims = resp.get_json()["data"]
    assert claims["id"] == user.id
    assert claims["email"] == "a@x.com"
    assert claims["exp"] - claims["iat"] == 3600


def test_refresh_rotates_the_token(client, make_user, login):
    make_user()
    r1 = login().get_json()["refreshToken"]

    resp = _refresh(client, r1)

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["token"]
    assert body["expiresIn"] == "1h"
    assert body["refreshToken"] != r1
    # Rotation happens in place: still one session row
    assert storage.count(RefreshToken) == 1


def test_old_refresh_token_is_rejected_after_rotation(client, make_user, login):
    make_user()
    r1 = login().get_json()["refreshToken"]
    _refresh(client, r1)

    resp = _refresh(client, r1)

    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Refresh token inválido"


def test_rotation_chain(client, make_user, login):
    make_user()
    r1 = login().get_json()["refreshToken"]

    r2 = _refresh(client, r1).get_json()["refreshToken"]
    assert r2 != r1
    assert _refresh(client, r1).status_code == 401
    resp = _refresh(client, r2)

    assert resp.status_code == 200
    r3 = resp.get_json()["refreshToken"]
    assert r3 not in (r1, r2)


def test_refresh_pushes_expiry_forward(client, make_user, login):
    make_user()
    r1 = login().get_json()["refreshToken"]
    record = storage.get_session().query(RefreshToken).one()
    record.expires_at = utcnow() + timedelta(days=1)
    storage.save()
    storage.close()

    _refresh(client, r1)

    record = storage.get_session().query(RefreshToken).one()
    assert record.expires_at > utcnow() + timedelta(days=29)


def test_unknown_refresh_token_is_invalid(client):
    resp = _refresh(client, "never-issued")

    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Refresh token inválido"


def test_refresh_requires_a_token(client):
    for payload in ({}, {"refreshToken": ""}, {"refreshToken": None}):
        resp = client.post("/auth/refresh-token", json=payload)
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Refresh token é obrigatório"


def test_expired_refresh_token_is_rejected_and_deleted(client, make_user, login):
    make_user()
    token = login().get_json()["refreshToken"]
    record = storage.get_session().query(RefreshToken).one()
    record.expires_at = utcnow() - timedelta(seconds=1)
    storage.save()
    storage.close()

    first = _refresh(client, token)
    second = _refresh(client, token)

    assert first.status_code == 401
    assert first.get_json()["message"] == "Refresh token expirado"
    assert storage.count(RefreshToken) == 0
    assert second.status_code == 401
    assert second.get_json()["message"] == "Refresh token inválido"


def test_refresh_for_deactivated_user_deletes_session(client, make_user, login):
    user = make_user()
    token = login().get_json()["refreshToken"]
    storage.get(User, user.id).status = UserStatus.INACTIVE
    storage.save()
    storage.close()

    resp = _refresh(client, token)

    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Usuário inválido ou inativo"
    assert storage.count(RefreshToken) == 0


def test_logout_revokes_refresh_token(client, make_user, login):
    make_user()
    token = login().get_json()["refreshToken"]

    resp = _logout(client, token)

    assert resp.status_code == 200
    assert resp.get_json() == {"message": "Logout realizado com sucesso"}
    assert storage.count(RefreshToken) == 0
    assert _refresh(client, token).get_json()["message"] == "Refresh token inválido"


def test_logout_is_idempotent(client, make_user, login):
    make_user()
    token = login().get_json()["refreshToken"]

    assert _logout(client, token).status_code == 200
    assert _logout(client, token).status_code == 200
    assert _logout(client, "never-issued").status_code == 200


def test_logout_only_revokes_its_own_session(client, make_user, login):
    make_user()
    kept = login().get_json()["refreshToken"]
    dropped = login().get_json()["refreshToken"]

    _logout(client, dropped)

    assert _refresh(client, kept).status_code == 200


def test_logout_requires_a_token(client):
    resp = client.post("/auth/logout", json={})

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Refresh token é obrigatório"


def test_bearer_gate_without_token(client):
    for headers in ({}, {"Authorization": ""}, {"Authorization": "Bearer"}, {"Authorization": "Basic abc"}):
        resp = client.get("/auth/me", headers=headers)
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Token não fornecido"


def test_bearer_gate_with_garbage_token(client):
    resp = client.get("/auth/me", headers={"Authorization": "Bearer not.a.jwt"})

    assert resp.status_code == 401
    assert resp.get_json()["message"] == "Token inválido ou expirado"


def test_refresh_token_is_not_an_access_token(client, make_user, login):
    make_user()
    refresh_token = login().get_json()["refreshToken"]

    resp = client.get("/auth/me", headers={"Authorization": f"Bearer {refresh_token}"})

    assert resp.status_code == 401
