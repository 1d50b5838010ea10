from datetime import date

import pytest

from api import create_app
from models import storage
from models.user import User, UserStatus
from utils.security import hash_password

PASSWORD = "secret"


@pytest.fixture
def app():
    app = create_app("testing")
    yield app
    storage.close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def authority(app):
    return app.extensions["session_authority"]


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make_user(email="a@x.com", password=PASSWORD, status=UserStatus.ACTIVE, **extra):
        counter["n"] += 1
        user = User(
            name=extra.pop("name", f"User {counter['n']}"),
            birth_date=extra.pop("birth_date", date(1990, 5, 15)),
            cpf=extra.pop("cpf", f"{counter['n']:011d}"),
            email=email,
            password_hash=hash_password(password),
            status=status,
            **extra,
        )
        storage.new(user)
        storage.save()
        return user

    return _make_user


@pytest.fixture
def login(client):
    def _login(email="a@x.com", password=PASSWORD):
        return client.post("/auth/login", json={"email": email, "password": password})

    return _login


@pytest.fixture
def auth_headers(make_user, login):
    make_user(email="admin@x.com")
    token = login("admin@x.com").get_json()["token"]
    return {"Authorization": f"Bearer {token}"}
