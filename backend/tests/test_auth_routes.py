# Overview: Pytest coverage for vendor login, logout and session validation.

import pytest

from vendorpos.services.auth_service import (
    create_vendor,
    hash_password,
    verify_password,
    PasswordValidationError,
)
from vendorpos.validation import ConflictError
from conftest import VENDOR_PASSWORD, get_auth_token, auth_headers


class TestAuthService:
    def test_password_hash_round_trip(self, app):
        hashed = hash_password("Password123")
        assert hashed != "Password123"
        assert verify_password("Password123", hashed)
        assert not verify_password("Password124", hashed)

    @pytest.mark.parametrize("password", ["short1", "allletters", "12345678"])
    def test_weak_password_rejected(self, db_session, password):
        with pytest.raises(PasswordValidationError):
            create_vendor(name="Shop", email="shop@example.local", password=password)

    def test_duplicate_email(self, db_session, vendor_a):
        with pytest.raises(ConflictError):
            create_vendor(name="Other", email="OWNER@glow.local", password=VENDOR_PASSWORD)


class TestLogin:
    def test_login_returns_token(self, client, vendor_a):
        response = client.post('/api/auth/login', json={'email': vendor_a.email, 'password': VENDOR_PASSWORD})
        assert response.status_code == 200
        assert response.json['token']
        assert response.json['vendor']['id'] == vendor_a.id

    def test_wrong_password(self, client, vendor_a):
        response = client.post('/api/auth/login', json={'email': vendor_a.email, 'password': 'Wrong1234'})
        assert response.status_code == 401

    def test_unknown_email(self, client, db_session):
        response = client.post('/api/auth/login', json={'email': 'nobody@x.local', 'password': VENDOR_PASSWORD})
        assert response.status_code == 401

    def test_missing_fields(self, client, db_session):
        response = client.post('/api/auth/login', json={'email': 'owner@glow.local'})
        assert response.status_code == 400


class TestSession:
    def test_me(self, client, headers_a, vendor_a):
        response = client.get('/api/auth/me', headers=headers_a)
        assert response.status_code == 200
        assert response.json['vendor']['email'] == vendor_a.email

    def test_missing_token(self, client, db_session):
        assert client.get('/api/auth/me').status_code == 401

    def test_bogus_token(self, client, db_session):
        assert client.get('/api/auth/me', headers=auth_headers('not-a-token')).status_code == 401

    def test_logout_revokes_token(self, client, vendor_a):
        headers = auth_headers(get_auth_token(client, vendor_a.email))
        assert client.post('/api/auth/logout', headers=headers).status_code == 200
        assert client.get('/api/auth/me', headers=headers).status_code == 401
