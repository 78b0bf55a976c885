"""Shared test helpers (imported by conftest and test modules)."""

from storefront.extensions import db

# HS256 keys shorter than 32 bytes trigger PyJWT's insecure-key warning.
TEST_SIGNING_KEY = "test-signing-key-0123456789-abcdefghijklmnopqrstuvwxyz"
DEFAULT_PASSWORD = "Secret123"


def get_auth_token(client, username: str, password: str = DEFAULT_PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/users/login', json={
        'username': username,
        'password': password,
    })
    assert response.status_code == 200, response.get_json()
    return response.get_json()['data']['token']


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def fresh(model, row_id):
    """Re-read a row, bypassing the identity map (requests commit in their own session)."""
    db.session.expire_all()
    return db.session.get(model, row_id)
