import pytest
from jose import jwt

from notesai.config import get_settings
from notesai.errors import ApiError
from notesai.models import User
from notesai.security import (create_access_token, decode_access_token,
                              hash_password, require_admin, verify_password)


def test_argon2_hash_and_verify_ok():
    h = hash_password("S3curePa$$")
    assert h.startswith("$argon2id$")
    assert verify_password("S3curePa$$", h)
    assert not verify_password("wrong", h)


def test_argon2_params_follow_settings():
    settings = get_settings()
    h = hash_password("check-params")
    params = h.split("$")[3]
    kv = dict(p.split("=") for p in params.split(","))
    assert int(kv["m"]) == settings.argon2_memory_cost
    assert int(kv["t"]) == settings.argon2_time_cost
    assert int(kv["p"]) == settings.argon2_parallelism


def test_jwt_created_and_decodable():
    token = create_access_token("user-1", ttl_seconds=60, extra_claims={"sid": "abc"})
    header = jwt.get_unverified_header(token)
    claims = decode_access_token(token)
    assert header["alg"] == "HS256"
    assert "kid" not in header
    assert claims["sub"] == "user-1"
    assert claims["sid"] == "abc"
    assert "exp" in claims and "iat" in claims


def test_jwt_secret_too_short(reload_settings):
    reload_settings(JWT_SECRET="short")
    with pytest.raises(RuntimeError):
        create_access_token("user-1", ttl_seconds=60)


def test_jwt_secret_missing(reload_settings):
    reload_settings(JWT_SECRET=None)
    with pytest.raises(RuntimeError):
        create_access_token("user-1")


def test_require_admin_allows_admin():
    user = User(email="admin@example.com", role="admin")
    assert require_admin(user) is user


def test_require_admin_rejects_non_admin():
    user = User(email="user@example.com", role="user")
    with pytest.raises(ApiError) as exc:
        require_admin(user)
    assert exc.value.status == 403


def test_expired_token_rejected(client, signup):
    headers, user = signup()
    # Valid signature, but no live session behind it.
    token = create_access_token(str(user["id"]), ttl_seconds=60, extra_claims={"sid": "gone"})
    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401

    token = create_access_token(str(user["id"]), ttl_seconds=-1, extra_claims={"sid": "x"})
    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
