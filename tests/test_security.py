import jwt

from app.config.settings import Settings, settings
from app.utils.security import hash_password, verify_password, create_admin_token, verify_admin_token

def test_password_hash_is_bcrypt():
    password_hash = hash_password("s3cret")
    assert password_hash.startswith("$2")
    assert verify_password("s3cret", password_hash)
    assert not verify_password("wrong", password_hash)
    assert hash_password("s3cret") != password_hash

def test_verify_password_with_bad_hash():
    assert not verify_password("s3cret", "not-a-bcrypt-hash")
    assert not verify_password("s3cret", None)
    assert not verify_password("", hash_password("s3cret"))

def test_admin_token_is_jwt_with_expiry():
    token = create_admin_token()
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=["HS256"])
    assert payload["sub"] == "admin"
    assert payload["exp"] - payload["iat"] == settings.ADMIN_TOKEN_TTL
    assert verify_admin_token(token)

def test_admin_token_rejected():
    assert not verify_admin_token(None)
    assert not verify_admin_token("1.bad")
    assert not verify_admin_token(create_admin_token(now=0))

    forged = jwt.encode({"sub": "admin", "exp": 4102444800}, "change-me-in-production", algorithm="HS256")
    assert not verify_admin_token(forged)

    other_subject = jwt.encode({"sub": "user", "exp": 4102444800}, settings.SECRET_KEY, algorithm="HS256")
    assert not verify_admin_token(other_subject)

def test_default_secret_key_is_random(monkeypatch):
    monkeypatch.delenv("SECRET_KEY", raising=False)
    first = Settings(_env_file=None)
    second = Settings(_env_file=None)
    assert first.SECRET_KEY != "change-me-in-production"
    assert first.SECRET_KEY != second.SECRET_KEY
    assert len(first.SECRET_KEY) >= 32
    assert not first.secret_key_configured

def test_configured_secret_key(monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "deployment-secret")
    configured = Settings(_env_file=None)
    assert configured.SECRET_KEY == "deployment-secret"
    assert configured.secret_key_configured
