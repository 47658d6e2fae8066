from datetime import timedelta

from hiredesk.config import Settings
from hiredesk.core.security import (
    PasswordHasher,
    create_access_token,
    decode_access_token,
    digest_token,
    generate_token,
)


def _settings() -> Settings:
    return Settings(_env_file=None, secret_key="unit-secret", bcrypt_rounds=4)


def test_generated_tokens_are_unique_and_url_safe() -> None:
    tokens = {generate_token() for _ in range(50)}
    assert len(tokens) == 50
    for token in tokens:
        assert len(token) >= 43
        assert all(char.isalnum() or char in "-_" for char in token)


def test_digest_is_stable_and_hides_the_raw_token() -> None:
    token = generate_token()
    assert digest_token(token) == digest_token(token)
    assert digest_token(token) != token
    assert len(digest_token(token)) == 64


def test_password_hasher_accepts_only_the_right_password() -> None:
    hasher = PasswordHasher(rounds=4)
    hashed = hasher.hash("correct horse")
    assert hashed != "correct horse"
    assert hasher.verify("correct horse", hashed)
    assert not hasher.verify("wrong horse", hashed)
    assert not hasher.verify("correct horse", "not-a-bcrypt-hash")


def test_access_token_carries_account_id() -> None:
    settings = _settings()
    token = create_access_token(settings, 42)
    assert decode_access_token(settings, token) == 42


def test_expired_or_foreign_access_tokens_are_rejected() -> None:
    settings = _settings()
    expired = create_access_token(settings, 42, expires_delta=timedelta(seconds=-5))
    assert decode_access_token(settings, expired) is None

    foreign = create_access_token(Settings(_env_file=None, secret_key="other-secret"), 42)
    assert decode_access_token(settings, foreign) is None
    assert decode_access_token(settings, "garbage") is None
