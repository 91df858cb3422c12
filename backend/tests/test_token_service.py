from datetime import timedelta
from types import SimpleNamespace

import pytest

from engigrow.core.errors import ExpiredToken, MalformedToken, MissingToken
from engigrow.core.security import TokenService

USER = SimpleNamespace(email="ada@example.edu", name="Ada")


@pytest.fixture
def tokens():
    return TokenService("unit-test-key", expire_minutes=60)


def test_issue_then_verify(tokens):
    claims = tokens.verify(tokens.issue(USER))

    assert claims.identity == "ada@example.edu"
    assert claims.email == "ada@example.edu"
    assert claims.name == "Ada"
    assert claims.expires_at - claims.issued_at == timedelta(hours=1)


def test_expired_token(tokens):
    token = tokens.issue(USER, expires_delta=timedelta(seconds=-30))

    with pytest.raises(ExpiredToken):
        tokens.verify(token)


@pytest.mark.parametrize("token", [None, ""])
def test_missing_token(tokens, token):
    with pytest.raises(MissingToken):
        tokens.verify(token)


def test_garbage_token(tokens):
    with pytest.raises(MalformedToken):
        tokens.verify("not-a-jwt")


def test_token_signed_with_other_key(tokens):
    forged = TokenService("some-other-key").issue(USER)

    with pytest.raises(MalformedToken):
        tokens.verify(forged)


def test_signing_key_is_required():
    with pytest.raises(ValueError):
        TokenService("")
