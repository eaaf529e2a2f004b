"""Tests for token service layer functionality."""
from datetime import datetime, timedelta, UTC
from uuid import UUID

import jwt
import pytest

from services.exceptions import InvalidTokenError
from services.token_service import Claims, TokenService

USER_ID = UUID("0190a8c4-1b2c-7d3e-8f40-5a6b7c8d9e0f")
FIXED_NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=UTC)
B64URL_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"


def _mutate(segment: str, position: int) -> str:
    """
    Replace one character of a base64url segment.

    Flipping the top bit of the 6-bit value changes the decoded bytes even for
    the last character, whose low bits may be padding.
    """
    index = position % len(segment)
    flipped = B64URL_ALPHABET[B64URL_ALPHABET.index(segment[index]) ^ 32]
    return segment[:index] + flipped + segment[index + 1:]


# =============================================================================
# issue Tests
# =============================================================================


def test__issue__round_trips_through_verify() -> None:
    service = TokenService("secret")
    claims = service.verify(service.issue(USER_ID))

    assert isinstance(claims, Claims)
    assert claims.sub == str(USER_ID)


def test__issue__sets_expiry_seven_days_after_issue() -> None:
    """Default lifetime is 7 days, recorded as integer seconds."""
    service = TokenService("secret", clock=lambda: FIXED_NOW)
    token = service.issue(USER_ID)
    payload = jwt.decode(
        token, "secret", algorithms=["HS256"], options={"verify_exp": False},
    )

    assert payload["sub"] == str(USER_ID)
    assert payload["iat"] == int(FIXED_NOW.timestamp())
    assert payload["exp"] == int((FIXED_NOW + timedelta(days=7)).timestamp())


def test__issue__uses_hs256() -> None:
    token = TokenService("secret").issue(USER_ID)
    assert jwt.get_unverified_header(token)["alg"] == "HS256"


def test__issue__custom_expiry() -> None:
    service = TokenService("secret", expires_in=timedelta(hours=1), clock=lambda: FIXED_NOW)
    payload = jwt.decode(
        service.issue(USER_ID), "secret", algorithms=["HS256"], options={"verify_exp": False},
    )
    assert payload["exp"] - payload["iat"] == 3600


# =============================================================================
# verify Tests
# =============================================================================


def test__verify__rejects_expired_token() -> None:
    """A token issued 8 days ago is past its 7-day lifetime."""
    issued_long_ago = TokenService(
        "secret", clock=lambda: datetime.now(UTC) - timedelta(days=8),
    ).issue(USER_ID)

    with pytest.raises(InvalidTokenError):
        TokenService("secret").verify(issued_long_ago)


def test__verify__rejects_other_secret() -> None:
    token = TokenService("secret-one").issue(USER_ID)
    with pytest.raises(InvalidTokenError):
        TokenService("secret-two").verify(token)


@pytest.mark.parametrize("segment_index", [0, 1, 2])
@pytest.mark.parametrize("position", [0, -1])
def test__verify__rejects_tampered_segment(segment_index: int, position: int) -> None:
    """Changing the first or last character of any segment invalidates the token."""
    service = TokenService("secret")
    segments = service.issue(USER_ID).split(".")
    segments[segment_index] = _mutate(segments[segment_index], position)

    with pytest.raises(InvalidTokenError):
        service.verify(".".join(segments))


@pytest.mark.parametrize("token", ["", "abc", "a.b.c", "Bearer x.y.z"])
def test__verify__rejects_garbage(token: str) -> None:
    with pytest.raises(InvalidTokenError):
        TokenService("secret").verify(token)


def test__verify__rejects_token_without_required_claims() -> None:
    token = jwt.encode({"sub": str(USER_ID)}, "secret", algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        TokenService("secret").verify(token)


def test__verify__rejects_alg_none() -> None:
    now = int(datetime.now(UTC).timestamp())
    token = jwt.encode(
        {"sub": str(USER_ID), "iat": now, "exp": now + 3600}, None, algorithm="none",
    )
    with pytest.raises(InvalidTokenError):
        TokenService("secret").verify(token)


def test__verify__error_message_is_uniform() -> None:
    with pytest.raises(InvalidTokenError) as exc_info:
        TokenService("secret").verify("abc")
    assert exc_info.value.message == "Invalid or missing token"
    assert exc_info.value.status_code == 401
