"""Unit tests for expiring link signatures."""

from __future__ import annotations

from datetime import timedelta

import pytest

from snapsend.signed_urls import SignedLinkError, SignedLinkErrorCode, sign_link, verify_link

ISSUED_AT = 1_771_156_800.0
PATH = "snap-send/R/m_i.jpg"


def _params(**overrides: object) -> dict[str, str]:
    kwargs: dict[str, object] = {
        "signing_key": "secret-key",
        "object_path": PATH,
        "expires_in": timedelta(hours=24),
        "now": ISSUED_AT,
    }
    kwargs.update(overrides)
    return sign_link(**kwargs)  # type: ignore[arg-type]


def test_signed_params_verify_until_expiry() -> None:
    """A link verifies for its object right up to the expiry second."""
    # Given: Parameters signed for PATH with a 24h lifetime
    params = _params()

    # When: Verifying one second before expiry
    expires_at = verify_link(
        signing_key="secret-key", object_path=PATH, params=params, now=ISSUED_AT + 86399
    )

    # Then: The expiry is 24h after issue
    assert expires_at == int(ISSUED_AT) + 86400
    assert params["expires"] == str(expires_at)


def test_rejects_expired_link() -> None:
    with pytest.raises(SignedLinkError) as exc_info:
        verify_link(
            signing_key="secret-key", object_path=PATH, params=_params(), now=ISSUED_AT + 86400
        )
    assert exc_info.value.code == SignedLinkErrorCode.EXPIRED


def test_rejects_other_object_path() -> None:
    """Signature is bound to one object."""
    with pytest.raises(SignedLinkError) as exc_info:
        verify_link(
            signing_key="secret-key",
            object_path="snap-send/R/other.jpg",
            params=_params(),
            now=ISSUED_AT,
        )
    assert exc_info.value.code == SignedLinkErrorCode.INVALID_SIGNATURE


def test_rejects_extended_expiry() -> None:
    """Editing the expiry breaks the signature."""
    params = _params()
    params["expires"] = str(int(params["expires"]) + 3600)

    with pytest.raises(SignedLinkError) as exc_info:
        verify_link(signing_key="secret-key", object_path=PATH, params=params, now=ISSUED_AT)
    assert exc_info.value.code == SignedLinkErrorCode.INVALID_SIGNATURE


def test_rejects_wrong_signing_key() -> None:
    with pytest.raises(SignedLinkError) as exc_info:
        verify_link(signing_key="other-key", object_path=PATH, params=_params(), now=ISSUED_AT)
    assert exc_info.value.code == SignedLinkErrorCode.INVALID_SIGNATURE


@pytest.mark.parametrize(
    "params",
    [{}, {"expires": "123"}, {"signature": "abc"}, {"expires": "soon", "signature": "abc"}],
)
def test_rejects_malformed_params(params: dict[str, str]) -> None:
    """Missing or non-numeric parameters are malformed."""
    with pytest.raises(SignedLinkError) as exc_info:
        verify_link(signing_key="k", object_path=PATH, params=params, now=ISSUED_AT)
    assert exc_info.value.code == SignedLinkErrorCode.MALFORMED


def test_non_positive_lifetime_is_rejected() -> None:
    with pytest.raises(ValueError, match="positive"):
        _params(expires_in=timedelta(0))
