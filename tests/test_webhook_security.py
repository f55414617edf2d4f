import hashlib
import hmac

import pytest

from cal_notify.webhook_security import (
    WebhookSignatureError,
    compute_hmac_sha256,
    constant_time_compare,
    create_webhook_signature,
    verify_signature,
)

SECRET = "whsec_test_secret"
BODY = b'{"triggerEvent":"BOOKING_CREATED"}'


def test_signature_is_hex_hmac_sha256():
    expected = hmac.new(SECRET.encode(), BODY, hashlib.sha256).hexdigest()

    assert compute_hmac_sha256(SECRET, BODY) == expected
    assert create_webhook_signature(SECRET, BODY) == expected


def test_valid_signature_passes():
    verify_signature(SECRET, BODY, create_webhook_signature(SECRET, BODY))


@pytest.mark.parametrize(
    "signature",
    ["", "deadbeef", create_webhook_signature("other", BODY), create_webhook_signature(SECRET, BODY + b" ")],
)
def test_bad_signatures_raise(signature):
    with pytest.raises(WebhookSignatureError):
        verify_signature(SECRET, BODY, signature)


def test_constant_time_compare():
    assert constant_time_compare("abc", "abc")
    assert not constant_time_compare("abc", "abd")
    assert not constant_time_compare("", "")
