"""Tests for the Signer and HTTP method parsing."""

import pytest

from ncpsign.common.clock import FixedClock
from ncpsign.common.errors import ErrorCode, RequestValidationError
from ncpsign.common.hmac import sign
from ncpsign.signer import (
    ACCESS_KEY_HEADER,
    SIGNATURE_HEADER,
    TIMESTAMP_HEADER,
    HttpMethod,
    Signer,
)


class TestHttpMethod:
    """Tests for method parsing."""

    @pytest.mark.parametrize("raw", ["get", "GET", " Get "])
    def test_parse_case_insensitive(self, raw):
        """Method names are normalized to upper case."""
        assert HttpMethod.parse(raw) is HttpMethod.GET

    def test_parse_enum_passthrough(self):
        """Enum values are returned as is."""
        assert HttpMethod.parse(HttpMethod.PATCH) is HttpMethod.PATCH

    @pytest.mark.parametrize("raw", ["HEAD", "OPTIONS", ""])
    def test_parse_rejects_unknown(self, raw):
        """Methods outside the fixed set fail validation."""
        with pytest.raises(RequestValidationError) as exc_info:
            HttpMethod.parse(raw)

        assert exc_info.value.code == ErrorCode.INVALID_METHOD


class TestSigner:
    """Tests for header production."""

    def test_headers_use_clock_timestamp(self, signer):
        """Timestamp header comes from the injected clock."""
        headers = signer.sign("GET", "/server/v2/getServerInstanceList")

        assert headers.as_dict() == {
            TIMESTAMP_HEADER: "1700000000000",
            ACCESS_KEY_HEADER: "AK123",
            SIGNATURE_HEADER: "DKvR1Qohyi44v8aE4xNfZEw4Yp4p7h21yKjVZCo6PBU=",
        }

    def test_signed_values_match_headers(self, signer):
        """Header values are the ones that went into the signature."""
        headers = signer.sign("DELETE", "/a?x=1")

        expected = sign("DELETE", "/a?x=1", headers.timestamp, headers.access_key, "SK456")
        assert headers.signature == expected

    def test_explicit_timestamp_overrides_clock(self, signer):
        """Caller-supplied timestamp is used verbatim."""
        headers = signer.sign(HttpMethod.GET, "/a", timestamp="42")

        assert headers.timestamp == "42"
        assert headers.signature == sign("GET", "/a", "42", "AK123", "SK456")

    @pytest.mark.parametrize(
        "timestamp", ["not-a-time", "", "-1", "1.5", " 1", "\u0661\u0662\u0663"]
    )
    def test_rejects_non_digit_timestamp(self, signer, timestamp):
        """Supplied timestamps must be plain ASCII decimal digits."""
        with pytest.raises(RequestValidationError) as exc_info:
            signer.sign("GET", "/a", timestamp=timestamp)

        assert exc_info.value.code == ErrorCode.INVALID_TIMESTAMP

    def test_access_key_property(self, signer):
        """Signer exposes the access key it signs with."""
        assert signer.access_key == "AK123"

    def test_clock_advance_changes_signature(self, credentials):
        """A later timestamp yields a different signature."""
        clock = FixedClock(1700000000000)
        signer = Signer(credentials, clock)

        first = signer.sign("GET", "/a")
        clock.advance(1)
        second = signer.sign("GET", "/a")

        assert second.timestamp == "1700000000001"
        assert first.signature != second.signature

    def test_lowercase_method_signed_uppercase(self, signer):
        """Lowercase methods sign the same as uppercase."""
        assert signer.sign("get", "/a").signature == signer.sign("GET", "/a").signature

    def test_signing_input_message(self, signer):
        """Signing input exposes the canonical message."""
        data = signer.signing_input("PUT", "/a?b=c")

        assert data.message == "PUT /a?b=c\n1700000000000\nAK123"
        assert data.method is HttpMethod.PUT

    def test_secret_not_in_repr(self, signer, credentials):
        """Secret key never appears in reprs."""
        assert "SK456" not in repr(credentials)
        assert "SK456" not in repr(signer.sign("GET", "/a"))
