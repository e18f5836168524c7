import pytest

from signature import SignatureVerificationError, compute_signature, sign_payload, verify_signature

SECRET = "whsec_sig"
PAYLOAD = "{\"id\": \"evt_sig\"}"
NOW = 1_700_000_000


def test_signed_header_verifies():
    header = sign_payload(PAYLOAD, SECRET, NOW)
    verify_signature(PAYLOAD, header, SECRET, now=NOW)


def test_header_shape():
    header = sign_payload(PAYLOAD, SECRET, NOW)
    assert header == f"t={NOW},v1={compute_signature(PAYLOAD, SECRET, NOW)}"


def test_any_matching_v1_entry_is_enough():
    good = compute_signature(PAYLOAD, SECRET, NOW)
    header = f"t={NOW},v1={'0' * 64},v1={good},v0=legacy"
    verify_signature(PAYLOAD, header, SECRET, now=NOW)


@pytest.mark.parametrize("header,fragment", [
    (None, "Missing"),
    ("", "Missing"),
    ("v1=abc", "timestamp"),
    (f"t={NOW}", "No v1"),
    ("t=yesterday,v1=abc", "not an integer"),
    (f"t={NOW},v1=deadbeef", "No signature matches"),
])
def test_bad_headers(header, fragment):
    with pytest.raises(SignatureVerificationError, match=fragment):
        verify_signature(PAYLOAD, header, SECRET, now=NOW)


def test_timestamp_tolerance():
    header = sign_payload(PAYLOAD, SECRET, NOW)

    verify_signature(PAYLOAD, header, SECRET, tolerance=300, now=NOW + 300)
    with pytest.raises(SignatureVerificationError, match="tolerance"):
        verify_signature(PAYLOAD, header, SECRET, tolerance=300, now=NOW + 301)


def test_zero_tolerance_skips_age_check():
    header = sign_payload(PAYLOAD, SECRET, NOW)
    verify_signature(PAYLOAD, header, SECRET, tolerance=0, now=NOW + 10 ** 6)


def test_is_a_value_error():
    assert issubclass(SignatureVerificationError, ValueError)


@pytest.mark.parametrize("sig", ["éé", "\ud800", "ﬀ" * 32])
def test_non_ascii_signature_is_rejected(sig):
    with pytest.raises(SignatureVerificationError, match="No signature matches"):
        verify_signature(PAYLOAD, f"t={NOW},v1={sig}", SECRET, now=NOW)


def test_non_string_header_is_rejected():
    with pytest.raises(SignatureVerificationError, match="must be a string"):
        verify_signature(PAYLOAD, 12345, SECRET, now=NOW)
