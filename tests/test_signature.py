import time

import pytest

from mediapress.errors import SignatureError
from mediapress.services.signature import SignatureVerifier, body_hash

URL = "http://testserver/api/jobs/process"
BODY = b'{"jobId":"abc"}'


def test_body_hash_is_unpadded_base64url():
    digest = body_hash(b"")
    assert digest == "47DEQpj8HBSa-_TImW-5JCeuQeRkm5NMpJWZG3hSuFU"
    assert "=" not in digest


def test_valid_signature_returns_claims():
    verifier = SignatureVerifier(["secret"])
    claims = verifier.verify(verifier.sign(BODY, URL), BODY, URL)

    assert claims["iss"] == "Upstash"
    assert claims["sub"] == URL


def test_disabled_without_keys():
    assert not SignatureVerifier([]).enabled
    assert not SignatureVerifier([None, ""]).enabled


def test_wrong_key_is_rejected():
    signature = SignatureVerifier(["other"]).sign(BODY, URL)
    with pytest.raises(SignatureError, match="Invalid signature"):
        SignatureVerifier(["secret"]).verify(signature, BODY)


def test_tampered_body_is_rejected():
    verifier = SignatureVerifier(["secret"])
    signature = verifier.sign(BODY, URL)
    with pytest.raises(SignatureError, match="body hash mismatch"):
        verifier.verify(signature, b'{"jobId":"xyz"}')


def test_expired_signature_is_rejected():
    verifier = SignatureVerifier(["secret"])
    signature = verifier.sign(BODY, URL, expires_in=60, now=int(time.time()) - 3600)
    with pytest.raises(SignatureError):
        verifier.verify(signature, BODY)


def test_subject_must_match_when_url_given():
    verifier = SignatureVerifier(["secret"])
    signature = verifier.sign(BODY, "http://elsewhere/api/jobs/process")
    with pytest.raises(SignatureError, match="subject"):
        verifier.verify(signature, BODY, URL)


def test_missing_signature():
    with pytest.raises(SignatureError, match="Missing signature"):
        SignatureVerifier(["secret"]).verify(None, BODY)
