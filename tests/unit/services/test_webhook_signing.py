import hashlib
import hmac

from tenantgate.app.services.webhook_signing import canonical_json, sign, verify_signature


def test_canonical_json_is_sorted_and_compact():
    body = canonical_json({"b": 1, "a": {"d": 2, "c": "é"}})

    assert body == '{"a":{"c":"é","d":2},"b":1}'.encode("utf-8")


def test_signature_is_hmac_sha256_of_raw_body():
    body = canonical_json({"event": "user.created"})

    expected = hmac.new(b"secret", body, hashlib.sha256).hexdigest()

    assert sign(body, "secret") == f"sha256={expected}"


def test_verify_accepts_untouched_body():
    body = canonical_json({"event": "user.created", "data": {"id": 1}})

    assert verify_signature(body, sign(body, "secret"), "secret")


def test_verify_rejects_tampering():
    body = canonical_json({"event": "user.created", "data": {"id": 1}})
    signature = sign(body, "secret")

    assert not verify_signature(body.replace(b"1", b"2"), signature, "secret")
    assert not verify_signature(body, signature, "other-secret")
    assert not verify_signature(body, "", "secret")
