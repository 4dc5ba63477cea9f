from urllib.parse import parse_qs, urlparse

from tenantgate.app.services.url_signer import UrlSigner, email_hash


def _parts(url):
    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    return parsed.path, int(query["expires"][0]), query["signature"][0]


def test_email_hash_is_sha1_of_lowercase_email():
    assert email_hash("User@Acme.com") == email_hash("user@acme.com")
    assert len(email_hash("user@acme.com")) == 40


def test_verification_url_round_trip(signer, make_user):
    user = make_user()

    url = signer.verification_url(user, 60)
    path, expires, signature = _parts(url)

    assert url.startswith(f"http://localhost:8000/api/email/verify/{user.id}/")
    assert path == "/api" + signer.verification_path(user)
    assert signer.verify(signer.verification_path(user), expires, signature).is_ok()


def test_expired_link_rejected(signer, make_user, clock):
    user = make_user()
    _, expires, signature = _parts(signer.verification_url(user, 60))

    clock.advance(61 * 60)
    result = signer.verify(signer.verification_path(user), expires, signature)

    assert result.is_err()
    assert result.error.code == "INVALID_SIGNATURE"


def test_tampered_expiry_rejected(signer, make_user):
    user = make_user()
    _, expires, signature = _parts(signer.verification_url(user, 60))

    result = signer.verify(signer.verification_path(user), expires + 3600, signature)

    assert result.is_err()


def test_signature_bound_to_key(signer, make_user, clock):
    user = make_user()
    _, expires, signature = _parts(signer.verification_url(user, 60))

    other = UrlSigner("http://localhost:8000/api", "other-key", clock=clock)

    assert other.verify(signer.verification_path(user), expires, signature).is_err()
