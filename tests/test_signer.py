import pytest
from pydantic import SecretStr

from x_cli.core.signer import OAuth1Signer, SignableRequest, percent_encode, sign
from x_cli.models import Credentials

UPDATE_URL = "https://api.twitter.com/1.1/statuses/update.json?include_entities=true"
STATUS = {"status": "Hello Ladies + Gentlemen, a signed OAuth request!"}
NONCE = "kYjzVBB8Y0ZFabxSWbWovY3uYSQ2pTgmZeNu2VS4cg"
TIMESTAMP = "1318622958"


def signed(credentials, request=None, **kwargs):
    request = request or SignableRequest("POST", UPDATE_URL, STATUS, include_form_params=True)
    kwargs.setdefault("nonce", NONCE)
    kwargs.setdefault("timestamp", TIMESTAMP)
    return OAuth1Signer(credentials).sign(request, **kwargs)


def test_matches_published_signature(credentials):
    header = signed(credentials)
    assert header.get("oauth_signature") == "hCtSmYh+iHYCEqBWrE7C7hYmtUk="


def test_base_string_excludes_query_from_base_url(credentials):
    request = SignableRequest("post", UPDATE_URL, STATUS, include_form_params=True)
    base = OAuth1Signer(credentials).signature_base_string(request, NONCE, TIMESTAMP)
    assert base.startswith("POST&https%3A%2F%2Fapi.twitter.com%2F1.1%2Fstatuses%2Fupdate.json&")
    assert "include_entities%3Dtrue" in base
    assert "status%3DHello%2520Ladies%2520%252B%2520Gentlemen" in base


def test_header_has_seven_fields_signature_last(credentials):
    header = signed(credentials)
    names = [name for name, _ in header.params]
    assert names == [
        "oauth_consumer_key",
        "oauth_nonce",
        "oauth_signature_method",
        "oauth_timestamp",
        "oauth_token",
        "oauth_version",
        "oauth_signature",
    ]
    assert header.get("oauth_signature_method") == "HMAC-SHA1"
    assert header.value.startswith("OAuth ")
    assert header.as_headers()["Authorization"] == header.value


def test_signature_is_deterministic(credentials):
    assert signed(credentials).value == signed(credentials).value


@pytest.mark.parametrize("change", [
    {"nonce": "another-nonce"},
    {"timestamp": "1318622959"},
    {"request": SignableRequest("GET", UPDATE_URL, STATUS, include_form_params=True)},
    {"request": SignableRequest("POST", UPDATE_URL.replace("true", "false"), STATUS, include_form_params=True)},
    {"request": SignableRequest("POST", UPDATE_URL, {"status": "Hello"}, include_form_params=True)},
])
def test_any_single_change_alters_signature(credentials, change):
    baseline = signed(credentials).get("oauth_signature")
    assert signed(credentials, **change).get("oauth_signature") != baseline


def test_changing_token_secret_alters_signature(credentials):
    other = Credentials(
        consumer_key=credentials.consumer_key,
        consumer_secret=credentials.consumer_secret,
        token_key=credentials.token_key,
        token_secret=SecretStr("different"),
    )
    assert signed(other).get("oauth_signature") != signed(credentials).get("oauth_signature")


def test_form_params_only_signed_when_flagged(credentials):
    included = signed(credentials, SignableRequest("POST", UPDATE_URL, STATUS, include_form_params=True))
    excluded = signed(credentials, SignableRequest("POST", UPDATE_URL, STATUS, include_form_params=False))
    bare = signed(credentials, SignableRequest("POST", UPDATE_URL))
    assert included.get("oauth_signature") != excluded.get("oauth_signature")
    assert excluded.get("oauth_signature") == bare.get("oauth_signature")


def test_fresh_nonce_and_timestamp_by_default(credentials):
    request = SignableRequest("GET", "https://api.twitter.com/2/users/me")
    first = sign(request, credentials)
    second = sign(request, credentials)
    assert first.get("oauth_nonce") != second.get("oauth_nonce")
    assert first.get("oauth_timestamp").isdigit()


def test_percent_encoding_follows_rfc3986():
    assert percent_encode("a b~!*'()") == "a%20b~%21%2A%27%28%29"
    assert percent_encode("Ladies + Gentlemen") == "Ladies%20%2B%20Gentlemen"
