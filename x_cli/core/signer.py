"""
OAuth 1.0a (HMAC-SHA1) request signing.

The signer only computes the Authorization header; it performs no I/O. Query
string parameters on the URL are always signed. Body parameters are signed
only when the request is flagged as form-encoded; JSON and multipart bodies
are never part of the signature base string.
"""

from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple
from urllib.parse import parse_qsl, urlsplit

from oauthlib.common import generate_nonce, generate_timestamp
from oauthlib.oauth1.rfc5849 import parameters, signature, utils

from ..models.api_models import Credentials

SIGNATURE_METHOD = "HMAC-SHA1"
OAUTH_VERSION = "1.0"


def percent_encode(value: str) -> str:
    """RFC 3986 percent-encoding (space becomes %20, never '+')."""
    return utils.escape(value)


@dataclass(frozen=True)
class SignableRequest:
    """The parts of an HTTP request that take part in the signature."""

    method: str
    url: str
    form_params: Optional[Mapping[str, str]] = None
    include_form_params: bool = False


@dataclass(frozen=True)
class AuthorizationHeader:
    """Ordered oauth_* fields; ``value`` renders the ``Authorization`` header."""

    params: List[Tuple[str, str]] = field(default_factory=list)

    def get(self, name: str) -> Optional[str]:
        for key, value in self.params:
            if key == name:
                return value
        return None

    @property
    def value(self) -> str:
        return parameters.prepare_headers(self.params)["Authorization"]

    def as_headers(self):
        return {"Authorization": self.value}


class OAuth1Signer:
    """Computes OAuth 1.0a Authorization headers for a fixed set of credentials."""

    def __init__(self, credentials: Credentials):
        self._credentials = credentials

    def _oauth_params(self, nonce: str, timestamp: str) -> List[Tuple[str, str]]:
        return [
            ("oauth_consumer_key", self._credentials.consumer_key.get_secret_value()),
            ("oauth_nonce", nonce),
            ("oauth_signature_method", SIGNATURE_METHOD),
            ("oauth_timestamp", timestamp),
            ("oauth_token", self._credentials.token_key.get_secret_value()),
            ("oauth_version", OAUTH_VERSION),
        ]

    @staticmethod
    def collect_params(request: SignableRequest) -> List[Tuple[str, str]]:
        """Request parameters that are signed alongside the oauth_* fields."""
        query = urlsplit(request.url).query
        params = parse_qsl(query, keep_blank_values=True)
        if request.include_form_params and request.form_params:
            params.extend((str(k), str(v)) for k, v in request.form_params.items())
        return params

    def signature_base_string(self, request: SignableRequest, nonce: str, timestamp: str) -> str:
        params = self._oauth_params(nonce, timestamp) + self.collect_params(request)
        normalized = signature.normalize_parameters(params)
        base_uri = signature.base_string_uri(request.url)
        return signature.signature_base_string(request.method.upper(), base_uri, normalized)

    def sign(
        self,
        request: SignableRequest,
        nonce: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> AuthorizationHeader:
        """
        Sign a request.

        Args:
            request: Method, URL and (optionally) form parameters to sign
            nonce: Fixed nonce, for reproducible signatures in tests
            timestamp: Fixed timestamp (seconds since epoch, as a string)

        Returns:
            AuthorizationHeader with the seven oauth_* fields, signature last
        """
        nonce = nonce or generate_nonce()
        timestamp = str(timestamp) if timestamp is not None else generate_timestamp()

        base_string = self.signature_base_string(request, nonce, timestamp)
        oauth_signature = signature.sign_hmac_sha1(
            base_string,
            self._credentials.consumer_secret.get_secret_value(),
            self._credentials.token_secret.get_secret_value(),
        )
        return AuthorizationHeader(
            params=self._oauth_params(nonce, timestamp) + [("oauth_signature", oauth_signature)]
        )


def sign(request: SignableRequest, credentials: Credentials, **kwargs) -> AuthorizationHeader:
    return OAuth1Signer(credentials).sign(request, **kwargs)
