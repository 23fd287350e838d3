"""
Master key authentication for the Cosmos DB REST API.

Builds the per-request ``authorization`` header from the account master key:

    StringToSign = lower(verb\\n resourceType\\n resourceId\\n x-ms-date\\n \\n)
    Signature    = Base64(HMAC-SHA256(StringToSign, Base64Decode(MasterKey)))
    Header       = urlencode("type=master&ver=1.0&sig=" + Signature)

Reference: https://learn.microsoft.com/en-us/rest/api/cosmos-db/access-control-on-cosmosdb-resources

Author: Cosmoslite Team
Date: 2026-02-03
"""

import base64
import binascii
import hashlib
import hmac
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional
from urllib.parse import quote_plus

from cosmoslite.exceptions import ValidationError

logger = logging.getLogger(__name__)

API_VERSION = "2018-12-31"
USER_AGENT = "cosmoslite.python.sdk/1.0.0"

# The service rejects dates outside its skew window; stamping ahead keeps
# slow round trips inside it.
DATE_OFFSET = timedelta(minutes=2)

DATE_FORMAT = "%a, %d %b %Y %H:%M:%S GMT"


@dataclass(frozen=True)
class MasterKeyCredentials:
    """Credentials for master key authentication."""

    endpoint: str
    master_key: str  # Base64-encoded


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MasterKeySigner:
    """
    Produces signed request headers for Cosmos DB calls.

    The signer is a pure function of (verb, resource type, resource id, clock)
    and holds no mutable state, so one instance may be shared freely.
    """

    def __init__(
        self,
        credentials: MasterKeyCredentials,
        clock: Optional[Callable[[], datetime]] = None,
        user_agent: str = USER_AGENT,
    ):
        """
        Initialize the signer.

        Args:
            credentials: Endpoint and base64-encoded master key
            clock: Returns the current UTC time (injectable for tests)
            user_agent: Value of the User-Agent header

        Raises:
            ValidationError: If the master key is not valid base64
        """
        self.credentials = credentials
        self.clock = clock or utc_now
        self.user_agent = user_agent
        try:
            self._key = base64.b64decode(credentials.master_key, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError("Master key must be a base64-encoded string")

    def sign(self, verb: str, resource_type: str, resource_id: str) -> Dict[str, str]:
        """
        Build the headers for one request.

        Args:
            verb: HTTP method (GET, POST, PUT, DELETE)
            resource_type: Resource type (dbs, colls, docs, pkranges...)
            resource_id: Resource id or link the request addresses, may be empty

        Returns:
            Request headers including x-ms-date and authorization
        """
        x_ms_date = format_date(self.clock() + DATE_OFFSET)
        string_to_sign = build_string_to_sign(verb, resource_type, resource_id, x_ms_date)
        signature = compute_signature(string_to_sign, self._key)

        logger.debug(f"Signed {verb} {resource_type} '{resource_id}' for {x_ms_date}")

        return {
            "Accept": "application/json",
            "User-Agent": self.user_agent,
            "Cache-Control": "no-cache",
            "x-ms-date": x_ms_date,
            "x-ms-version": API_VERSION,
            "authorization": format_authorization(signature),
        }


def format_date(moment: datetime) -> str:
    """
    Format a timestamp as an RFC 1123 GMT date.

    Args:
        moment: Timezone-aware or naive UTC datetime

    Returns:
        Date such as ``Tue, 04 Dec 2025 10:30:00 GMT``
    """
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(DATE_FORMAT)


def build_string_to_sign(verb: str, resource_type: str, resource_id: str, x_ms_date: str) -> str:
    """
    Build the canonical string for the signature.

    The parts are joined first and the whole string is lower-cased once,
    matching the service's own canonicalization.
    """
    parts = [verb, resource_type, resource_id, x_ms_date, "", ""]
    return "\n".join(parts).lower()


def compute_signature(string_to_sign: str, key: bytes) -> str:
    """
    Compute HMAC-SHA256 signature.

    Signature = Base64(HMAC-SHA256(UTF8(StringToSign), Key))

    Args:
        string_to_sign: Canonical string to sign
        key: Decoded master key bytes

    Returns:
        Base64-encoded signature
    """
    signature_bytes = hmac.new(
        key,
        string_to_sign.encode("utf-8"),
        hashlib.sha256
    ).digest()

    return base64.b64encode(signature_bytes).decode("utf-8")


def format_authorization(signature: str, key_type: str = "master", token_version: str = "1.0") -> str:
    """Percent-encode the ``type=..&ver=..&sig=..`` authorization value."""
    return quote_plus(f"type={key_type}&ver={token_version}&sig={signature}", safe="")
