"""
Session identity: read the caller's email and role out of a signed credential.

The credential is the compact JWT issued by ``/login``. The signature is not
checked here; the issuing service already verified the password over a
secure channel and re-verifies the token on every request. The claims are
only used to pick a view and to label records.
"""

import binascii
import json
import logging

from jose.utils import base64url_decode

from .errors import MalformedCredential, UnknownRole
from .schemas import ROLES, Identity

logger = logging.getLogger("crm.identity")

BEARER_PREFIX = "bearer "


def strip_bearer(credential: str) -> str:
    token = (credential or "").strip()
    if token.lower().startswith(BEARER_PREFIX):
        # tolerate "Bearer Bearer <jwt>"
        token = token.split()[-1]
    return token


def decode(credential: str) -> Identity:
    token = strip_bearer(credential)
    if token.count(".") != 2:
        raise MalformedCredential("Credential must have three dot-separated parts")

    # only the claims segment is read; header and signature are the issuer's concern
    payload = token.split(".")[1]
    try:
        claims = json.loads(base64url_decode(payload.encode("ascii")))
    except (ValueError, binascii.Error) as exc:
        logger.debug("Rejected credential: %s", exc)
        raise MalformedCredential("Credential payload is not valid base64url JSON") from exc
    if not isinstance(claims, dict):
        raise MalformedCredential("Credential payload is not a JSON object")

    email = claims.get("sub")
    if not isinstance(email, str) or not email.strip():
        raise MalformedCredential("Credential carries no subject")

    role = claims.get("role")
    if role not in ROLES:
        raise UnknownRole(f"Unknown role in credential: {role!r}")

    return Identity(email=email.strip(), role=role)
