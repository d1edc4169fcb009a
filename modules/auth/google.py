"""Google ID token verification through Google's tokeninfo endpoint."""

import requests

from utils import ValidationError

TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"
GOOGLE_ISSUERS = {"accounts.google.com", "https://accounts.google.com"}


def verify_id_token(id_token: str, client_id: str, timeout: float = 10) -> str:
    """Return the verified email address carried by ``id_token``."""
    if not id_token:
        raise ValidationError("Missing idtoken")
    if not client_id:
        raise ValidationError("Google client id is not configured")

    try:
        resp = requests.get(TOKENINFO_URL, params={"id_token": id_token}, timeout=timeout)
    except requests.RequestException as exc:
        raise ValidationError(f"Could not verify ID token: {exc}") from exc
    if resp.status_code != 200:
        raise ValidationError("Invalid ID token")

    claims = resp.json()
    if claims.get("iss") not in GOOGLE_ISSUERS:
        raise ValidationError("Invalid token issuer")
    if claims.get("aud") != client_id:
        raise ValidationError("Token was issued for another client")
    if str(claims.get("email_verified")).lower() != "true":
        raise ValidationError("Email is not verified")

    email = (claims.get("email") or "").strip()
    if not email:
        raise ValidationError("Token has no email")
    return email
