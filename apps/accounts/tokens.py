"""
Signed bearer tokens.

Access and refresh tokens are Django signed payloads with distinct salts,
so one can never be used in place of the other.
"""
from typing import Optional

from django.conf import settings
from django.core import signing

ACCESS_SALT = 'localbiz.access'
REFRESH_SALT = 'localbiz.refresh'


def generate_access_token(account_id) -> str:
    return signing.dumps({'id': str(account_id)}, salt=ACCESS_SALT)


def generate_refresh_token(account_id) -> str:
    return signing.dumps({'id': str(account_id), 'kind': 'refresh'}, salt=REFRESH_SALT)


def _decode(token: str, salt: str, max_age: int) -> Optional[str]:
    try:
        payload = signing.loads(token, salt=salt, max_age=max_age)
    except (signing.BadSignature, signing.SignatureExpired):
        return None
    return payload.get('id')


def verify_access_token(token: str) -> Optional[str]:
    """Account id for a valid, unexpired access token, else None."""
    return _decode(token, ACCESS_SALT, settings.ACCESS_TOKEN_TTL_SECONDS)


def verify_refresh_token(token: str) -> Optional[str]:
    return _decode(token, REFRESH_SALT, settings.REFRESH_TOKEN_TTL_SECONDS)
