from typing import Any

import jwt
from fastapi import HTTPException, status


class TokenError(HTTPException):
    def __init__(self, detail: str = "Invalid session token."):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def decode_token_payload(token: str) -> dict[str, Any]:
    """Read the claims of a Supabase access token without verifying it.

    The token was just handed to us by the auth server through the redirect;
    only ``sub`` and ``email`` are needed to look the user up. Undecodable
    tokens yield an empty dict.
    """
    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return {}
    return payload if isinstance(payload, dict) else {}
