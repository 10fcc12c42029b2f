import json
import logging
import time
from typing import Any, Dict, List
import urllib.request

from fastapi import Depends, HTTPException, status, Request
from jose import jwt
from jose.exceptions import JWTError

from config import COGNITO_REGION, COGNITO_USER_POOL_ID, COGNITO_APP_CLIENT_ID

logger = logging.getLogger(__name__)

COGNITO_ISSUER = f"https://cognito-idp.{COGNITO_REGION}.amazonaws.com/{COGNITO_USER_POOL_ID}"
COGNITO_JWKS_URL = f"{COGNITO_ISSUER}/.well-known/jwks.json"
JWKS_CACHE_SECONDS = 60 * 60 * 24

# Cognito's public keys, refetched once expired
jwks_cache = {
    "keys": [],
    "expiration_time": 0,
}


def get_jwks() -> List[Dict[str, Any]]:
    """
    Retrieves the JSON Web Key Set (JWKS) from Cognito.
    Caches the keys for a day.
    """
    global jwks_cache
    if jwks_cache["keys"] and time.time() < jwks_cache["expiration_time"]:
        return jwks_cache["keys"]

    logger.info(f"Fetching JWKS from: {COGNITO_JWKS_URL}")
    try:
        with urllib.request.urlopen(COGNITO_JWKS_URL) as response:
            jwks_data = json.loads(response.read().decode("utf-8"))
    except Exception as e:
        logger.error(f"Error fetching JWKS: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not fetch Cognito public keys for token validation."
        )

    jwks_cache = {
        "keys": jwks_data["keys"],
        "expiration_time": time.time() + JWKS_CACHE_SECONDS,
    }
    return jwks_cache["keys"]


def get_current_user(request: Request) -> Dict[str, Any]:
    """
    FastAPI dependency to validate the Cognito JWT from the Authorization header.

    Usage:
        @router.post("/", dependencies=[Depends(get_current_user)])
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header is missing",
        )

    # "Bearer <token>"
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
        )

    token = parts[1]
    try:
        unverified_header = jwt.get_unverified_header(token)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token header"
        )

    rsa_key = next((key for key in get_jwks() if key["kid"] == unverified_header.get("kid")), None)
    if not rsa_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unable to find a matching public key to verify the token",
        )

    try:
        return jwt.decode(
            token,
            rsa_key,
            algorithms=["RS256"],
            audience=COGNITO_APP_CLIENT_ID,
            issuer=COGNITO_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired"
        )
    except jwt.JWTClaimsError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token claims: {e}"
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token validation failed: {e}"
        )


def get_user_identifier(user: Dict[str, Any]) -> str:
    """Name stored in created_by / performed_by columns."""
    return user.get("username") or user.get("cognito:username") or user.get("email") or user.get("sub") or "unknown"


def require_group(allowed_groups: List[str]):
    """Dependency factory: the caller must belong to at least one of `allowed_groups`."""

    def checker(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        groups = user.get("cognito:groups", [])
        if not any(group in groups for group in allowed_groups):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"User must belong to one of: {', '.join(allowed_groups)}",
            )
        return user

    return checker
