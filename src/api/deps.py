from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.auth.security import decode_access_token
from src.media.cloudinary import CloudinaryClient

bearer_scheme = HTTPBearer(auto_error=False)


async def require_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Dict[str, Any]:
    """Return the claims of a valid access token or reject the request."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Unauthorized - No access token")
    try:
        return decode_access_token(credentials.credentials)
    except jwt.PyJWTError:
        raise HTTPException(status_code=403, detail="Forbidden - Invalid access token")


def get_media() -> CloudinaryClient:
    return CloudinaryClient()
