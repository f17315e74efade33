import os
from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from fastapi import HTTPException

SECRET_KEY = os.getenv("SECRET_KEY", "replace-this")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60))

# Scope a token must carry to call the slug API
SLUG_SCOPE = "slugs"


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str):
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return payload
    except JWTError:
        return None


def require_token_from_request(request, scope: str = SLUG_SCOPE):
    """Return payload if the Authorization header carries a valid token with `scope`, else raise HTTPException."""
    token = None
    auth_header = request.headers.get('Authorization')
    if auth_header and auth_header.startswith('Bearer '):
        token = auth_header.split(' ', 1)[1]
    if not token:
        raise HTTPException(status_code=401, detail='Not authenticated')
    payload = decode_token(token)
    if not payload or payload.get('type') != 'access':
        raise HTTPException(status_code=401, detail='Invalid or expired token')
    if scope not in (payload.get('scope') or '').split():
        raise HTTPException(status_code=403, detail='Not authorized')
    return payload
