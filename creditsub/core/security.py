import logging
from datetime import datetime, timedelta
from jose import jwt
from creditsub.core.config import SECRET_KEY, ALGORITHM

logger = logging.getLogger(__name__)


def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=60))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Decode and verify a bearer token. Raises jose.JWTError when invalid."""
    return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
