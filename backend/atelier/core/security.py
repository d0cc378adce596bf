from datetime import datetime, timedelta, timezone

import jwt

from atelier.core.config import settings
from atelier.models import TokenPayload

ALGORITHM = "HS256"


def create_access_token(subject: str, expires_delta: timedelta, *, token_id: str) -> str:
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"exp": expire, "sub": str(subject), "jti": token_id}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str, *, verify_exp: bool = True) -> TokenPayload:
    # Raises jwt.InvalidTokenError for a bad signature, a malformed token or (unless disabled) expiry.
    payload = jwt.decode(
        token,
        settings.SECRET_KEY,
        algorithms=[ALGORITHM],
        options={"verify_exp": verify_exp},
    )
    return TokenPayload(**payload)
