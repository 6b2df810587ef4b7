"""
Adapters: credential hashing and session tokens.

Implements the PasswordHasher port with passlib's bcrypt scheme and the
TokenService port with HS256 JSON Web Tokens (python-jose).
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from tourbook.domain.tours.entities import TokenClaims
from tourbook.domain.tours.ports import PasswordHasher, TokenService


class BcryptPasswordHasher(PasswordHasher):
    """bcrypt with a configurable work factor."""

    def __init__(self, rounds: int = 12) -> None:
        self._context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        return self._context.verify(password, password_hash)


class JwtTokenService(TokenService):
    """Signs ``{sub, iat, exp}`` claims.

    ``verify`` lets ``jose`` errors (``ExpiredSignatureError``,
    ``JWTError``) propagate unchanged.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", expires_in_days: int = 90) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._expires_in = timedelta(days=expires_in_days)

    def issue(self, subject: str) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "sub": subject,
            "iat": int(now.timestamp()),
            "exp": now + self._expires_in,
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        if not payload.get("sub") or "iat" not in payload:
            raise JWTError("Token is missing required claims")
        return TokenClaims(subject=payload["sub"], issued_at=int(payload["iat"]))
