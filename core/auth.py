from sqlalchemy.orm import Session
import bcrypt
import jwt
import uuid
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict

from config.settings import settings
from core.exceptions import AuthorizationError

logger = logging.getLogger(__name__)

# bcrypt only considers the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72

class AuthManager:
    def __init__(self):
        self.secret_key = settings.SECRET_KEY
        self.algorithm = settings.ALGORITHM

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt"""
        return bcrypt.hashpw(password.encode()[:BCRYPT_MAX_BYTES], bcrypt.gensalt()).decode()

    def verify_password(self, password: str, hashed: str) -> bool:
        """Verify a password against its hash"""
        return bcrypt.checkpw(password.encode()[:BCRYPT_MAX_BYTES], hashed.encode())

    def create_access_token(self, data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """Create JWT access token"""
        to_encode = data.copy()
        if expires_delta:
            expire = datetime.now(timezone.utc) + expires_delta
        else:
            expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

        to_encode.update({"exp": expire})
        encoded_jwt = jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)
        return encoded_jwt

    def verify_token(self, token: str) -> Optional[Dict]:
        """Verify JWT token"""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
            return payload
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired access token")
            return None
        except jwt.InvalidTokenError:
            return None

# Global instance
auth_manager = AuthManager()

def extract_bearer_token(authorization: Optional[str]) -> str:
    """Pull the token out of an ``Authorization: Bearer <token>`` header value"""
    if not authorization:
        raise AuthorizationError("No authorization header")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthorizationError("Unauthorized")

    return token.strip()

def resolve_user(token: str, db: Session):
    """Resolve a bearer token to an active user or raise AuthorizationError"""
    # Import locally to avoid circular imports
    from modules.users.service import UserService

    payload = auth_manager.verify_token(token)
    if not payload:
        raise AuthorizationError("Unauthorized")

    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise AuthorizationError("Invalid token payload")

    user = UserService(db).get_user_by_id(user_id)
    if user is None or not user.is_active:
        raise AuthorizationError("Unauthorized")

    return user
