from sqlalchemy.orm import Session
from typing import Optional
import uuid

from .models import User
from .schemas import UserCreate
from core.auth import auth_manager

class UserService:
    def __init__(self, db: Session):
        self.db = db

    def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """Get user by ID"""
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email"""
        return self.db.query(User).filter(User.email == email.lower()).first()

    def create_user(self, user_data: UserCreate) -> User:
        """Create a new user"""
        if self.get_user_by_email(user_data.email):
            raise ValueError("Email already exists")

        user = User(
            email=user_data.email.lower(),
            password_hash=auth_manager.hash_password(user_data.password),
            full_name=user_data.full_name,
            is_active=True
        )

        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        return user

    def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Authenticate user"""
        user = self.get_user_by_email(email)
        if not user or not user.is_active:
            return None

        if not auth_manager.verify_password(password, user.password_hash):
            return None

        return user

    def issue_token(self, user: User) -> str:
        """Create an access token identifying the user by id"""
        return auth_manager.create_access_token(
            data={"sub": str(user.id), "email": user.email}
        )
