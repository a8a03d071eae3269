import logging
from typing import Dict, List, Optional
from uuid import UUID

from app.config import settings
from app.db.store import Database
from app.errors import NotFoundError, ValidationError
from app.models import utcnow
from app.models.user import User, UserProfile, UserRegister, UserRole, UserUpdate

logger = logging.getLogger(__name__)


def parse_user_id(identifier: str) -> Optional[UUID]:
    try:
        return UUID(str(identifier))
    except ValueError:
        return None


class UserService:
    """Identity directory: user records, lookups and role changes."""

    def __init__(self, db: Database):
        self.db = db

    async def get_user(self, user_id: UUID) -> User:
        row = await self.db.users.get(user_id)
        if not row:
            raise NotFoundError("User not found")
        return User(**row)

    async def find_by_username(self, username: str) -> Optional[User]:
        row = await self.db.users.find_one({"username": username})
        return User(**row) if row else None

    async def find_by_email(self, email: str) -> Optional[User]:
        row = await self.db.users.find_one({"email": email.lower()})
        return User(**row) if row else None

    async def resolve_user(self, identifier: str) -> User:
        """Resolve a user id or, failing that, a username."""
        if not identifier:
            raise ValidationError("Missing user identifier")

        user_id = parse_user_id(identifier)
        if user_id:
            row = await self.db.users.get(user_id)
            if row:
                return User(**row)

        user = await self.find_by_username(identifier)
        if user:
            return user

        raise NotFoundError("User not found")

    async def get_summaries(self, user_ids: List[UUID]) -> Dict[UUID, User]:
        users = {}
        for user_id in set(user_ids):
            row = await self.db.users.get(user_id)
            if row:
                users[user_id] = User(**row)
        return users

    async def create_user(self, user_id: UUID, payload: UserRegister) -> User:
        await self.ensure_available(payload.username, payload.email)
        row = await self.db.users.insert(
            {
                "id": user_id,
                "username": payload.username,
                "email": payload.email.lower(),
                "name": payload.name,
                "role": UserRole.USER,
                "bio": "",
            }
        )
        logger.info(f"Registered user {payload.username}")
        return User(**row)

    async def ensure_available(self, username: str, email: str) -> None:
        if await self.find_by_username(username):
            raise ValidationError("Username already taken")
        if await self.find_by_email(email):
            raise ValidationError("Email already registered")

    async def get_profile(self, user_id: UUID) -> UserProfile:
        user = await self.get_user(user_id)
        return UserProfile(
            id=user.id,
            username=user.username,
            name=user.name,
            role=user.role,
            bio=user.bio,
            profile_picture=user.profile_picture,
        )

    async def update_profile(self, user_id: UUID, patch: UserUpdate) -> User:
        payload = patch.model_dump(exclude_unset=True, exclude_none=True)

        if not payload:
            return await self.get_user(user_id)

        if "username" in payload:
            existing = await self.find_by_username(payload["username"])
            if existing and existing.id != user_id:
                raise ValidationError("Username already taken")

        payload["updated_at"] = utcnow()
        row = await self.db.users.update(user_id, payload)
        if not row:
            raise NotFoundError("User not found")
        return User(**row)

    async def upload_picture(
        self, user_id: UUID, file_name: str, content_type: Optional[str], data: bytes
    ) -> User:
        if not data:
            raise ValidationError("No file uploaded")
        if len(data) > settings.max_upload_bytes:
            raise ValidationError("File is too large")
        if not (content_type or "").startswith("image/"):
            raise ValidationError("Profile picture must be an image")

        url = await self.db.blobs.upload(
            settings.avatars_bucket, f"{user_id}/{file_name}", data, content_type
        )
        row = await self.db.users.update(
            user_id, {"profile_picture": url, "updated_at": utcnow()}
        )
        if not row:
            raise NotFoundError("User not found")
        return User(**row)

    async def promote_to_manager(self, user_id: UUID) -> None:
        await self.db.users.update(user_id, {"role": UserRole.MANAGER})
        logger.info(f"Promoted user {user_id} to manager")
