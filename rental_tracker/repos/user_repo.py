import uuid
from typing import Optional

from sqlalchemy import select, update

from models.enums import UserRole
from models.models import User

from .base_repo import BaseRepo


class UserRepo(BaseRepo):
    async def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def promote_to_landlord(self, user_id: uuid.UUID) -> bool:
        """Raise a baseline USER to LANDLORD; elevated roles are left alone."""
        stmt = (
            update(User)
            .where(User.id == user_id, User.role == UserRole.USER)
            .values(role=UserRole.LANDLORD)
        )
        result = await self.db.execute(stmt)
        return result.rowcount > 0
