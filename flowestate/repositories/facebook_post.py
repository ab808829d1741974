"""
Facebook post repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from flowestate.repositories.base import BaseRepository
from flowestate.models.facebook_post import FacebookPost


class FacebookPostRepository(BaseRepository[FacebookPost]):

    def __init__(self, db: AsyncSession):
        super().__init__(FacebookPost, db)
