"""
Repository layer for data access operations.
Each repository wraps one model with async SQLAlchemy queries and error logging.
"""

from flowestate.repositories.base import BaseRepository
from flowestate.repositories.agent import AgentRepository
from flowestate.repositories.agent_card import AgentCardRepository
from flowestate.repositories.currency import CurrencyRepository
from flowestate.repositories.custom_field import CustomFieldRepository
from flowestate.repositories.facebook_post import FacebookPostRepository
from flowestate.repositories.property import PropertyRepository
from flowestate.repositories.upload_token import UploadTokenRepository

__all__ = [
    "BaseRepository",
    "AgentRepository",
    "AgentCardRepository",
    "CurrencyRepository",
    "CustomFieldRepository",
    "FacebookPostRepository",
    "PropertyRepository",
    "UploadTokenRepository",
]
