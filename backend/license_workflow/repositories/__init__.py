"""Repository modules - Data access layer"""
from .mongo_client import get_database, get_collection, create_indexes
from .action_repo import ActionRepository
from .user_repo import UserRepository
from .application_repo import ApplicationRepository
from .history_repo import HistoryRepository

__all__ = [
    "get_database",
    "get_collection",
    "create_indexes",
    "ActionRepository",
    "UserRepository",
    "ApplicationRepository",
    "HistoryRepository",
]
