"""Action Repository - Reference data for workflow actions"""
from typing import List, Optional
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo import ASCENDING

from .mongo_client import get_collection
from ..domain.models import Action
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ActionRepository:
    """Repository for action catalog documents"""

    def __init__(self, db: Optional[Database] = None):
        self._actions: Collection = get_collection("actions", db)

    def upsert_action(self, action: Action) -> Action:
        """Create or replace an action (seeding only)"""
        doc = action.model_dump(mode="json")
        self._actions.replace_one({"action_id": action.action_id}, doc, upsert=True)
        logger.info(f"Upserted action: {action.code}", extra={"action": action.code})
        return action

    def get_action(self, action_id: int) -> Optional[Action]:
        """Get action by ID, active or not"""
        doc = self._actions.find_one({"action_id": action_id})
        if doc:
            doc.pop("_id", None)
            return Action.model_validate(doc)
        return None

    def list_actions(self, include_inactive: bool = True) -> List[Action]:
        """List all actions ordered by ID"""
        query = {} if include_inactive else {"is_active": True}
        actions = []
        for doc in self._actions.find(query).sort("action_id", ASCENDING):
            doc.pop("_id", None)
            actions.append(Action.model_validate(doc))
        return actions
