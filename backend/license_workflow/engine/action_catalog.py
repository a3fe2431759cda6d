"""Action Catalog - Read-only registry of workflow actions"""
from typing import Dict, Iterable, List, Optional

from ..domain.models import Action
from ..domain.errors import UnknownActionError
from ..repositories.action_repo import ActionRepository
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ActionCatalog:
    """
    Registry of allowed action codes, loaded once.

    Inactive actions are kept so listings can show them, but every lookup
    treats them exactly like unknown IDs.
    """

    def __init__(self, actions: Iterable[Action]):
        self._by_id: Dict[int, Action] = {}
        self._by_code: Dict[str, Action] = {}
        for action in actions:
            self._by_id[action.action_id] = action
            self._by_code[action.code.upper()] = action

    @classmethod
    def load(cls, repo: ActionRepository) -> "ActionCatalog":
        """Build the catalog from persisted reference data"""
        actions = repo.list_actions(include_inactive=True)
        logger.info(f"Loaded action catalog with {len(actions)} actions")
        return cls(actions)

    def lookup(self, action_id: int) -> Optional[Action]:
        """Active action by ID, or None"""
        action = self._by_id.get(action_id)
        if action is None or not action.is_active:
            return None
        return action

    def lookup_by_code(self, code: str) -> Optional[Action]:
        """Active action by code (case-insensitive), or None"""
        action = self._by_code.get(code.upper())
        if action is None or not action.is_active:
            return None
        return action

    def get_or_raise(self, action_id: int) -> Action:
        action = self.lookup(action_id)
        if action is None:
            raise UnknownActionError(
                f"Invalid action {action_id}: not found or inactive",
                details={"field": "action_id", "rule": "active_catalog_entry", "action_id": action_id}
            )
        return action

    def list_active(self) -> List[Action]:
        return sorted(
            (a for a in self._by_id.values() if a.is_active),
            key=lambda a: a.action_id
        )

    def list_all(self) -> List[Action]:
        return sorted(self._by_id.values(), key=lambda a: a.action_id)
