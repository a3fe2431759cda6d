"""User Repository - Users, roles and the forwarding hierarchy"""
from typing import List, Optional, Set
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo import ASCENDING

from .mongo_client import get_collection
from ..domain.models import User, Role
from ..utils.logger import get_logger

logger = get_logger(__name__)


class UserRepository:
    """Repository for user directory reads"""

    def __init__(self, db: Optional[Database] = None):
        self._users: Collection = get_collection("users", db)
        self._roles: Collection = get_collection("roles", db)
        self._hierarchy: Collection = get_collection("role_hierarchy", db)

    # =========================================================================
    # Users
    # =========================================================================

    def upsert_user(self, user: User) -> User:
        """Create or replace a user (seeding only)"""
        self._users.replace_one({"user_id": user.user_id}, user.model_dump(), upsert=True)
        return user

    def get_user(self, user_id: int) -> Optional[User]:
        """Get user by ID"""
        doc = self._users.find_one({"user_id": user_id})
        if doc:
            doc.pop("_id", None)
            return User.model_validate(doc)
        return None

    # =========================================================================
    # Roles
    # =========================================================================

    def upsert_role(self, role: Role) -> Role:
        """Create or replace a role (seeding only)"""
        self._roles.replace_one({"role_id": role.role_id}, role.model_dump(), upsert=True)
        return role

    def get_role(self, role_id: int) -> Optional[Role]:
        """Get role by ID"""
        doc = self._roles.find_one({"role_id": role_id})
        if doc:
            doc.pop("_id", None)
            return Role.model_validate(doc)
        return None

    def list_roles(self) -> List[Role]:
        """List roles ordered by ID"""
        roles = []
        for doc in self._roles.find({}).sort("role_id", ASCENDING):
            doc.pop("_id", None)
            roles.append(Role.model_validate(doc))
        return roles

    # =========================================================================
    # Forwarding hierarchy
    # =========================================================================

    def add_hierarchy_pair(self, from_role_id: int, to_role_id: int) -> None:
        """Permit forwarding from one role to another"""
        self._hierarchy.update_one(
            {"from_role_id": from_role_id, "to_role_id": to_role_id},
            {"$setOnInsert": {"from_role_id": from_role_id, "to_role_id": to_role_id}},
            upsert=True
        )

    def get_forward_targets(self, from_role_id: int) -> Set[int]:
        """Role IDs a role may forward to"""
        return {
            doc["to_role_id"]
            for doc in self._hierarchy.find({"from_role_id": from_role_id})
        }
