"""Workflow Engine - Role-gated application review"""
from .engine import WorkflowEngine
from .action_catalog import ActionCatalog
from .permission_guard import PermissionGuard, DEFAULT_POLICY
from .transition_resolver import TransitionResolver, TRANSITION_RULES
from .history_ledger import HistoryLedger
from .state_store import ApplicationStateStore

__all__ = [
    "WorkflowEngine",
    "ActionCatalog",
    "PermissionGuard",
    "DEFAULT_POLICY",
    "TransitionResolver",
    "TRANSITION_RULES",
    "HistoryLedger",
    "ApplicationStateStore",
]
