"""Service modules - Collaborator-facing operations"""
from .workflow_service import WorkflowService

__all__ = ["WorkflowService"]
