"""
Seed Data Script - Loads roles, users, actions and the forwarding hierarchy
Run: python -m scripts.seed_data
"""
from typing import Optional

from pymongo.database import Database

from license_workflow.repositories.mongo_client import (
    get_database, create_indexes, health_check, close_connection
)
from license_workflow.repositories.action_repo import ActionRepository
from license_workflow.repositories.user_repo import UserRepository
from license_workflow.domain.models import Action, Role, User
from license_workflow.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)


ROLES = [
    Role(role_id=1, code="APPLICANT", name="Citizen Applicant", level=14,
         description="Individual applying for an arms license"),
    Role(role_id=2, code="ZS", name="Zonal Superintendent", level=13,
         description="Initial processor of applications"),
    Role(role_id=3, code="SHO", name="Station House Officer", level=12,
         description="Conducts field enquiries on applications"),
    Role(role_id=4, code="ACP", name="Assistant Commissioner of Police", level=11,
         description="Reviews and forwards applications"),
    Role(role_id=5, code="DCP", name="Deputy Commissioner of Police", level=10,
         description="Authority for TA license approval"),
    Role(role_id=6, code="AS", name="Arms Superintendent", level=9,
         description="Handles administrative processing"),
    Role(role_id=7, code="ADO", name="Administrative Officer", level=8,
         description="Processes documentation"),
    Role(role_id=8, code="CADO", name="Chief Administrative Officer", level=7,
         description="Final administrative check"),
    Role(role_id=9, code="JTCP", name="Joint Commissioner of Police", level=6,
         description="Reviews and forwards to CP"),
    Role(role_id=10, code="CP", name="Commissioner of Police", level=5,
         description="Final approval authority for AI licenses"),
    Role(role_id=11, code="ARMS_SUPDT", name="Arms Superintendent", level=4,
         description="Verifies application details"),
    Role(role_id=12, code="ARMS_SEAT", name="Arms Seat", level=3,
         description="Processes application documentation"),
    Role(role_id=13, code="ACO", name="Assistant Compliance Officer", level=2,
         description="Ensures compliance with regulations"),
    Role(role_id=14, code="ADMIN", name="System Administrator", level=1,
         description="Administrator with full access"),
]

ACTIONS = [
    Action(action_id=1, code="FORWARD", name="Forward"),
    Action(action_id=2, code="APPROVE", name="Approve"),
    Action(action_id=3, code="REJECT", name="Reject"),
    Action(action_id=4, code="RETURN", name="Return"),
    Action(action_id=5, code="RE_ENQUIRY", name="Re-Enquiry"),
    Action(action_id=6, code="RED_FLAG", name="Red Flag"),
    Action(action_id=7, code="DISPOSE", name="Dispose"),
    Action(action_id=8, code="CLOSE", name="Close"),
    Action(action_id=9, code="RECOMMEND", name="Recommend"),
    Action(action_id=10, code="CANCEL", name="Cancel"),
    Action(action_id=11, code="GROUND_REPORT", name="Ground Report", is_active=False,
           description="Retired; field reports are filed through RE_ENQUIRY"),
]

USERS = [
    User(user_id=1, username="applicant", role_id=1),
    User(user_id=10, username="zs.central", role_id=2),
    User(user_id=20, username="sho.north", role_id=3),
    User(user_id=21, username="sho.south", role_id=3),
    User(user_id=42, username="acp.north", role_id=4),
    User(user_id=43, username="acp.retired", role_id=4, is_active=False),
    User(user_id=50, username="dcp.north", role_id=5),
    User(user_id=60, username="as.central", role_id=6),
    User(user_id=90, username="jtcp.central", role_id=9),
    User(user_id=100, username="cp", role_id=10),
    User(user_id=110, username="arms.supdt", role_id=11),
    User(user_id=140, username="admin", role_id=14),
]

HIERARCHY_PAIRS = [
    ("ZS", "ACP"), ("ZS", "DCP"), ("SHO", "ACP"), ("ACP", "SHO"), ("ACP", "DCP"),
    ("DCP", "ACP"), ("DCP", "AS"), ("DCP", "CP"), ("AS", "ADO"), ("AS", "DCP"),
    ("ADO", "CADO"), ("CADO", "JTCP"), ("JTCP", "CP"), ("CP", "DCP"),
    ("ARMS_SUPDT", "ARMS_SEAT"), ("ARMS_SUPDT", "ADO"), ("ARMS_SEAT", "ADO"),
    ("ARMS_SEAT", "ARMS_SUPDT"), ("ACO", "ACP"), ("ACO", "DCP"), ("ACO", "CP"),
]


def seed_reference_data(db: Optional[Database] = None) -> None:
    """Idempotently load all reference data"""
    create_indexes(db)

    user_repo = UserRepository(db)
    action_repo = ActionRepository(db)

    for role in ROLES:
        user_repo.upsert_role(role)
    for user in USERS:
        user_repo.upsert_user(user)
    for action in ACTIONS:
        action_repo.upsert_action(action)

    role_ids = {r.code: r.role_id for r in ROLES}
    for from_code, to_code in HIERARCHY_PAIRS:
        user_repo.add_hierarchy_pair(role_ids[from_code], role_ids[to_code])

    # ADMIN may forward to every role
    admin_id = role_ids["ADMIN"]
    for code, role_id in role_ids.items():
        if code != "ADMIN":
            user_repo.add_hierarchy_pair(admin_id, role_id)

    logger.info(
        f"Seeded {len(ROLES)} roles, {len(USERS)} users, {len(ACTIONS)} actions, "
        f"{len(HIERARCHY_PAIRS)} hierarchy pairs"
    )


def main():
    setup_logging()

    health = health_check()
    if health["status"] != "healthy":
        print(f"MongoDB is not reachable: {health.get('error')}")
        return

    try:
        seed_reference_data(get_database())
        print(f"Reference data seeded into {health['database']}.")
    finally:
        close_connection()


if __name__ == "__main__":
    main()
