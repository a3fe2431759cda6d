"""
Pytest Configuration and Fixtures

Every test gets a fresh in-memory Mongo (mongomock) seeded with the
reference roles, users, actions and forwarding hierarchy.
"""

import mongomock
import pytest

from license_workflow.config.settings import Settings
from license_workflow.domain.models import ActorContext
from license_workflow.engine.engine import WorkflowEngine
from license_workflow.services.workflow_service import WorkflowService
from scripts.seed_data import seed_reference_data


# Action IDs as seeded
FORWARD, APPROVE, REJECT, RETURN, RE_ENQUIRY = 1, 2, 3, 4, 5
RED_FLAG, DISPOSE, CLOSE, RECOMMEND, CANCEL = 6, 7, 8, 9, 10
GROUND_REPORT = 11

# Role IDs as seeded
ZS_ROLE, SHO_ROLE, ACP_ROLE, DCP_ROLE, AS_ROLE = 2, 3, 4, 5, 6
CP_ROLE, ARMS_SUPDT_ROLE, ADMIN_ROLE = 10, 11, 14

# Seeded users
ZS_USER, SHO_USER, SHO_USER_2 = 10, 20, 21
ACP_USER, INACTIVE_ACP_USER = 42, 43
DCP_USER, AS_USER, CP_USER = 50, 60, 100
ARMS_SUPDT_USER, ADMIN_USER = 110, 140

APPLICATION_ID = 1001


@pytest.fixture
def db():
    """Fresh seeded database"""
    database = mongomock.MongoClient()["license_workflow_test"]
    seed_reference_data(database)
    return database


@pytest.fixture
def config():
    return Settings(
        enquiry_role_code="SHO",
        conflict_retry_limit=1,
        enforce_forward_hierarchy=True,
        red_flag_attachment_type="RED_FLAG",
    )


@pytest.fixture
def engine(db, config):
    return WorkflowEngine.build(db, config=config)


@pytest.fixture
def service(engine):
    return WorkflowService(engine)


@pytest.fixture
def application(service):
    """Freshly submitted application held by the zonal superintendent"""
    return service.register_application(APPLICATION_ID, initial_holder_id=ZS_USER, applicant_user_id=1)


@pytest.fixture
def zs():
    return ActorContext(user_id=ZS_USER, role_id=ZS_ROLE)


@pytest.fixture
def acp():
    return ActorContext(user_id=ACP_USER, role_id=ACP_ROLE)


@pytest.fixture
def dcp():
    return ActorContext(user_id=DCP_USER, role_id=DCP_ROLE)


@pytest.fixture
def sho():
    return ActorContext(user_id=SHO_USER, role_id=SHO_ROLE)


@pytest.fixture
def under_review(service, application, zs):
    """Application forwarded by intake to the ACP"""
    service.submit(zs, APPLICATION_ID, FORWARD, "Documents verified", next_user_id=ACP_USER)
    return service.get_application(APPLICATION_ID)
