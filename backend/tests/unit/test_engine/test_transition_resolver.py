"""Tests for transition resolution"""
import pytest

from license_workflow.domain.enums import ApplicationStatus, ActionCode
from license_workflow.domain.errors import (
    InvalidActionError, MissingRemarksError, MissingNextUserError, InvalidNextUserError,
    InvalidAttachmentError, IllegalFromStateError
)
from license_workflow.domain.models import Action, Application, Attachment
from license_workflow.engine.transition_resolver import TRANSITION_RULES
from license_workflow.utils.time import utc_now
from tests.conftest import (
    ZS_USER, ZS_ROLE, ACP_USER, INACTIVE_ACP_USER, SHO_USER, DCP_USER, CP_USER,
    APPLICATION_ID
)


def _action(code: str) -> Action:
    return Action(action_id=0, code=code, name=code.title())


def _application(status=ApplicationStatus.SUBMITTED, holder=ZS_USER, **flags) -> Application:
    now = utc_now()
    return Application(
        application_id=APPLICATION_ID,
        status=status,
        current_holder_id=holder,
        initial_holder_id=ZS_USER,
        is_pending=status == ApplicationStatus.PENDING,
        created_at=now,
        updated_at=now,
        **flags
    )


@pytest.fixture
def resolver(engine):
    return engine.resolver


def test_forward_routes_to_next_user(resolver):
    transition = resolver.resolve(
        _application(), _action("FORWARD"), "Looks fine",
        next_user_id=ACP_USER, actor_role_id=ZS_ROLE
    )
    assert transition.action_code == ActionCode.FORWARD
    assert transition.from_status == ApplicationStatus.SUBMITTED
    assert transition.to_status == ApplicationStatus.UNDER_REVIEW
    assert transition.previous_holder_id == ZS_USER
    assert transition.next_holder_id == ACP_USER
    assert transition.requires_next_user
    assert transition.requires_remarks


def test_remarks_are_stripped(resolver):
    transition = resolver.resolve(
        _application(), _action("FORWARD"), "  ok  ",
        next_user_id=ACP_USER, actor_role_id=ZS_ROLE
    )
    assert transition.remarks == "ok"


@pytest.mark.parametrize("remarks", [None, "", "   \n\t"])
def test_missing_remarks(resolver, remarks):
    with pytest.raises(MissingRemarksError) as exc:
        resolver.resolve(_application(), _action("RED_FLAG"), remarks)
    assert exc.value.details["field"] == "remarks"


def test_remarks_are_checked_before_status(resolver):
    with pytest.raises(MissingRemarksError):
        resolver.resolve(_application(ApplicationStatus.SUBMITTED), _action("APPROVE"), "")


def test_forward_without_next_user(resolver):
    with pytest.raises(MissingNextUserError) as exc:
        resolver.resolve(_application(), _action("FORWARD"), "ok", actor_role_id=ZS_ROLE)
    assert exc.value.details["rule"] == "required"


@pytest.mark.parametrize("next_user_id", [INACTIVE_ACP_USER, 9999])
def test_forward_to_inactive_or_unknown_user(resolver, next_user_id):
    with pytest.raises(MissingNextUserError) as exc:
        resolver.resolve(
            _application(), _action("FORWARD"), "ok",
            next_user_id=next_user_id, actor_role_id=ZS_ROLE
        )
    assert exc.value.details["rule"] == "active_user"


def test_forward_outside_hierarchy(resolver):
    with pytest.raises(InvalidNextUserError) as exc:
        resolver.resolve(
            _application(), _action("FORWARD"), "ok",
            next_user_id=CP_USER, actor_role_id=ZS_ROLE
        )
    assert exc.value.details["rule"] == "forward_hierarchy"
    assert exc.value.details["to_role"] == "CP"


def test_forward_hierarchy_can_be_disabled(engine):
    engine.resolver.config = engine.config.model_copy(update={"enforce_forward_hierarchy": False})
    transition = engine.resolver.resolve(
        _application(), _action("FORWARD"), "ok",
        next_user_id=CP_USER, actor_role_id=ZS_ROLE
    )
    assert transition.next_holder_id == CP_USER


def test_approve_from_submitted_is_illegal(resolver):
    with pytest.raises(IllegalFromStateError) as exc:
        resolver.resolve(_application(), _action("APPROVE"), "ok")
    assert exc.value.details["allowed_from"] == ["UNDER_REVIEW"]
    assert exc.value.http_status == 409


def test_approve_sets_decision_flags(resolver):
    app = _application(ApplicationStatus.UNDER_REVIEW, holder=DCP_USER, is_recommended=True)
    transition = resolver.resolve(app, _action("APPROVE"), "Granted")
    assert transition.to_status == ApplicationStatus.APPROVED
    assert transition.next_holder_id == DCP_USER
    assert transition.flag_updates == {
        "is_approved": True,
        "is_rejected": False,
        "is_recommended": False,
        "is_not_recommended": False,
    }


def test_reject_from_submitted(resolver):
    transition = resolver.resolve(_application(), _action("REJECT"), "Incomplete")
    assert transition.to_status == ApplicationStatus.REJECTED
    assert transition.flag_updates["is_rejected"] is True


def test_red_flag_keeps_status_and_tags(resolver):
    app = _application(ApplicationStatus.UNDER_REVIEW, holder=ACP_USER)
    transition = resolver.resolve(app, _action("RED_FLAG"), "Prior case on record")
    assert transition.to_status == ApplicationStatus.UNDER_REVIEW
    assert transition.next_holder_id == ACP_USER
    assert len(transition.attachments) == 1
    assert transition.attachments[0].type == "RED_FLAG"


def test_recommend_polarity(resolver):
    app = _application(ApplicationStatus.UNDER_REVIEW, holder=ACP_USER)
    positive = resolver.resolve(app, _action("RECOMMEND"), "Recommended")
    negative = resolver.resolve(app, _action("RECOMMEND"), "Not recommended", recommend=False)
    assert positive.flag_updates == {"is_recommended": True, "is_not_recommended": False}
    assert negative.flag_updates == {"is_recommended": False, "is_not_recommended": True}
    assert positive.to_status == ApplicationStatus.UNDER_REVIEW


def test_re_enquiry_requires_enquiry_officer(resolver):
    app = _application(ApplicationStatus.UNDER_REVIEW, holder=ACP_USER)
    transition = resolver.resolve(app, _action("RE_ENQUIRY"), "Verify address", next_user_id=SHO_USER)
    assert transition.next_holder_id == SHO_USER
    assert transition.to_status == ApplicationStatus.UNDER_REVIEW

    with pytest.raises(InvalidNextUserError) as exc:
        resolver.resolve(app, _action("RE_ENQUIRY"), "Verify address", next_user_id=DCP_USER)
    assert exc.value.details["expected_role"] == "SHO"
    assert exc.value.details["actual_role"] == "DCP"


def test_return_without_previous_holder(resolver, application):
    app = _application(ApplicationStatus.PENDING, holder=ZS_USER)
    with pytest.raises(IllegalFromStateError) as exc:
        resolver.resolve(app, _action("RETURN"), "Back")
    assert exc.value.details["rule"] == "previous_holder_exists"


def test_cancel_only_before_review(resolver):
    transition = resolver.resolve(_application(), _action("CANCEL"), "Withdrawn")
    assert transition.to_status == ApplicationStatus.CLOSED

    with pytest.raises(IllegalFromStateError):
        resolver.resolve(_application(ApplicationStatus.UNDER_REVIEW), _action("CANCEL"), "Withdrawn")


def test_dispose_from_decided(resolver):
    app = _application(ApplicationStatus.REJECTED, is_rejected=True)
    transition = resolver.resolve(app, _action("DISPOSE"), "Archived")
    assert transition.to_status == ApplicationStatus.DISPOSED
    assert transition.flag_updates == {}


def test_attachment_missing_fields(resolver):
    attachments = [
        Attachment(name="a.pdf", type="ID", content_type="application/pdf", url="https://files/a.pdf"),
        {"name": "b.pdf", "type": "ID", "contentType": "", "url": ""},
    ]
    with pytest.raises(InvalidAttachmentError) as exc:
        resolver.resolve(_application(), _action("RED_FLAG"), "See files", attachments=attachments)
    assert exc.value.details["index"] == 1
    assert exc.value.details["missing"] == ["content_type", "url"]


def test_attachment_null_values_count_as_missing(resolver):
    attachment = {"name": "a.pdf", "type": None, "contentType": "application/pdf", "url": None}
    with pytest.raises(InvalidAttachmentError) as exc:
        resolver.resolve(_application(), _action("RED_FLAG"), "See files", attachments=[attachment])
    assert exc.value.details["rule"] == "all_fields_present"
    assert exc.value.details["missing"] == ["type", "url"]


def test_attachment_unknown_fields(resolver):
    attachment = {
        "name": "a.pdf", "type": "ID", "contentType": "application/pdf",
        "url": "https://files/a.pdf", "size": 1024, "checksum": "abc",
    }
    with pytest.raises(InvalidAttachmentError) as exc:
        resolver.resolve(_application(), _action("RED_FLAG"), "See files", attachments=[attachment])
    assert exc.value.details["rule"] == "known_fields"
    assert exc.value.details["index"] == 0
    assert exc.value.details["unknown"] == ["checksum", "size"]


def test_attachment_non_text_values(resolver):
    attachment = {"name": "a.pdf", "type": "ID", "contentType": "application/pdf", "url": 5}
    with pytest.raises(InvalidAttachmentError) as exc:
        resolver.resolve(_application(), _action("RED_FLAG"), "See files", attachments=[attachment])
    assert exc.value.details["rule"] == "text_fields"
    assert exc.value.details["invalid"] == ["url"]


def test_attachment_must_be_an_object(resolver):
    with pytest.raises(InvalidAttachmentError) as exc:
        resolver.resolve(_application(), _action("RED_FLAG"), "See files", attachments=["a.pdf"])
    assert exc.value.details["rule"] == "object"


def test_complete_attachments_pass_through(resolver):
    attachment = Attachment(name="a.pdf", type="ID", content_type="application/pdf", url="https://files/a.pdf")
    transition = resolver.resolve(
        _application(), _action("FORWARD"), "ok",
        attachments=[attachment], next_user_id=ACP_USER, actor_role_id=ZS_ROLE
    )
    assert transition.attachments == [attachment]


def test_unknown_code_has_no_rule(resolver):
    with pytest.raises(InvalidActionError):
        resolver.resolve(_application(), _action("GROUND_REPORT"), "ok")


def test_every_action_code_has_a_rule():
    assert set(TRANSITION_RULES) == set(ActionCode)


def test_no_rule_leaves_a_terminal_status():
    for rule in TRANSITION_RULES.values():
        assert not any(s.is_terminal for s in rule.from_statuses)


def test_actor_role_is_optional_for_forward(resolver):
    transition = resolver.resolve(_application(), _action("FORWARD"), "ok", next_user_id=ACP_USER)
    assert transition.next_holder_id == ACP_USER
