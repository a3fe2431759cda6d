"""Tests for the history ledger"""
import pytest

from license_workflow.domain.enums import ApplicationStatus
from license_workflow.domain.errors import LedgerWriteError
from license_workflow.domain.models import HistoryEntry
from license_workflow.engine.history_ledger import HistoryLedger
from license_workflow.repositories.history_repo import HistoryRepository
from license_workflow.utils.time import utc_now
from tests.conftest import ZS_USER, ACP_USER, SHO_USER, APPLICATION_ID


def _entry(history_id, to_status, previous, next_holder, from_status=ApplicationStatus.UNDER_REVIEW):
    return HistoryEntry(
        history_id=history_id,
        application_id=APPLICATION_ID,
        action_id=1,
        action_code="FORWARD",
        actor_user_id=previous,
        previous_holder_id=previous,
        next_holder_id=next_holder,
        from_status=from_status,
        to_status=to_status,
        remarks="ok",
        created_at=utc_now(),
    )


@pytest.fixture
def ledger(db):
    return HistoryLedger(HistoryRepository(db))


def test_append_and_list_in_order(ledger):
    ledger.append(_entry(1, ApplicationStatus.UNDER_REVIEW, ZS_USER, ACP_USER, ApplicationStatus.SUBMITTED))
    ledger.append(_entry(2, ApplicationStatus.UNDER_REVIEW, ACP_USER, SHO_USER))

    entries = ledger.list_for_application(APPLICATION_ID)
    assert [e.history_id for e in entries] == [1, 2]
    assert ledger.count(APPLICATION_ID) == 2
    assert ledger.last_entry(APPLICATION_ID).next_holder_id == SHO_USER


def test_history_id_is_recorded_once(ledger):
    ledger.append(_entry(2, ApplicationStatus.UNDER_REVIEW, ZS_USER, ACP_USER))
    with pytest.raises(LedgerWriteError) as exc:
        ledger.append(_entry(2, ApplicationStatus.PENDING, ACP_USER, ZS_USER))
    assert exc.value.details["rule"] == "unique_history_id"
    assert ledger.count(APPLICATION_ID) == 1


def test_uncommitted_history_id_is_rejected(ledger):
    with pytest.raises(LedgerWriteError) as exc:
        ledger.append(_entry(0, ApplicationStatus.UNDER_REVIEW, ZS_USER, ACP_USER))
    assert exc.value.details["rule"] == "positive_history_id"
    assert ledger.count(APPLICATION_ID) == 0


def test_late_append_lands_in_commit_order(ledger):
    ledger.append(_entry(1, ApplicationStatus.UNDER_REVIEW, ZS_USER, ACP_USER, ApplicationStatus.SUBMITTED))
    ledger.append(_entry(3, ApplicationStatus.UNDER_REVIEW, ACP_USER, ACP_USER))
    ledger.append(_entry(2, ApplicationStatus.UNDER_REVIEW, ACP_USER, ACP_USER))

    assert [e.history_id for e in ledger.list_for_application(APPLICATION_ID)] == [1, 2, 3]
    assert ledger.last_entry(APPLICATION_ID).history_id == 3


def test_replay_starts_from_initial_pseudo_entry(ledger):
    states = ledger.replay(APPLICATION_ID, ZS_USER)
    assert len(states) == 1
    assert states[0].status == ApplicationStatus.SUBMITTED
    assert states[0].holder_id == ZS_USER
    assert states[0].history_id is None


def test_replay_and_state_before_last(ledger):
    ledger.append(_entry(1, ApplicationStatus.UNDER_REVIEW, ZS_USER, ACP_USER, ApplicationStatus.SUBMITTED))
    ledger.append(_entry(2, ApplicationStatus.UNDER_REVIEW, ACP_USER, SHO_USER))

    states = ledger.replay(APPLICATION_ID, ZS_USER)
    assert [(s.status, s.holder_id) for s in states] == [
        (ApplicationStatus.SUBMITTED, ZS_USER),
        (ApplicationStatus.UNDER_REVIEW, ACP_USER),
        (ApplicationStatus.UNDER_REVIEW, SHO_USER),
    ]

    before = ledger.state_before_last(APPLICATION_ID, ZS_USER)
    assert before.holder_id == ACP_USER
    assert before.history_id == 1


def test_state_before_last_without_entries(ledger):
    assert ledger.state_before_last(APPLICATION_ID, ZS_USER) is None


def test_last_differing_holder(ledger):
    assert ledger.last_differing_holder(APPLICATION_ID, ZS_USER, ZS_USER) is None

    ledger.append(_entry(1, ApplicationStatus.UNDER_REVIEW, ZS_USER, ACP_USER, ApplicationStatus.SUBMITTED))
    ledger.append(_entry(2, ApplicationStatus.UNDER_REVIEW, ACP_USER, ACP_USER))
    assert ledger.last_differing_holder(APPLICATION_ID, ACP_USER, ZS_USER) == ZS_USER

    ledger.append(_entry(3, ApplicationStatus.UNDER_REVIEW, ACP_USER, SHO_USER))
    assert ledger.last_differing_holder(APPLICATION_ID, SHO_USER, ZS_USER) == ACP_USER


def test_entries_are_scoped_per_application(ledger):
    ledger.append(_entry(1, ApplicationStatus.UNDER_REVIEW, ZS_USER, ACP_USER, ApplicationStatus.SUBMITTED))
    assert ledger.count(APPLICATION_ID + 1) == 0
    assert ledger.list_for_application(APPLICATION_ID + 1) == []
