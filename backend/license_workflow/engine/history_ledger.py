"""History Ledger - Append-only audit trail and replay"""
from typing import List, Optional

from ..domain.models import HistoryEntry, ApplicationState
from ..domain.enums import ApplicationStatus
from ..domain.errors import AlreadyExistsError, LedgerWriteError
from ..repositories.history_repo import HistoryRepository
from ..utils.logger import get_logger

logger = get_logger(__name__)


class HistoryLedger:
    """
    Append-only history of applied transitions.

    The only mutation is `append`. Everything else is a read: listing,
    the last entry, and replays from the initial pseudo-entry
    (status SUBMITTED, holder = the intake holder).
    """

    def __init__(self, repo: HistoryRepository):
        self.repo = repo

    def append(self, entry: HistoryEntry) -> int:
        """
        Append an entry and return its history ID.

        The ID is the application version assigned by the compare-and-swap,
        so two committed transitions never share one. Appends may land out of
        order when officers race between apply and append; reads sort by ID,
        which keeps the trail in commit order.
        """
        if entry.history_id < 1:
            raise LedgerWriteError(
                f"History ID {entry.history_id} is not a committed version",
                details={
                    "application_id": entry.application_id,
                    "history_id": entry.history_id,
                    "rule": "positive_history_id",
                }
            )
        try:
            self.repo.insert_entry(entry)
        except AlreadyExistsError as e:
            raise LedgerWriteError(
                f"History ID {entry.history_id} is already recorded",
                details={
                    "application_id": entry.application_id,
                    "history_id": entry.history_id,
                    "rule": "unique_history_id",
                }
            ) from e
        return entry.history_id

    def list_for_application(self, application_id: int) -> List[HistoryEntry]:
        """All entries, oldest first"""
        return list(self.repo.iter_entries(application_id))

    def last_entry(self, application_id: int) -> Optional[HistoryEntry]:
        return self.repo.get_last_entry(application_id)

    def count(self, application_id: int) -> int:
        return self.repo.count_entries(application_id)

    def replay(
        self,
        application_id: int,
        initial_holder_id: Optional[int],
        initial_status: ApplicationStatus = ApplicationStatus.SUBMITTED
    ) -> List[ApplicationState]:
        """
        Rebuild status and holder after every entry.

        The first element is the initial pseudo-entry, the last one is the
        state the projection must currently hold.
        """
        states = [ApplicationState(status=initial_status, holder_id=initial_holder_id)]
        for entry in self.repo.iter_entries(application_id):
            states.append(
                ApplicationState(
                    status=entry.to_status,
                    holder_id=entry.next_holder_id,
                    history_id=entry.history_id
                )
            )
        return states

    def state_before_last(
        self,
        application_id: int,
        initial_holder_id: Optional[int]
    ) -> Optional[ApplicationState]:
        """Last stable state, i.e. what undoing the latest entry would restore"""
        states = self.replay(application_id, initial_holder_id)
        if len(states) < 2:
            return None
        return states[-2]

    def last_differing_holder(
        self,
        application_id: int,
        current_holder_id: Optional[int],
        initial_holder_id: Optional[int]
    ) -> Optional[int]:
        """Most recent holder in the trail that is not the current one"""
        holders = [s.holder_id for s in self.replay(application_id, initial_holder_id)]
        for holder_id in reversed(holders):
            if holder_id is not None and holder_id != current_holder_id:
                return holder_id
        return None
