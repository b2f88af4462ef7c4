"""Repository for the PickSession aggregate."""

from picking.domain import picking
from picking.session.session import ACTIVE_STATUSES, PickSession, SessionStatus

_ACTIVE_STATUS_VALUES = sorted(status.value for status in ACTIVE_STATUSES)


@picking.repository(part_of=PickSession)
class PickSessionRepository:
    """Adds the lookups that workers and supervisors need on top of CRUD.

    A worker holds at most one active (IN_PROGRESS or PAUSED) session at a
    time; ``find_active_for_worker`` is what enforces that rule at creation.
    List finders lift the aggregate's default page size, so they return every
    matching session.
    """

    def find_active_for_worker(self, worker_id: str) -> PickSession | None:
        sessions = (
            self._dao.query.filter(worker_id=str(worker_id), status__in=_ACTIVE_STATUS_VALUES).limit(1).all().items
        )
        return sessions[0] if sessions else None

    def find_by_task(self, task_id: str) -> list[PickSession]:
        return self._dao.query.filter(task_id=str(task_id)).limit(None).all().items

    def find_by_status(self, status: SessionStatus) -> list[PickSession]:
        return self._dao.query.filter(status=status.value).limit(None).all().items

    def find_by_warehouse(self, warehouse_id: str) -> list[PickSession]:
        return self._dao.query.filter(warehouse_id=str(warehouse_id)).limit(None).all().items

    def find_active(self) -> list[PickSession]:
        return self._dao.query.filter(status__in=_ACTIVE_STATUS_VALUES).limit(None).all().items
