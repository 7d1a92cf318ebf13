"""Client-side owner of the visible schedule list for one scope.

Every screen that edits schedules goes through one
``OptimisticScheduleCoordinator``: the change is applied locally first,
the persisted call runs against a ``ScheduleGateway``, and ``reconcile``
confirms or rolls back once the result is known.

Rollback policy:
* create: the temporary entry is removed.
* update / delete: the scope is re-fetched to restore ground truth.
Any failure of the persisted call rolls back, not only gateway errors. A
cancelled call cannot await a re-fetch, so update / delete put back the
entry they replaced. No automatic retry is attempted.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from collegedesk.schemas.schedule import (
    ConflictCheckRequest,
    ConflictOut,
    ScheduleCreate,
    ScheduleOut,
    ScheduleScope,
    ScheduleUpdate,
)

logger = logging.getLogger(__name__)

TEMP_ID_PREFIX = "temp-"


class GatewayError(Exception):
    """Raised by gateways when the server rejects a call or cannot be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class MutationFailedError(Exception):
    def __init__(self, mutation: "PendingMutation"):
        self.mutation = mutation
        super().__init__(str(mutation.error) if mutation.error else "Mutation failed")


class MutationInFlightError(Exception):
    def __init__(self, schedule_id: str):
        self.schedule_id = schedule_id
        super().__init__(f"A change to schedule {schedule_id} is still being saved")


class ConflictCheckUnavailableError(Exception):
    """The pre-submit check could not run; the user should retry later."""


class ScheduleConflictError(Exception):
    """The pre-submit check found conflicts; submission is blocked."""

    def __init__(self, conflicts: list[ConflictOut]):
        self.conflicts = conflicts
        super().__init__("Cannot save schedule with conflicts. Please resolve them first.")


class ScheduleGateway(Protocol):
    async def list_scope(self, scope: ScheduleScope) -> list[ScheduleOut]: ...

    async def create(self, payload: ScheduleCreate) -> ScheduleOut: ...

    async def update(self, schedule_id: str, payload: ScheduleUpdate) -> ScheduleOut: ...

    async def delete(self, schedule_id: str) -> None: ...

    async def check_conflicts(self, payload: ConflictCheckRequest) -> list[ConflictOut]: ...


class MutationKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class MutationState(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    ROLLED_BACK = "ROLLED_BACK"


@dataclass
class PendingMutation:
    kind: MutationKind
    schedule_id: str
    payload: ScheduleCreate | ScheduleUpdate | None = None
    previous: ScheduleOut | None = None
    state: MutationState = MutationState.PENDING
    result: ScheduleOut | None = None
    error: Exception | None = None

    @property
    def is_settled(self) -> bool:
        return self.state != MutationState.PENDING


@dataclass
class DisplayNames:
    subjects: Mapping[str, tuple[str, str | None]] = field(default_factory=dict)
    teachers: Mapping[str, str] = field(default_factory=dict)
    departments: Mapping[str, str] = field(default_factory=dict)


def new_temp_id() -> str:
    return f"{TEMP_ID_PREFIX}{uuid.uuid4().hex}"


def is_temp_id(schedule_id: str) -> bool:
    return schedule_id.startswith(TEMP_ID_PREFIX)


class OptimisticScheduleCoordinator:
    def __init__(
        self,
        gateway: ScheduleGateway,
        scope: ScheduleScope,
        *,
        names: DisplayNames | None = None,
        entries: list[ScheduleOut] | None = None,
    ):
        self.gateway = gateway
        self.scope = scope
        self.names = names or DisplayNames()
        self._entries: list[ScheduleOut] = list(entries or [])
        self._in_flight: set[str] = set()
        self._closed = False

    @property
    def entries(self) -> list[ScheduleOut]:
        return list(self._entries)

    @property
    def closed(self) -> bool:
        return self._closed

    def find(self, schedule_id: str) -> ScheduleOut | None:
        for entry in self._entries:
            if entry.id == schedule_id:
                return entry
        return None

    def is_in_flight(self, schedule_id: str) -> bool:
        return schedule_id in self._in_flight

    def close(self) -> None:
        """Detach from the screen; results arriving later leave state untouched."""
        self._closed = True

    async def load(self) -> list[ScheduleOut]:
        self._entries = await self.gateway.list_scope(self.scope)
        return self.entries

    async def refresh(self) -> bool:
        if self._closed:
            return False
        try:
            fresh = await self.gateway.list_scope(self.scope)
        except GatewayError:
            logger.warning("Background refresh of %s failed", self.scope.model_dump(), exc_info=True)
            return False
        if self._closed:
            return False
        self._entries = fresh
        return True

    def _display(self, base: dict[str, Any]) -> dict[str, Any]:
        subject_name, subject_code = self.names.subjects.get(base["subject_id"], (None, None))
        base.update(
            subject_name=subject_name,
            subject_code=subject_code,
            teacher_name=self.names.teachers.get(base["teacher_id"]),
            department_name=self.names.departments.get(base["department_id"]),
            room_name=base.get("room_id"),
        )
        return base

    def _ensure_idle(self, schedule_id: str) -> None:
        if schedule_id in self._in_flight:
            raise MutationInFlightError(schedule_id)

    def apply_optimistic_create(self, payload: ScheduleCreate) -> PendingMutation:
        temp_id = new_temp_id()
        entry = ScheduleOut(**self._display({**payload.model_dump(), "id": temp_id}))
        self._in_flight.add(temp_id)
        self._entries.append(entry)
        return PendingMutation(kind=MutationKind.CREATE, schedule_id=temp_id, payload=payload)

    def apply_optimistic_update(self, schedule_id: str, payload: ScheduleUpdate) -> PendingMutation:
        self._ensure_idle(schedule_id)
        current = self.find(schedule_id)
        if current is None:
            raise KeyError(schedule_id)
        self._in_flight.add(schedule_id)
        merged = self._display({**current.model_dump(), **payload.model_dump()})
        replacement = ScheduleOut(**merged)
        self._entries = [replacement if entry.id == schedule_id else entry for entry in self._entries]
        return PendingMutation(kind=MutationKind.UPDATE, schedule_id=schedule_id, payload=payload, previous=current)

    def apply_optimistic_delete(self, schedule_id: str) -> PendingMutation:
        self._ensure_idle(schedule_id)
        current = self.find(schedule_id)
        if current is None:
            raise KeyError(schedule_id)
        self._in_flight.add(schedule_id)
        self._entries = [entry for entry in self._entries if entry.id != schedule_id]
        return PendingMutation(kind=MutationKind.DELETE, schedule_id=schedule_id, previous=current)

    async def reconcile(
        self,
        mutation: PendingMutation,
        *,
        result: ScheduleOut | None = None,
        error: Exception | None = None,
    ) -> PendingMutation:
        self._in_flight.discard(mutation.schedule_id)
        mutation.result = result
        mutation.error = error
        mutation.state = MutationState.ROLLED_BACK if error is not None else MutationState.CONFIRMED
        if self._closed:
            return mutation

        if error is None:
            if mutation.kind == MutationKind.CREATE and result is not None:
                self._entries = [entry for entry in self._entries if entry.id != mutation.schedule_id]
                self._entries.append(result)
            elif mutation.kind == MutationKind.UPDATE and result is not None:
                self._entries = [result if entry.id == mutation.schedule_id else entry for entry in self._entries]
            return mutation

        logger.warning("Rolling back %s of schedule %s: %s", mutation.kind.value, mutation.schedule_id, error)
        if mutation.kind == MutationKind.CREATE:
            self._entries = [entry for entry in self._entries if entry.id != mutation.schedule_id]
        else:
            await self.refresh()
        return mutation

    def _abandon(self, mutation: PendingMutation) -> None:
        self._in_flight.discard(mutation.schedule_id)
        mutation.state = MutationState.ROLLED_BACK
        mutation.error = RuntimeError("Save was cancelled")
        if self._closed:
            return
        logger.warning("Save of schedule %s was cancelled; restoring the local entry", mutation.schedule_id)
        if mutation.kind == MutationKind.CREATE:
            self._entries = [entry for entry in self._entries if entry.id != mutation.schedule_id]
        elif mutation.previous is None:
            return
        elif mutation.kind == MutationKind.UPDATE:
            self._entries = [
                mutation.previous if entry.id == mutation.schedule_id else entry for entry in self._entries
            ]
        elif self.find(mutation.schedule_id) is None:
            self._entries.append(mutation.previous)

    async def _persist(self, mutation: PendingMutation) -> ScheduleOut | None:
        if mutation.kind == MutationKind.CREATE:
            return await self.gateway.create(mutation.payload)
        if mutation.kind == MutationKind.UPDATE:
            return await self.gateway.update(mutation.schedule_id, mutation.payload)
        await self.gateway.delete(mutation.schedule_id)
        return None

    async def _dispatch(self, mutation: PendingMutation) -> PendingMutation:
        try:
            result = await self._persist(mutation)
        except asyncio.CancelledError:
            self._abandon(mutation)
            raise
        except Exception as exc:
            await self.reconcile(mutation, error=exc)
            if self._closed:
                logger.info("Ignoring failed %s of schedule %s after close", mutation.kind.value, mutation.schedule_id)
                return mutation
            raise MutationFailedError(mutation) from exc
        finally:
            self._in_flight.discard(mutation.schedule_id)
        return await self.reconcile(mutation, result=result)

    async def create(self, payload: ScheduleCreate) -> PendingMutation:
        return await self._dispatch(self.apply_optimistic_create(payload))

    async def update(self, schedule_id: str, payload: ScheduleUpdate) -> PendingMutation:
        return await self._dispatch(self.apply_optimistic_update(schedule_id, payload))

    async def delete(self, schedule_id: str) -> PendingMutation:
        return await self._dispatch(self.apply_optimistic_delete(schedule_id))

    async def submit_schedule(self, payload: ScheduleCreate, *, schedule_id: str | None = None) -> PendingMutation:
        """Dialog submit: conflict check first, then the optimistic write."""
        request = ConflictCheckRequest(
            schedule_id=schedule_id,
            academic_year=payload.academic_year,
            semester=payload.semester,
            department_id=payload.department_id,
            class_section=payload.class_section,
            day=payload.day,
            time_slot_id=payload.time_slot_id,
            start_time=payload.start_time,
            end_time=payload.end_time,
            teacher_id=payload.teacher_id,
            room_id=payload.room_id,
        )
        try:
            conflicts = await self.gateway.check_conflicts(request)
        except GatewayError as exc:
            raise ConflictCheckUnavailableError("Failed to check for conflicts. Please try again.") from exc
        if conflicts:
            raise ScheduleConflictError(conflicts)
        if schedule_id is None:
            return await self.create(payload)
        update = ScheduleUpdate(**payload.model_dump(include=set(ScheduleUpdate.model_fields)))
        return await self.update(schedule_id, update)
