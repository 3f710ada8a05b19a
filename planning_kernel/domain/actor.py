"""
Actor identity and reporting lines (``planning_kernel.domain.actor``).

The surrounding application authenticates callers; the kernel receives an
``Actor`` and consults a ``ReportingLineProvider`` to decide whether a
manager may read a producer's plans and decide their revisions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping, Protocol
from uuid import UUID


class ActorRole(str, Enum):
    PRODUCER = "producer"
    MANAGER = "manager"


@dataclass(frozen=True)
class Actor:
    """An authenticated caller."""

    id: UUID
    role: ActorRole = ActorRole.PRODUCER

    @property
    def is_manager(self) -> bool:
        return self.role == ActorRole.MANAGER


class ReportingLineProvider(Protocol):
    """Pluggable interface for manager-to-producer lookups."""

    def manages(self, manager_id: UUID, producer_id: UUID) -> bool:
        """True when ``producer_id`` is in ``manager_id``'s reporting line."""
        ...

    def team_of(self, manager_id: UUID) -> tuple[UUID, ...]:
        """Every producer in ``manager_id``'s reporting line."""
        ...


class StaticReportingLine:
    """In-memory reporting line built from a ``{manager: producers}`` map.

    A manager never manages themselves, even if listed.
    """

    def __init__(self, teams: Mapping[UUID, Iterable[UUID]] | None = None):
        self._teams: dict[UUID, frozenset[UUID]] = {
            manager: frozenset(p for p in producers if p != manager)
            for manager, producers in (teams or {}).items()
        }

    def add(self, manager_id: UUID, producer_id: UUID) -> None:
        if manager_id == producer_id:
            return
        current = self._teams.get(manager_id, frozenset())
        self._teams[manager_id] = current | {producer_id}

    def manages(self, manager_id: UUID, producer_id: UUID) -> bool:
        return producer_id in self._teams.get(manager_id, frozenset())

    def team_of(self, manager_id: UUID) -> tuple[UUID, ...]:
        return tuple(sorted(self._teams.get(manager_id, frozenset()), key=str))


def can_view(actor: Actor, owner_id: UUID, reporting_line: ReportingLineProvider) -> bool:
    """Owners see their own plans; managers see their reporting line's."""
    return actor.id == owner_id or reporting_line.manages(actor.id, owner_id)


def can_decide(actor: Actor, owner_id: UUID, reporting_line: ReportingLineProvider) -> bool:
    """Only a manager of the owner, never the owner, decides revisions."""
    return (
        actor.is_manager
        and actor.id != owner_id
        and reporting_line.manages(actor.id, owner_id)
    )
