"""Tests for actors, reporting lines and access checks."""

from uuid import uuid4

from planning_kernel.domain.actor import (
    Actor,
    ActorRole,
    StaticReportingLine,
    can_decide,
    can_view,
)


class TestStaticReportingLine:

    def test_manages(self, manager, producer, other_producer, reporting_line):
        assert reporting_line.manages(manager.id, producer.id)
        assert not reporting_line.manages(manager.id, other_producer.id)

    def test_manager_never_manages_self(self, manager):
        line = StaticReportingLine({manager.id: [manager.id]})
        assert not line.manages(manager.id, manager.id)
        line.add(manager.id, manager.id)
        assert line.team_of(manager.id) == ()

    def test_add(self, manager, producer):
        line = StaticReportingLine()
        line.add(manager.id, producer.id)
        assert line.team_of(manager.id) == (producer.id,)

    def test_unknown_manager_has_empty_team(self):
        assert StaticReportingLine().team_of(uuid4()) == ()


class TestAccessChecks:

    def test_owner_views_own_plan(self, producer, reporting_line):
        assert can_view(producer, producer.id, reporting_line)

    def test_manager_views_team_plan(self, manager, other_manager, producer, reporting_line):
        assert can_view(manager, producer.id, reporting_line)
        assert not can_view(other_manager, producer.id, reporting_line)

    def test_peer_cannot_view(self, other_producer, producer, reporting_line):
        assert not can_view(other_producer, producer.id, reporting_line)

    def test_manager_decides_for_team(self, manager, producer, reporting_line):
        assert manager.is_manager
        assert can_decide(manager, producer.id, reporting_line)

    def test_owner_never_decides(self, producer, reporting_line):
        assert not can_decide(producer, producer.id, reporting_line)

    def test_producer_role_cannot_decide_even_if_listed(self, producer, other_producer):
        line = StaticReportingLine({producer.id: [other_producer.id]})
        assert not producer.is_manager
        assert can_view(producer, other_producer.id, line)
        assert not can_decide(producer, other_producer.id, line)

    def test_default_role_is_producer(self):
        assert Actor(id=uuid4()).role == ActorRole.PRODUCER
