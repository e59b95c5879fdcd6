"""Tests for interviewer lifecycle transitions, trash retention and views."""
from datetime import datetime, timedelta

import pytest

from models import Interviewer, Project
from services import lifecycle
from services.errors import ActiveCallInProgress, ConflictError

NOW = datetime(2024, 6, 1, 12, 0, 0)


class TestDeploy:

    @pytest.mark.parametrize("status", ["draft", "ready_to_test"])
    def test_deploy_goes_live(self, make_interviewer, status):
        interviewer = make_interviewer(status)
        lifecycle.deploy(interviewer, NOW)
        assert interviewer.status == "live"
        assert interviewer.updated_at == NOW

    def test_deploy_live_is_noop(self, make_interviewer):
        interviewer = make_interviewer("live")
        lifecycle.deploy(interviewer, NOW)
        assert interviewer.status == "live"
        assert interviewer.updated_at is None

    def test_deploy_archived_conflicts(self, make_interviewer):
        with pytest.raises(ConflictError):
            lifecycle.deploy(make_interviewer("archived"), NOW)


class TestToggleAndActivate:

    def test_toggle_swaps_live_and_paused(self, make_interviewer):
        interviewer = make_interviewer("live")
        lifecycle.toggle_status(interviewer, NOW)
        assert interviewer.status == "paused"
        lifecycle.toggle_status(interviewer, NOW)
        assert interviewer.status == "live"

    def test_toggle_draft_conflicts(self, make_interviewer):
        with pytest.raises(ConflictError):
            lifecycle.toggle_status(make_interviewer("draft"), NOW)

    def test_activate_paused(self, make_interviewer):
        interviewer = make_interviewer("paused")
        lifecycle.activate(interviewer, NOW)
        assert interviewer.status == "live"

    def test_activate_ready_to_test_conflicts(self, make_interviewer):
        with pytest.raises(ConflictError):
            lifecycle.activate(make_interviewer("ready_to_test"), NOW)


class TestArchive:

    def test_archive_and_unarchive(self, make_interviewer):
        interviewer = make_interviewer("live")
        lifecycle.archive(interviewer, NOW)
        assert interviewer.status == "archived"
        assert interviewer.archived_at == NOW

        lifecycle.unarchive(interviewer, NOW)
        assert interviewer.status == "paused"
        assert interviewer.archived_at is None

    def test_unarchive_requires_archived(self, make_interviewer):
        with pytest.raises(ConflictError):
            lifecycle.unarchive(make_interviewer("paused"), NOW)


class TestTrash:

    def test_active_call_blocks_trash(self, make_interviewer):
        interviewer = make_interviewer("live", has_active_call=True)
        with pytest.raises(ActiveCallInProgress) as exc:
            lifecycle.move_to_trash(interviewer, NOW)
        assert exc.value.code == "ACTIVE_CALL_IN_PROGRESS"
        assert exc.value.status_code == 409
        assert interviewer.deleted_at is None

    def test_live_interviewer_restores_paused(self, make_interviewer):
        interviewer = make_interviewer("live")
        lifecycle.move_to_trash(interviewer, NOW)
        assert interviewer.status == "deleted"
        assert interviewer.deleted_at == NOW

        lifecycle.restore(interviewer, NOW)
        assert interviewer.status == "paused"
        assert interviewer.deleted_at is None
        assert interviewer.previous_status is None

    def test_archived_interviewer_restores_to_archive(self, make_interviewer):
        interviewer = make_interviewer("live")
        lifecycle.archive(interviewer, NOW)
        lifecycle.move_to_trash(interviewer, NOW)
        lifecycle.restore(interviewer, NOW)
        assert interviewer.status == "archived"
        assert lifecycle.in_view(interviewer, "archive")

    def test_transitions_refused_in_trash(self, make_interviewer):
        interviewer = make_interviewer("paused")
        lifecycle.move_to_trash(interviewer, NOW)
        with pytest.raises(ConflictError):
            lifecycle.activate(interviewer, NOW)
        with pytest.raises(ConflictError):
            lifecycle.archive(interviewer, NOW)

    def test_restore_outside_trash_conflicts(self, make_interviewer):
        with pytest.raises(ConflictError):
            lifecycle.restore(make_interviewer("paused"), NOW)

    @pytest.mark.parametrize("age, expected", [
        (timedelta(0), 30),
        (timedelta(days=29, hours=12), 1),
        (timedelta(days=30), 0),
        (timedelta(days=45), 0),
    ])
    def test_days_until_deletion(self, age, expected):
        assert lifecycle.days_until_deletion(NOW - age, NOW) == expected


class TestViews:

    def test_partition_by_view(self, make_interviewer):
        active = make_interviewer("live", id="a")
        archived = make_interviewer("archived", id="b", archived_at=NOW)
        trashed = make_interviewer("deleted", id="c", deleted_at=NOW)

        views = lifecycle.partition_by_view([active, archived, trashed])
        assert views["overview"] == [active]
        assert views["archive"] == [archived]
        assert views["trash"] == [trashed]


class TestPersistence:

    @pytest.fixture
    def project(self, db):
        project = Project(name="Retail")
        db.add(project)
        db.commit()
        return project

    def test_purge_removes_only_expired(self, db, project):
        expired = Interviewer(project_id=project.id, name="old", status="deleted",
                              deleted_at=NOW - timedelta(days=31))
        recent = Interviewer(project_id=project.id, name="new", status="deleted",
                             deleted_at=NOW - timedelta(days=2))
        db.add_all([expired, recent])
        db.commit()

        assert lifecycle.purge_expired_trash(db, NOW) == 1
        db.commit()
        names = [i.name for i in db.query(Interviewer).all()]
        assert names == ["new"]

    def test_permanent_delete_requires_trash(self, db, project):
        interviewer = Interviewer(project_id=project.id, name="keep", status="paused")
        db.add(interviewer)
        db.commit()
        with pytest.raises(ConflictError):
            lifecycle.permanently_delete(db, interviewer)

    def test_filter_view_query(self, db, project):
        db.add_all([
            Interviewer(project_id=project.id, name="active", status="live"),
            Interviewer(project_id=project.id, name="archived", status="archived", archived_at=NOW),
        ])
        db.commit()
        overview = lifecycle.filter_view(db.query(Interviewer), "overview").all()
        archive = lifecycle.filter_view(db.query(Interviewer), "archive").all()
        assert [i.name for i in overview] == ["active"]
        assert [i.name for i in archive] == ["archived"]
