"""Daily cleanup of soft-deleted entries and read notifications."""

from datetime import date, timedelta

import pytest

from budget_api import models
from budget_api.schemas import budget as schemas
from budget_api.services import cleanup, transfers

from conftest import PUBLIC_URL, make_budget, make_category, make_entry


@pytest.fixture
def budget(db):
    return make_budget(db, "alice")


def _age(db, entry, days):
    entry.deleted_at = models.utc_now() - timedelta(days=days)
    db.commit()


class TestCleanupSoftDeleted:
    def test_only_old_soft_deleted_entries_are_purged(self, db, budget):
        category = make_category(db, budget.id)
        active = make_entry(db, budget.id, category.id, "alice")
        recent = make_entry(db, budget.id, category.id, "alice")
        old = make_entry(db, budget.id, category.id, "alice")
        _age(db, recent, 0)
        _age(db, old, 3)

        deleted, urls = cleanup.cleanup_soft_deleted(db, days=1)

        assert deleted == 1
        assert urls == []
        remaining = {e.id for e in db.query(models.Entry).all()}
        assert remaining == {active.id, recent.id}

    def test_comments_and_attachments_go_with_entry(self, db, budget):
        category = make_category(db, budget.id)
        entry = make_entry(db, budget.id, category.id, "alice")
        db.add(models.EntryComment(entry_id=entry.id, user_id="alice", comment_text="hi"))
        url = f"{PUBLIC_URL}/attachments/{entry.id}/a.png"
        db.add(models.EntryAttachment(
            entry_id=entry.id, user_id="alice", file_url=url, file_name="a.png", file_size=1, mime_type="image/png",
        ))
        db.commit()
        _age(db, entry, 5)

        deleted, urls = cleanup.cleanup_soft_deleted(db, days=1)

        assert (deleted, urls) == (1, [url])
        assert db.query(models.EntryComment).count() == 0
        assert db.query(models.EntryAttachment).count() == 0

class TestCleanupTransfers:
    """A transfer is purged only as a whole: both entries plus the transfer row."""

    @pytest.fixture
    def transfer(self, db, budget):
        other = make_budget(db, "alice", name="Savings")
        return transfers.create_transfer(db, "alice", schemas.TransferCreate(
            from_budget_id=budget.id,
            to_budget_id=other.id,
            amount_minor=5000,
            transfer_date=date(2024, 5, 1),
            from_category_id=make_category(db, budget.id).id,
            to_category_id=make_category(db, other.id, "income").id,
        ))

    def _entries(self, db, result):
        return db.query(models.Entry).filter(models.Entry.transfer_id == result.transfer.id).count()

    def test_half_expired_transfer_is_kept(self, db, transfer):
        _age(db, db.get(models.Entry, transfer.from_entry_id), 5)

        deleted, _ = cleanup.cleanup_soft_deleted(db, days=1)

        assert deleted == 0
        assert db.get(models.BudgetTransfer, transfer.transfer.id) is not None
        assert self._entries(db, transfer) == 2

    def test_recently_deleted_partner_holds_the_pair(self, db, transfer):
        _age(db, db.get(models.Entry, transfer.from_entry_id), 5)
        _age(db, db.get(models.Entry, transfer.to_entry_id), 0)

        deleted, _ = cleanup.cleanup_soft_deleted(db, days=1)

        assert deleted == 0
        assert self._entries(db, transfer) == 2

    def test_expired_pair_goes_with_transfer_row(self, db, budget, transfer):
        category = make_category(db, budget.id)
        plain = make_entry(db, budget.id, category.id, "alice")
        _age(db, plain, 5)
        _age(db, db.get(models.Entry, transfer.from_entry_id), 5)
        _age(db, db.get(models.Entry, transfer.to_entry_id), 3)

        deleted, _ = cleanup.cleanup_soft_deleted(db, days=1)
        db.expire_all()

        assert deleted == 3
        assert db.get(models.BudgetTransfer, transfer.transfer.id) is None
        assert db.query(models.Entry).count() == 0



class TestCleanupNotifications:
    def test_old_read_notifications_are_deleted(self, db, budget):
        now = models.utc_now()
        for is_read, read_at in [(True, now - timedelta(days=40)), (True, now), (False, None)]:
            db.add(models.Notification(
                user_id="alice", budget_id=budget.id, notification_type="t", title="t", message="m",
                is_read=is_read, read_at=read_at,
            ))
        db.commit()

        assert cleanup.cleanup_old_notifications(db, days=30) == 1
        assert db.query(models.Notification).count() == 2


class TestRunDailyCleanup:
    def test_stats_and_file_removal(self, db, settings, storage, s3_client, budget):
        category = make_category(db, budget.id)
        entry = make_entry(db, budget.id, category.id, "alice")
        key = f"attachments/{entry.id}/a.png"
        s3_client.objects[key] = {}
        db.add(models.EntryAttachment(
            entry_id=entry.id, user_id="alice", file_url=f"{PUBLIC_URL}/{key}", file_name="a.png",
            file_size=1, mime_type="image/png",
        ))
        db.commit()
        _age(db, entry, 2)

        stats = cleanup.run_daily_cleanup(db, settings, storage)

        assert (stats.entries_deleted, stats.notifications_deleted, stats.files_deleted) == (1, 0, 1)
        assert s3_client.deleted == [key]
        assert "1 entries" in str(stats)
