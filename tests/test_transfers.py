"""Cross-budget transfers: symmetry, validation and atomicity."""

from datetime import date

import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from budget_api import models
from budget_api.errors import BadRequest, DatabaseError, Forbidden
from budget_api.models.role import Role
from budget_api.schemas import budget as schemas
from budget_api.services import budgets, entries, transfers

from conftest import add_member, make_budget, make_category


def _counts(db):
    return (
        db.query(models.BudgetTransfer).count(),
        db.query(models.Entry).count(),
    )


@pytest.fixture
def setup(db):
    """Alice owns A (USD); B (USD) is owned by Bob with Alice as Contributor."""
    a = make_budget(db, "alice", name="Budget A", currency="USD")
    b = make_budget(db, "bob", name="Budget B", currency="USD")
    add_member(db, b.id, "alice", Role.CONTRIBUTOR)
    a_cat = make_category(db, a.id, "expense", "Savings out")
    b_cat = make_category(db, b.id, "income", "Savings in")
    return a, b, a_cat, b_cat


def _request(a, b, a_cat, b_cat, amount=5000, **overrides):
    fields = dict(
        from_budget_id=a.id,
        to_budget_id=b.id,
        amount_minor=amount,
        transfer_date=date(2024, 5, 1),
        from_category_id=a_cat.id,
        to_category_id=b_cat.id,
    )
    fields.update(overrides)
    return schemas.TransferCreate(**fields)


class TestCreateTransfer:
    """A successful transfer writes one transfer row and two mirrored entries."""

    def test_owner_to_contributor_budget(self, db, setup):
        a, b, a_cat, b_cat = setup
        result = transfers.create_transfer(db, "alice", _request(a, b, a_cat, b_cat))

        assert result.transfer.amount_minor == 5000
        assert result.transfer.currency_code == "USD"
        assert result.from_budget_name == "Budget A"
        assert result.to_budget_name == "Budget B"

        out = db.get(models.Entry, result.from_entry_id)
        inc = db.get(models.Entry, result.to_entry_id)
        assert (out.budget_id, out.kind, out.amount_minor) == (a.id, "expense", 5000)
        assert (inc.budget_id, inc.kind, inc.amount_minor) == (b.id, "income", 5000)
        assert out.transfer_id == inc.transfer_id == result.transfer.id
        assert out.currency_code == inc.currency_code == "USD"
        assert out.entry_date == inc.entry_date == date(2024, 5, 1)
        assert out.description == "Transfer to Budget B"
        assert inc.description == "Transfer from Budget A"

    def test_note_describes_outgoing_entry(self, db, setup):
        a, b, a_cat, b_cat = setup
        result = transfers.create_transfer(db, "alice", _request(a, b, a_cat, b_cat, note="Rent share"))

        assert db.get(models.Entry, result.from_entry_id).description == "Rent share"
        assert db.get(models.Entry, result.to_entry_id).description == "Transfer from Budget A"
        assert result.transfer.note == "Rent share"

    def test_empty_note_is_kept(self, db, setup):
        a, b, a_cat, b_cat = setup
        result = transfers.create_transfer(db, "alice", _request(a, b, a_cat, b_cat, note=""))

        assert db.get(models.Entry, result.from_entry_id).description == ""
        assert result.transfer.note == ""

    def test_balances_move_by_amount(self, db, setup):
        a, b, a_cat, b_cat = setup
        transfers.create_transfer(db, "alice", _request(a, b, a_cat, b_cat, amount=1234))

        assert budgets.get_balance(db, a.id, "alice").balance_minor == -1234
        assert budgets.get_balance(db, b.id, "bob").balance_minor == 1234


class TestTransferValidation:
    """Rejected transfers write nothing."""

    def test_viewer_on_destination_is_forbidden(self, db, setup):
        a, b, a_cat, b_cat = setup
        add_member(db, b.id, "alice", Role.VIEWER)
        before = _counts(db)

        with pytest.raises(Forbidden):
            transfers.create_transfer(db, "alice", _request(a, b, a_cat, b_cat))
        assert _counts(db) == before

    def test_non_member_of_source_is_forbidden(self, db, setup):
        a, b, a_cat, b_cat = setup
        with pytest.raises(Forbidden):
            transfers.create_transfer(db, "bob", _request(a, b, a_cat, b_cat))
        assert _counts(db) == (0, 0)

    def test_currency_mismatch(self, db, setup):
        a, _, a_cat, _ = setup
        euro = make_budget(db, "alice", name="Euro", currency="EUR")
        euro_cat = make_category(db, euro.id, "income")

        with pytest.raises(BadRequest) as exc:
            transfers.create_transfer(db, "alice", _request(a, euro, a_cat, euro_cat))
        assert "USD" in exc.value.message
        assert "EUR" in exc.value.message
        assert _counts(db) == (0, 0)

    def test_request_currency_must_match(self, db, setup):
        a, b, a_cat, b_cat = setup
        with pytest.raises(BadRequest):
            transfers.create_transfer(db, "alice", _request(a, b, a_cat, b_cat, currency_code="EUR"))
        assert _counts(db) == (0, 0)

    def test_same_budget(self, db, setup):
        a, _, a_cat, _ = setup
        with pytest.raises(BadRequest, match="same budget"):
            transfers.create_transfer(db, "alice", _request(a, a, a_cat, a_cat))
        assert _counts(db) == (0, 0)

    @pytest.mark.parametrize("amount", [0, -1, -5000])
    def test_non_positive_amount(self, db, setup, amount):
        a, b, a_cat, b_cat = setup
        with pytest.raises(BadRequest, match="positive"):
            transfers.create_transfer(db, "alice", _request(a, b, a_cat, b_cat, amount=amount))
        assert _counts(db) == (0, 0)

    def test_category_from_other_budget(self, db, setup):
        a, b, a_cat, b_cat = setup
        with pytest.raises(BadRequest):
            transfers.create_transfer(db, "alice", _request(a, b, b_cat, b_cat))
        assert _counts(db) == (0, 0)


class TestTransferAtomicity:
    """A storage failure on the second entry leaves no transfer and no entries."""

    def test_failure_rolls_back_everything(self, db, setup):
        a, b, a_cat, b_cat = setup

        def fail_on_income_entry(session, flush_context, instances):
            if any(isinstance(o, models.Entry) and o.kind == "income" for o in session.new):
                raise OperationalError("INSERT INTO entries", {}, Exception("disk I/O error"))

        event.listen(db, "before_flush", fail_on_income_entry)
        try:
            with pytest.raises(DatabaseError):
                transfers.create_transfer(db, "alice", _request(a, b, a_cat, b_cat))
        finally:
            event.remove(db, "before_flush", fail_on_income_entry)

        assert _counts(db) == (0, 0)


class TestListTransfers:
    def test_lists_both_directions_newest_first(self, db, setup):
        a, b, a_cat, b_cat = setup
        add_member(db, a.id, "bob", Role.CONTRIBUTOR)
        b_out = make_category(db, b.id, "expense")
        a_in = make_category(db, a.id, "income")

        transfers.create_transfer(db, "alice", _request(a, b, a_cat, b_cat, transfer_date=date(2024, 1, 1)))
        transfers.create_transfer(db, "bob", _request(b, a, b_out, a_in, transfer_date=date(2024, 2, 1)))

        listed = transfers.list_transfers(db, a.id, "alice")
        assert [(t.from_budget_id, t.transfer_date) for t in listed] == [
            (b.id, date(2024, 2, 1)),
            (a.id, date(2024, 1, 1)),
        ]

    def test_requires_membership(self, db, setup):
        a, *_ = setup
        with pytest.raises(Forbidden):
            transfers.list_transfers(db, a.id, "mallory")


class TestTransferEntriesStayPaired:
    """Entry edits and deletes cannot leave a transfer with mismatched sides."""

    def _amounts(self, db, result):
        db.expire_all()
        return [db.get(models.Entry, i).amount_minor for i in (result.from_entry_id, result.to_entry_id)]

    def test_amount_change_is_rejected(self, db, setup):
        a, b, a_cat, b_cat = setup
        result = transfers.create_transfer(db, "alice", _request(a, b, a_cat, b_cat))

        with pytest.raises(BadRequest, match="Transfer entries"):
            entries.update_entry(db, a.id, "alice", result.from_entry_id, schemas.EntryUpdate(amount_minor=1))
        assert self._amounts(db, result) == [5000, 5000]

    def test_kind_change_is_rejected(self, db, setup):
        a, b, a_cat, b_cat = setup
        result = transfers.create_transfer(db, "alice", _request(a, b, a_cat, b_cat))

        with pytest.raises(BadRequest, match="Transfer entries"):
            entries.update_entry(db, b.id, "bob", result.to_entry_id, schemas.EntryUpdate(kind="expense"))
        db.expire_all()
        assert db.get(models.Entry, result.to_entry_id).kind == "income"

    def test_description_stays_editable(self, db, setup):
        a, b, a_cat, b_cat = setup
        result = transfers.create_transfer(db, "alice", _request(a, b, a_cat, b_cat))

        updated = entries.update_entry(
            db, a.id, "alice", result.from_entry_id,
            schemas.EntryUpdate(description="Savings", amount_minor=5000),
        )
        assert updated.description == "Savings"
        assert self._amounts(db, result) == [5000, 5000]

    def test_delete_removes_both_sides(self, db, setup):
        a, b, a_cat, b_cat = setup
        result = transfers.create_transfer(db, "alice", _request(a, b, a_cat, b_cat))

        entries.delete_entry(db, a.id, "alice", result.from_entry_id)
        db.expire_all()

        out = db.get(models.Entry, result.from_entry_id)
        inc = db.get(models.Entry, result.to_entry_id)
        assert out.deleted_at is not None
        assert inc.deleted_at == out.deleted_at
        assert budgets.get_balance(db, b.id, "bob").balance_minor == 0

    def test_delete_needs_contributor_on_other_budget(self, db, setup):
        a, b, a_cat, b_cat = setup
        result = transfers.create_transfer(db, "alice", _request(a, b, a_cat, b_cat))

        with pytest.raises(Forbidden):
            entries.delete_entry(db, b.id, "bob", result.to_entry_id)
        db.expire_all()
        assert db.get(models.Entry, result.from_entry_id).deleted_at is None
        assert db.get(models.Entry, result.to_entry_id).deleted_at is None


class TestBudgetDeletionWithTransfers:
    """Deleting one side of a transfer keeps the other side's entry, unlinked."""

    def test_other_side_entry_survives(self, db, setup):
        a, b, a_cat, b_cat = setup
        result = transfers.create_transfer(db, "alice", _request(a, b, a_cat, b_cat))

        budgets.delete_budget(db, a.id, "alice")
        db.expire_all()

        assert db.get(models.BudgetTransfer, result.transfer.id) is None
        assert db.get(models.Entry, result.from_entry_id) is None
        survivor = db.get(models.Entry, result.to_entry_id)
        assert survivor is not None
        assert survivor.transfer_id is None
