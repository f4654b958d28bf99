"""Authorization guard over every (actual, required) role pair."""

import itertools

import pytest

from budget_api import models
from budget_api.errors import Forbidden
from budget_api.models.role import Role
from budget_api.services import authz

from conftest import add_member, make_budget

ROLES = list(Role)


@pytest.fixture
def budget(db):
    return make_budget(db, "alice")


class TestEnsureRole:
    """ensure_role succeeds exactly when the member's rank meets the floor."""

    @pytest.mark.parametrize("actual,required", list(itertools.product(ROLES, ROLES)))
    def test_floor(self, db, budget, actual, required):
        add_member(db, budget.id, "bob", actual)
        if actual.rank >= required.rank:
            assert authz.ensure_role(db, budget.id, "bob", required) is actual
        else:
            with pytest.raises(Forbidden):
                authz.ensure_role(db, budget.id, "bob", required)

    @pytest.mark.parametrize("required", ROLES)
    def test_non_member_is_forbidden(self, db, budget, required):
        with pytest.raises(Forbidden):
            authz.ensure_role(db, budget.id, "mallory", required)

    def test_unknown_budget_is_forbidden(self, db):
        with pytest.raises(Forbidden):
            authz.ensure_role(db, "no-such-budget", "alice", Role.VIEWER)

    def test_unparseable_stored_role_is_forbidden(self, db, budget):
        db.add(models.BudgetMember(budget_id=budget.id, user_id="bob", role="admin"))
        db.commit()
        with pytest.raises(Forbidden):
            authz.ensure_role(db, budget.id, "bob", Role.VIEWER)

    def test_role_change_applies_on_next_call(self, db, budget):
        add_member(db, budget.id, "bob", Role.CONTRIBUTOR)
        authz.ensure_role(db, budget.id, "bob", Role.CONTRIBUTOR)

        add_member(db, budget.id, "bob", Role.VIEWER)
        with pytest.raises(Forbidden):
            authz.ensure_role(db, budget.id, "bob", Role.CONTRIBUTOR)


class TestEnsureOwner:
    """ensure_owner accepts Owner and nothing else."""

    @pytest.mark.parametrize("actual", ROLES)
    def test_only_owner(self, db, budget, actual):
        add_member(db, budget.id, "bob", actual)
        if actual is Role.OWNER:
            assert authz.ensure_owner(db, budget.id, "bob") is None
        else:
            with pytest.raises(Forbidden):
                authz.ensure_owner(db, budget.id, "bob")

    def test_non_member(self, db, budget):
        with pytest.raises(Forbidden):
            authz.ensure_owner(db, budget.id, "mallory")

    def test_creator_is_owner(self, db, budget):
        authz.ensure_owner(db, budget.id, "alice")
