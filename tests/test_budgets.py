from datetime import date
from decimal import Decimal

import pytest

from app.core.errors import ConstraintViolation, ValidationError
from app.services import budgets, transactions


def add_expense(session, user, amount, category="Groceries", on=date(2025, 7, 2)):
    return transactions.create_transaction(session, user.id, "expense", Decimal(amount), category, "", on=on)


def test_expense_increments_and_delete_decrements(session, user):
    budget = budgets.create_budget(session, user.id, "Groceries", Decimal("500"))
    assert budget.spent == Decimal("0")

    tx = add_expense(session, user, "50")
    session.refresh(budget)
    assert budget.spent == Decimal("50.00")

    transactions.delete_transaction(session, tx)
    session.refresh(budget)
    assert budget.spent == Decimal("0.00")


def test_decrement_is_floored_at_zero(session, user):
    budget = budgets.create_budget(session, user.id, "Groceries", Decimal("500"))
    budget.spent = Decimal("20")
    session.add(budget)
    session.commit()

    budgets.revert_expense(session, user.id, "Groceries", Decimal("50"))
    session.commit()
    session.refresh(budget)
    assert budget.spent == Decimal("0.00")

    budgets.revert_expense(session, user.id, "Groceries", Decimal("50"))
    session.commit()
    session.refresh(budget)
    assert budget.spent == Decimal("0.00")


def test_income_and_other_categories_do_not_touch_budget(session, user):
    budget = budgets.create_budget(session, user.id, "Groceries", Decimal("500"))
    transactions.create_transaction(session, user.id, "income", Decimal("100"), "Groceries")
    add_expense(session, user, "30", category="groceries")

    session.refresh(budget)
    assert budget.spent == Decimal("0.00")


def test_new_budget_aggregates_existing_expenses(session, user):
    add_expense(session, user, "150")
    add_expense(session, user, "180.50")
    add_expense(session, user, "45", category="Gas")
    transactions.create_transaction(session, user.id, "income", Decimal("999"), "Groceries")

    budget = budgets.create_budget(session, user.id, "Groceries", Decimal("500"), "monthly")

    assert budget.spent == Decimal("330.50")


def test_duplicate_budget_is_rejected(session, user):
    budgets.create_budget(session, user.id, "Groceries", Decimal("500"))
    with pytest.raises(ConstraintViolation):
        budgets.create_budget(session, user.id, "Groceries", Decimal("200"))


def test_invalid_period_is_rejected(session, user):
    with pytest.raises(ValidationError):
        budgets.create_budget(session, user.id, "Groceries", Decimal("500"), "daily")


def test_recalculate_repairs_drift(session, user):
    budget = budgets.create_budget(session, user.id, "Groceries", Decimal("500"))
    add_expense(session, user, "75")
    budget.spent = Decimal("999")
    session.add(budget)
    session.commit()

    budget = budgets.recalculate(session, budget)
    assert budget.spent == Decimal("75.00")


def test_changing_category_reaggregates(session, user):
    add_expense(session, user, "40", category="Gas")
    budget = budgets.create_budget(session, user.id, "Groceries", Decimal("500"))

    budget = budgets.update_budget(session, budget, category="Gas")
    assert budget.spent == Decimal("40.00")


def test_status_of():
    b = budgets.Budget(category="Food", limit_amount=Decimal("400"), spent=Decimal("100"))
    assert budgets.status_of(b) == {"remaining": Decimal("300"), "percent_used": 25.0, "over_limit": False}
    assert budgets.is_on_track(b)

    b.spent = Decimal("420")
    assert budgets.status_of(b)["over_limit"] is True
    assert not budgets.is_on_track(b)


def test_budget_api_round(client, auth):
    r = client.post("/budgets", json={"category": "Food & Dining", "limit_amount": 400, "period": "monthly"}, headers=auth)
    assert r.status_code == 201, r.text
    budget_id = r.json()["id"]

    r = client.post(
        "/transactions",
        json={"type": "expense", "amount": 50, "category": "Food & Dining", "description": "Dinner", "date": "2025-07-06"},
        headers=auth,
    )
    assert r.status_code == 201, r.text
    tx_id = r.json()["id"]

    budget = client.get("/budgets", headers=auth).json()[0]
    assert Decimal(str(budget["spent"])) == Decimal("50")
    assert Decimal(str(budget["remaining"])) == Decimal("350")
    assert budget["over_limit"] is False

    assert client.delete(f"/transactions/{tx_id}", headers=auth).status_code == 204
    assert client.delete(f"/transactions/{tx_id}", headers=auth).status_code == 404

    budget = client.get("/budgets", headers=auth).json()[0]
    assert Decimal(str(budget["spent"])) == Decimal("0")

    r = client.patch(f"/budgets/{budget_id}", json={"limit_amount": 600}, headers=auth)
    assert r.status_code == 200
    assert Decimal(str(r.json()["limit_amount"])) == Decimal("600")

    r = client.post(f"/budgets/{budget_id}/recalculate", headers=auth)
    assert r.status_code == 200

    assert client.delete(f"/budgets/{budget_id}", headers=auth).status_code == 204
    assert client.get("/budgets", headers=auth).json() == []


def test_duplicate_budget_api_conflict(client, auth):
    payload = {"category": "Shopping", "limit_amount": 300}
    assert client.post("/budgets", json=payload, headers=auth).status_code == 201
    r = client.post("/budgets", json=payload, headers=auth)
    assert r.status_code == 409
    assert "Shopping" in r.json()["detail"]


def test_budget_exceeded_notification(client, auth):
    client.post("/budgets", json={"category": "Shopping", "limit_amount": 100}, headers=auth)
    client.post("/transactions", json={"type": "expense", "amount": 80, "category": "Shopping"}, headers=auth)
    client.post("/transactions", json={"type": "expense", "amount": 30, "category": "Shopping"}, headers=auth)

    kinds = [n["kind"] for n in client.get("/notifications", headers=auth).json()]
    assert kinds.count("BUDGET_EXCEEDED") == 1
    assert kinds[0] == "TRANSACTION_ADDED"
