from datetime import date, timedelta
from decimal import Decimal

from app.core.jwt import create_access_token


def d(value):
    return Decimal(str(value))


# ─────────────────────────────
#   AUTH
# ─────────────────────────────

def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_requires_authentication(client):
    r = client.get("/transactions")
    assert r.status_code == 401
    assert r.headers["www-authenticate"] == "Bearer"


def test_rejects_bad_token(client):
    r = client.get("/transactions", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid token"


def test_token_for_unknown_user(client):
    token = create_access_token({"sub": "00000000-0000-0000-0000-000000000000"})
    r = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


def test_register_login_and_me(client):
    r = client.post("/auth/register", json={"email": "Carol@Example.com", "password": "secret123"})
    assert r.status_code == 201
    assert r.json()["email"] == "carol@example.com"

    assert client.post("/auth/register", json={"email": "carol@example.com", "password": "secret123"}).status_code == 409

    r = client.post("/auth/login", json={"email": "carol@example.com", "password": "wrong-pass"})
    assert r.status_code == 401

    r = client.post("/auth/login", json={"email": "carol@example.com", "password": "secret123"})
    assert r.status_code == 200
    assert "access_token" in r.cookies

    # The login cookie authenticates subsequent requests
    assert client.get("/auth/me").json()["email"] == "carol@example.com"


def test_password_with_spaces_is_rejected(client):
    r = client.post("/auth/register", json={"email": "dan@example.com", "password": "has space"})
    assert r.status_code == 400


# ─────────────────────────────
#   TRANSACTIONS
# ─────────────────────────────

def test_transaction_crud(client, auth):
    r = client.post(
        "/transactions",
        json={"type": "income", "amount": 5000, "category": "Salary", "description": "Monthly salary", "date": "2025-07-01"},
        headers=auth,
    )
    assert r.status_code == 201, r.text
    created = r.json()
    assert created["type"] == "income"
    assert d(created["amount"]) == Decimal("5000")
    assert created["date"] == "2025-07-01"

    client.post(
        "/transactions",
        json={"type": "expense", "amount": 25, "category": "Coffee", "date": "2025-07-03"},
        headers=auth,
    )

    listed = client.get("/transactions", headers=auth).json()
    assert [t["date"] for t in listed] == ["2025-07-03", "2025-07-01"]

    expenses = client.get("/transactions", params={"type": "expense"}, headers=auth).json()
    assert [t["category"] for t in expenses] == ["Coffee"]

    ranged = client.get("/transactions", params={"start": "2025-07-02"}, headers=auth).json()
    assert len(ranged) == 1

    r = client.get(f"/transactions/{created['id']}", headers=auth)
    assert r.status_code == 200


def test_transaction_date_defaults_to_today(client, auth):
    r = client.post("/transactions", json={"type": "expense", "amount": 10, "category": "Coffee"}, headers=auth)
    assert r.json()["date"] == date.today().isoformat()


def test_transaction_validation(client, auth):
    bad = [
        {"type": "expense", "amount": 0, "category": "Coffee"},
        {"type": "expense", "amount": -5, "category": "Coffee"},
        {"type": "refund", "amount": 5, "category": "Coffee"},
        {"type": "expense", "amount": 5, "category": ""},
        {"type": "expense", "category": "Coffee"},
    ]
    for payload in bad:
        assert client.post("/transactions", json=payload, headers=auth).status_code == 422, payload


def test_transactions_are_immutable(client, auth):
    r = client.post("/transactions", json={"type": "expense", "amount": 10, "category": "Coffee"}, headers=auth)
    assert client.patch(f"/transactions/{r.json()['id']}", json={"amount": 20}, headers=auth).status_code == 405


def test_owner_isolation(client, auth, other_auth):
    r = client.post("/transactions", json={"type": "expense", "amount": 10, "category": "Coffee"}, headers=auth)
    tx_id = r.json()["id"]
    r = client.post("/goals", json={"title": "Trip", "target_amount": 100, "deadline": "2030-01-01"}, headers=auth)
    goal_id = r.json()["id"]

    assert client.get("/transactions", headers=other_auth).json() == []
    assert client.get(f"/transactions/{tx_id}", headers=other_auth).status_code == 404
    assert client.delete(f"/transactions/{tx_id}", headers=other_auth).status_code == 404
    assert client.post(f"/goals/{goal_id}/funds", json={"amount": 5}, headers=other_auth).status_code == 404
    assert client.get(f"/transactions/{tx_id}", headers=auth).status_code == 200


# ─────────────────────────────
#   CATEGORIES
# ─────────────────────────────

def test_default_categories_seeded(client, auth):
    cats = client.get("/categories", headers=auth).json()
    defaults = [c for c in cats if c["is_default"]]
    assert len(defaults) == 10
    assert {c["name"] for c in defaults if c["type"] == "income"} == {"Salary", "Freelance", "Investment", "Other Income"}

    expense_only = client.get("/categories", params={"type": "expense"}, headers=auth).json()
    assert len(expense_only) == 6


def test_default_categories_are_read_only(client, auth):
    salary = next(c for c in client.get("/categories", headers=auth).json() if c["name"] == "Salary")

    assert client.patch(f"/categories/{salary['id']}", json={"name": "Pay"}, headers=auth).status_code == 409
    assert client.delete(f"/categories/{salary['id']}", headers=auth).status_code == 409


def test_custom_category_lifecycle(client, auth):
    payload = {"name": "Coffee", "type": "expense", "color": "#8b5cf6", "icon": "Coffee"}
    r = client.post("/categories", json=payload, headers=auth)
    assert r.status_code == 201
    cat_id = r.json()["id"]
    assert r.json()["is_default"] is False

    assert client.post("/categories", json=payload, headers=auth).status_code == 409
    assert client.post("/categories", json={**payload, "name": "Tea", "color": "purple"}, headers=auth).status_code == 400

    r = client.patch(f"/categories/{cat_id}", json={"name": "Cafe"}, headers=auth)
    assert r.status_code == 200
    assert r.json()["name"] == "Cafe"

    assert client.delete(f"/categories/{cat_id}", headers=auth).status_code == 204
    assert client.delete(f"/categories/{cat_id}", headers=auth).status_code == 404


# ─────────────────────────────
#   GOALS
# ─────────────────────────────

def test_goal_funds_are_capped_at_target(client, auth):
    r = client.post(
        "/goals",
        json={"title": "New Laptop", "target_amount": 2500, "current_amount": 1200, "deadline": "2025-08-15"},
        headers=auth,
    )
    assert r.status_code == 201
    goal = r.json()
    assert goal["progress"] == 48.0
    assert goal["completed"] is False

    r = client.post(f"/goals/{goal['id']}/funds", json={"amount": 1000}, headers=auth)
    assert d(r.json()["current_amount"]) == Decimal("2200")

    r = client.post(f"/goals/{goal['id']}/funds", json={"amount": 1000}, headers=auth)
    assert d(r.json()["current_amount"]) == Decimal("2500")
    assert r.json()["completed"] is True
    assert r.json()["progress"] == 100.0

    assert client.post(f"/goals/{goal['id']}/funds", json={"amount": 0}, headers=auth).status_code == 422


def test_goal_update_and_delete(client, auth):
    early = client.post("/goals", json={"title": "Vacation", "target_amount": 3000, "deadline": "2025-09-01"}, headers=auth).json()
    late = client.post("/goals", json={"title": "Car", "target_amount": 5000, "deadline": "2026-03-01"}, headers=auth).json()

    assert [g["title"] for g in client.get("/goals", headers=auth).json()] == ["Vacation", "Car"]

    r = client.patch(f"/goals/{late['id']}", json={"description": "Down payment"}, headers=auth)
    assert r.json()["description"] == "Down payment"
    assert client.patch(f"/goals/{late['id']}", json={"deadline": None}, headers=auth).status_code == 400
    assert client.patch(f"/goals/{late['id']}", json={}, headers=auth).status_code == 400

    assert client.delete(f"/goals/{early['id']}", headers=auth).status_code == 204
    assert len(client.get("/goals", headers=auth).json()) == 1


# ─────────────────────────────
#   RECURRING
# ─────────────────────────────

def recurring_payload(**overrides):
    payload = {
        "name": "Coffee Subscription",
        "type": "expense",
        "amount": 25,
        "category": "Coffee",
        "description": "Weekly coffee delivery",
        "frequency": "weekly",
        "frequency_value": 1,
        "start_date": "2025-07-01",
    }
    payload.update(overrides)
    return payload


def test_create_recurring_seeds_next_occurrence(client, auth):
    r = client.post("/recurring", json=recurring_payload(), headers=auth)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["next_occurrence"] == "2025-07-08"
    assert body["is_active"] is True

    r = client.get(f"/recurring/{body['id']}/upcoming", params={"count": 3}, headers=auth)
    assert r.json()["dates"] == ["2025-07-08", "2025-07-15", "2025-07-22"]


def test_create_recurring_rejects_bad_schedule(client, auth):
    r = client.post("/recurring", json=recurring_payload(frequency="fortnightly"), headers=auth)
    assert r.status_code == 400
    assert "fortnightly" in r.json()["detail"]

    r = client.post("/recurring", json=recurring_payload(frequency_value=0), headers=auth)
    assert r.status_code == 400

    r = client.post("/recurring", json=recurring_payload(end_date="2025-06-01"), headers=auth)
    assert r.status_code == 400


def test_update_recurring_keeps_pointer(client, auth):
    created = client.post("/recurring", json=recurring_payload(), headers=auth).json()

    r = client.patch(f"/recurring/{created['id']}", json={"amount": 30, "is_active": False}, headers=auth)
    assert r.status_code == 200
    assert d(r.json()["amount"]) == Decimal("30")
    assert r.json()["is_active"] is False
    assert r.json()["next_occurrence"] == created["next_occurrence"]

    assert client.get("/recurring", params={"active": True}, headers=auth).json() == []
    assert client.patch(f"/recurring/{created['id']}", json={"frequency": "hourly"}, headers=auth).status_code == 400
    assert client.patch(f"/recurring/{created['id']}", json={"name": None}, headers=auth).status_code == 400

    assert client.delete(f"/recurring/{created['id']}", headers=auth).status_code == 204
    assert client.get(f"/recurring/{created['id']}", headers=auth).status_code == 404


def test_update_recurring_start_date_reseeds_stale_pointer(client, auth):
    created = client.post(
        "/recurring", json=recurring_payload(frequency="monthly", start_date="2025-01-01"), headers=auth
    ).json()
    assert created["next_occurrence"] == "2025-02-01"

    r = client.patch(f"/recurring/{created['id']}", json={"start_date": "2025-06-01"}, headers=auth)
    assert r.status_code == 200
    assert r.json()["start_date"] == "2025-06-01"
    assert r.json()["next_occurrence"] == "2025-07-01"

    # Moving the start back keeps the pointer where it is
    r = client.patch(f"/recurring/{created['id']}", json={"start_date": "2025-03-01"}, headers=auth)
    assert r.json()["next_occurrence"] == "2025-07-01"


def test_recurring_interval_past_last_date_is_rejected(client, auth):
    r = client.post(
        "/recurring",
        json=recurring_payload(frequency="yearly", frequency_value=100000, start_date="2025-01-01"),
        headers=auth,
    )
    assert r.status_code == 400
    assert client.get("/recurring", headers=auth).json() == []


def test_process_recurring_endpoint(client, auth, other_auth):
    today = date.today()
    start = (today - timedelta(days=6)).isoformat()
    client.post("/recurring", json=recurring_payload(frequency="daily", start_date=start), headers=auth)
    client.post("/recurring", json=recurring_payload(frequency="daily", start_date=start), headers=other_auth)

    r = client.post("/recurring/process", headers=auth)
    assert r.status_code == 200
    assert r.json() == {"processed": 1, "failures": []}

    txs = client.get("/transactions", headers=auth).json()
    assert [t["date"] for t in txs] == [(today - timedelta(days=5)).isoformat()]
    assert txs[0]["description"] == "Weekly coffee delivery"

    template = client.get("/recurring", headers=auth).json()[0]
    assert template["next_occurrence"] == (today - timedelta(days=4)).isoformat()

    # The other user's template was not touched
    assert client.get("/transactions", headers=other_auth).json() == []

    kinds = [n["kind"] for n in client.get("/notifications", headers=auth).json()]
    assert kinds == ["RECURRING_PROCESSED"]


# ─────────────────────────────
#   REPORTS & NOTIFICATIONS
# ─────────────────────────────

def seed_july(client, auth):
    rows = [
        ("income", 5000, "Salary", "2025-07-01"),
        ("income", 500, "Side Hustle", "2025-07-03"),
        ("expense", 1200, "Bills & Utilities", "2025-07-01"),
        ("expense", 150, "Groceries", "2025-07-02"),
        ("expense", 45, "Gas", "2025-07-02"),
        ("income", 4800, "Salary", "2025-06-01"),
        ("expense", 180, "Groceries", "2025-06-05"),
    ]
    for type_, amount, category, on in rows:
        r = client.post(
            "/transactions",
            json={"type": type_, "amount": amount, "category": category, "date": on},
            headers=auth,
        )
        assert r.status_code == 201


def test_report_summary(client, auth):
    seed_july(client, auth)

    s = client.get("/reports/summary", params={"start": "2025-07-01", "end": "2025-07-31"}, headers=auth).json()
    assert d(s["income"]) == Decimal("5500")
    assert d(s["expenses"]) == Decimal("1395")
    assert d(s["balance"]) == Decimal("4105")
    assert s["transaction_count"] == 5

    assert client.get("/reports/summary", params={"start": "2025-08-01", "end": "2025-07-01"}, headers=auth).status_code == 400


def test_report_categories_and_monthly(client, auth):
    seed_july(client, auth)

    cats = client.get("/reports/categories", headers=auth).json()
    assert [c["category"] for c in cats] == ["Bills & Utilities", "Groceries", "Gas"]
    assert d(cats[1]["total"]) == Decimal("330")

    months = client.get("/reports/monthly", headers=auth).json()
    assert [m["month"] for m in months] == ["2025-06", "2025-07"]
    assert d(months[0]["income"]) == Decimal("4800")
    assert d(months[1]["expenses"]) == Decimal("1395")


def test_dashboard(client, auth):
    today = date.today()
    client.post("/transactions", json={"type": "income", "amount": 1000, "category": "Salary", "date": today.isoformat()}, headers=auth)
    client.post("/budgets", json={"category": "Groceries", "limit_amount": 100}, headers=auth)
    client.post("/transactions", json={"type": "expense", "amount": 90, "category": "Groceries", "date": today.isoformat()}, headers=auth)

    dash = client.get("/reports/dashboard", headers=auth).json()
    assert dash["month"] == today.strftime("%Y-%m")
    assert d(dash["income"]) == Decimal("1000")
    assert d(dash["expenses"]) == Decimal("90")
    assert dash["income_change"] is None
    assert dash["budgets_total"] == 1
    assert dash["budgets_on_track"] == 0


def test_notifications_can_be_dismissed(client, auth, other_auth):
    client.post("/transactions", json={"type": "expense", "amount": 10, "category": "Coffee"}, headers=auth)

    items = client.get("/notifications", headers=auth).json()
    assert len(items) == 1
    assert items[0]["message"] == "Expense of 10.00 recorded in Coffee"
    assert client.get("/notifications", headers=other_auth).json() == []

    assert client.delete(f"/notifications/{items[0]['id']}", headers=auth).status_code == 204
    assert client.get("/notifications", headers=auth).json() == []

    client.post("/transactions", json={"type": "income", "amount": 10, "category": "Salary"}, headers=auth)
    assert client.delete("/notifications", headers=auth).status_code == 204
    assert client.get("/notifications", headers=auth).json() == []
