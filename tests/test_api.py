import csv
from io import StringIO

from houseexpenses.models import Alert, Expense

from conftest import register


def _data(resp, status=200):
    assert resp.status_code == status, resp.get_json()
    body = resp.get_json()
    assert body["ok"] is True
    return body["data"]


def _categories(client):
    return {c["name"]: c for c in _data(client.get("/categories"))}


def _sub(category, name):
    return next(s for s in category["subcategories"] if s["name"] == name)


def test_endpoints_require_login(client):
    resp = client.get("/expenses")
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "UNAUTHORIZED"


def test_register_seeds_defaults_and_rejects_duplicate_email(client):
    user = register(client)
    assert user["email"] == "ana@example.com"
    categories = _categories(client)
    assert set(categories) == {"Housing", "Groceries", "Transport", "Leisure", "Insurance"}
    assert categories["Insurance"]["expense_type"] == "annual"
    assert _sub(categories["Housing"], "Rent")["is_mandatory"] is True

    resp = client.post("/auth/register", json={"name": "Ana", "email": "ANA@example.com", "password": "x"})
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "DUPLICATE_RESOURCE"


def test_login_with_wrong_password(client):
    register(client)
    client.post("/auth/logout")
    resp = client.post("/auth/login", json={"email": "ana@example.com", "password": "nope"})
    assert resp.status_code == 401
    assert client.get("/auth/me").status_code == 401


def test_category_crud_and_duplicate_names(auth_client):
    created = _data(auth_client.post("/categories", json={
        "name": "Pets", "icon": "paw", "color": "#FFAA00", "expense_type": "monthly",
    }), 201)
    # four seeded monthly categories come first
    assert created["display_order"] == 4

    resp = auth_client.post("/categories", json={
        "name": "pets", "icon": "paw", "color": "#FFAA00", "expense_type": "monthly",
    })
    assert resp.status_code == 409

    updated = _data(auth_client.put(f"/categories/{created['id']}", json={
        "name": "Pet care", "icon": "paw", "color": "#000000", "expense_type": "monthly",
    }))
    assert updated["name"] == "Pet care"

    sub = _data(auth_client.post(f"/categories/{created['id']}/subcategories", json={
        "name": "Vet", "fixed_amount": "25.00",
    }), 201)
    assert sub["is_mandatory"] is True
    assert sub["fixed_amount"] == 25.0
    _data(auth_client.delete(f"/categories/subcategories/{sub['id']}"))
    assert _data(auth_client.get(f"/categories/{created['id']}"))["subcategories"] == []

    _data(auth_client.delete(f"/categories/{created['id']}"))
    assert auth_client.get(f"/categories/{created['id']}").status_code == 404
    assert "Pet care" not in _categories(auth_client)


def test_create_category_validation(auth_client):
    resp = auth_client.post("/categories", json={"name": "", "expense_type": "daily"})
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["error"] == "VALIDATION_ERROR"
    assert set(body["details"]) == {"name", "icon", "color", "expense_type"}


def test_reorder_shifts_siblings_of_the_same_type(auth_client):
    categories = _categories(auth_client)
    leisure = categories["Leisure"]
    assert leisure["display_order"] == 3
    _data(auth_client.post(f"/categories/{leisure['id']}/reorder", json={"display_order": 0}))

    monthly = _data(auth_client.get("/categories?expense_type=monthly"))
    assert [c["name"] for c in monthly] == ["Leisure", "Housing", "Groceries", "Transport"]
    assert [c["display_order"] for c in monthly] == [0, 1, 2, 3]
    assert _categories(auth_client)["Insurance"]["display_order"] == 4


def test_expense_create_returns_alerts_and_persists_them(auth_client):
    groceries = _categories(auth_client)["Groceries"]
    _data(auth_client.post("/budgets", json={
        "category_id": groceries["id"], "limit_amount": "100.00", "period": "monthly",
    }), 201)

    first = _data(auth_client.post("/expenses", json={"category_id": groceries["id"], "amount": "50.00"}), 201)
    assert first["alerts"] == []
    assert first["date"] == "2024-05-15"

    second = _data(auth_client.post("/expenses", json={
        "category_id": groceries["id"], "amount": "35.50", "date": "2024-05-10", "description": "Weekly shop",
    }), 201)
    (alert,) = second["alerts"]
    assert alert["alert_type"] == "warning"
    assert alert["message"] == "Warning: Groceries is at 85.5% of budget"
    assert alert["category"]["name"] == "Groceries"

    assert _data(auth_client.get("/alerts/unread/count")) == {"count": 1}
    listing = _data(auth_client.get("/expenses?start_date=2024-05-01&end_date=2024-05-31"))
    assert listing["total"] == 2
    assert [e["amount"] for e in listing["items"]] == [50.0, 35.5]


def test_expense_validation_and_foreign_subcategory(auth_client):
    categories = _categories(auth_client)
    resp = auth_client.post("/expenses", json={"category_id": categories["Groceries"]["id"], "amount": "-3"})
    assert resp.status_code == 400
    assert "amount" in resp.get_json()["details"]

    resp = auth_client.post("/expenses", json={
        "category_id": categories["Groceries"]["id"],
        "subcategory_id": _sub(categories["Housing"], "Rent")["id"],
        "amount": "10.00",
    })
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "RESOURCE_NOT_FOUND"


def test_alert_failure_rolls_back_the_expense(auth_client, app, monkeypatch):
    groceries = _categories(auth_client)["Groceries"]

    def broken(*args, **kwargs):
        raise RuntimeError("alert store down")

    monkeypatch.setattr("houseexpenses.blueprints.expenses.routes.on_expense_recorded", broken)
    resp = auth_client.post("/expenses", json={"category_id": groceries["id"], "amount": "10.00"})
    assert resp.status_code == 500
    assert resp.get_json()["error"] == "INTERNAL_ERROR"
    with app.app_context():
        assert Expense.query.count() == 0
        assert Alert.query.count() == 0


def test_bulk_create_is_all_or_nothing(auth_client, app):
    groceries = _categories(auth_client)["Groceries"]
    resp = auth_client.post("/expenses/bulk", json=[
        {"category_id": groceries["id"], "amount": "5.00"},
        {"category_id": groceries["id"]},
    ])
    assert resp.status_code == 400
    assert set(resp.get_json()["details"]) == {"1"}
    with app.app_context():
        assert Expense.query.count() == 0

    created = _data(auth_client.post("/expenses/bulk", json=[
        {"category_id": groceries["id"], "amount": "5.00"},
        {"category_id": groceries["id"], "amount": "7.25"},
    ]), 201)
    assert [e["amount"] for e in created] == [5.0, 7.25]


def test_soft_deleted_category_drops_out_of_sums(auth_client):
    categories = _categories(auth_client)
    leisure, groceries = categories["Leisure"], categories["Groceries"]
    auth_client.post("/expenses", json={"category_id": leisure["id"], "amount": "40.00"})
    auth_client.post("/expenses", json={"category_id": groceries["id"], "amount": "10.00"})
    assert _data(auth_client.get("/dashboard/summary"))["total_spending"] == 50.0

    _data(auth_client.delete(f"/categories/{leisure['id']}"))
    assert _data(auth_client.get("/dashboard/summary"))["total_spending"] == 10.0
    assert _data(auth_client.get("/expenses"))["total"] == 1


def test_budget_status_endpoints(auth_client):
    housing = _categories(auth_client)["Housing"]
    rent = _sub(housing, "Rent")
    budget = _data(auth_client.post("/budgets", json={
        "category_id": housing["id"], "subcategory_id": rent["id"],
        "limit_amount": "800.00", "period": "monthly", "warning_threshold": 90,
    }), 201)
    auth_client.post("/expenses", json={
        "category_id": housing["id"], "subcategory_id": rent["id"], "amount": "760.00", "date": "2024-05-01",
    })

    status = _data(auth_client.get(f"/budgets/{budget['id']}/status"))
    assert status["current_spending"] == 760.0
    assert status["remaining_amount"] == 40.0
    assert status["utilization_percentage"] == 95.0
    assert status["status"] == "warning"
    assert status["days_remaining"] == 16
    assert (status["period_start"], status["period_end"]) == ("2024-05-01", "2024-05-31")

    june = _data(auth_client.get(f"/budgets/{budget['id']}/status?date=2024-06-03"))
    assert june["current_spending"] == 0.0
    assert june["status"] == "ok"

    updated = _data(auth_client.put(f"/budgets/{budget['id']}", json={"limit_amount": "700.00"}))
    assert updated["limit_amount"] == 700.0
    assert updated["warning_threshold"] == 90
    (only,) = _data(auth_client.get("/budgets/status"))
    assert only["status"] == "exceeded"


def test_budget_of_another_user_is_not_found(client):
    register(client, email="first@example.com")
    housing = _categories(client)["Housing"]
    budget = _data(client.post("/budgets", json={
        "category_id": housing["id"], "limit_amount": "10.00", "period": "weekly",
    }), 201)
    client.post("/auth/logout")

    register(client, email="second@example.com")
    assert client.get(f"/budgets/{budget['id']}").status_code == 404
    assert client.get(f"/budgets/{budget['id']}/status").status_code == 404
    resp = client.post("/budgets", json={"category_id": housing["id"], "limit_amount": "10.00", "period": "weekly"})
    assert resp.status_code == 404


def test_mark_alerts_read(auth_client):
    leisure = _categories(auth_client)["Leisure"]
    auth_client.post("/budgets", json={"category_id": leisure["id"], "limit_amount": "10.00", "period": "monthly"})
    for _ in range(3):
        auth_client.post("/expenses", json={"category_id": leisure["id"], "amount": "20.00"})

    unread = _data(auth_client.get("/alerts/unread"))
    assert len(unread) == 3
    assert all(a["alert_type"] == "exceeded" for a in unread)

    _data(auth_client.post(f"/alerts/{unread[0]['id']}/read"))
    assert _data(auth_client.get("/alerts/unread/count")) == {"count": 2}
    assert _data(auth_client.post("/alerts/read-all")) == {"updated": 2}
    assert _data(auth_client.get("/alerts"))["total"] == 3
    assert auth_client.post("/alerts/9999/read").status_code == 404


def test_dashboard_charts(auth_client):
    groceries = _categories(auth_client)["Groceries"]
    for day, amount in [("2024-05-13", "10.00"), ("2024-05-15", "4.50"), ("2024-05-30", "20.00"),
                        ("2024-02-10", "30.00")]:
        auth_client.post("/expenses", json={"category_id": groceries["id"], "amount": amount, "date": day})

    weekly = _data(auth_client.get("/dashboard/weekly"))
    assert [p["label"] for p in weekly["data_points"]] == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    assert weekly["data_points"][0]["value"] == 10.0
    assert weekly["data_points"][2]["value"] == 4.5
    assert weekly["total"] == 14.5
    assert weekly["average"] == 2.07

    monthly = _data(auth_client.get("/dashboard/monthly?year=2024&month=5"))
    assert [p["label"] for p in monthly["data_points"]] == [f"Week {n}" for n in range(1, 6)]
    assert [p["value"] for p in monthly["data_points"]] == [0.0, 10.0, 4.5, 0.0, 20.0]

    annual = _data(auth_client.get("/dashboard/annual"))
    assert [p["label"] for p in annual["data_points"]] == ["Jan", "Feb", "Mar", "Apr", "May"]
    assert annual["total"] == 64.5

    last_year = _data(auth_client.get("/dashboard/annual?year=2023"))
    assert len(last_year["data_points"]) == 12
    assert last_year["total"] == 0.0

    assert auth_client.get("/dashboard/monthly?month=13").status_code == 400
    assert auth_client.get("/dashboard/weekly?year=2023&month=2&day=30").status_code == 400


def test_dashboard_summary_and_breakdown(auth_client):
    categories = _categories(auth_client)
    housing, groceries = categories["Housing"], categories["Groceries"]
    auth_client.post("/budgets", json={"category_id": housing["id"], "limit_amount": "1000.00", "period": "monthly"})
    auth_client.post("/expenses", json={
        "category_id": housing["id"], "subcategory_id": _sub(housing, "Rent")["id"], "amount": "600.00",
    })
    auth_client.post("/expenses", json={"category_id": groceries["id"], "amount": "200.00"})

    summary = _data(auth_client.get("/dashboard/summary"))
    assert summary["total_spending"] == 800.0
    assert summary["budget_limit"] == 1000.0
    assert summary["utilization_percentage"] == 80.0
    assert [c["category_name"] for c in summary["top_categories"]] == ["Housing", "Groceries"]
    assert summary["top_categories"][0]["budget_limit"] == 1000.0
    assert summary["top_categories"][0]["percentage"] == 75.0
    assert len(summary["recent_expenses"]) == 2
    assert summary["unread_alert_count"] == 0
    pending = [p["subcategory_name"] for p in summary["pending_expenses"]]
    assert pending == ["Electricity", "Water", "Home insurance", "Car insurance"]

    breakdown = _data(auth_client.get("/dashboard/category-breakdown?period=annual"))
    assert [row["amount"] for row in breakdown] == [600.0, 200.0]
    assert auth_client.get("/dashboard/category-breakdown?period=daily").status_code == 400


def test_pending_endpoint_lists_seeded_obligations(auth_client):
    pending = _data(auth_client.get("/dashboard/pending"))
    assert [(p["category_name"], p["subcategory_name"]) for p in pending] == [
        ("Housing", "Rent"), ("Housing", "Electricity"), ("Housing", "Water"),
        ("Insurance", "Home insurance"), ("Insurance", "Car insurance"),
    ]
    assert all(p["is_paid"] is False and p["payment_count"] == 0 for p in pending)
    assert pending[0]["expected_amount"] == 0.0


def test_export_csv(auth_client):
    housing = _categories(auth_client)["Housing"]
    auth_client.post("/expenses", json={
        "category_id": housing["id"], "subcategory_id": _sub(housing, "Water")["id"],
        "amount": "31.4", "date": "2024-05-03", "description": "Water bill",
    })
    auth_client.post("/expenses", json={"category_id": housing["id"], "amount": "12.00", "date": "2024-04-03"})

    resp = auth_client.get("/reports/export.csv?start_date=2024-05-01")
    assert resp.status_code == 200
    assert resp.headers["Content-Type"].startswith("text/csv")
    rows = list(csv.reader(StringIO(resp.get_data(as_text=True))))
    assert rows == [
        ["Date", "Category", "Subcategory", "Amount", "Description"],
        ["2024-05-03", "Housing", "Water", "31.40", "Water bill"],
    ]


def test_deleting_a_budget_removes_its_alerts(auth_client, app):
    leisure = _categories(auth_client)["Leisure"]
    budget = _data(auth_client.post("/budgets", json={
        "category_id": leisure["id"], "limit_amount": "5.00", "period": "annual",
    }), 201)
    auth_client.post("/expenses", json={"category_id": leisure["id"], "amount": "9.00"})
    _data(auth_client.delete(f"/budgets/{budget['id']}"))
    with app.app_context():
        assert Alert.query.count() == 0


def test_update_expense_keeps_date_and_type_when_left_out(auth_client):
    insurance = _categories(auth_client)["Insurance"]
    created = _data(auth_client.post("/expenses", json={
        "category_id": insurance["id"], "amount": "5.00", "date": "2024-01-03", "expense_type": "annual",
    }), 201)

    updated = _data(auth_client.put(f"/expenses/{created['id']}", json={
        "category_id": insurance["id"], "amount": "6.00",
    }))
    assert updated["amount"] == 6.0
    assert updated["date"] == "2024-01-03"
    assert updated["expense_type"] == "annual"

    moved = _data(auth_client.put(f"/expenses/{created['id']}", json={
        "category_id": insurance["id"], "amount": "6.00", "date": "2024-03-09", "expense_type": "monthly",
    }))
    assert (moved["date"], moved["expense_type"]) == ("2024-03-09", "monthly")
    assert _data(auth_client.get(f"/expenses/{created['id']}"))["date"] == "2024-03-09"


def test_update_subcategory_accepts_zero_amounts(auth_client):
    housing = _categories(auth_client)["Housing"]
    rent = _sub(housing, "Rent")
    updated = _data(auth_client.put(f"/categories/subcategories/{rent['id']}", json={
        "name": "Rent", "fixed_amount": "0", "budget_limit": "0", "is_mandatory": False,
    }))
    assert updated["fixed_amount"] == 0.0
    assert updated["budget_limit"] == 0.0
    assert updated["is_mandatory"] is False
    pending = [p["subcategory_name"] for p in _data(auth_client.get("/dashboard/pending"))]
    assert "Rent" not in pending

    created = _data(auth_client.post(f"/categories/{housing['id']}/subcategories", json={
        "name": "Parking", "fixed_amount": "0",
    }), 201)
    assert created["fixed_amount"] == 0.0

    resp = auth_client.put(f"/categories/subcategories/{rent['id']}", json={"name": "Rent", "fixed_amount": "-1"})
    assert resp.status_code == 400
    assert "fixed_amount" in resp.get_json()["details"]


def test_budget_threshold_must_be_a_whole_number(auth_client):
    groceries = _categories(auth_client)["Groceries"]
    resp = auth_client.post("/budgets", json={
        "category_id": groceries["id"], "limit_amount": "100.00", "period": "monthly", "warning_threshold": 80.9,
    })
    assert resp.status_code == 400
    assert "warning_threshold" in resp.get_json()["details"]

    budget = _data(auth_client.post("/budgets", json={
        "category_id": groceries["id"], "limit_amount": "100.00", "period": "monthly", "warning_threshold": 75.0,
    }), 201)
    assert budget["warning_threshold"] == 75


def test_category_color_must_be_a_hex_code(auth_client):
    for color in ("red", "#12345", "#12345G", "123456"):
        resp = auth_client.post("/categories", json={
            "name": "Pets", "icon": "paw", "color": color, "expense_type": "monthly",
        })
        assert resp.status_code == 400, color
        assert set(resp.get_json()["details"]) == {"color"}

    housing = _categories(auth_client)["Housing"]
    resp = auth_client.put(f"/categories/{housing['id']}", json={
        "name": "Housing", "icon": "home", "color": "blue", "expense_type": "monthly",
    })
    assert resp.status_code == 400
    _data(auth_client.post("/categories", json={
        "name": "Pets", "icon": "paw", "color": "#a1B2c3", "expense_type": "monthly",
    }), 201)
