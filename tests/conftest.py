from datetime import date
from decimal import Decimal

import pytest

from houseexpenses import create_app
from houseexpenses.config import TestConfig
from houseexpenses.extensions import db
from houseexpenses.models import Budget, Category, Expense, SubCategory, User

# a Wednesday
TODAY = date(2024, 5, 15)


class FixedDayConfig(TestConfig):
    FIXED_TODAY = TODAY


@pytest.fixture
def app():
    app = create_app(FixedDayConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


def register(client, email="ana@example.com", password="s3cret", name="Ana"):
    resp = client.post("/auth/register", json={"name": name, "email": email, "password": password})
    assert resp.status_code == 201, resp.get_json()
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()["data"]


@pytest.fixture
def auth_client(client):
    client.user = register(client)
    return client


# Direct model builders for service-level tests; they flush but never commit.

def make_user(email="user@example.com"):
    user = User(name="User", email=email)
    user.set_password("pw")
    db.session.add(user)
    db.session.flush()
    return user


def make_category(user, name="Utilities", expense_type="monthly", **kwargs):
    category = Category(user_id=user.id, name=name, icon="bolt", color="#123456",
                        expense_type=expense_type, **kwargs)
    db.session.add(category)
    db.session.flush()
    return category


def make_subcategory(category, name="Internet", **kwargs):
    for key in ("budget_limit", "fixed_amount"):
        if kwargs.get(key) is not None:
            kwargs[key] = Decimal(kwargs[key])
    subcategory = SubCategory(category_id=category.id, name=name, **kwargs)
    db.session.add(subcategory)
    db.session.flush()
    return subcategory


def make_budget(user, category, limit, period="monthly", subcategory=None, threshold=80):
    budget = Budget(user_id=user.id, category_id=category.id,
                    subcategory_id=subcategory.id if subcategory else None,
                    limit_amount=Decimal(limit), warning_threshold=threshold, period=period)
    db.session.add(budget)
    db.session.flush()
    return budget


def make_expense(user, category, amount, on=TODAY, subcategory=None):
    expense = Expense(user_id=user.id, category_id=category.id,
                      subcategory_id=subcategory.id if subcategory else None,
                      amount=Decimal(amount), expense_date=on)
    db.session.add(expense)
    db.session.flush()
    return expense
