import os
import sys
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from models import db
from app.schemas.erpnext import (
    ERPNextBrand,
    ERPNextItem,
    ERPNextItemGroup,
    ERPNextItemPrice,
    PaginatedItems,
    Pagination,
)


class FakeERPNextClient:
    """In-memory stand-in for ERPNextClient."""

    def __init__(self, brands=None, item_groups=None, items=None, prices=None, price_failures=()):
        self.brands = list(brands or [])
        self.item_groups = list(item_groups or [])
        self.items = list(items or [])
        self.prices = dict(prices or {})
        self.price_failures = set(price_failures)
        self.pages_requested = []

    def get_brands(self):
        return list(self.brands)

    def get_item_groups(self):
        return list(self.item_groups)

    def get_items(self, page=1, limit=50):
        self.pages_requested.append(page)
        start = (page - 1) * limit
        data = self.items[start:start + limit]
        total = len(self.items)
        return PaginatedItems(
            data=data,
            pagination=Pagination(
                page=page,
                per_page=limit,
                total=total,
                total_pages=-(-total // limit) if limit else 0,
            ),
        )

    def get_item_prices(self, item_code):
        if item_code in self.price_failures:
            raise RuntimeError(f"price lookup failed for {item_code}")
        return list(self.prices.get(item_code, []))


def make_item(name, **fields):
    fields.setdefault("item_code", name)
    fields.setdefault("item_name", name.replace("-", " ").title())
    return ERPNextItem(name=name, **fields)


def make_group(name, parent=None, **fields):
    return ERPNextItemGroup(name=name, parent_item_group=parent, **fields)


def make_brand(name, **fields):
    return ERPNextBrand(name=name, **fields)


def make_price(item_code, price_list, rate):
    return ERPNextItemPrice(item_code=item_code, price_list=price_list, price_list_rate=rate)


class SequentialIds:
    """Deterministic id factory: id-1, id-2, ..."""

    def __init__(self, prefix="id"):
        self.prefix = prefix
        self.count = 0

    def __call__(self):
        self.count += 1
        return f"{self.prefix}-{self.count}"


@pytest.fixture(scope='session')
def app_instance():
    os.environ.setdefault('APP_ENV', 'testing')
    os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')
    from app import create_app
    app = create_app()
    app.config.update(
        TESTING=True,
        SQLALCHEMY_DATABASE_URI='sqlite:///:memory:',
        SQLALCHEMY_TRACK_MODIFICATIONS=False
    )
    return app

@pytest.fixture(scope='function')
def app(app_instance):
    with app_instance.app_context():
        db.drop_all()
        db.create_all()
        yield app_instance
        app_instance.extensions.pop("erpnext_client", None)
        db.session.remove()
        db.drop_all()

@pytest.fixture(scope='function')
def client(app):
    return app.test_client()

@pytest.fixture
def session(app):
    return db.session

@pytest.fixture
def ids():
    return SequentialIds()

@pytest.fixture
def fake_erpnext(app):
    fake = FakeERPNextClient()
    app.extensions["erpnext_client"] = fake
    return fake

@pytest.fixture
def auth_headers(app):
    return {"Authorization": f"Bearer {app.config['SYNC_API_KEY']}"}
