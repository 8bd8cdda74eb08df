"""
Pytest fixtures for FestGo backend tests.

Provides test database setup, seeded catalog fixtures, bearer tokens and
the test client.
"""

import pytest
from festgo import create_app
from festgo.extensions import db
from festgo.models import Event, Bar, Product
from festgo.services import auth_service, stock_service
from festgo.services.auth_service import Principal


TEST_TAX_RATE_BPS = 2100


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'JWT_SECRET': 'test-jwt-secret',
        'TAX_RATE_BPS': TEST_TAX_RATE_BPS,
        'CART_STOCK_CHECK': 'event',
        'CATALOG_SCOPE': 'global',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def event(db_session):
    event = Event(name="Fiesta Sabado")
    db_session.add(event)
    db_session.commit()
    return event


@pytest.fixture(scope='function')
def other_event(db_session):
    event = Event(name="Fiesta Domingo")
    db_session.add(event)
    db_session.commit()
    return event


@pytest.fixture(scope='function')
def bar(db_session, event):
    bar = Bar(event_id=event.id, name="Barra Norte", printer="EPSON-1")
    db_session.add(bar)
    db_session.commit()
    return bar


@pytest.fixture(scope='function')
def second_bar(db_session, event):
    bar = Bar(event_id=event.id, name="Barra Sur")
    db_session.add(bar)
    db_session.commit()
    return bar


@pytest.fixture(scope='function')
def other_event_bar(db_session, other_event):
    bar = Bar(event_id=other_event.id, name="Barra Domingo")
    db_session.add(bar)
    db_session.commit()
    return bar


@pytest.fixture(scope='function')
def products(db_session):
    """Products keyed by code: CCC 10.00, CE 5.00, AG 2.50."""
    rows = [
        Product(code="CCC", name="Coca Cola", price_cents=1000, unit="lata", category="bebidas"),
        Product(code="CE", name="Cerveza", price_cents=500, unit="vaso", category="bebidas"),
        Product(code="AG", name="Agua", price_cents=250, unit="botella", category="bebidas"),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return {p.code: p for p in rows}


@pytest.fixture(scope='function')
def stocked_bar(bar, products):
    """bar with 100 CCC, 50 CE and 20 AG assigned."""
    stock_service.assign(products["CCC"].id, bar.id, 100)
    stock_service.assign(products["CE"].id, bar.id, 50)
    stock_service.assign(products["AG"].id, bar.id, 20)
    return bar


@pytest.fixture(scope='function')
def bartender():
    return Principal(id="bt-1", role=auth_service.ROLE_BARTENDER, name="Juan")


@pytest.fixture(scope='function')
def other_bartender():
    return Principal(id="bt-2", role=auth_service.ROLE_BARTENDER, name="Ana")


@pytest.fixture(scope='function')
def admin():
    return Principal(id="adm-1", role=auth_service.ROLE_ADMIN, name="Admin")


def get_auth_token(principal: Principal) -> str:
    """Helper to sign a token the way the auth provider does."""
    return auth_service.issue_token(principal.id, principal.role, name=principal.name)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def bartender_headers(app, bartender):
    return auth_headers(get_auth_token(bartender))


@pytest.fixture(scope='function')
def other_bartender_headers(app, other_bartender):
    return auth_headers(get_auth_token(other_bartender))


@pytest.fixture(scope='function')
def admin_headers(app, admin):
    return auth_headers(get_auth_token(admin))


@pytest.fixture(scope='function')
def bar_user_headers(app):
    token = auth_service.issue_token("bu-1", auth_service.ROLE_BAR_USER, name="Caja")
    return auth_headers(token)
