import os

# main.py cria as tabelas ao ser importado; aponta para um banco descartável
os.environ.setdefault("DATABASE_URL", "sqlite://")

import bcrypt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from auth import get_current_user
from database import get_db
from main import app
from models import Base, Tenant, User, Service, Employee, Supply, ServiceSupply
from schemas import ServiceOrderCreate
from services.order_service import service_order_service

TEST_PASSWORD = "segredo123"


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    # Como no PostgreSQL, chaves estrangeiras são verificadas
    event.listen(engine, "connect", lambda connection, _: connection.execute("PRAGMA foreign_keys=ON"))
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def user(db):
    tenant = Tenant(name="Lava Jato Teste")
    db.add(tenant)
    db.flush()
    db_user = User(
        tenant_id=tenant.id,
        email="admin@carwash.com",
        name="Admin",
        password_hash=bcrypt.hashpw(TEST_PASSWORD.encode(), bcrypt.gensalt(rounds=4)).decode(),
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


@pytest.fixture
def api(db):
    """Cliente HTTP sem usuário autenticado"""
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def client(api, user):
    """Cliente HTTP com usuário autenticado"""
    app.dependency_overrides[get_current_user] = lambda: user
    return api


def add(db, entity):
    db.add(entity)
    db.commit()
    db.refresh(entity)
    return entity


@pytest.fixture
def make_service(db):
    def _make(name="Lavagem Simples", price=50.0):
        return add(db, Service(name=name, price=price))
    return _make


@pytest.fixture
def make_employee(db):
    def _make(name="Carlos", commission_percent=10.0):
        return add(db, Employee(name=name, role="washer", commission_percent=commission_percent))
    return _make


@pytest.fixture
def make_supply(db):
    def _make(name="Shampoo", current_stock=10.0, minimum_stock=2.0):
        return add(db, Supply(name=name, unit="liter", current_stock=current_stock, minimum_stock=minimum_stock))
    return _make


@pytest.fixture
def link_supply(db):
    def _link(service, supply_id, quantity):
        return add(db, ServiceSupply(
            service_id=service.id,
            service_name=service.name,
            supply_id=supply_id,
            quantity_per_service=quantity,
        ))
    return _link


@pytest.fixture
def make_order(db):
    def _make(services, employee=None, discount=0.0):
        order = ServiceOrderCreate(
            client_name="João",
            vehicle_plate="ABC1D23",
            services=[
                {"service_id": s.id, "service_name": s.name, "price": s.price}
                for s in services
            ],
            employee_id=employee.id if employee else None,
            employee_name=employee.name if employee else None,
            discount=discount,
        )
        return service_order_service.create(db, order)
    return _make
