from sqlalchemy.orm import sessionmaker

import init_db
from models import User, Service, ServiceSupply, Employee, BusinessSettings


def test_init_database_seeds_once(db, monkeypatch):
    engine = db.get_bind()
    monkeypatch.setattr(init_db, "engine", engine)
    monkeypatch.setattr(init_db, "SessionLocal", sessionmaker(autocommit=False, autoflush=False, bind=engine))

    init_db.init_database()
    init_db.init_database()

    assert db.query(User).count() == 1
    assert db.query(Service).count() == len(init_db.SAMPLE_SERVICES)
    assert db.query(ServiceSupply).count() == 5
    assert db.query(Employee).count() == len(init_db.SAMPLE_EMPLOYEES)
    assert db.query(BusinessSettings).count() == 1
