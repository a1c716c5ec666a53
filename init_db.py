#!/usr/bin/env python3
"""
Script para inicializar o banco de dados com dados de exemplo
Execute este script após a primeira execução do sistema
"""

import logging
import os

from database import SessionLocal, engine
from models import Base, Tenant, User, Service, Supply, ServiceSupply, Employee
from services.auth_service import auth_service
from services.settings_service import settings_service

logger = logging.getLogger("init_db")

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@carwash.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")

SAMPLE_SERVICES = [
    {"name": "Lavagem Simples", "description": "Lavagem externa com secagem", "price": 40.00, "duration_minutes": 30},
    {"name": "Lavagem Completa", "description": "Lavagem externa, aspiração e painel", "price": 70.00, "duration_minutes": 60},
    {"name": "Polimento", "description": "Polimento técnico da pintura", "price": 250.00, "duration_minutes": 180},
    {"name": "Higienização Interna", "description": "Limpeza de bancos e carpetes", "price": 180.00, "duration_minutes": 120},
]

SAMPLE_SUPPLIES = [
    {"name": "Shampoo Automotivo", "unit": "liter", "current_stock": 20, "minimum_stock": 5, "cost_per_unit": 18.0, "category": "lavagem"},
    {"name": "Cera Líquida", "unit": "liter", "current_stock": 8, "minimum_stock": 2, "cost_per_unit": 45.0, "category": "acabamento"},
    {"name": "Pretinho", "unit": "liter", "current_stock": 10, "minimum_stock": 3, "cost_per_unit": 22.0, "category": "acabamento"},
    {"name": "Massa de Polir", "unit": "kilogram", "current_stock": 3, "minimum_stock": 1, "cost_per_unit": 90.0, "category": "polimento"},
]

# serviço -> [(insumo, quantidade por serviço)]
SAMPLE_BILL_OF_MATERIALS = {
    "Lavagem Simples": [("Shampoo Automotivo", 0.2)],
    "Lavagem Completa": [("Shampoo Automotivo", 0.3), ("Pretinho", 0.1)],
    "Polimento": [("Massa de Polir", 0.25), ("Cera Líquida", 0.2)],
}

SAMPLE_EMPLOYEES = [
    {"name": "Carlos Lavador", "role": "washer", "commission_percent": 10, "monthly_goal": 120},
    {"name": "Ana Polidora", "role": "polisher", "commission_percent": 15, "monthly_goal": 40},
    {"name": "Bruno Atendente", "role": "attendant", "commission_percent": 0},
]


def init_database():
    """Inicializar banco de dados com dados de exemplo"""

    # Criar tabelas
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()

    try:
        # Verificar se já existe um usuário
        if db.query(User).first():
            logger.info("Usuário administrador já existe no banco de dados")
            return

        tenant = Tenant(name=os.getenv("BUSINESS_NAME", "Lava Jato Matriz"))
        db.add(tenant)
        db.commit()
        db.refresh(tenant)

        auth_service.create_user(db, tenant, ADMIN_EMAIL, "Administrador", ADMIN_PASSWORD)
        logger.info("Administrador criado: %s (altere a senha após o primeiro login)", ADMIN_EMAIL)

        services = {data["name"]: Service(**data) for data in SAMPLE_SERVICES}
        supplies = {data["name"]: Supply(**data) for data in SAMPLE_SUPPLIES}
        db.add_all(list(services.values()) + list(supplies.values()))
        db.flush()

        for service_name, items in SAMPLE_BILL_OF_MATERIALS.items():
            for supply_name, quantity in items:
                db.add(ServiceSupply(
                    service_id=services[service_name].id,
                    service_name=service_name,
                    supply_id=supplies[supply_name].id,
                    supply_name=supply_name,
                    quantity_per_service=quantity,
                ))

        for employee_data in SAMPLE_EMPLOYEES:
            db.add(Employee(**employee_data))

        db.commit()
        settings_service.get_settings(db)
        logger.info("Serviços, insumos, ficha técnica e funcionários de exemplo criados")

    except Exception:
        logger.exception("Erro ao inicializar banco de dados")
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    logger.info("Inicializando banco de dados do lava jato...")
    init_database()
