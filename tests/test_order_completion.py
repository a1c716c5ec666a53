from datetime import date

import pytest
from sqlalchemy.exc import SQLAlchemyError

from models import Employee, EmployeeServiceLog, ServiceOrder, ServiceSupply, Supply, SupplyMovement
from services.order_completion_service import (
    build_completion_plan,
    calculate_commission,
    order_completion_service,
    OrderCompletionError,
)
from services.order_service import calculate_order_total, service_order_service

TODAY = date(2026, 10, 19)


def order_with(lines, employee=None, total=100.0):
    return ServiceOrder(
        id="os-1",
        order_number="OS-TEST",
        services=lines,
        employee_id=employee.id if employee else None,
        employee_name=employee.name if employee else None,
        total=total,
    )


def test_commission_is_percent_of_total():
    assert calculate_commission(100.0, 15) == 15.0
    assert calculate_commission(180.0, 10) == 18.0
    assert calculate_commission(99.99, 12.5) == 12.5


def test_plan_has_commission_log_for_employee_with_rate():
    employee = Employee(id="e1", name="Ana", commission_percent=15)
    order = order_with(
        [{"service_id": "s1", "service_name": "Lavagem", "price": 60},
         {"service_id": "s2", "service_name": "Cera", "price": 40}],
        employee=employee,
    )

    plan = build_completion_plan(order, employee, [], [], TODAY)

    assert plan.commission_log["commission_value"] == 15.0
    assert plan.commission_log["service_name"] == "Lavagem, Cera"
    assert plan.commission_log["service_value"] == 100.0
    assert plan.commission_log["date"] == TODAY
    assert plan.commission_log["paid"] is False


@pytest.mark.parametrize("employee", [None, Employee(id="e1", name="Bruno", commission_percent=0)])
def test_plan_without_commission(employee):
    order = order_with([{"service_id": "s1", "service_name": "Lavagem", "price": 100}], employee=employee)

    plan = build_completion_plan(order, employee, [], [], TODAY)

    assert plan.commission_log is None


def test_plan_clamps_stock_at_zero():
    supply = Supply(id="sup", name="Shampoo", current_stock=0.5)
    link = ServiceSupply(service_id="s1", supply_id="sup", quantity_per_service=2.0)
    order = order_with([{"service_id": "s1", "service_name": "Lavagem", "price": 100}])

    plan = build_completion_plan(order, None, [link], [supply], TODAY)

    assert plan.stock_levels == {"sup": 0.0}
    assert plan.movements[0]["quantity"] == 2.0


def test_plan_deducts_same_supply_once_per_service():
    supply = Supply(id="sup", name="Shampoo", current_stock=10.0)
    links = [
        ServiceSupply(service_id="s1", supply_id="sup", quantity_per_service=1.5),
        ServiceSupply(service_id="s2", supply_id="sup", quantity_per_service=2.5),
    ]
    order = order_with([
        {"service_id": "s1", "service_name": "Lavagem", "price": 50},
        {"service_id": "s2", "service_name": "Completa", "price": 50},
    ])

    plan = build_completion_plan(order, None, links, [supply], TODAY)

    assert len(plan.movements) == 2
    assert [m["quantity"] for m in plan.movements] == [1.5, 2.5]
    assert plan.stock_levels["sup"] == 6.0


def test_plan_skips_missing_supply_and_counts_it():
    supply = Supply(id="sup", name="Shampoo", current_stock=10.0)
    links = [
        ServiceSupply(service_id="s1", supply_id="gone", quantity_per_service=1.0),
        ServiceSupply(service_id="s1", supply_id="sup", quantity_per_service=1.0),
    ]
    order = order_with([{"service_id": "s1", "service_name": "Lavagem", "price": 50}])

    plan = build_completion_plan(order, None, links, [supply], TODAY)

    assert plan.skipped_supplies == 1
    assert len(plan.movements) == 1
    assert plan.stock_levels == {"sup": 9.0}


def test_order_total_is_services_minus_discount():
    lines = [{"price": 150.0}, {"price": 50.0}]

    assert calculate_order_total(lines, 20) == 180.0
    assert calculate_order_total([], 0) == 0


def test_complete_order_creates_exactly_one_commission_log(db, make_service, make_employee, make_order):
    employee = make_employee(commission_percent=15)
    order = make_order([make_service(price=100.0)], employee=employee)

    result = order_completion_service.complete_order(db, order.id)

    assert result.order.status == "completed"
    assert result.order.finished_at is not None
    logs = db.query(EmployeeServiceLog).all()
    assert len(logs) == 1
    assert logs[0].commission_value == 15.0
    assert logs[0].service_order_id == order.id
    assert logs[0].order_number == order.order_number


def test_complete_order_scenario_with_discount(db, make_service, make_employee, make_order):
    employee = make_employee(commission_percent=10)
    order = make_order(
        [make_service("Polimento", 150.0), make_service("Lavagem", 50.0)],
        employee=employee,
        discount=20.0,
    )
    assert order.total == 180.0

    result = order_completion_service.complete_order(db, order.id)

    assert result.commission_log.commission_value == 18.0
    assert db.query(EmployeeServiceLog).count() == 1


def test_complete_order_without_rate_creates_no_log(db, make_service, make_employee, make_order):
    no_rate = make_order([make_service("A")], employee=make_employee(commission_percent=0))
    no_employee = make_order([make_service("B")])

    order_completion_service.complete_order(db, no_rate.id)
    order_completion_service.complete_order(db, no_employee.id)

    assert db.query(EmployeeServiceLog).count() == 0


def test_complete_order_deducts_supplies(db, make_service, make_supply, link_supply, make_order, make_employee):
    wash = make_service("Lavagem", 40.0)
    full = make_service("Completa", 70.0)
    shampoo = make_supply(current_stock=1.0)
    link_supply(wash, shampoo.id, 0.25)
    link_supply(full, shampoo.id, 0.5)
    employee = make_employee()
    order = make_order([wash, full], employee=employee)

    result = order_completion_service.complete_order(db, order.id)

    movements = db.query(SupplyMovement).all()
    assert result.movements_created == 2
    assert len(movements) == 2
    assert {m.type for m in movements} == {"out"}
    assert {m.reason for m in movements} == {"service_consumption"}
    assert {m.service_order_id for m in movements} == {order.id}
    assert {m.employee_id for m in movements} == {employee.id}
    db.refresh(shampoo)
    assert shampoo.current_stock == 0.25


def test_complete_order_never_leaves_negative_stock(db, make_service, make_supply, link_supply, make_order):
    wash = make_service()
    shampoo = make_supply(current_stock=0.1)
    link_supply(wash, shampoo.id, 1.0)
    order = make_order([wash])

    order_completion_service.complete_order(db, order.id)

    db.refresh(shampoo)
    assert shampoo.current_stock == 0


def test_complete_order_skips_deleted_supply(db, make_service, link_supply, make_order):
    wash = make_service()
    link_supply(wash, "supply-that-was-deleted", 1.0)
    order = make_order([wash])

    result = order_completion_service.complete_order(db, order.id)

    assert result.skipped_supplies == 1
    assert result.order.status == "completed"
    assert db.query(SupplyMovement).count() == 0


def test_second_completion_has_no_side_effects(db, make_service, make_employee, make_supply, link_supply, make_order):
    wash = make_service()
    shampoo = make_supply(current_stock=10.0)
    link_supply(wash, shampoo.id, 1.0)
    order = make_order([wash], employee=make_employee(commission_percent=10))

    order_completion_service.complete_order(db, order.id)
    second = order_completion_service.complete_order(db, order.id)

    assert second.already_completed is True
    assert second.commission_log is None
    assert db.query(EmployeeServiceLog).count() == 1
    assert db.query(SupplyMovement).count() == 1
    db.refresh(shampoo)
    assert shampoo.current_stock == 9.0


def test_completion_after_status_reverted_does_not_rerun(db, make_service, make_employee, make_order):
    order = make_order([make_service()], employee=make_employee(commission_percent=10))
    order_completion_service.complete_order(db, order.id)
    service_order_service.change_status(db, order.id, "waiting")

    result = order_completion_service.complete_order(db, order.id)

    assert result.already_completed is True
    assert result.order.status == "completed"
    assert db.query(EmployeeServiceLog).count() == 1


def test_failed_completion_rolls_back_everything(db, make_service, make_employee, make_supply, link_supply, make_order, monkeypatch):
    wash = make_service()
    shampoo = make_supply(current_stock=10.0)
    link_supply(wash, shampoo.id, 1.0)
    order = make_order([wash], employee=make_employee(commission_percent=10))
    order_id, supply_id = order.id, shampoo.id

    def failing_commit():
        raise SQLAlchemyError("conexão perdida")

    monkeypatch.setattr(db, "commit", failing_commit)

    with pytest.raises(OrderCompletionError) as excinfo:
        order_completion_service.complete_order(db, order_id)

    monkeypatch.undo()
    assert excinfo.value.step == "commit"
    assert db.query(EmployeeServiceLog).count() == 0
    assert db.query(SupplyMovement).count() == 0
    stored_order = db.query(ServiceOrder).filter(ServiceOrder.id == order_id).one()
    assert stored_order.finished_at is None
    assert stored_order.status == "waiting"
    assert db.query(Supply).filter(Supply.id == supply_id).one().current_stock == 10.0
