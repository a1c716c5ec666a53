from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from models import ServiceOrder, FinancialTransaction, EmployeeServiceLog
from utils.date_utils import month_bounds, utc_to_local


class ReportService:
    def get_monthly_report(self, db: Session, month: str = None) -> Dict[str, Any]:
        """Resumo do mês (YYYY-MM) com crescimento em relação ao mês anterior"""
        current_start, current_end = month_bounds(month)
        previous_start, previous_end = month_bounds((current_start - timedelta(days=1)).strftime("%Y-%m"))

        current_metrics = self._get_metrics_for_period(db, current_start, current_end)
        previous_metrics = self._get_metrics_for_period(db, previous_start, previous_end)

        return {
            **current_metrics,
            "topServices": self._get_top_services(db, current_start, current_end),
            "employeeProductivity": self._get_employee_productivity(db, current_start, current_end),
            "revenueByPaymentMethod": self._get_revenue_by_payment_method(db, current_start, current_end),
            "dailyRevenue": self._get_daily_revenue(db, current_start, current_end),
            "growthPercentages": self._calculate_growth_percentages(current_metrics, previous_metrics),
            "period": {
                "current": {"start": current_start.isoformat(), "end": current_end.isoformat()},
                "previous": {"start": previous_start.isoformat(), "end": previous_end.isoformat()}
            }
        }

    def _completed_orders(self, db: Session, start_date: date, end_date: date) -> List[ServiceOrder]:
        # finished_at é gravado em UTC; o período é no fuso do estabelecimento
        orders = db.query(ServiceOrder).filter(
            ServiceOrder.status == "completed",
            ServiceOrder.finished_at >= datetime.combine(start_date - timedelta(days=1), time.min),
            ServiceOrder.finished_at <= datetime.combine(end_date + timedelta(days=1), time.max)
        ).all()
        return [
            order for order in orders
            if start_date <= utc_to_local(order.finished_at).date() <= end_date
        ]

    def _get_metrics_for_period(self, db: Session, start_date: date, end_date: date) -> Dict[str, Any]:
        """Obter métricas para um período específico"""
        transactions = db.query(FinancialTransaction).filter(
            FinancialTransaction.date >= start_date,
            FinancialTransaction.date <= end_date
        ).all()
        revenue = sum(t.amount or 0 for t in transactions if t.type == "income")
        expenses = sum(t.amount or 0 for t in transactions if t.type == "expense")

        orders = self._completed_orders(db, start_date, end_date)
        orders_total = sum(order.total or 0 for order in orders)
        average_ticket = orders_total / len(orders) if orders else 0.0

        commissions = db.query(EmployeeServiceLog).filter(
            EmployeeServiceLog.date >= start_date,
            EmployeeServiceLog.date <= end_date
        ).all()

        return {
            "totalRevenue": round(revenue, 2),
            "totalExpenses": round(expenses, 2),
            "profit": round(revenue - expenses, 2),
            "completedOrders": len(orders),
            "ordersTotal": round(orders_total, 2),
            "averageTicket": round(average_ticket, 2),
            "totalCommissions": round(sum(log.commission_value or 0 for log in commissions), 2),
        }

    def _get_top_services(self, db: Session, start_date: date, end_date: date, limit: int = 5) -> List[Dict[str, Any]]:
        counts = defaultdict(int)
        revenue = defaultdict(float)
        for order in self._completed_orders(db, start_date, end_date):
            for line in order.services or []:
                name = line.get("service_name", "")
                counts[name] += 1
                revenue[name] += line.get("price") or 0

        ranking = sorted(counts, key=lambda name: (-revenue[name], -counts[name], name))[:limit]
        return [
            {"name": name, "count": counts[name], "revenue": round(revenue[name], 2)}
            for name in ranking
        ]

    def _get_employee_productivity(self, db: Session, start_date: date, end_date: date) -> List[Dict[str, Any]]:
        """Serviços, faturamento e comissão por funcionário a partir dos registros de comissão"""
        logs = db.query(EmployeeServiceLog).filter(
            EmployeeServiceLog.date >= start_date,
            EmployeeServiceLog.date <= end_date
        ).all()

        productivity = {}
        for log in logs:
            entry = productivity.setdefault(log.employee_id, {
                "employee_id": log.employee_id,
                "name": log.employee_name,
                "services": 0,
                "revenue": 0.0,
                "commission": 0.0,
            })
            entry["services"] += 1
            entry["revenue"] += log.service_value or 0
            entry["commission"] += log.commission_value or 0

        for entry in productivity.values():
            entry["revenue"] = round(entry["revenue"], 2)
            entry["commission"] = round(entry["commission"], 2)
        return sorted(productivity.values(), key=lambda entry: -entry["revenue"])

    def _get_revenue_by_payment_method(self, db: Session, start_date: date, end_date: date) -> Dict[str, float]:
        totals = defaultdict(float)
        for order in self._completed_orders(db, start_date, end_date):
            totals[order.payment_method or "other"] += order.total or 0
        return {method: round(value, 2) for method, value in totals.items()}

    def _get_daily_revenue(self, db: Session, start_date: date, end_date: date) -> List[Dict[str, Any]]:
        daily = defaultdict(float)
        for transaction in db.query(FinancialTransaction).filter(
            FinancialTransaction.type == "income",
            FinancialTransaction.date >= start_date,
            FinancialTransaction.date <= end_date
        ).all():
            daily[transaction.date] += transaction.amount or 0
        return [
            {"date": day.isoformat(), "value": round(daily[day], 2)}
            for day in sorted(daily)
        ]

    def _calculate_growth_percentages(self, current: Dict[str, Any], previous: Dict[str, Any]) -> Dict[str, float]:
        """Calcular porcentagens de crescimento"""
        def calculate_percentage(current_val, previous_val):
            if previous_val == 0:
                return 100.0 if current_val > 0 else 0.0
            return round(((current_val - previous_val) / previous_val) * 100, 1)

        return {
            "revenueGrowth": calculate_percentage(current["totalRevenue"], previous["totalRevenue"]),
            "ordersGrowth": calculate_percentage(current["completedOrders"], previous["completedOrders"]),
            "averageTicketGrowth": calculate_percentage(current["averageTicket"], previous["averageTicket"])
        }

report_service = ReportService()
