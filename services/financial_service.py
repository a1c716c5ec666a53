from collections import defaultdict
from datetime import date
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from models import FinancialTransaction
from services.entity_service import EntityService


class FinancialService(EntityService):
    def __init__(self):
        super().__init__(FinancialTransaction, "Lançamento não encontrado")

    def get_summary(self, db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None) -> Dict[str, Any]:
        """Entradas, saídas, saldo, entradas por forma de pagamento e saldo por categoria"""
        query = db.query(FinancialTransaction)
        if start_date:
            query = query.filter(FinancialTransaction.date >= start_date)
        if end_date:
            query = query.filter(FinancialTransaction.date <= end_date)
        transactions = query.all()

        income = 0.0
        expense = 0.0
        by_payment_method = defaultdict(float)
        by_category = defaultdict(float)

        for transaction in transactions:
            amount = transaction.amount or 0
            if transaction.type == "income":
                income += amount
                by_payment_method[transaction.payment_method or "other"] += amount
                by_category[transaction.category] += amount
            else:
                expense += amount
                by_category[transaction.category] -= amount

        return {
            "income": round(income, 2),
            "expense": round(expense, 2),
            "balance": round(income - expense, 2),
            "income_by_payment_method": {k: round(v, 2) for k, v in by_payment_method.items()},
            "by_category": {k: round(v, 2) for k, v in by_category.items() if v},
            "transactions": len(transactions),
        }

financial_service = FinancialService()
