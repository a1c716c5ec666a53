from typing import Any, Dict, List, Optional, Union

from fastapi import HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session


def parse_sort(model, sort: Optional[str]):
    """
    Converte a ordenação no formato 'campo' ou '-campo' (decrescente)
    em uma cláusula ORDER BY do modelo
    """
    if not sort:
        return None

    descending = sort.startswith("-")
    field = sort.lstrip("-")
    column = model.__table__.columns.get(field)
    if column is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Campo de ordenação inválido: {field}"
        )
    return column.desc() if descending else column.asc()


class EntityService:
    """
    CRUD uniforme (list/get/create/update/delete) sobre um modelo.
    Serviços com regras próprias estendem esta classe.
    """

    def __init__(self, model, not_found_detail: str):
        self.model = model
        self.not_found_detail = not_found_detail

    def list(self, db: Session, sort: Optional[str] = None) -> List[Any]:
        query = db.query(self.model)
        order_by = parse_sort(self.model, sort)
        if order_by is not None:
            query = query.order_by(order_by)
        return query.all()

    def get(self, db: Session, entity_id: str):
        entity = db.query(self.model).filter(self.model.id == entity_id).first()
        if not entity:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=self.not_found_detail
            )
        return entity

    def create(self, db: Session, data: Union[BaseModel, Dict[str, Any]]):
        payload = self._to_dict(data)
        db_entity = self.model(**payload)
        db.add(db_entity)
        db.commit()
        db.refresh(db_entity)
        return db_entity

    def update(self, db: Session, entity_id: str, data: Union[BaseModel, Dict[str, Any]]):
        db_entity = self.get(db, entity_id)
        for field, value in self._update_fields(data).items():
            setattr(db_entity, field, value)
        db.commit()
        db.refresh(db_entity)
        return db_entity

    def delete(self, db: Session, entity_id: str):
        db_entity = self.get(db, entity_id)
        db.delete(db_entity)
        db.commit()

    def _update_fields(self, data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
        """Campos enviados na atualização; null só é aceito em colunas opcionais"""
        update_data = self._to_dict(data, exclude_unset=True)
        columns = self.model.__table__.columns
        for field, value in update_data.items():
            column = columns.get(field)
            if value is None and column is not None and (not column.nullable or column.default is not None):
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail=f"Campo {field} não pode ser nulo"
                )
        return update_data

    @staticmethod
    def _to_dict(data, exclude_unset: bool = False) -> Dict[str, Any]:
        if isinstance(data, BaseModel):
            return data.model_dump(exclude_unset=exclude_unset)
        return dict(data)
