"""
Generic Repository Pattern.
Fornisce le operazioni CRUD base per qualsiasi modello SQLAlchemy.
"""
from typing import Any, Dict, Generic, Optional, Type, TypeVar

from app.extensions import db

# Definisce un tipo generico T che deve essere un modello SQLAlchemy
T = TypeVar("T", bound=db.Model)


class SqlAlchemyRepository(Generic[T]):
    def __init__(self, session, model_cls: Type[T]):
        self.session = session
        self.model_cls = model_cls

    def add(self, entity: T) -> T:
        """Aggiunge l'entità alla sessione."""
        self.session.add(entity)
        return entity

    def get_by_id(self, id: int) -> Optional[T]:
        """Recupera per Primary Key."""
        return self.session.get(self.model_cls, id)

    def update_by_id(self, id: int, values: Dict[str, Any], *criteria: Any) -> int:
        """
        UPDATE atomico su una singola riga, senza lettura preventiva.

        Eventuali criteri aggiuntivi restringono la WHERE (es. paid == False).
        Restituisce il numero di righe modificate (0 se l'id non esiste
        o i criteri non sono soddisfatti).
        """
        return (
            self.session.query(self.model_cls)
            .filter(self.model_cls.id == id, *criteria)
            .update(values, synchronize_session=False)
        )
