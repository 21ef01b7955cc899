from sqlalchemy import and_, delete, select, update

from lernova.database import session_scope
from lernova.models.schema.db_config import Databases


def _model(db: str):
    return getattr(Databases, db)


def _conditions(model, filters: dict) -> list:
    conditions = []
    for field, value in filters.items():
        if not hasattr(model, field):
            raise ValueError(f"{model.__name__} has no column '{field}'")
        column = getattr(model, field)
        if value is None:
            conditions.append(column.is_(None))
        else:
            conditions.append(column == value)
    return conditions


def _delete_records(db: str, **kwargs) -> int:
    model = _model(db)
    with session_scope() as session:
        result = session.execute(delete(model).where(*_conditions(model, kwargs)))
        return result.rowcount


def _add_record(db: str, **kwargs):
    model = _model(db)

    instance = model(**kwargs)

    with session_scope() as session:
        session.add(instance)
        session.flush()
    return instance


def _select_one_or_none(db: str, **kwargs):
    model = _model(db)

    with session_scope() as session:
        return session.execute(
            select(model).where(and_(*_conditions(model, kwargs)))
        ).scalar_one_or_none()


def _update_records(db: str, *, values: dict, **filters) -> int:
    model = _model(db)

    with session_scope() as session:
        result = session.execute(
            update(model).where(*_conditions(model, filters)).values(**values)
        )
        return result.rowcount
