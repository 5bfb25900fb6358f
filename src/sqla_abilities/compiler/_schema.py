"""Schema reflection — association and column lookup on mapped entities."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from sqlalchemy import ColumnElement
from sqlalchemy.exc import NoInspectionAvailable
from sqlalchemy.inspection import inspect as sa_inspect
from sqlalchemy.orm import Mapper, RelationshipProperty

from sqla_abilities.exceptions import ConfigurationError

__all__ = ["SQLAlchemySchema", "SchemaReflector", "get_default_schema"]


@runtime_checkable
class SchemaReflector(Protocol):
    """Capability the compiler uses to resolve names against the schema.

    The default implementation reads SQLAlchemy mappers; tests may pass
    any object with the same methods.
    """

    def association_target(self, entity: type, name: str) -> type: ...

    def association_table(self, entity: type, name: str) -> str: ...

    def association_attribute(self, entity: type, name: str) -> Any: ...

    def association_is_collection(self, entity: type, name: str) -> bool: ...

    def table_name(self, entity: type) -> str: ...

    def primary_key(self, entity: type) -> ColumnElement[Any]: ...

    def column(self, entity: type, key: str) -> ColumnElement[Any]: ...


def _entity_name(entity: object) -> str:
    return getattr(entity, "__name__", repr(entity))


class SQLAlchemySchema:
    """``SchemaReflector`` backed by ``sqlalchemy.inspect()`` on mapped classes."""

    def _mapper(self, entity: type, name: str) -> Mapper[Any]:
        try:
            mapper: Mapper[Any] = sa_inspect(entity)
        except NoInspectionAvailable:
            raise ConfigurationError(
                entity=_entity_name(entity),
                association=name,
                message=f"{_entity_name(entity)} is not a mapped class",
            ) from None
        return mapper

    def _relationship(self, entity: type, name: str) -> RelationshipProperty[Any]:
        mapper = self._mapper(entity, name)
        try:
            return mapper.relationships[name]
        except KeyError:
            raise ConfigurationError(entity=_entity_name(entity), association=name) from None

    def association_target(self, entity: type, name: str) -> type:
        target: type = self._relationship(entity, name).mapper.class_
        return target

    def association_table(self, entity: type, name: str) -> str:
        return self.table_name(self.association_target(entity, name))

    def association_attribute(self, entity: type, name: str) -> Any:
        self._relationship(entity, name)
        return getattr(entity, name)

    def association_is_collection(self, entity: type, name: str) -> bool:
        return bool(self._relationship(entity, name).uselist)

    def table_name(self, entity: type) -> str:
        return str(self._mapper(entity, "__table__").local_table.name)  # type: ignore[attr-defined]

    def primary_key(self, entity: type) -> ColumnElement[Any]:
        return self._mapper(entity, "id").primary_key[0]

    def column(self, entity: type, key: str) -> ColumnElement[Any]:
        """Resolve a bare attribute name or a ``table.column`` reference.

        Bare names resolve on *entity*; qualified names resolve on the
        mapped class owning that table, falling back to the table itself.
        """
        mapper = self._mapper(entity, key)
        if "." not in key:
            if key in mapper.columns:
                return mapper.columns[key]
            raise ConfigurationError(entity=_entity_name(entity), association=key)

        table_name, column_name = key.split(".", 1)
        for other in mapper.registry.mappers:
            local = other.local_table
            if getattr(local, "name", None) == table_name and column_name in other.columns:
                return other.columns[column_name]
        table = mapper.local_table.metadata.tables.get(table_name)  # type: ignore[attr-defined]
        if table is not None and column_name in table.c:
            return table.c[column_name]
        raise ConfigurationError(entity=_entity_name(entity), association=key)


_default_schema = SQLAlchemySchema()


def get_default_schema() -> SQLAlchemySchema:
    """Return the shared mapper-backed schema reflector."""
    return _default_schema
