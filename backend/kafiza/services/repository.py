"""
Kafiza Backend — Resource Repository
======================================

What:  Generic create/read/update/soft-delete, paginated listing, search and
       category filtering over one resource kind.
How:   A `ResourceKind` descriptor names the collection, the response schema,
       the sortable, searchable and filterable fields. `ResourceRepository`
       runs the same algorithm for every kind against a collection handle
       from the ConnectionManager.
Who:   Built per request by the route adapters; tests build it directly.

Operation order:
    1. Validate every client-controlled input (id shape, paging, sort, filters)
    2. Acquire the collection (may raise StoreConnectionError)
    3. Run the query in its own session; commit writes

Store errors never escape raw:
    connection dropped      → cache reset, StoreConnectionError (503)
    other SQLAlchemyError   → logged, InternalError (500) with a generic message
"""

import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple, Type, Union

from pydantic import BaseModel
from sqlalchemy import and_, asc, desc, func, or_, select
from sqlalchemy.exc import DBAPIError, InterfaceError, SQLAlchemyError
from sqlalchemy.types import JSON

from kafiza.database import Base, Collection, ConnectionManager
from kafiza.exceptions import (
    InternalError,
    KafizaError,
    NotFoundError,
    StoreConnectionError,
    ValidationError,
)
from kafiza.models.base import utcnow
from kafiza.schemas.common import DeleteResult, Page, PaginationMeta, PaginationParams

logger = logging.getLogger(__name__)

MIN_LIMIT = 1
MAX_LIMIT = 100

# A search field is a column name, or (column, key) for a key inside a JSON document
SearchField = Union[str, Tuple[str, str]]


@dataclass(frozen=True)
class ResourceKind:
    """
    Everything that differs between two resource kinds.

    Attributes:
        name: Singular label used in messages ("farmer")
        collection: Table name handed to ConnectionManager.get_collection()
        model: Mapped ORM class behind the collection
        response_schema: Pydantic model each stored row is rendered as
        sort_fields: Public sort name → column attribute
        default_sort: (public sort name, order) for list
        search_sort: (public sort name, order) for search
        search_fields: Fields matched by a search query, combined with OR
        category_filters: Public filter name → (column attribute, allowed values)
    """

    name: str
    collection: str
    model: Type[Base]
    response_schema: Type[BaseModel]
    sort_fields: Dict[str, str]
    search_fields: Tuple[SearchField, ...]
    default_sort: Tuple[str, str] = ("createdAt", "desc")
    search_sort: Tuple[str, str] = ("createdAt", "desc")
    category_filters: Dict[str, Tuple[str, Tuple[str, ...]]] = field(default_factory=dict)

    @property
    def label(self) -> str:
        return self.name.capitalize()


def escape_like(term: str) -> str:
    """Escapes LIKE wildcards so user input only ever matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ResourceRepository:
    """
    CRUD and query operations for one resource kind.

    Args:
        kind: Descriptor of the resource kind
        connections: Source of collection handles
    """

    def __init__(self, kind: ResourceKind, connections: ConnectionManager):
        self.kind = kind
        self.connections = connections

    # ── Input validation ──────────────────────────────────────────────────

    def _parse_id(self, resource_id: Any) -> uuid.UUID:
        if isinstance(resource_id, uuid.UUID):
            return resource_id
        try:
            return uuid.UUID(str(resource_id).strip())
        except (ValueError, AttributeError):
            raise ValidationError(
                f"Invalid {self.kind.name} ID",
                field="id",
                context={"value": str(resource_id)[:64]},
            )

    def _validate_pagination(self, pagination: PaginationParams) -> None:
        if pagination.page < 1:
            raise ValidationError("Invalid page number", field="page")
        if not MIN_LIMIT <= pagination.limit <= MAX_LIMIT:
            raise ValidationError(
                f"Invalid limit (must be between {MIN_LIMIT} and {MAX_LIMIT})",
                field="limit",
            )

    def _order_by(self, pagination: PaginationParams, default: Tuple[str, str]):
        sort_by = pagination.sort_by or default[0]
        sort_order = (pagination.sort_order or default[1]).lower()

        column_name = self.kind.sort_fields.get(sort_by)
        if column_name is None and sort_by in self.kind.sort_fields.values():
            column_name = sort_by
        if column_name is None:
            raise ValidationError(
                f"Invalid sort field '{sort_by}'",
                field="sortBy",
                context={"allowed": sorted(self.kind.sort_fields)},
            )
        if sort_order not in ("asc", "desc"):
            raise ValidationError(
                f"Invalid sort order '{pagination.sort_order}' (must be asc or desc)",
                field="sortOrder",
            )

        column = getattr(self.kind.model, column_name)
        direction = asc if sort_order == "asc" else desc
        # id as tiebreaker keeps page boundaries stable across equal sort keys
        return [direction(column).nulls_last(), asc(self.kind.model.id)]

    def _list_contains(self, column, pattern: str, dialect: str):
        """EXISTS over the elements of a JSON string list, matched one by one."""
        if dialect == "postgresql":
            elements = func.json_array_elements_text(column).table_valued("value")
        else:
            elements = func.json_each(column).table_valued("value")
        return (
            select(1)
            .select_from(elements)
            .where(elements.c.value.ilike(pattern, escape="\\"))
            .correlate(self.kind.model)
            .exists()
        )

    def _search_condition(self, query: str, dialect: str):
        model = self.kind.model
        pattern = f"%{escape_like(query)}%"
        clauses = []
        for search_field in self.kind.search_fields:
            if isinstance(search_field, tuple):
                column_name, key = search_field
                expr = getattr(model, column_name)[key].as_string()
            else:
                expr = getattr(model, search_field)
                if isinstance(expr.type, JSON):
                    clauses.append(self._list_contains(expr, pattern, dialect))
                    continue
            clauses.append(expr.ilike(pattern, escape="\\"))
        return or_(*clauses)

    # ── Store access ──────────────────────────────────────────────────────

    @asynccontextmanager
    async def _store(self, operation: str):
        """Yields the collection and translates store failures."""
        try:
            collection: Collection = await self.connections.get_collection(self.kind.collection)
            yield collection
        except KafizaError:
            raise
        except DBAPIError as e:
            if e.connection_invalidated or isinstance(e, InterfaceError):
                logger.warning(
                    "Store connection lost during %s on %s: %s",
                    operation, self.kind.collection, str(e),
                )
                await self.connections.reset()
                raise StoreConnectionError(
                    context={"operation": operation, "error_type": type(e).__name__},
                ) from e
            logger.error(
                "Store error during %s on %s: %s",
                operation, self.kind.collection, str(e), exc_info=True,
            )
            raise InternalError(context={"operation": operation}) from e
        except SQLAlchemyError as e:
            logger.error(
                "Store error during %s on %s: %s",
                operation, self.kind.collection, str(e), exc_info=True,
            )
            raise InternalError(context={"operation": operation}) from e

    def _render(self, row: Base) -> BaseModel:
        return self.kind.response_schema.model_validate(row)

    @staticmethod
    def _next_updated_at(previous: Optional[datetime]) -> datetime:
        now = utcnow()
        if previous is not None and now <= previous:
            # Clock did not advance past the last mutation
            now = previous + timedelta(microseconds=1)
        return now

    # ── Operations ────────────────────────────────────────────────────────

    async def create(self, data: BaseModel) -> BaseModel:
        """
        Inserts a new active record from a validated create schema.

        Returns:
            The stored record, id and timestamps included
        """
        values = data.model_dump(mode="json")
        now = utcnow()
        async with self._store("create") as collection:
            async with collection.session() as session:
                row = collection.model(
                    **values,
                    created_at=now,
                    updated_at=now,
                    is_active=True,
                    total_orders=0,
                )
                session.add(row)
                await session.commit()
                await session.refresh(row)

        logger.info("%s created: %s", self.kind.label, row.id)
        return self._render(row)

    async def get_by_id(self, resource_id: Any) -> BaseModel:
        """
        Raises:
            ValidationError: The id is not a UUID
            NotFoundError: No active record has this id
        """
        record_id = self._parse_id(resource_id)
        async with self._store("get") as collection:
            async with collection.session() as session:
                row = await self._load_active(session, collection, record_id)
        return self._render(row)

    async def _load_active(self, session, collection: Collection, record_id: uuid.UUID):
        model = collection.model
        result = await session.execute(
            select(model).where(and_(model.id == record_id, model.is_active.is_(True)))
        )
        row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError(resource=self.kind.name, resource_id=str(record_id))
        return row

    async def list(self, pagination: Optional[PaginationParams] = None) -> Page:
        """Returns one page of active records."""
        pagination = pagination or PaginationParams()
        self._validate_pagination(pagination)
        order_by = self._order_by(pagination, self.kind.default_sort)
        return await self._page("list", order_by, pagination)

    async def search(self, query: Optional[str], pagination: Optional[PaginationParams] = None) -> Page:
        """
        Case-insensitive substring search over the kind's search fields.

        A blank query is a plain list.
        """
        pagination = pagination or PaginationParams()
        if not query or not query.strip():
            return await self.list(pagination)

        self._validate_pagination(pagination)
        order_by = self._order_by(pagination, self.kind.search_sort)
        return await self._page("search", order_by, pagination, query=query.strip())

    async def _page(
        self,
        operation: str,
        order_by,
        pagination: PaginationParams,
        query: Optional[str] = None,
    ) -> Page:
        model = self.kind.model
        offset = (pagination.page - 1) * pagination.limit

        async with self._store(operation) as collection:
            where = model.is_active.is_(True)
            if query:
                where = and_(where, self._search_condition(query, collection.dialect))
            async with collection.session() as session:
                total = (
                    await session.execute(select(func.count()).select_from(model).where(where))
                ).scalar_one()
                rows = (
                    await session.execute(
                        select(model)
                        .where(where)
                        .order_by(*order_by)
                        .offset(offset)
                        .limit(pagination.limit)
                    )
                ).scalars().all()

        return Page(
            items=[self._render(row) for row in rows],
            pagination=PaginationMeta.build(pagination.page, pagination.limit, total),
        )

    async def filter_by(self, attribute: str, value: str) -> List[BaseModel]:
        """
        Every active record whose category attribute equals `value`, newest first.

        Raises:
            ValidationError: Unknown attribute or value outside its allowed set
        """
        category = self.kind.category_filters.get(attribute)
        if category is None:
            raise ValidationError(
                f"Cannot filter {self.kind.collection} by '{attribute}'",
                field=attribute,
            )
        column_name, allowed = category
        value = (value or "").strip()
        if value not in allowed:
            raise ValidationError(
                f"Invalid {attribute}. Must be one of: {', '.join(allowed)}",
                field=attribute,
                context={"allowed": list(allowed)},
            )

        model = self.kind.model
        async with self._store("filter") as collection:
            async with collection.session() as session:
                rows = (
                    await session.execute(
                        select(model)
                        .where(and_(model.is_active.is_(True), getattr(model, column_name) == value))
                        .order_by(desc(model.created_at), asc(model.id))
                    )
                ).scalars().all()
        return [self._render(row) for row in rows]

    async def update(self, resource_id: Any, partial: BaseModel) -> BaseModel:
        """
        Applies the fields a client sent to an active record.

        Top-level fields are replaced. Nested documents are merged one level
        deep, so `{"contact": {"phone": "..."}}` keeps the stored email.

        Raises:
            ValidationError: Bad id, or nothing to update
            NotFoundError: No active record has this id
        """
        record_id = self._parse_id(resource_id)
        changes = partial.model_dump(mode="json", exclude_unset=True, exclude_none=True)
        changes = {k: v for k, v in changes.items() if v != {}}
        if not changes:
            raise ValidationError("No valid fields provided for update")

        async with self._store("update") as collection:
            async with collection.session() as session:
                row = await self._load_active(session, collection, record_id)
                for name, value in changes.items():
                    current = getattr(row, name)
                    if isinstance(value, dict) and isinstance(current, dict):
                        value = {**current, **value}
                    setattr(row, name, value)
                row.updated_at = self._next_updated_at(row.updated_at)
                await session.commit()
                await session.refresh(row)

        logger.info("%s updated: %s (%s)", self.kind.label, record_id, ", ".join(sorted(changes)))
        return self._render(row)

    async def delete(self, resource_id: Any) -> DeleteResult:
        """
        Soft delete: marks the record inactive and keeps the row.

        Deleting an already inactive record succeeds again.

        Raises:
            ValidationError: Bad id
            NotFoundError: No row with this id was ever stored
        """
        record_id = self._parse_id(resource_id)
        async with self._store("delete") as collection:
            async with collection.session() as session:
                row = await session.get(collection.model, record_id)
                if row is None:
                    raise NotFoundError(resource=self.kind.name, resource_id=str(record_id))
                row.is_active = False
                row.updated_at = self._next_updated_at(row.updated_at)
                await session.commit()

        logger.info("%s deleted (soft): %s", self.kind.label, record_id)
        return DeleteResult(deleted=True)
