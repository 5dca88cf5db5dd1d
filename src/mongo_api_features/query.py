"""Immutable query specification and the Motor-backed query handle."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from .exceptions import PopulateError

if TYPE_CHECKING:
    from motor.motor_asyncio import AsyncIOMotorCollection

logger = logging.getLogger("mongo_api_features.query")


@dataclass(frozen=True)
class QuerySpec:
    """
    Not-yet-executed query, as a value.

    Attributes:
        filters: Filter documents combined with AND.
        sort: ``(field, 1 | -1)`` pairs in priority order.
        projection: MongoDB projection document; ``None`` returns everything.
        skip: Number of documents to skip.
        limit: Maximum number of documents; ``None`` means unbounded.
        populate: Relation paths to expand, in application order.
    """

    filters: tuple[dict[str, Any], ...] = ()
    sort: tuple[tuple[str, int], ...] = ()
    projection: dict[str, int] | None = None
    skip: int = 0
    limit: int | None = None
    populate: tuple[str, ...] = ()

    def with_filter(self, document: dict[str, Any]) -> QuerySpec:
        """Return a copy with ``document`` ANDed onto the filters."""
        if not document:
            return self
        return replace(self, filters=(*self.filters, document))

    def with_sort(self, sort: list[tuple[str, int]]) -> QuerySpec:
        return replace(self, sort=tuple(sort))

    def with_projection(self, projection: dict[str, int] | None) -> QuerySpec:
        return replace(self, projection=dict(projection) if projection else None)

    def with_pagination(self, skip: int, limit: int | None) -> QuerySpec:
        """Return a copy with skip/limit replaced (not stacked)."""
        return replace(self, skip=skip, limit=limit)

    def with_populate(self, path: str) -> QuerySpec:
        return replace(self, populate=(*self.populate, path))

    def build_match(self) -> dict[str, Any]:
        """Compose the filters into a single MongoDB filter document."""
        if not self.filters:
            return {}
        if len(self.filters) == 1:
            return dict(self.filters[0])
        return {"$and": [dict(f) for f in self.filters]}

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-compatible dictionary (for logging and debugging)."""
        result: dict[str, Any] = {"filter": self.build_match()}
        if self.sort:
            result["sort"] = [list(pair) for pair in self.sort]
        if self.projection:
            result["projection"] = dict(self.projection)
        if self.skip:
            result["skip"] = self.skip
        if self.limit is not None:
            result["limit"] = self.limit
        if self.populate:
            result["populate"] = list(self.populate)
        return result


@dataclass(frozen=True)
class Relation:
    """A reference field resolved against another collection.

    ``collection`` is either a collection object or a name looked up on the
    queried collection's database.
    """

    collection: Any
    foreign_field: str = "_id"


class MongoQuery:
    """Query handle: a collection, its relations, and a ``QuerySpec``.

    Every builder method returns a new handle; the collection and relation
    registry are shared between them.
    """

    def __init__(
        self,
        collection: AsyncIOMotorCollection[Any],
        *,
        relations: Mapping[str, Any] | None = None,
        spec: QuerySpec | None = None,
    ) -> None:
        self._collection = collection
        self._relations: dict[str, Relation] = {
            path: rel if isinstance(rel, Relation) else Relation(rel)
            for path, rel in (relations or {}).items()
        }
        self.spec = spec or QuerySpec()

    @property
    def collection(self) -> AsyncIOMotorCollection[Any]:
        return self._collection

    @property
    def relations(self) -> dict[str, Relation]:
        return dict(self._relations)

    def _derive(self, spec: QuerySpec) -> MongoQuery:
        clone = MongoQuery.__new__(MongoQuery)
        clone._collection = self._collection
        clone._relations = self._relations
        clone.spec = spec
        return clone

    def with_spec(self, spec: QuerySpec) -> MongoQuery:
        return self._derive(spec)

    def where(self, document: dict[str, Any]) -> MongoQuery:
        return self._derive(self.spec.with_filter(document))

    def order_by(self, sort: list[tuple[str, int]]) -> MongoQuery:
        return self._derive(self.spec.with_sort(sort))

    def select(self, projection: dict[str, int] | None) -> MongoQuery:
        return self._derive(self.spec.with_projection(projection))

    def slice(self, skip: int, limit: int | None) -> MongoQuery:
        return self._derive(self.spec.with_pagination(skip, limit))

    def populate(self, path: str) -> MongoQuery:
        return self._derive(self.spec.with_populate(path))

    async def count(self, document: dict[str, Any] | None = None) -> int:
        """Count documents matching ``document``, or the composed filter."""
        match = self.spec.build_match() if document is None else document
        total = await self._collection.count_documents(match)
        logger.debug("Counted %d documents for %s", total, match)
        return int(total)

    async def execute(self) -> list[dict[str, Any]]:
        """Run the query and expand relations. Driver errors propagate."""
        for path in self.spec.populate:
            if path not in self._relations:
                raise PopulateError(path, list(self._relations))

        spec = self.spec
        kwargs: dict[str, Any] = {}
        if spec.sort:
            kwargs["sort"] = list(spec.sort)
        if spec.skip:
            kwargs["skip"] = spec.skip
        if spec.limit is not None:
            kwargs["limit"] = spec.limit
        logger.debug("Executing query %s", spec.to_dict())
        cursor = self._collection.find(spec.build_match(), spec.projection, **kwargs)
        docs = [doc async for doc in cursor]

        for path in spec.populate:
            await self._expand(docs, path, self._relations[path])
        return docs

    def __await__(self) -> Any:
        return self.execute().__await__()

    async def _expand(
        self, docs: list[dict[str, Any]], path: str, relation: Relation
    ) -> None:
        slots = [slot for doc in docs for slot in _slots(doc, path)]
        ids: list[Any] = []
        for container, key in slots:
            value = container[key]
            if isinstance(value, list):
                ids.extend(value)
            elif value is not None:
                ids.append(value)
        if not ids:
            return

        target = relation.collection
        if isinstance(target, str):
            target = self._collection.database.get_collection(target)
        logger.debug("Populating %r (%d references)", path, len(ids))
        cursor = target.find({relation.foreign_field: {"$in": ids}})
        found = {_ref_key(ref[relation.foreign_field]): ref async for ref in cursor}

        for container, key in slots:
            value = container[key]
            if isinstance(value, list):
                container[key] = [
                    found[_ref_key(v)] for v in value if _ref_key(v) in found
                ]
            elif value is not None:
                container[key] = found.get(_ref_key(value))


def _slots(doc: dict[str, Any], path: str) -> Iterator[tuple[dict[str, Any], str]]:
    """Yield ``(container, key)`` for every place a dotted ``path`` holds a value.

    Arrays of sub-documents along the way are descended into, so
    ``"items.product"`` reaches the ``product`` key of each entry in ``items``.
    """
    head, _, rest = path.partition(".")
    if not rest:
        if head in doc:
            yield doc, head
        return
    child = doc.get(head)
    for item in child if isinstance(child, list) else [child]:
        if isinstance(item, dict):
            yield from _slots(item, rest)


def _ref_key(value: Any) -> Any:
    # referenced ids may be ObjectId, str or int; match on string form
    return str(value)
