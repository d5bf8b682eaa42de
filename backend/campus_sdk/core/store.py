# campus_sdk/core/store.py
"""
Generic CRUD/query engine over named collections.

Every write is expressed as a mutation function handed to
RemoteObjectBackend.mutate, so it is re-applied against fresh data when
another writer got there first. Validation that only depends on the
caller's input happens before any remote call; checks that depend on the
current collection (existence, uniqueness) run inside the mutation.

Queries materialize the whole collection and filter in memory. There is
no index and no pagination; collection size is bounded by what one JSON
file and one process can hold.
"""
from __future__ import annotations

import logging
import secrets
import uuid
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from .errors import AlreadyExists, NotFound, ValidationError
from .remote import RemoteObjectBackend, Records
from .schema import SchemaRegistry
from .timeutil import utc_now_iso

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
Predicate = Union[Callable[[Record], bool], Mapping[str, Any]]

# assigned by the store, never taken from callers
IMMUTABLE_FIELDS = ("id", "uid", "createdAt")
SYSTEM_FIELDS = IMMUTABLE_FIELDS + ("updatedAt",)


def _as_callable(predicate: Optional[Predicate]) -> Callable[[Record], bool]:
    if predicate is None:
        return lambda record: True
    if callable(predicate):
        return predicate
    expected = dict(predicate)
    return lambda record: all(record.get(k) == v for k, v in expected.items())


def _fold(value: Any) -> Any:
    return value.casefold() if isinstance(value, str) else value


def _strip_system(partial: Mapping[str, Any]) -> Record:
    return {k: v for k, v in partial.items() if k not in SYSTEM_FIELDS}


def _find_index(records: Records, record_id: str) -> Optional[int]:
    for i, record in enumerate(records):
        if record.get("id") == record_id:
            return i
    return None


class RecordStore:
    """
    Schema-validated record store.

    Args:
        backend: Persistence adapter for the remote object API
        registry: Collection schemas, fixed for the lifetime of the store
    """

    def __init__(self, backend: RemoteObjectBackend, registry: SchemaRegistry):
        self.backend = backend
        self.registry = registry

    # -------- helpers --------
    def _check_unique(self, collection: str, records: Records, candidate: Record) -> None:
        for f in self.registry.unique_fields(collection):
            value = candidate.get(f)
            if value is None:
                continue
            for other in records:
                if other.get("id") != candidate.get("id") and _fold(other.get(f)) == _fold(value):
                    raise AlreadyExists(f"{collection}: {f} '{value}' is already taken")

    @staticmethod
    def _new_identity(records: Records) -> tuple[str, str]:
        taken_ids = {r.get("id") for r in records}
        taken_uids = {r.get("uid") for r in records}
        record_id = str(uuid.uuid4())
        while record_id in taken_ids:
            record_id = str(uuid.uuid4())
        uid = secrets.token_hex(10)
        while uid in taken_uids:
            uid = secrets.token_hex(10)
        return record_id, uid

    # -------- CRUD --------
    async def create(self, collection: str, partial: Mapping[str, Any]) -> Record:
        """
        Create a record: defaults, validation, identity, timestamps, commit.

        Raises:
            ValidationError: Before any remote call, if required fields are
                missing or a value has the wrong type
            AlreadyExists: A unique field clashes with a stored record
        """
        candidate = self.registry.apply_defaults(collection, _strip_system(partial))
        self.registry.validate(collection, candidate)
        candidate = self.registry.normalize(collection, candidate)

        def _insert(records: Records) -> Record:
            record = dict(candidate)
            self._check_unique(collection, records, record)
            record["id"], record["uid"] = self._new_identity(records)
            now = utc_now_iso()
            record["createdAt"] = now
            record["updatedAt"] = now
            records.append(record)
            return record

        record = await self.backend.mutate(collection, _insert, note=f"create {collection}")
        logger.debug("[store] created %s/%s", collection, record["id"])
        return record

    async def read(self, collection: str, record_id: str) -> Record:
        self.registry.get(collection)
        for record in await self.backend.get_collection(collection):
            if record.get("id") == record_id:
                return record
        raise NotFound(f"{collection}/{record_id} not found")

    async def update(self, collection: str, record_id: str, partial: Mapping[str, Any]) -> Record:
        """
        Shallow-merge `partial` over the stored record, re-validate and
        refresh `updatedAt`. `id`, `uid` and `createdAt` never change.

        Raises:
            NotFound: No record with this id
            ValidationError: The merged record violates the schema
        """
        self.registry.get(collection)
        changes = self.registry.normalize(collection, _strip_system(partial))

        def _merge(records: Records) -> Record:
            index = _find_index(records, record_id)
            if index is None:
                raise NotFound(f"{collection}/{record_id} not found")
            merged = {**records[index], **changes}
            self.registry.validate(collection, merged)
            self._check_unique(collection, records, merged)
            merged["updatedAt"] = utc_now_iso()
            records[index] = merged
            return merged

        return await self.backend.mutate(collection, _merge, note=f"update {collection}/{record_id}")

    async def delete(self, collection: str, record_id: str) -> None:
        self.registry.get(collection)

        def _remove(records: Records) -> None:
            index = _find_index(records, record_id)
            if index is None:
                raise NotFound(f"{collection}/{record_id} not found")
            del records[index]

        await self.backend.mutate(collection, _remove, note=f"delete {collection}/{record_id}")

    async def list(self, collection: str, predicate: Optional[Predicate] = None) -> List[Record]:
        """
        All records of a collection matching `predicate`.

        `predicate` is a callable taking a record, or a mapping of
        field -> value that must all be equal.
        """
        self.registry.get(collection)
        match = _as_callable(predicate)
        return [r for r in await self.backend.get_collection(collection) if match(r)]

    async def find_one(self, collection: str, predicate: Predicate) -> Optional[Record]:
        matches = await self.list(collection, predicate)
        return matches[0] if matches else None

    async def bulk_update(self, collection: str, updates: Iterable[Mapping[str, Any]]) -> List[Record]:
        """
        Apply several partial updates (each carrying its `id`) in one
        commit. Nothing is written unless every update succeeds.

        Raises:
            NotFound: An id is missing from the collection
            ValidationError: An update lacks an id, or a merged record is invalid
        """
        self.registry.get(collection)
        planned = []
        for u in updates:
            if not u.get("id"):
                raise ValidationError(collection, missing=["id"])
            planned.append((u["id"], self.registry.normalize(collection, _strip_system(u))))

        def _merge_all(records: Records) -> List[Record]:
            now = utc_now_iso()
            result = []
            for record_id, changes in planned:
                index = _find_index(records, record_id)
                if index is None:
                    raise NotFound(f"{collection}/{record_id} not found")
                merged = {**records[index], **changes}
                self.registry.validate(collection, merged)
                self._check_unique(collection, records, merged)
                merged["updatedAt"] = now
                records[index] = merged
                result.append(merged)
            return result

        return await self.backend.mutate(collection, _merge_all,
                                         note=f"bulk update {collection} ({len(planned)} records)")
