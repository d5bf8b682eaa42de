# campus_sdk/api/v1/routers/collections.py
"""
Generic CRUD endpoints, identical in shape for every registered collection.
Record validation is done by the RecordStore against the collection schema;
this router only authenticates, guards the users collection and shapes
responses.
"""
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status

from campus_sdk.api.v1.deps import get_current_user, get_sdk
from campus_sdk.core.errors import SchemaNotFound
from campus_sdk.core.sdk import SDK
from campus_sdk.schemas.records import BulkUpdateIn
from campus_sdk.services.auth import USERS, public_user

router = APIRouter(prefix="/collections", tags=["collections"])


def _check_collection(name: str, sdk: SDK) -> None:
    if name not in sdk.registry:
        raise SchemaNotFound(f"Unknown collection '{name}'")


def _check_write(name: str, user: dict) -> None:
    """Accounts are created through /auth/register; direct writes to users are admin-only."""
    if name == USERS and user.get("role") != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="FORBIDDEN_ADMIN_ONLY")


def _out(name: str, record: dict) -> dict:
    return public_user(record) if name == USERS else record


def _as_text(value: Any) -> str:
    # query strings only carry text; compare the way the value would be spelled in a URL
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@router.get("/{name}")
async def list_records(
    name: str,
    request: Request,
    user: dict = Depends(get_current_user),
    sdk: SDK = Depends(get_sdk),
):
    """
    List a collection, filtered by query-string equality (e.g. ?courseId=c1&published=true).

    The whole collection is loaded and filtered in memory; there is no
    pagination on the storage side.
    """
    _check_collection(name, sdk)
    filters = dict(request.query_params)
    rows = await sdk.store.list(
        name, lambda r: all(k in r and _as_text(r[k]) == v for k, v in filters.items())
    )
    return {"success": True, "data": {"items": [_out(name, r) for r in rows], "total": len(rows)}}


@router.post("/{name}")
async def create_record(
    name: str,
    body: Dict[str, Any] = Body(...),
    user: dict = Depends(get_current_user),
    sdk: SDK = Depends(get_sdk),
):
    """Create a record; defaults are applied and id/uid/timestamps assigned by the store."""
    _check_collection(name, sdk)
    _check_write(name, user)
    record = await sdk.store.create(name, body)
    return {"success": True, "data": _out(name, record)}


@router.get("/{name}/{record_id}")
async def read_record(
    name: str,
    record_id: str,
    user: dict = Depends(get_current_user),
    sdk: SDK = Depends(get_sdk),
):
    _check_collection(name, sdk)
    record = await sdk.store.read(name, record_id)
    return {"success": True, "data": _out(name, record)}


@router.patch("/{name}/{record_id}")
async def update_record(
    name: str,
    record_id: str,
    body: Dict[str, Any] = Body(...),
    user: dict = Depends(get_current_user),
    sdk: SDK = Depends(get_sdk),
):
    """Shallow-merge the body over the stored record. id, uid and createdAt are never changed."""
    _check_collection(name, sdk)
    _check_write(name, user)
    record = await sdk.store.update(name, record_id, body)
    if name == USERS:
        sdk.sessions.refresh_user(public_user(record))
    return {"success": True, "data": _out(name, record)}


@router.delete("/{name}/{record_id}")
async def delete_record(
    name: str,
    record_id: str,
    user: dict = Depends(get_current_user),
    sdk: SDK = Depends(get_sdk),
):
    _check_collection(name, sdk)
    _check_write(name, user)
    await sdk.store.delete(name, record_id)
    if name == USERS:
        sdk.sessions.invalidate_user(record_id)
    return {"success": True, "data": {"ok": True}}


@router.post("/{name}/bulk-update")
async def bulk_update(
    name: str,
    body: BulkUpdateIn,
    user: dict = Depends(get_current_user),
    sdk: SDK = Depends(get_sdk),
):
    """Apply several partial updates in one commit; nothing is written if any of them fails."""
    _check_collection(name, sdk)
    _check_write(name, user)
    records = await sdk.store.bulk_update(name, body.items)
    if name == USERS:
        for record in records:
            sdk.sessions.refresh_user(public_user(record))
    return {"success": True, "data": {"items": [_out(name, r) for r in records]}}
