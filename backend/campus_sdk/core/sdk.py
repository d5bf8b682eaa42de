# campus_sdk/core/sdk.py
"""
Assembles the SDK object graph from configuration.
Backend -> registry -> store -> sessions -> auth, built once at startup.
"""
import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

import httpx

from campus_sdk.config import Settings, settings as default_settings
from campus_sdk.models import collection_schemas
from campus_sdk.services.auth import AuthManager
from campus_sdk.services.notifier import ResetNotifier
from .remote import RemoteObjectBackend
from .schema import SchemaRegistry
from .sessions import SessionCache
from .store import RecordStore
from .timeutil import utc_now

logger = logging.getLogger(__name__)


@dataclass
class SDK:
    backend: RemoteObjectBackend
    registry: SchemaRegistry
    store: RecordStore
    sessions: SessionCache
    auth: AuthManager

    async def aclose(self) -> None:
        await self.backend.aclose()


def build_sdk(
    cfg: Optional[Settings] = None,
    *,
    schemas: Optional[Mapping[str, Mapping[str, Any]]] = None,
    notifier: Optional[ResetNotifier] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    clock: Callable[[], dt.datetime] = utc_now,
) -> SDK:
    """
    Build a fully wired SDK.

    Args:
        cfg: Settings (defaults to the process-wide settings)
        schemas: Collection schema map; defaults to the platform collections
            (plus the administration ones when enabled in settings)
        notifier: OTP delivery collaborator
        transport: httpx transport override for the remote API
        clock: Time source for sessions and passcodes
    """
    cfg = cfg or default_settings
    if schemas is None:
        schemas = collection_schemas(include_administration=cfg.enable_extended_collections)

    backend = RemoteObjectBackend(
        cfg.remote_owner,
        cfg.remote_repo,
        cfg.remote_token,
        branch=cfg.remote_branch,
        data_dir=cfg.data_dir,
        api_base=cfg.remote_api_base,
        timeout=cfg.remote_timeout_seconds,
        cache_ttl=cfg.cache_ttl_seconds,
        max_commit_retries=cfg.max_commit_retries,
        max_remote_retries=cfg.max_remote_retries,
        backoff=cfg.retry_backoff_seconds,
        transport=transport,
    )
    registry = SchemaRegistry.from_definitions(schemas)
    store = RecordStore(backend, registry)
    sessions = SessionCache(clock=clock)
    auth = AuthManager(
        store,
        sessions,
        notifier,
        session_ttl=dt.timedelta(minutes=cfg.session_ttl_minutes) if cfg.session_ttl_minutes > 0 else None,
        otp_ttl=dt.timedelta(minutes=cfg.otp_ttl_minutes),
        otp_length=cfg.otp_length,
        otp_max_attempts=cfg.otp_max_attempts,
        clock=clock,
    )
    logger.info("[sdk] %d collections on %s/%s@%s:%s",
                len(registry.names()), cfg.remote_owner, cfg.remote_repo, cfg.remote_branch, cfg.data_dir)
    return SDK(backend=backend, registry=registry, store=store, sessions=sessions, auth=auth)
