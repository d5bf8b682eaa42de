# campus_sdk/core/remote.py
"""
Remote object backend built on the GitHub repository contents API.

Each collection is one JSON file (`{data_dir}/{name}.json`) holding the
full record array. The file's blob sha is the version marker: every
commit names the sha it was computed from, and the API rejects the
commit if the file moved on in the meantime. That compare-and-swap plus
the read-modify-write retry loop in `mutate` is the only concurrency
control there is; the API offers no locks.

Reads go through a short TTL cache so page loads don't burn the API's
rate limit. Writes always commit against a known sha, so a stale cache
costs at most one extra round trip.
"""
from __future__ import annotations

import asyncio
import base64
import copy
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, TypeVar

import httpx

from .errors import Conflict, RemoteUnavailable, SDKError

logger = logging.getLogger(__name__)

T = TypeVar("T")
Records = List[Dict[str, Any]]
Mutation = Callable[[Records], T]

RETRYABLE_STATUS = {429, 500, 502, 503, 504}
VERSION_MISMATCH_STATUS = {409, 422}
MAX_RETRY_AFTER_SECONDS = 30.0


@dataclass
class Snapshot:
    """One materialized version of a collection file."""
    records: Records
    sha: Optional[str]  # None while the file does not exist yet
    fetched_at: float


class VersionMismatch(Exception):
    """The remote file changed since it was read (internal, triggers a retry)."""


class RemoteObjectBackend:
    """
    Materializes and commits collections on a GitHub repository.

    Args:
        owner: Repository owner (user or organisation)
        repo: Repository name
        token: Personal access token with contents read/write scope
        branch: Branch that holds the data files
        data_dir: Directory inside the repository for collection files
        api_base: API root (override for GitHub Enterprise)
        timeout: Per-request transport timeout in seconds
        cache_ttl: Seconds a fetched collection is served from cache (0 disables)
        max_commit_retries: Re-fetch/re-apply attempts after a version mismatch
        max_remote_retries: Attempts for transient transport failures
        backoff: Base delay in seconds, doubled per attempt
        transport: Optional httpx transport (tests inject a MockTransport)
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        token: Optional[str] = None,
        *,
        branch: str = "main",
        data_dir: str = "data",
        api_base: str = "https://api.github.com",
        timeout: float = 30.0,
        cache_ttl: float = 30.0,
        max_commit_retries: int = 5,
        max_remote_retries: int = 3,
        backoff: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.data_dir = data_dir.strip("/")
        self.cache_ttl = cache_ttl
        self.max_commit_retries = max_commit_retries
        self.max_remote_retries = max_remote_retries
        self.backoff = backoff

        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=api_base.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self._cache: Dict[str, Snapshot] = {}

    # -------- paths --------
    def path_for(self, name: str) -> str:
        """Repository path of a collection file."""
        return f"{self.data_dir}/{name}.json" if self.data_dir else f"{name}.json"

    def _contents_url(self, name: str) -> str:
        return f"/repos/{self.owner}/{self.repo}/contents/{self.path_for(name)}"

    # -------- transport --------
    def _delay(self, attempt: int) -> float:
        return self.backoff * (2 ** attempt)

    @staticmethod
    def _is_rate_limited(resp: httpx.Response) -> bool:
        return resp.status_code == 403 and resp.headers.get("x-ratelimit-remaining") == "0"

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """
        Send one API request, retrying transport errors, 5xx and rate
        limiting with exponential backoff.

        Returns the response for any other status (including 404/409/422,
        which callers interpret).

        Raises:
            RemoteUnavailable: Retries exhausted, or a non-retryable failure
                such as bad credentials
        """
        last_error = "unknown error"
        for attempt in range(self.max_remote_retries + 1):
            try:
                resp = await self._client.request(method, url, **kwargs)
            except httpx.TransportError as exc:
                last_error = f"{type(exc).__name__}: {exc}"
                delay = self._delay(attempt)
            else:
                if resp.status_code < 400 or resp.status_code in (404, *VERSION_MISMATCH_STATUS):
                    return resp
                if resp.status_code not in RETRYABLE_STATUS and not self._is_rate_limited(resp):
                    raise RemoteUnavailable(
                        f"{method} {url} failed with HTTP {resp.status_code}: {_message(resp)}"
                    )
                last_error = f"HTTP {resp.status_code}: {_message(resp)}"
                delay = self._delay(attempt)
                retry_after = resp.headers.get("retry-after")
                if retry_after and retry_after.isdigit():
                    delay = min(float(retry_after), MAX_RETRY_AFTER_SECONDS)

            if attempt < self.max_remote_retries:
                logger.warning("[remote] %s %s -> %s; retry %d/%d in %.2fs",
                               method, url, last_error, attempt + 1, self.max_remote_retries, delay)
                await asyncio.sleep(delay)

        logger.error("[remote] %s %s gave up after %d attempts: %s",
                     method, url, self.max_remote_retries + 1, last_error)
        raise RemoteUnavailable(f"{method} {url} unavailable: {last_error}")

    # -------- read --------
    async def _fetch(self, name: str) -> Snapshot:
        """Fetch the current version of a collection, bypassing the cache."""
        resp = await self._request("GET", self._contents_url(name), params={"ref": self.branch})
        if resp.status_code == 404:
            snapshot = Snapshot(records=[], sha=None, fetched_at=time.monotonic())
            self._cache[name] = snapshot
            return snapshot
        if resp.status_code >= 400:
            raise RemoteUnavailable(f"Unexpected HTTP {resp.status_code} reading {name}")

        body = resp.json()
        sha = body["sha"]
        if body.get("encoding") == "base64" and body.get("content"):
            raw = base64.b64decode(body["content"])
        elif body.get("size", 0) == 0:
            raw = b""
        else:
            # files over 1 MB come back without inline content
            raw = await self._fetch_blob(sha)

        snapshot = Snapshot(records=_decode(name, raw), sha=sha, fetched_at=time.monotonic())
        self._cache[name] = snapshot
        return snapshot

    async def _fetch_blob(self, sha: str) -> bytes:
        resp = await self._request("GET", f"/repos/{self.owner}/{self.repo}/git/blobs/{sha}")
        if resp.status_code >= 400:
            raise RemoteUnavailable(f"Unexpected HTTP {resp.status_code} reading blob {sha}")
        return base64.b64decode(resp.json()["content"])

    async def _snapshot(self, name: str) -> Snapshot:
        cached = self._cache.get(name)
        if cached is not None and time.monotonic() - cached.fetched_at < self.cache_ttl:
            return cached
        return await self._fetch(name)

    async def get_collection(self, name: str) -> Records:
        """
        Return the current record array of a collection.

        Served from cache while younger than `cache_ttl`; the result is a
        deep copy the caller may mutate freely.
        """
        snapshot = await self._snapshot(name)
        return copy.deepcopy(snapshot.records)

    def invalidate(self, name: Optional[str] = None) -> None:
        """Drop one cached collection, or all of them."""
        if name is None:
            self._cache.clear()
        else:
            self._cache.pop(name, None)

    # -------- write --------
    async def _commit(self, name: str, records: Records, note: str, sha: Optional[str]) -> str:
        """
        Commit a full replacement of the collection file against `sha`.

        Raises:
            VersionMismatch: The file no longer has version `sha`
        """
        payload = {
            "message": note,
            "content": base64.b64encode(_encode(records)).decode("ascii"),
            "branch": self.branch,
        }
        if sha is not None:
            payload["sha"] = sha
        resp = await self._request("PUT", self._contents_url(name), json=payload)
        if resp.status_code in VERSION_MISMATCH_STATUS:
            raise VersionMismatch(_message(resp))
        if resp.status_code >= 400:
            raise RemoteUnavailable(f"Unexpected HTTP {resp.status_code} writing {name}")

        new_sha = resp.json()["content"]["sha"]
        self._cache[name] = Snapshot(records=copy.deepcopy(records), sha=new_sha,
                                     fetched_at=time.monotonic())
        logger.info("[remote] committed %s (%d records) sha=%s: %s", name, len(records), new_sha, note)
        return new_sha

    async def mutate(self, name: str, mutation: Mutation[T], note: str) -> T:
        """
        Read-modify-write a collection with optimistic concurrency.

        `mutation` receives a private copy of the current records, changes
        it in place and returns a result. It is re-applied to freshly
        fetched records after every version mismatch, so it must depend
        only on its argument. An SDKError raised while working on a cached
        snapshot is retried once on freshly fetched records; any other
        exception raised by the mutation aborts the write and propagates
        unchanged.

        Raises:
            Conflict: Still mismatched after `max_commit_retries` retries
            RemoteUnavailable: Transport failure after internal retries
        """
        cached = self._cache.get(name)
        snapshot = await self._snapshot(name)
        from_cache = snapshot is cached
        for attempt in range(self.max_commit_retries + 1):
            records = copy.deepcopy(snapshot.records)
            try:
                result = mutation(records)
            except SDKError:
                if not from_cache:
                    raise
                # the cached copy may predate another writer's commit
                logger.info("[remote] mutation on cached %s failed; retrying on fresh data", name)
                snapshot = await self._fetch(name)
                records = copy.deepcopy(snapshot.records)
                result = mutation(records)
            from_cache = False
            try:
                await self._commit(name, records, note, snapshot.sha)
                return result
            except VersionMismatch as exc:
                self.invalidate(name)
                if attempt == self.max_commit_retries:
                    break
                delay = self._delay(attempt)
                logger.warning("[remote] version mismatch on %s (%s); retry %d/%d in %.2fs",
                               name, exc, attempt + 1, self.max_commit_retries, delay)
                await asyncio.sleep(delay)
                snapshot = await self._fetch(name)

        logger.error("[remote] conflict on %s not resolved after %d retries: %s",
                     name, self.max_commit_retries, note)
        raise Conflict(f"Concurrent writes to '{name}' kept colliding; retry the operation")

    async def put_collection(self, name: str, records: Records, note: str) -> None:
        """Replace the whole collection in one atomic commit."""
        replacement = copy.deepcopy(records)

        def _replace(current: Records) -> None:
            current[:] = copy.deepcopy(replacement)

        await self.mutate(name, _replace, note)

    async def aclose(self) -> None:
        await self._client.aclose()


def _encode(records: Records) -> bytes:
    return json.dumps(records, indent=2, ensure_ascii=False, default=str).encode("utf-8")


def _decode(name: str, raw: bytes) -> Records:
    if not raw.strip():
        return []
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise RemoteUnavailable(f"Collection '{name}' is not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise RemoteUnavailable(f"Collection '{name}' must hold a JSON array")
    return data


def _message(resp: httpx.Response) -> str:
    try:
        return str(resp.json().get("message", ""))
    except (ValueError, AttributeError):
        return resp.text[:200]
