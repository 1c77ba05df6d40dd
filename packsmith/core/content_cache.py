"""Content-addressed, verified download cache.

Storage layout: {base_path}/{algorithm}/{digest[0:2]}/{digest}

An artifact only becomes addressable after every byte has been hashed and
matched against the descriptor's declared digests. Downloads land in
``{base_path}/.tmp`` first and are promoted with an atomic ``os.replace``;
a failed verification deletes the temporary file immediately. A verified
artifact is stored under the first declared constraint it matched.

Concurrent ``resolve()`` calls for the same primary digest share a single
in-flight download. Calls for different digests run independently.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from concurrent.futures import Future
from pathlib import Path

import httpx
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from packsmith.core.hasher import file_digest, new_hashers
from packsmith.errors import FilesystemError, HashMismatchError, NetworkError
from packsmith.models.filedef import CacheEntry, FileDef

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({408, 425, 429})
TEMP_DIR_NAME = ".tmp"


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, NetworkError) and exc.retryable


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Download attempt %d failed (%s); retrying",
        retry_state.attempt_number,
        exc,
    )


class ContentCache:
    """Digest-keyed store that downloads on demand and verifies by hash.

    Parameters
    ----------
    base_path:
        Root directory of the store.
    client:
        ``httpx.Client`` used for downloads. One is created (and owned)
        when omitted.
    max_attempts:
        Total attempts per download for transient network failures.
    backoff_seconds:
        Multiplier for the exponential wait between attempts.
    timeout_seconds:
        Per-request timeout.
    """

    def __init__(
        self,
        base_path: Path,
        *,
        client: httpx.Client | None = None,
        max_attempts: int = 3,
        backoff_seconds: float = 0.5,
        timeout_seconds: float = 60.0,
    ) -> None:
        self._base = Path(base_path)
        self._tmp = self._base / TEMP_DIR_NAME
        try:
            self._tmp.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(self._tmp, f"cannot create cache directory: {exc}") from exc

        self._owns_client = client is None
        self._client = client or httpx.Client(follow_redirects=True)
        self._max_attempts = max_attempts
        self._backoff = backoff_seconds
        self._timeout = httpx.Timeout(timeout_seconds)

        self._lock = threading.Lock()
        self._inflight: dict[str, Future[Path]] = {}

    @property
    def base_path(self) -> Path:
        return self._base

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> ContentCache:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Addressing
    # ------------------------------------------------------------------

    def path_for(self, algorithm: str, digest: str) -> Path:
        """Storage path for a digest. Layout: {base}/{algo}/{d[0:2]}/{d}"""
        digest = digest.lower()
        return self._base / algorithm.lower() / digest[:2] / digest

    def contains(self, algorithm: str, digest: str) -> bool:
        return self.path_for(algorithm, digest).is_file()

    def lookup(self, descriptor: FileDef) -> Path | None:
        """Return a verified stored path for *descriptor*, without network.

        Every declared constraint is tried in order, since an artifact is
        stored under whichever constraint it matched. A stored file whose
        bytes no longer match its key is removed so the next download can
        replace it.
        """
        for constraint in descriptor.hashes:
            for digest in constraint.hashes:
                path = self.path_for(constraint.id, digest)
                if not path.is_file():
                    continue
                try:
                    actual = file_digest(path, constraint.id)
                except OSError as exc:
                    raise FilesystemError(path, f"cannot read cached artifact: {exc}") from exc
                if actual == digest:
                    return path
                logger.warning(
                    "Cached artifact %s is corrupt (got %s); discarding", path, actual
                )
                self._discard(path)
        return None

    def entries(self) -> list[CacheEntry]:
        """List every artifact currently held in the store."""
        found: list[CacheEntry] = []
        for algo_dir in sorted(self._base.iterdir()):
            if not algo_dir.is_dir() or algo_dir.name == TEMP_DIR_NAME:
                continue
            for path in sorted(algo_dir.glob("*/*")):
                if path.is_file():
                    found.append(
                        CacheEntry(
                            algorithm=algo_dir.name,
                            digest=path.name,
                            path=path,
                            size_bytes=path.stat().st_size,
                        )
                    )
        return found

    # ------------------------------------------------------------------
    # Resolve
    # ------------------------------------------------------------------

    def resolve(self, descriptor: FileDef) -> Path:
        """Return a verified local path for *descriptor*.

        Raises ``NetworkError``, ``HashMismatchError`` or ``FilesystemError``.
        """
        hit = self.lookup(descriptor)
        if hit is not None:
            logger.debug("Cache hit for %s -> %s", descriptor.url, hit)
            return hit

        key = descriptor.cache_key
        with self._lock:
            future = self._inflight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._inflight[key] = future

        if not owner:
            logger.debug("Waiting on in-flight download of %s", descriptor.url)
            return future.result()

        try:
            # Another owner may have finished between lookup and lock.
            path = self.lookup(descriptor) or self._fetch_and_store(descriptor)
        except BaseException as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(path)
            return path
        finally:
            with self._lock:
                self._inflight.pop(key, None)

    # ------------------------------------------------------------------
    # Fetch, verify, promote
    # ------------------------------------------------------------------

    def _fetch_and_store(self, descriptor: FileDef) -> Path:
        algorithms = list(dict.fromkeys(c.id for c in descriptor.hashes))
        retrying = Retrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._backoff, max=30),
            retry=retry_if_exception(_is_retryable),
            before_sleep=_log_retry,
            reraise=True,
        )
        tmp_path, digests = retrying(self._download, descriptor.url, algorithms)

        try:
            matched = next(
                (c for c in descriptor.hashes if digests[c.id] in c.hashes), None
            )
            if matched is None:
                raise HashMismatchError(
                    descriptor.url,
                    expected={c.id: list(c.hashes) for c in descriptor.hashes},
                    actual=digests,
                )
            return self._promote(tmp_path, matched.id, digests[matched.id])
        finally:
            self._discard(tmp_path)

    def _download(self, url: str, algorithms: list[str]) -> tuple[Path, dict[str, str]]:
        """Stream *url* into a temp file, hashing on the fly. One attempt."""
        try:
            fd, name = tempfile.mkstemp(dir=self._tmp, suffix=".part")
        except OSError as exc:
            raise FilesystemError(self._tmp, f"cannot create temporary file: {exc}") from exc
        tmp_path = Path(name)
        hashers = new_hashers(algorithms)

        logger.info("Fetching %s", url)
        try:
            with os.fdopen(fd, "wb") as fh:
                with self._client.stream("GET", url, timeout=self._timeout) as response:
                    if response.status_code >= 400:
                        raise NetworkError(
                            url,
                            f"HTTP {response.status_code}",
                            retryable=(
                                response.status_code in RETRYABLE_STATUS_CODES
                                or response.status_code >= 500
                            ),
                        )
                    for chunk in response.iter_bytes():
                        fh.write(chunk)
                        for hasher in hashers.values():
                            hasher.update(chunk)
        except NetworkError:
            self._discard(tmp_path)
            raise
        except httpx.HTTPError as exc:
            self._discard(tmp_path)
            raise NetworkError(
                url, f"{type(exc).__name__}: {exc}",
                retryable=isinstance(exc, httpx.TransportError),
            ) from exc
        except OSError as exc:
            self._discard(tmp_path)
            raise FilesystemError(tmp_path, f"cannot write download: {exc}") from exc

        return tmp_path, {algo: h.hexdigest() for algo, h in hashers.items()}

    def _promote(self, tmp_path: Path, algorithm: str, digest: str) -> Path:
        """Move a verified temp file into the store under its digest."""
        final = self.path_for(algorithm, digest)
        try:
            if final.is_file() and file_digest(final, algorithm) == digest:
                logger.debug("Artifact %s already stored by another writer", final)
                return final
            final.parent.mkdir(parents=True, exist_ok=True)
            os.replace(tmp_path, final)
        except OSError as exc:
            raise FilesystemError(final, f"cannot store artifact: {exc}") from exc
        logger.info("Stored %s:%s", algorithm, digest)
        return final

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise FilesystemError(path, f"cannot remove: {exc}") from exc
