"""Key-value store mirrored to a remote repository."""

import logging
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field

from neonest.services.storage import KeyValueStore, RemoteKeyValueRepository

_logger = logging.getLogger(__name__)


def _sync_executor() -> ThreadPoolExecutor:
    return ThreadPoolExecutor(max_workers=1, thread_name_prefix="neonest-sync")


@dataclass
class RemoteSyncedStore(KeyValueStore):
    """Local store whose writes are mirrored remotely.

    Reads only ever touch the local copy. Writes and deletes are applied
    locally, then queued to a single background worker so callers never wait
    on the network. Remote values are pulled in by ``restore``, which is
    bounded by ``timeout_seconds``. Remote failures are logged and never reach
    the caller.
    """

    local: KeyValueStore
    remote: RemoteKeyValueRepository
    device_id: str
    timeout_seconds: float = 5.0
    _executor: ThreadPoolExecutor = field(
        default_factory=_sync_executor, init=False, repr=False
    )
    _pending: set[Future[None]] = field(default_factory=set, init=False, repr=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def get(self, key: str) -> str | None:
        """Return the local value."""
        return self.local.get(key)

    def set(self, key: str, value: str) -> None:
        """Write locally, then mirror remotely in the background."""
        self.local.set(key, value)
        self._mirror(
            "write", key, lambda: self.remote.store(self.device_id, key, value)
        )

    def delete(self, key: str) -> None:
        """Delete locally, then remotely in the background."""
        self.local.delete(key)
        self._mirror("delete", key, lambda: self.remote.remove(self.device_id, key))

    def list_keys(self, prefix: str = "") -> list[str]:
        """Return locally known keys."""
        return self.local.list_keys(prefix)

    def restore(self, keys: Iterable[str]) -> list[str]:
        """Copy remote values for keys missing locally.

        Waits at most ``timeout_seconds`` in total and returns the keys that
        were restored. Fetches still running at the deadline are abandoned.
        """
        missing = [key for key in keys if self.local.get(key) is None]
        if not missing:
            return []
        futures = {
            self._executor.submit(self.remote.fetch, self.device_id, key): key
            for key in missing
        }
        done, not_done = wait(futures, timeout=self.timeout_seconds)
        for future in not_done:
            future.cancel()
            _logger.warning("Remote read timed out for key=%s", futures[future])
        restored = []
        for future in done:
            key = futures[future]
            try:
                value = future.result()
            except Exception:
                _logger.warning("Remote read failed for key=%s", key, exc_info=True)
                continue
            if value is not None:
                self.local.set(key, value)
                restored.append(key)
        return sorted(restored)

    def flush(self) -> bool:
        """Wait up to ``timeout_seconds`` for queued remote writes."""
        with self._lock:
            pending = list(self._pending)
        _, not_done = wait(pending, timeout=self.timeout_seconds)
        return not not_done

    def close(self) -> None:
        """Stop the background worker without waiting for queued writes."""
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _mirror(self, action: str, key: str, call: Callable[[], None]) -> None:
        future = self._executor.submit(call)
        with self._lock:
            self._pending.add(future)

        def finished(done: Future[None]) -> None:
            with self._lock:
                self._pending.discard(done)
            if done.cancelled():
                return
            error = done.exception()
            if error is not None:
                _logger.warning("Remote %s failed for key=%s: %s", action, key, error)

        future.add_done_callback(finished)
