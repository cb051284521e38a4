import hashlib
import os
import tempfile
import threading
import weakref
from contextlib import contextmanager
from typing import Iterator, Optional

from filelock import FileLock, Timeout

from app.config import settings


def default_lock_dir() -> str:
    return settings.LOCK_DIR or os.path.join(tempfile.gettempdir(), "storefront_locks")


class SessionLocks:
    """
    Per-user locks backed by lock files, so every worker process serving the
    same user queues behind the same file.

    for_user() hands out one FileLock per user id. The instance is shared by
    everyone in this process that currently holds a reference, which keeps it
    re-entrant for the thread that owns it (checkout holds it and then clears
    the cart through the same lock). Other threads and processes block until
    it is released or `timeout` runs out (filelock.Timeout).

    checkout_slot() is a separate, non-blocking lock file: it yields False
    straight away when a checkout for that user is already running anywhere.
    """

    def __init__(self, lock_dir: Optional[str] = None, timeout: Optional[float] = None):
        self.lock_dir = lock_dir or default_lock_dir()
        os.makedirs(self.lock_dir, exist_ok=True)
        self.timeout = settings.CART_LOCK_TIMEOUT_SECONDS if timeout is None else timeout
        self._guard = threading.Lock()
        # dropped as soon as nobody holds the lock object any more
        self._locks: "weakref.WeakValueDictionary[str, FileLock]" = weakref.WeakValueDictionary()

    def _path(self, kind: str, user_id: str) -> str:
        # user ids are opaque; hash them into a safe file name
        digest = hashlib.sha1(user_id.encode("utf-8")).hexdigest()
        return os.path.join(self.lock_dir, f"{kind}_{digest}.lock")

    def for_user(self, user_id: str) -> FileLock:
        path = self._path("cart", user_id)
        with self._guard:
            lock = self._locks.get(path)
            if lock is None:
                lock = FileLock(path, timeout=self.timeout)
                self._locks[path] = lock
            return lock

    @contextmanager
    def checkout_slot(self, user_id: str) -> Iterator[bool]:
        # a fresh instance every time: a second attempt must never re-enter
        lock = FileLock(self._path("checkout", user_id))
        try:
            lock.acquire(timeout=0)
        except Timeout:
            yield False
            return
        try:
            yield True
        finally:
            lock.release()


session_locks = SessionLocks()
