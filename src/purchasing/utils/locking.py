"""Per-store locks for read-modify-write command handling.

Each aggregate store (carts, purchases) gets one re-entrant lock. Command
handlers run their load, mutate and persist inside ``store_transaction``,
which opens a unit of work under the lock so the commit lands before the
lock is released. Close takes the cart lock first, then the purchase lock;
every other path takes at most one of them.

The API routes are coroutines and run on the event loop thread one at a
time, so the locks only contend with callers on other threads (workers,
scripts, a threaded server).
"""

import threading
from contextlib import contextmanager

from protean import UnitOfWork

CART_STORE = "carts"
PURCHASE_STORE = "purchases"

_locks = {
    CART_STORE: threading.RLock(),
    PURCHASE_STORE: threading.RLock(),
}


def store_lock(store: str) -> threading.RLock:
    return _locks[store]


@contextmanager
def locked(*stores: str):
    """Hold the locks of ``stores`` in the order given."""
    acquired = []
    try:
        for store in stores:
            lock = store_lock(store)
            lock.acquire()
            acquired.append(lock)
        yield
    finally:
        for lock in reversed(acquired):
            lock.release()


@contextmanager
def store_transaction(*stores: str):
    """Hold the locks of ``stores`` across a unit of work and its commit.

    Repository changes made inside the block are committed when it exits,
    while the locks are still held, and rolled back if it raises.
    """
    with locked(*stores), UnitOfWork():
        yield
