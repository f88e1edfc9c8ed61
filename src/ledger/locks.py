"""Per-entity mutexes serializing read-modify-write cycles on stock.

Locks are keyed by ``(kind, identifier)`` and live for the lifetime of the
process. Callers that need several locks acquire them through ``hold`` in
one consistent order: product first, then fabrics sorted by id.
"""

from contextlib import ExitStack, contextmanager
from threading import Lock

PRODUCT = "product"
FABRIC = "fabric"


class EntityLocks:
    def __init__(self):
        self._registry_lock = Lock()
        self._locks = {}

    def lock_for(self, kind, identifier):
        key = (kind, str(identifier))
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = Lock()
            return lock

    @contextmanager
    def hold(self, *keys):
        """Acquire the locks for ``keys`` in the order given, release in reverse."""
        with ExitStack() as stack:
            for kind, identifier in keys:
                stack.enter_context(self.lock_for(kind, identifier))
            yield

    def __len__(self):
        return len(self._locks)


entity_locks = EntityLocks()


def fabric_lock_keys(fabric_ids):
    return [(FABRIC, fabric_id) for fabric_id in sorted({str(f) for f in fabric_ids})]
