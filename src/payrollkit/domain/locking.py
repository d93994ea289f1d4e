"""Per-payroll serialization of mutations."""

import threading
import weakref
from contextlib import contextmanager
from typing import Iterator

from payrollkit.database.base import Database

_registry_lock = threading.Lock()
# Entries disappear once no thread holds or waits on the lock
_locks: "weakref.WeakValueDictionary[tuple[str, int], threading.RLock]" = weakref.WeakValueDictionary()


def _named_lock(kind: str, key: int) -> threading.RLock:
    with _registry_lock:
        lock = _locks.get((kind, key))
        if lock is None:
            lock = threading.RLock()
            _locks[(kind, key)] = lock
        return lock


def payroll_lock(payroll_id: int) -> threading.RLock:
    """Return the re-entrant lock guarding one payroll."""
    return _named_lock("payroll", payroll_id)


def company_lock(company_id: int) -> threading.RLock:
    """Return the re-entrant lock guarding payroll creation for one company."""
    return _named_lock("company", company_id)


@contextmanager
def payroll_scope(db: Database, payroll_id: int) -> Iterator[Database]:
    """Hold the payroll's lock and a unit of work for the duration of a mutation.

    Re-entrant: a service already inside the scope of the same payroll can
    call another service that opens it again.
    """
    with payroll_lock(payroll_id):
        with db.unit_of_work():
            yield db


@contextmanager
def company_scope(db: Database, company_id: int) -> Iterator[Database]:
    """Hold the company's lock and a unit of work while a payroll is created."""
    with company_lock(company_id):
        with db.unit_of_work():
            yield db
