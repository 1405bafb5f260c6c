import threading
from contextlib import contextmanager

from protean.core.unit_of_work import UnitOfWork
from protean.domain import Domain
from sqlalchemy import create_engine

# Writers, and the checkout's reads, are serialized process-wide: the memory
# and sqlite providers give no row-level isolation between concurrent units
# of work.
_write_lock = threading.RLock()


class CommitTimeout(Exception):
    """The write lock could not be acquired within the allotted time."""


@contextmanager
def exclusive(timeout: float | None = None):
    """Hold the process-wide write lock for the duration of the block."""
    acquired = _write_lock.acquire(timeout=-1 if timeout is None else timeout)
    if not acquired:
        raise CommitTimeout(f"Could not obtain the write lock within {timeout}s")
    try:
        yield
    finally:
        _write_lock.release()


@contextmanager
def atomic(timeout: float | None = None):
    """Run the block as one unit of work under the write lock.

    Everything staged on repositories inside the block is committed together,
    or not at all if the block raises.
    """
    with exclusive(timeout):
        with UnitOfWork():
            yield


def setup_db(domain: Domain):
    """Setup database schema"""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in ("sqlite", "postgresql"):
                engine = create_engine(provider.conn_info["database_uri"])

                # Touch each repository's DAO so the model is registered with SQLAlchemy
                for _, aggregate_record in domain.registry.aggregates.items():
                    if aggregate_record.cls.meta_.provider == provider.name:
                        domain.repository_for(aggregate_record.cls)._dao  # noqa: B018

                for _, entity_record in domain.registry.entities.items():
                    if entity_record.cls.meta_.provider == provider.name:
                        domain.repository_for(entity_record.cls)._dao  # noqa: B018

                provider._metadata.create_all(engine)


def drop_db(domain: Domain):
    """Drop database schema"""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in ("sqlite", "postgresql"):
                engine = create_engine(provider.conn_info["database_uri"])
                provider._metadata.drop_all(engine)
