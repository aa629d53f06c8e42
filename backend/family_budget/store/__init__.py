from ..config import Settings, load_seed_categories
from .backends import RecordBackend, JsonFileBackend, SqlAlchemyBackend
from .record_store import RecordStore
from .records import (
    PARTICIPANTS,
    BalanceSummary,
    CategoryRecord,
    ItemRecord,
    PaymentRecord,
    PaymentWithItems,
    ResolvedItem,
)
from .tables import Table


def create_backend(settings: Settings) -> RecordBackend:
    """Pick the persistence backend named in the settings."""
    if settings.store_backend == "sqlite":
        return SqlAlchemyBackend(settings.database_path)
    if settings.store_backend != "json":
        raise ValueError(f"Unknown store backend: {settings.store_backend}")
    return JsonFileBackend(settings.data_dir)


def open_store(settings: Settings) -> RecordStore:
    """Load the store and seed default categories into an empty one."""
    store = RecordStore(create_backend(settings))
    store.load()
    store.seed_categories(load_seed_categories(settings.seed_file))
    return store


__all__ = [
    "PARTICIPANTS",
    "BalanceSummary",
    "CategoryRecord",
    "ItemRecord",
    "JsonFileBackend",
    "PaymentRecord",
    "PaymentWithItems",
    "RecordBackend",
    "RecordStore",
    "ResolvedItem",
    "SqlAlchemyBackend",
    "Table",
    "create_backend",
    "open_store",
]
