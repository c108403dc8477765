"""Service-layer components of the translation store."""

from .base_sources import (
    BaseSource,
    BaseSourceError,
    DirectoryBaseSource,
    HttpBaseSource,
    PackageBaseSource,
    build_base_source,
)
from .progress import ProgressSummary, search_keys, summarize_progress
from .status_engine import Metadata, StatusEngine, TranslationStatus, classify
from .storage import InMemoryStorage, KeyValueStorage, SQLiteStorage, build_storage
from .subscriptions import SubscriptionBus
from .sync_engine import ReconcileReport, SyncEngine
from .translation_service import TranslationService
from .translation_store import LastLanguageError, TranslationStore

__all__ = [
    "BaseSource",
    "BaseSourceError",
    "DirectoryBaseSource",
    "HttpBaseSource",
    "InMemoryStorage",
    "KeyValueStorage",
    "LastLanguageError",
    "Metadata",
    "PackageBaseSource",
    "ProgressSummary",
    "ReconcileReport",
    "SQLiteStorage",
    "StatusEngine",
    "SubscriptionBus",
    "SyncEngine",
    "TranslationService",
    "TranslationStatus",
    "TranslationStore",
    "build_base_source",
    "build_storage",
    "classify",
    "search_keys",
    "summarize_progress",
]
