import logging
import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from entitlement_gate.adapters.clock import SystemClock
from entitlement_gate.adapters.dodo_lookup import DodoPaymentsLookup
from entitlement_gate.adapters.lookup_stub import LookupStubAdapter
from entitlement_gate.adapters.memory_store import InMemoryEntitlementStore
from entitlement_gate.adapters.sqlite.migrator import SQLiteMigrator
from entitlement_gate.adapters.sqlite_store import SQLiteEntitlementStore
from entitlement_gate.app_shell.replay_guard import ReplayGuard
from entitlement_gate.components.access import AccessQueryService
from entitlement_gate.components.reconciler import EntitlementReconciler, KeyedLocks
from entitlement_gate.components.signature import WebhookVerifier
from entitlement_gate.core.ports.lookup import PaymentLookupPort
from entitlement_gate.core.ports.store import EntitlementStorePort
from entitlement_gate.rules.loader import load_rules
from entitlement_gate.rules.models import Rules

logger = logging.getLogger(__name__)


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("ENTITLEMENT_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "entitlements.db")
        self.rules_path = Path(
            os.environ.get("ENTITLEMENT_RULES_PATH", str(self.base_dir / "rules.yaml"))
        )
        self.webhook_key = os.environ.get("DODO_PAYMENTS_WEBHOOK_KEY")
        self.api_key = os.environ.get("DODO_PAYMENTS_API_KEY")
        self.environment = os.environ.get("DODO_PAYMENTS_ENVIRONMENT", "test_mode")
        self.return_url = os.environ.get("DODO_PAYMENTS_RETURN_URL")


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    settings = get_settings()
    try:
        return load_rules(settings.rules_path)
    except FileNotFoundError:
        logger.warning(f"Rules file not found at {settings.rules_path}, using defaults")
        return Rules()


# --- Store (one per process) ---
@lru_cache
def get_entitlement_store() -> EntitlementStorePort:
    settings = get_settings()
    rules = get_rules()

    if rules.store.backend == "memory":
        logger.info("Using in-memory entitlement store")
        return InMemoryEntitlementStore(timeout_seconds=rules.store.timeout_seconds)

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    applied = SQLiteMigrator(settings.db_path).run_migrations()
    if applied:
        logger.info(f"Applied {len(applied)} migration(s) to {settings.db_path}")
    return SQLiteEntitlementStore(settings.db_path, timeout_seconds=rules.store.timeout_seconds)


@lru_cache
def get_keyed_locks() -> KeyedLocks:
    return KeyedLocks()


@lru_cache
def get_replay_guard() -> ReplayGuard:
    return ReplayGuard(get_rules().replay)


# --- Component Services ---
def get_reconciler(
    store: EntitlementStorePort = Depends(get_entitlement_store),
    locks: KeyedLocks = Depends(get_keyed_locks),
    rules: Rules = Depends(get_rules),
) -> EntitlementReconciler:
    """Get reconciler; the store and locks are shared across requests."""
    return EntitlementReconciler(
        store=store,
        locks=locks,
        clock=SystemClock(),
        lock_timeout=rules.reconciler.lock_timeout_seconds,
        max_retries=rules.reconciler.max_retries,
    )


def get_access_service(
    store: EntitlementStorePort = Depends(get_entitlement_store),
) -> AccessQueryService:
    return AccessQueryService(store)


def get_verifier(settings: Settings = Depends(get_settings)) -> WebhookVerifier:
    return WebhookVerifier(settings.webhook_key)


def get_lookup(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> PaymentLookupPort:
    if not rules.lookup.enabled or not settings.api_key:
        return LookupStubAdapter()
    return DodoPaymentsLookup(
        api_key=settings.api_key,
        environment=settings.environment,
        timeout_seconds=rules.lookup.timeout_seconds,
    )
