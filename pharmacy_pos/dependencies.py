"""Service wiring for the API routes"""

import logging
from typing import Optional

from fastapi import Depends

from .core.config import Settings, get_settings
from .core.identity import StaticIdentityProvider
from .core.session import CheckoutSessionManager
from .database import CatalogReader, InMemoryRecordStore, RecordStore, SupabaseRecordStore
from .services import InventoryMonitor, SalesReporter, SaleTransactionManager

logger = logging.getLogger(__name__)

# Initialize services lazily (tests replace these through dependency overrides)
record_store: Optional[RecordStore] = None
session_manager: Optional[CheckoutSessionManager] = None


def build_record_store(settings: Settings) -> RecordStore:
    """Create the record store selected by configuration"""
    if settings.record_store_backend == "supabase":
        if not settings.supabase_configured:
            raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be set for the supabase backend")
        logger.info(f"Using Supabase record store at {settings.rest_url}")
        return SupabaseRecordStore(
            rest_url=settings.rest_url,
            api_key=settings.supabase_key,
            timeout=settings.request_timeout,
        )

    logger.info(f"Using in-memory record store (demo data: {settings.seed_demo_data})")
    if settings.seed_demo_data:
        return InMemoryRecordStore.with_demo_data(settings.items_collection)
    return InMemoryRecordStore()


def get_record_store() -> RecordStore:
    """Get or create the record store"""
    global record_store
    if record_store is None:
        record_store = build_record_store(get_settings())
    return record_store


def get_catalog_reader(
    store: RecordStore = Depends(get_record_store),
    settings: Settings = Depends(get_settings),
) -> CatalogReader:
    return CatalogReader(store, collection=settings.items_collection)


def get_inventory_monitor(catalog: CatalogReader = Depends(get_catalog_reader)) -> InventoryMonitor:
    return InventoryMonitor(catalog)


def get_sales_reporter(
    store: RecordStore = Depends(get_record_store),
    settings: Settings = Depends(get_settings),
) -> SalesReporter:
    return SalesReporter(
        store,
        sales_collection=settings.sales_collection,
        sale_lines_collection=settings.sale_lines_collection,
    )


def build_session_manager(store: RecordStore, settings: Settings) -> CheckoutSessionManager:
    """Session manager whose sessions each get their own SaleTransactionManager"""
    catalog = CatalogReader(store, collection=settings.items_collection)

    def manager_factory(session_id: str, owner_id: str) -> SaleTransactionManager:
        return SaleTransactionManager(
            catalog=catalog,
            store=store,
            identity=StaticIdentityProvider(owner_id),
            sales_collection=settings.sales_collection,
            sale_lines_collection=settings.sale_lines_collection,
            session_id=session_id,
        )

    return CheckoutSessionManager(manager_factory)


def get_session_manager() -> CheckoutSessionManager:
    """Get or create the checkout session manager"""
    global session_manager
    if session_manager is None:
        session_manager = build_session_manager(get_record_store(), get_settings())
    return session_manager


async def close_services() -> None:
    """Release the record store's connections"""
    global record_store, session_manager
    if record_store is not None:
        await record_store.close()
    record_store = None
    session_manager = None
