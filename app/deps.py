from __future__ import annotations

from functools import lru_cache

from alerts.dispatch import AlertDispatcher
from catalog.catalog_source import CatalogSource
from catalog.directory import ItemDirectory
from catalog.sync_job import CatalogSyncJob
from config.policy import WatchPolicy
from market.price_source import PriceSource
from repos.item_repo import ItemRepository
from repos.meta_repo import MetaRepository
from repos.watch_repo import WatchRepository
from storage.db_client import get_engine
from sweep.watch_sweeper import WatchSweeper
from watches.service import WatchService

# FastAPI dependency providers; tests swap these via app.dependency_overrides.
# Adapters holding the shared HTTP pool are built once per process.


def get_directory() -> ItemDirectory:
    engine = get_engine()
    return ItemDirectory(ItemRepository(engine), MetaRepository(engine))


def get_watch_service() -> WatchService:
    return WatchService(WatchRepository(get_engine()), get_directory(), WatchPolicy.from_settings())


@lru_cache()
def get_price_source() -> PriceSource:
    return PriceSource()


@lru_cache()
def get_catalog_source() -> CatalogSource:
    return CatalogSource()


@lru_cache()
def get_alert_dispatcher() -> AlertDispatcher:
    return AlertDispatcher()


def get_catalog_sync() -> CatalogSyncJob:
    return CatalogSyncJob(get_directory(), get_catalog_source())


def get_sweeper() -> WatchSweeper:
    directory = get_directory()
    return WatchSweeper(
        repo=WatchRepository(get_engine()),
        directory=directory,
        prices=get_price_source(),
        alerts=get_alert_dispatcher(),
        catalog_sync=CatalogSyncJob(directory, get_catalog_source()),
        policy=WatchPolicy.from_settings(),
    )
