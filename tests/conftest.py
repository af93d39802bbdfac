import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from catalog.catalog_source import CatalogEntry
from catalog.directory import ItemDirectory
from config.policy import WatchPolicy
from repos.item_repo import ItemRepository
from repos.meta_repo import MetaRepository
from repos.watch_repo import WatchRepository
from storage.db_client import init_db
from watches.service import WatchService

CATALOG = [
    CatalogEntry(id="btc", name="Physical Bitcoin", short_name="0.2BTC"),
    CatalogEntry(id="X", name="Bitcoin", short_name="BTC"),
    CatalogEntry(id="a545", name="Ammo 5.45", short_name="545"),
    CatalogEntry(id="a762", name="Ammo 7.62", short_name=""),
    CatalogEntry(id="gpu", name="Graphics card", short_name="GPU"),
    CatalogEntry(id="ledx", name="LEDX Skin Transilluminator", short_name="LEDX"),
]


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def catalog_entries():
    return list(CATALOG)


@pytest.fixture
def directory(engine):
    return ItemDirectory(ItemRepository(engine), MetaRepository(engine))


@pytest.fixture
def populated(directory):
    directory.sync_all(lambda: CATALOG, batch_size=2, now_ms=1_000)
    return directory


@pytest.fixture
def policy():
    return WatchPolicy(cooldown_ms=10 * 60 * 1000, max_per_user=3, max_per_scope=5)


@pytest.fixture
def watch_repo(engine):
    return WatchRepository(engine)


@pytest.fixture
def service(watch_repo, populated, policy):
    return WatchService(watch_repo, populated, policy)
