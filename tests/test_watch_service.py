import pytest

from catalog.normalizer import name_key
from models.records import Item
from models.schema import MAX_PRICE
from watches.errors import (
    DirectoryEmpty,
    InvalidWatchRequest,
    ItemNotFound,
    LimitExceeded,
    StorageConflict,
)
from watches.service import WatchService


def _create(service, item, user="u1", scope="g1", price=5000, once=False, now_ms=1_000):
    return service.create_or_update(scope, "c1", user, item, price, once=once, now_ms=now_ms)


def test_create_stores_canonical_name(service, watch_repo):
    result = _create(service, "bitcoin")
    assert result.created
    assert result.status == "created"
    w = result.watch
    assert w.item_id == "X"
    assert w.item_name == "Bitcoin"
    assert w.item_key == "bitcoin"
    assert w.cooldown_until == 0
    assert watch_repo.get(w.id) == w


def test_second_create_updates_in_place(service, watch_repo):
    first = _create(service, "bitcoin", price=5000)
    second = _create(service, "Bitcoin", price=4000, once=True)
    assert not second.created
    assert second.watch.id == first.watch.id
    assert second.watch.max_price == 4000
    assert second.watch.once is True
    assert len(service.list_watches("g1", "u1")) == 1


def test_update_keeps_cooldown(service, watch_repo):
    w = _create(service, "bitcoin").watch
    assert watch_repo.claim_cooldown(w.id, now_ms=2_000, until_ms=600_000)
    updated = _create(service, "bitcoin", price=100).watch
    assert updated.cooldown_until == 600_000
    assert updated.max_price == 100


def test_update_moves_delivery_channel(service):
    _create(service, "bitcoin")
    res = service.create_or_update("g1", "c2", "u1", "bitcoin", 10, now_ms=5)
    assert res.watch.channel_id == "c2"


def test_user_limit(service, policy):
    for name in ["bitcoin", "graphics card", "ledx"]:
        _create(service, name)
    assert len(service.list_watches("g1", "u1")) == policy.max_per_user

    with pytest.raises(LimitExceeded) as exc:
        _create(service, "ammo 7 62")
    assert exc.value.scope == "user"
    assert exc.value.limit == policy.max_per_user

    # Updating an existing watch is still allowed at the cap.
    assert not _create(service, "ledx", price=1).created


def test_scope_limit(service, policy):
    _create(service, "bitcoin", user="a")
    _create(service, "graphics card", user="a")
    _create(service, "bitcoin", user="b")
    _create(service, "ledx", user="b")
    _create(service, "bitcoin", user="c")
    with pytest.raises(LimitExceeded) as exc:
        _create(service, "ledx", user="c")
    assert exc.value.scope == "scope"
    assert exc.value.limit == policy.max_per_scope

    # Other scopes are unaffected.
    assert _create(service, "ledx", user="c", scope="g2").created


def test_unknown_item(service):
    with pytest.raises(ItemNotFound) as exc:
        _create(service, "btc coin typo")
    assert "btc coin typo" in exc.value.user_message


def test_empty_directory_is_distinct(watch_repo, directory, policy):
    svc = WatchService(watch_repo, directory, policy)
    with pytest.raises(DirectoryEmpty):
        _create(svc, "bitcoin")


@pytest.mark.parametrize("price", [0, -5, True, MAX_PRICE + 1, 2**64])
def test_rejects_bad_threshold(service, price):
    with pytest.raises(InvalidWatchRequest):
        _create(service, "bitcoin", price=price)


def test_threshold_at_column_limit_is_stored(service, watch_repo):
    w = _create(service, "bitcoin", price=MAX_PRICE).watch
    assert watch_repo.get(w.id).max_price == MAX_PRICE


def test_list_is_newest_first(service):
    _create(service, "bitcoin", now_ms=1)
    _create(service, "graphics card", now_ms=3)
    _create(service, "ledx", now_ms=2)
    names = [w.item_name for w in service.list_watches("g1", "u1")]
    assert names == ["Graphics card", "LEDX Skin Transilluminator", "Bitcoin"]
    assert len(service.list_watches("g1", "u1", limit=1)) == 1


def test_remove_by_substring_deletes_every_match(service, policy):
    _create(service, "ammo 5 45")
    _create(service, "ammo 7 62")
    _create(service, "bitcoin")
    assert service.remove("g1", "u1", "ammo") == 2
    assert [w.item_name for w in service.list_watches("g1", "u1")] == ["Bitcoin"]


def test_remove_only_touches_own_watches(service):
    _create(service, "bitcoin", user="u1")
    _create(service, "bitcoin", user="u2")
    assert service.remove("g1", "u1", "Bitcoin") == 1
    assert service.remove("g1", "u1", "Bitcoin") == 0
    assert len(service.list_watches("g1", "u2")) == 1


def test_remove_rejects_blank_key(service):
    _create(service, "bitcoin")
    with pytest.raises(InvalidWatchRequest):
        service.remove("g1", "u1", "!!")
    assert len(service.list_watches("g1", "u1")) == 1


def test_clear(service):
    _create(service, "bitcoin")
    _create(service, "ledx")
    _create(service, "bitcoin", scope="g2")
    assert service.clear("g1", "u1") == 2
    assert service.list_watches("g1", "u1") == []
    assert len(service.list_watches("g2", "u1")) == 1


class RacingRepo:
    """Lets a competing writer slip in between the lookup and the insert."""

    def __init__(self, inner):
        self.inner = inner
        self.raced = False

    def __getattr__(self, name):
        return getattr(self.inner, name)

    def insert(self, **kwargs):
        if not self.raced:
            self.raced = True
            self.inner.insert(**{**kwargs, "max_price": 999})
            raise StorageConflict("lost race")
        return self.inner.insert(**kwargs)


def test_insert_conflict_retries_as_update(watch_repo, populated, policy):
    svc = WatchService(RacingRepo(watch_repo), populated, policy)
    item = Item(id="X", name="Bitcoin", name_key=name_key("Bitcoin"))
    result = svc.upsert_watch("g1", "c1", "u1", item, 1234)
    assert not result.created
    assert result.watch.max_price == 1234
    assert len(watch_repo.list_for_user("g1", "u1")) == 1


class VanishingRepo:
    """Deletes the row right before the update lands."""

    def __init__(self, inner):
        self.inner = inner

    def __getattr__(self, name):
        return getattr(self.inner, name)

    def update_target(self, watch_id, **kwargs):
        self.inner.delete(watch_id)
        return self.inner.update_target(watch_id, **kwargs)


def test_update_of_vanished_row_recreates_it(watch_repo, populated, policy):
    WatchService(watch_repo, populated, policy).create_or_update("g1", "c1", "u1", "bitcoin", 5000, now_ms=1_000)
    svc = WatchService(VanishingRepo(watch_repo), populated, policy)
    result = svc.create_or_update("g1", "c2", "u1", "bitcoin", 4000, now_ms=2_000)
    assert result.created
    stored = watch_repo.find_by_key("g1", "u1", "bitcoin")
    assert (stored.channel_id, stored.max_price) == ("c2", 4000)


def test_repo_unique_key_raises_conflict(watch_repo):
    kwargs = dict(
        scope_id="g1", channel_id="c1", user_id="u1", item_id="X", item_name="Bitcoin",
        item_key="bitcoin", max_price=1, once=False, created_at=1,
    )
    watch_repo.insert(**kwargs)
    with pytest.raises(StorageConflict):
        watch_repo.insert(**kwargs)


def test_resolve_or_suggest(service):
    out = service.resolve_or_suggest("bit")
    assert out["item"].id == "X"
    assert out["suggestions"][0]["value"] == "Bitcoin"
