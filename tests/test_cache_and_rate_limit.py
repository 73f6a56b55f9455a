from services.cache import TTLCache
from services.rate_limit import DAY, HOUR, DEMO_IDENTITY, RateLimitGuard


def test_cache_entry_expires(clock):
    cache = TTLCache(expiry_seconds=30 * 60, clock=clock)
    cache.set("congress:{}", ["bill"])

    clock.advance(29 * 60)
    assert cache.get("congress:{}") == ["bill"]

    clock.advance(60)
    assert cache.get("congress:{}") is None
    assert "congress:{}" not in cache


def test_cache_evicts_oldest(clock):
    cache = TTLCache(expiry_seconds=3600, max_entries=2, clock=clock)
    cache.set("a", 1)
    clock.advance(1)
    cache.set("b", 2)
    clock.advance(1)
    cache.set("c", 3)

    assert len(cache) == 2
    assert cache.get("a") is None
    assert cache.get("b") == 2
    assert cache.get("c") == 3


def test_cache_clear(clock):
    cache = TTLCache(expiry_seconds=60, clock=clock)
    cache.set("a", 1)
    cache.clear()
    assert len(cache) == 0


def test_demo_key_hourly_limit(clock):
    guard = RateLimitGuard(clock=clock)

    for _ in range(30):
        assert guard.can_make_request(DEMO_IDENTITY).allowed
        guard.record_request(DEMO_IDENTITY)
        clock.advance(1)

    decision = guard.can_make_request(DEMO_IDENTITY)
    assert not decision.allowed
    assert "hourly" in decision.reason

    # The window slides; an hour later the oldest requests have aged out
    clock.advance(HOUR)
    assert guard.can_make_request(DEMO_IDENTITY).allowed


def test_demo_key_daily_limit(clock):
    guard = RateLimitGuard(clock=clock)

    for _ in range(50):
        guard.record_request(DEMO_IDENTITY)
        clock.advance(HOUR / 20)

    clock.advance(HOUR)
    decision = guard.can_make_request(DEMO_IDENTITY)
    assert not decision.allowed
    assert "daily" in decision.reason

    clock.advance(DAY)
    assert guard.can_make_request(DEMO_IDENTITY).allowed


def test_registered_key_uses_hourly_limit(clock):
    guard = RateLimitGuard(hourly_limit=3, clock=clock)
    for _ in range(3):
        guard.record_request("real-key")

    assert not guard.can_make_request("real-key").allowed
    assert guard.can_make_request("other-key").allowed
    assert guard.remaining("real-key") == {"hourly_remaining": 0, "daily_remaining": None}


def test_remaining_for_demo_key(clock):
    guard = RateLimitGuard(clock=clock)
    guard.record_request(DEMO_IDENTITY)
    assert guard.remaining(DEMO_IDENTITY) == {"hourly_remaining": 29, "daily_remaining": 49}


def test_old_entries_are_pruned(clock):
    guard = RateLimitGuard(clock=clock)
    guard.record_request(DEMO_IDENTITY)
    clock.advance(DAY + 1)
    guard.can_make_request(DEMO_IDENTITY)
    assert guard._requests[DEMO_IDENTITY] == []
