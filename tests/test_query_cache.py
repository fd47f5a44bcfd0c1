import pytest

from taskboard.query_cache import QueryCache


def test_get_memoizes_per_key():
    calls = []
    cache = QueryCache({})

    def fetch():
        calls.append(1)
        return [1, 2]

    assert cache.get(("tasks", 1), fetch) == [1, 2]
    assert cache.get(("tasks", 1), fetch) == [1, 2]
    assert len(calls) == 1


def test_cache_lives_in_state_mapping():
    state = {}
    QueryCache(state).set_data("labels", ["bug"])
    assert QueryCache(state).peek("labels") == ["bug"]


def test_invalidate_by_prefix():
    cache = QueryCache({})
    cache.set_data(("tasks", False), [])
    cache.set_data(("tasks", True), [])
    cache.set_data(("projects", False), [])

    assert cache.invalidate(("tasks",)) == 2
    assert ("projects", False) in cache
    assert ("tasks", False) not in cache

    assert cache.invalidate() == 1
    assert ("projects", False) not in cache


def test_optimistic_success_applies_and_invalidates():
    cache = QueryCache({})
    cache.set_data(("tasks", False), [{"id": 1, "completed": False}])
    cache.set_data(("tasks", "other"), ["stale"])

    def update(rows):
        rows[0]["completed"] = True
        return rows

    result = cache.optimistic(("tasks", False), update, lambda: "saved", invalidate=(("tasks", "other"),))
    assert result == "saved"
    assert cache.peek(("tasks", False)) == [{"id": 1, "completed": True}]
    assert ("tasks", "other") not in cache


def test_optimistic_failure_rolls_back():
    cache = QueryCache({})
    original = [{"id": 1, "completed": False}]
    cache.set_data(("tasks", False), original)
    seen = {}

    def update(rows):
        rows[0]["completed"] = True
        return rows

    def commit():
        seen["during"] = cache.peek(("tasks", False))[0]["completed"]
        raise RuntimeError("backend down")

    with pytest.raises(RuntimeError):
        cache.optimistic(("tasks", False), update, commit)

    assert seen["during"] is True
    assert cache.peek(("tasks", False)) == [{"id": 1, "completed": False}]
    assert original[0]["completed"] is False


def test_optimistic_failure_without_previous_value():
    cache = QueryCache({})

    def commit():
        raise ValueError("nope")

    with pytest.raises(ValueError):
        cache.optimistic("labels", lambda _: ["new"], commit)
    assert "labels" not in cache
