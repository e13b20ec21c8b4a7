from services.query_cache import QueryCache


def test_get_or_fetch_caches_result():
    cache = QueryCache()
    calls = []

    def fetch():
        calls.append(1)
        return ["row"]

    assert cache.get_or_fetch(("clients", None), fetch) == ["row"]
    assert cache.get_or_fetch(("clients", None), fetch) == ["row"]
    assert len(calls) == 1


def test_failed_fetch_is_not_cached():
    cache = QueryCache()

    def boom():
        raise RuntimeError("down")

    try:
        cache.get_or_fetch(("cases",), boom)
    except RuntimeError:
        pass
    assert ("cases",) not in cache


def test_invalidate_by_prefix():
    cache = QueryCache()
    cache.set(("cases", None), 1)
    cache.set(("cases", "c1"), 2)
    cache.set(("case", "case1"), 3)

    assert cache.invalidate(("cases",)) == 2
    assert ("case", "case1") in cache
    assert len(cache) == 1
