from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from callstat import TYPE_CACHE, TypeInfoCache, UnpooledArgPool, stat, stat_type
from tests._utils.handlers import Person, Talker

# What this tests
# - Templates are built once per type and never handed out.
# - Concurrent first stats agree on method names and shapes.
# - Cache toggles from CALLSTAT_* settings.


def test_stat_type_builds_once_and_returns_copies(cache: TypeInfoCache) -> None:
    a = cache.stat_type(Talker)
    b = cache.stat_type(Talker)
    assert len(cache) == 1 and Talker in cache
    assert a is not b
    assert a.receiver is not b.receiver
    assert a.methods[0] is not b.methods[0]


def test_stat_type_receiver_is_zero_value(cache: TypeInfoCache) -> None:
    instance = cache.stat_type(Person)
    assert instance.type is Person
    assert instance.value == Person()
    greet = instance.methods.named("greet")
    assert greet.call(greet.args()).values == ["Hello! My name is  and I am 0 year(s) old."]


def test_stat_type_rejects_non_types(cache: TypeInfoCache) -> None:
    with pytest.raises(TypeError):
        cache.stat_type(Person())  # type: ignore[arg-type]


def test_prune_on_stat_type_result_does_not_touch_template(cache: TypeInfoCache) -> None:
    first = cache.stat_type(Talker)
    for m in first.methods:
        m.prune_in(*m.in_types[1:])
    again = cache.stat_type(Talker)
    hello = again.methods.named("hello")
    assert [a.n for a in hello.in_cache] == [1]
    assert [a.n for a in hello.in_create] == [2]


def test_global_stat_uses_global_cache() -> None:
    bob = Person(name="Bob", age=40)
    instance = stat(bob)
    assert Person in TYPE_CACHE
    assert instance.value is bob
    assert stat_type(Person).value == Person()


def test_cache_with_injected_allocator() -> None:
    alloc = UnpooledArgPool()
    cache = TypeInfoCache(pool=alloc)
    greet = cache.stat(Person(name="A", age=1)).methods.named("greet")
    assert greet._pool is alloc
    assert greet.call(greet.args()).values == ["Hello! My name is A and I am 1 year(s) old."]


def test_concurrent_first_stat_agrees(cache: TypeInfoCache) -> None:
    class Fresh:
        def alpha(self, a: int, b: str) -> str:
            return f"{a}{b}"

        def beta(self, items: list[int]) -> tuple[int, bool]:
            return len(items), True

    barrier = threading.Barrier(16)

    def work(i: int):
        barrier.wait()
        inst = cache.stat(Fresh())
        return [(m.name, m.in_types, m.out_types, [a.n for a in m.in_create]) for m in inst.methods]

    with ThreadPoolExecutor(max_workers=16) as ex:
        shapes = list(ex.map(work, range(16)))
    assert all(s == shapes[0] for s in shapes)
    assert [name for name, *_ in shapes[0]] == ["alpha", "beta"]
    assert len(cache) == 1


def test_cache_disabled_rebuilds(cache: TypeInfoCache, set_env) -> None:
    set_env("CALLSTAT_TYPE_CACHE_ENABLED", "0")
    cache.stat(Person())
    assert len(cache) == 0
    assert cache.stat(Person(name="x")).methods.names() == ["greet"]


def test_debug_cache_logs_hits(cache: TypeInfoCache, set_env, caplog: pytest.LogCaptureFixture) -> None:
    set_env("CALLSTAT_DEBUG_CACHE", "1")
    with caplog.at_level(logging.DEBUG, logger="callstat.cache"):
        cache.stat_type(Talker)
        cache.stat_type(Talker)
    messages = [r.getMessage() for r in caplog.records]
    assert "built type info: Talker (3 methods)" in messages
    assert "type cache hit: Talker" in messages


def test_clear(cache: TypeInfoCache) -> None:
    cache.stat_type(Talker)
    cache.clear()
    assert len(cache) == 0
