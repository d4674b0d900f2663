from __future__ import annotations

import functools
import json
from typing import Any

import pytest

from callstat import (
    UNSET,
    ArgPool,
    Func,
    Kind,
    MissingArgumentError,
    NotCallableError,
    ReleasedArgsError,
    stat_func,
)
from tests._utils.handlers import MapSession, Request, Response, Session, Writer

# What this tests
# - args()/call() round trip through handles, interface placeholders, zero values.
# - prune_in removes positions; unfilled pruned slots fail; manual supply succeeds.
# - Results: multiple returns, error detection, no-return functions.
# - The container always goes back to the pool, even when the callee raises.


def test_round_trip_through_handles() -> None:
    seen: list[tuple[str, int]] = []

    def fn(s: str, n: int) -> None:
        seen.append((s, n))

    f = stat_func(fn)
    args = f.args()
    for h in args.handles:
        if isinstance(h.value, str):
            h.value = "Hi!"
        elif isinstance(h.value, int):
            h.value = 42
    assert args.values == ["Hi!", 42]
    f.call(args)
    assert seen == [("Hi!", 42)]


def test_zero_values_when_untouched() -> None:
    seen: list[Any] = []
    f = stat_func(lambda s, n: seen.append((s, n)))
    # 注釈なしの引数は INTERFACE 扱い（None）
    assert f.in_kinds == (Kind.INTERFACE, Kind.INTERFACE)
    f.call(f.args())
    assert seen == [(None, None)]

    def typed(s: str, n: int, flags: list[str]) -> None:
        seen.append((s, n, flags))

    g = stat_func(typed)
    g.call(g.args())
    assert seen[-1] == ("", 0, [])


def test_interface_positions_share_placeholder() -> None:
    def fn(w: Writer, req: Request) -> None:
        assert w is None

    f = stat_func(fn)
    assert [a.n for a in f.in_cache] == [0]
    assert [a.n for a in f.in_create] == [1]
    for _ in range(3):
        args = f.args()
        assert args.values[0] is None and args.handles[0] is None
        assert args.handles[1] is not None
        f.call(args)


def test_fresh_struct_per_args_call() -> None:
    f = stat_func(_takes_request)
    a1 = f.args()
    req1 = a1.values[0]
    a1.handles[0].value.origin = "mutated"
    f.call(a1)
    a2 = f.args()
    assert a2.values[0] == Request()
    assert a2.values[0] is not req1
    f.call(a2)


def _takes_request(req: Request) -> Request:
    return req


def test_defaults_are_used() -> None:
    def fn(limit: int = 10, sess: Session = "fallback") -> tuple[int, Any]:  # type: ignore[assignment]
        return limit, sess

    f = stat_func(fn)
    res = f.call(f.args())
    assert res.values == [10, "fallback"]


def test_keyword_only_passed_by_keyword() -> None:
    def fn(query: str, *, limit: int = 5, exact: bool) -> tuple[str, int, bool]:
        return query, limit, exact

    f = stat_func(fn)
    assert f.num_in == 3
    args = f.args()
    args.handles[0].value = "q"
    args.handles[2].value = True
    assert f.call(args).values == ["q", 5, True]


def test_var_args_are_not_slots() -> None:
    def fn(a: int, *rest: int, **extra: str) -> int:
        return a + len(rest) + len(extra)

    f = stat_func(fn)
    assert f.num_in == 1
    assert f.call(f.args()).values == [0]


def test_results_multiple_returns_and_error() -> None:
    def fn() -> tuple[bool, Exception | None]:
        return False, ValueError("bad")

    f = stat_func(fn)
    res = f.call(f.args())
    assert res.values[0] is False
    assert isinstance(res.error, ValueError)
    assert not res.ok

    def last_error_wins() -> tuple[Exception, Exception]:
        return KeyError("a"), RuntimeError("b")

    g = stat_func(last_error_wins)
    assert isinstance(g.call(g.args()).error, RuntimeError)


def test_results_no_return() -> None:
    def fn() -> None:
        pass

    f = stat_func(fn)
    res = f.call(f.args())
    assert res.values == [] and res.error is None and res.ok


def test_prune_interface_then_supply() -> None:
    messages: list[str] = []

    def fn(req: Request, store: Session) -> None:
        if store is None:
            messages.append("nil store")
        else:
            store.set("message", "Hello, World!")

    f = stat_func(fn)
    f.call(f.args())
    assert messages == ["nil store"]

    pruned = f.prune_in(Session)
    assert [(a.n, a.t, a.v) for a in pruned] == [(1, Session, None)]
    assert f.in_cache == []

    args = f.args()
    assert args.values[1] is UNSET and args.handles[1] is None
    with pytest.raises(MissingArgumentError) as excinfo:
        f.call(args)
    assert excinfo.value.position == 1 and excinfo.value.name == "store"

    sess = MapSession()
    args = f.args()
    for arg in pruned:
        if arg.t is Session:
            args.values[arg.n] = sess
    f.call(args)
    assert sess.get("message") == "Hello, World!"


def test_prune_searches_cache_then_create() -> None:
    def fn(a: str, w: Writer, b: str, n: int, r: Response) -> None:
        pass

    f = stat_func(fn)
    removed = f.prune_in(str, Writer, Response)
    assert [a.n for a in removed] == [1, 4, 0, 2]
    assert [a.n for a in f.in_create] == [3]
    assert f.prune_in(float) == []


def test_clone_isolates_prune() -> None:
    f = stat_func(_takes_request)
    cp = f.clone()
    cp.prune_in(Request)
    assert [a.n for a in f.in_create] == [0]
    assert cp.in_create == []
    f.call(f.args())


def test_stat_func_rejects_non_callables() -> None:
    with pytest.raises(NotCallableError):
        stat_func(42)
    with pytest.raises(TypeError):
        stat_func("not a function")


def test_callable_variants() -> None:
    class Adder:
        def __call__(self, a: int, b: int) -> int:
            return a + b

    f = stat_func(Adder())
    args = f.args()
    args.handles[0].value, args.handles[1].value = 2, 3
    assert f.call(args).values == [5]

    p = stat_func(functools.partial(_scale, 3))
    args = p.args()
    assert p.num_in == 1 and p.in_kinds == (Kind.INT,)
    args.handles[0].value = 4
    assert p.call(args).values == [12]

    k = stat_func(Request)
    assert k.out_types == (Request,)
    assert k.call(k.args()).values == [Request()]


def _scale(factor: int, x: int) -> int:
    return factor * x


def test_callee_exception_still_releases(pool: ArgPool) -> None:
    def boom(n: int) -> None:
        raise RuntimeError("boom")

    f = Func(boom, pool=pool)
    args = f.args()
    h = args.handles[0]
    with pytest.raises(RuntimeError, match="boom"):
        f.call(args)
    assert pool.idle == 1
    with pytest.raises(ReleasedArgsError):
        _ = h.value


def test_second_call_on_same_args_is_refused(pool: ArgPool) -> None:
    calls: list[int] = []

    def tick() -> int:
        calls.append(1)
        return len(calls)

    f = Func(tick, pool=pool)
    args = f.args()
    assert f.call(args).values == [1]
    assert args.released
    with pytest.raises(ReleasedArgsError):
        f.call(args)
    assert calls == [1]
    assert pool.idle == 1
    assert pool.checkout(0) is not pool.checkout(0)


def test_missing_argument_still_releases(pool: ArgPool) -> None:
    f = Func(_takes_request, pool=pool)
    f.prune_in(Request)
    with pytest.raises(MissingArgumentError):
        f.call(f.args())
    assert pool.idle == 1


def test_pretty() -> None:
    def fn(req: Request, res: Response) -> None:
        pass

    def two(a: int) -> tuple[bool, str]:
        return True, ""

    assert stat_func(fn).pretty() == "func(handlers.Request, handlers.Response)"
    assert stat_func(two).pretty() == "func(int) (bool, str)"
    assert stat_func(_scale).pretty() == "func(int, int) int"
    assert "_scale" in repr(stat_func(_scale))


def test_handler_factory_with_pruned_request() -> None:
    """ルータ風のファクトリ: 既知の引数は prune して自前供給し、構造体には JSON を流し込む。"""

    written: list[str] = []

    def login(w: Writer, req: Request | None, post: Request) -> None:
        written.append(f"{req.origin}:{post.origin}/{post.token}")

    def factory(handler: Any):
        f = stat_func(handler)
        pruned = f.prune_in(Writer, Request | None)

        def serve(w: Any, req: Request, body: str) -> None:
            args = f.args()
            for arg in pruned:
                if arg.t is Writer:
                    args.values[arg.n] = w
                else:
                    args.values[arg.n] = req
            for arg in f.in_create:
                if arg.kind is Kind.STRUCT:
                    args.handles[arg.n].value = arg.t(**json.loads(body))
            f.call(args)

        return serve

    serve = factory(login)
    serve(None, Request(origin="web"), '{"origin": "json", "token": "s3cr3t"}')
    assert written == ["web:json/s3cr3t"]
