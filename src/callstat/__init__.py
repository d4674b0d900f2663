"""
callstat — 値/型が公開する関数・メソッドを実行時に発見し、シグネチャを知らずに呼び出す。

ハンドラ関数/メソッドを規約で見つけてディスパッチするフレームワーク（例: URL パスを
クラスのメソッドへ結び付けるルータ）向け。反射呼び出しのコストは次で抑える:

- 型ごとのメソッド記述子をキャッシュ（`TypeInfoCache`、`stat()` はグローバルを使用）
- 引数のゼロ値ファクトリを記述子構築時に決定
- 引数コンテナ `Args` をプールして再利用（`call()` で返却）

使用例:
    instance = stat(Person(name="Bob", age=40))
    greet = instance.methods.named("greet")
    print(greet.call(greet.args()).values[0])
    instance.rebind(Person(name="Sally", age=30))
"""

from .cache import TYPE_CACHE, TypeInfoCache, stat, stat_type
from .errors import (
    CallstatError,
    MethodNotFoundError,
    MisuseError,
    MissingArgumentError,
    NotCallableError,
    RebindTypeError,
    ReleasedArgsError,
)
from .func import Arg, Func, stat_func
from .instance import Instance
from .kinds import Kind
from .method import Method, Methods
from .pool import UNSET, ArgPool, Args, Handle, UnpooledArgPool, default_arg_pool
from .receiver import Receiver
from .result import Result

__all__ = [
    # entry points
    "stat",
    "stat_type",
    "stat_func",
    "TypeInfoCache",
    "TYPE_CACHE",
    # descriptors
    "Arg",
    "Func",
    "Method",
    "Methods",
    "Instance",
    "Receiver",
    "Kind",
    # arguments / results
    "Args",
    "Handle",
    "UNSET",
    "ArgPool",
    "UnpooledArgPool",
    "default_arg_pool",
    "Result",
    # errors
    "CallstatError",
    "MisuseError",
    "RebindTypeError",
    "NotCallableError",
    "MissingArgumentError",
    "ReleasedArgsError",
    "MethodNotFoundError",
]
