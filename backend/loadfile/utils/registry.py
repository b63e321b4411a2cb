# backend/loadfile/utils/registry.py
"""
/**
 * @brief 按名字查找实现类的注册表：配置文件里的 "s3" / "yaml" -> 具体类 -> 实例。
 *        Name -> implementation class registry: "s3" / "yaml" in a config file
 *        -> concrete class -> instance.
 *
 * @note
 * - 名字不区分大小写，两端空白忽略 / Names are case-insensitive, surrounding blanks ignored.
 * - 只登记类；实例由 create() 按配置现场构造 / Classes only; create() builds instances.
 * - 登记发生在实现模块 import 时，之后视为只读 / Registration happens at import time.
 */
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterator, Mapping, Optional, Type, TypeVar, overload


T = TypeVar("T")


class RegistryError(RuntimeError):
    """Base class of registry failures."""


class DuplicateRegistrationError(RegistryError):
    """A name is already taken by a different class."""


class NotFoundError(RegistryError):
    """Lookup of a name nobody registered."""


class InvalidRegistrationError(RegistryError):
    """Bad name, a non-class, or a class outside the registry's base."""


@dataclass(frozen=True)
class RegistryItem(Generic[T]):
    """
    /**
     * @brief 一条登记记录 / One registration record.
     */
    """

    name: str
    cls: Type[T]
    module: str
    qualname: str

    @classmethod
    def of(cls, name: str, target: Type[T]) -> "RegistryItem[T]":
        return cls(
            name=name,
            cls=target,
            module=getattr(target, "__module__", "?"),
            qualname=getattr(target, "__qualname__", target.__name__),
        )

    @property
    def dotted(self) -> str:
        return f"{self.module}.{self.qualname}"


def _key(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise InvalidRegistrationError(f"registry name must be a non-empty string, got {name!r}")
    return name.strip().lower()


class Registry(Generic[T]):
    """
    /**
     * @brief 命名空间内的 name -> class 表，可选 base 约束。
     *        Per-namespace name -> class table with an optional base-class constraint.
     *
     * @param namespace
     *        出现在错误信息里的名字（"sources" / "decoders"）。
     *        Name shown in error messages ("sources" / "decoders").
     * @param base
     *        可选：所有登记的类必须是它的子类 / Optional: every class must subclass it.
     */
    """

    def __init__(self, namespace: str, base: Optional[Type[T]] = None) -> None:
        if not isinstance(namespace, str) or not namespace.strip():
            raise ValueError("namespace must be a non-empty string")
        self._namespace = namespace.strip()
        self._base = base
        self._table: dict[str, RegistryItem[T]] = {}

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def base(self) -> Optional[Type[T]]:
        return self._base

    @overload
    def register(self, name: str, *, override: bool = ...) -> Callable[[Type[T]], Type[T]]: ...

    @overload
    def register(self, name: str, cls: Type[T], *, override: bool = ...) -> Type[T]: ...

    def register(self, name, cls=None, *, override=False):
        """
        /**
         * @brief 登记一个类；不给 cls 时作为 decorator 使用。
         *        Register a class; used as a decorator when cls is omitted.
         *
         *            @SOURCES.register("s3")
         *            class S3Source(SourceProvider): ...
         *
         * @note
         *        同一个类重复登记是空操作；同名不同类需要 override=True。
         *        Re-registering the same class is a no-op; a different class under
         *        a taken name needs override=True.
         */
        """
        key = _key(name)

        def add(target: Type[T]) -> Type[T]:
            self._check(key, target)
            current = self._table.get(key)
            if current is not None and current.cls is not target and not override:
                raise DuplicateRegistrationError(
                    f"[{self._namespace}] '{key}' is taken by {current.dotted}; "
                    f"refusing {RegistryItem.of(key, target).dotted}"
                )
            if current is None or current.cls is not target:
                self._table[key] = RegistryItem.of(key, target)
            return target

        return add if cls is None else add(cls)

    def get(self, name: str) -> Optional[Type[T]]:
        item = self._table.get(_key(name))
        return item.cls if item is not None else None

    def require(self, name: str) -> Type[T]:
        """Like get(), but an unknown name raises NotFoundError listing what exists."""
        found = self.get(name)
        if found is None:
            raise NotFoundError(
                f"[{self._namespace}] unknown name '{_key(name)}', "
                f"available=[{', '.join(self.keys())}]"
            )
        return found

    def create(self, name: str, config: Optional[Mapping[str, Any]] = None) -> T:
        """
        /**
         * @brief require(name)(**config)：配置里的 config 映射直接作为构造参数。
         *        require(name)(**config): the config mapping becomes constructor kwargs.
         *
         * @throws TypeError
         *         config 与构造函数签名不符（信息里带上 key 列表）。
         *         config does not fit the constructor (message lists the keys).
         */
        """
        factory = self.require(name)
        kwargs = dict(config or {})
        try:
            return factory(**kwargs)
        except TypeError as e:
            raise TypeError(
                f"[{self._namespace}] cannot build '{_key(name)}' from config keys={sorted(kwargs)}: {e}"
            ) from e

    def keys(self) -> tuple[str, ...]:
        return tuple(sorted(self._table))

    def items(self) -> tuple[RegistryItem[T], ...]:
        return tuple(self._table[k] for k in self.keys())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip().lower() in self._table

    def __len__(self) -> int:
        return len(self._table)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def _check(self, key: str, target: Any) -> None:
        if not isinstance(target, type):
            raise InvalidRegistrationError(
                f"[{self._namespace}] '{key}' must map to a class, got {type(target).__name__}"
            )
        if self._base is not None and not issubclass(target, self._base):
            raise InvalidRegistrationError(
                f"[{self._namespace}] {target.__module__}.{target.__qualname__} "
                f"is not a {self._base.__qualname__}"
            )
