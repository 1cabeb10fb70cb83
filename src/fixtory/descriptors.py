from __future__ import annotations

import inspect
import logging
import random
import typing
import uuid
from string import ascii_letters, digits

import faker

if typing.TYPE_CHECKING:
    from fixtory import Factory
    from fixtory.persistence import Store

T = typing.TypeVar("T", default=typing.Any)

logger = logging.getLogger(__name__)


class ModelProxy:
    """Read-only attribute view over a mapping or an object."""

    __slots__ = "_data"

    def __init__(self, data: object) -> None:
        self._data = data

    def __getattr__(self, name: str) -> object:
        if isinstance(self._data, typing.Mapping):
            mapping = typing.cast(typing.Mapping[str, object], self._data)
            if name in mapping:
                return mapping[name]

        try:
            return getattr(self._data, name)
        except AttributeError:
            raise AttributeError(f'Field "{name}" not yet resolved or does not exist.') from None


class Descriptor[T]:
    is_lazy: typing.ClassVar[bool] = False

    def resolve(self, faker: faker.Faker, model_proxy: ModelProxy) -> T:
        raise NotImplementedError


class StaticValue(Descriptor[T]):
    __slots__ = ("value",)

    def __init__(self, value: T) -> None:
        self.value = value

    def resolve(self, faker: faker.Faker, model_proxy: ModelProxy) -> T:
        if isinstance(self.value, (list, dict, set)):
            return typing.cast(T, self.value.copy())
        return self.value


PS = typing.ParamSpec("PS")


class CallDescriptor(Descriptor[T]):
    __slots__ = ("_args", "_func", "_kwargs")

    def __init__(
        self,
        func: typing.Callable[PS, T],
        *args: PS.args,
        **kwargs: PS.kwargs,
    ) -> None:
        self._func = func
        self._args = args
        self._kwargs = kwargs

    def resolve(self, faker: faker.Faker, model_proxy: ModelProxy) -> T:
        return self._func(*self._args, **self._kwargs)


class SequenceDescriptor(Descriptor[T | str | int]):
    """Counter per declaration, optionally rendered by a template or a `(proxy, n)` callable."""

    __slots__ = ("_counter", "_render")

    def __init__(
        self,
        format: str | typing.Callable[[ModelProxy, int], T] | None = None,
        *,
        start: int = 1,
    ) -> None:
        self._counter = start
        self._render: typing.Callable[[ModelProxy, int], T | str | int]
        if format is None:
            self._render = lambda _, n: n
        elif isinstance(format, str):
            self._render = lambda _, n: format.format(n)
        else:
            self._render = format

    def resolve(self, faker: faker.Faker, model_proxy: ModelProxy) -> T | str | int:
        n, self._counter = self._counter, self._counter + 1
        return self._render(model_proxy, n)


class FakeDescriptor(Descriptor[T]):
    __slots__ = ("_args", "_kwargs", "_provider")

    def __init__(self, provider: str, *args: typing.Any, **kwargs: typing.Any) -> None:
        self._provider = provider
        self._args = args
        self._kwargs = kwargs

    def resolve(self, faker: faker.Faker, model_proxy: ModelProxy) -> T:
        return getattr(faker, self._provider)(*self._args, **self._kwargs)


class FakerProxy:
    def __getattr__(self, name: str) -> typing.Callable[..., FakeDescriptor]:
        if name.startswith("_"):
            raise AttributeError(name)

        def descriptor_factory(*args: typing.Any, **kwargs: typing.Any) -> FakeDescriptor:
            return FakeDescriptor(name, *args, **kwargs)

        return descriptor_factory


class LazyDescriptor[T]:
    """Default resolved against the store by `create`, never by `build`."""

    __slots__ = ("_func",)

    is_lazy: typing.ClassVar[bool] = True

    def __init__(self, func: typing.Callable[[Store], T | typing.Awaitable[T]]) -> None:
        self._func = func

    async def resolve(self, store: Store) -> T:
        value = self._func(store)
        if inspect.isawaitable(value):
            value = await value
        return typing.cast(T, value)


class Generators:
    """Values unique per created record.

    They are declared lazy, so every `create` draws a new one and a bare
    `build` requires them explicitly.
    """

    def uuid4(self) -> LazyDescriptor[uuid.UUID]:
        return LazyDescriptor(lambda _: uuid.uuid4())

    def token(self, length: int = 16, alphabet: str = ascii_letters + digits) -> LazyDescriptor[str]:
        if length < 1:
            raise ValueError("length must be >= 1.")
        if not alphabet:
            raise ValueError("alphabet cannot be empty.")
        return LazyDescriptor(lambda _: "".join(random.choices(alphabet, k=length)))


class SubFactoryDescriptor(LazyDescriptor[T]):
    """Creates the related record through `factory`; returns it or its `attr`."""

    __slots__ = ("_attr", "_factory", "_kwargs")

    def __init__(
        self,
        factory: type[Factory[typing.Any]] | typing.Callable[[], type[Factory[typing.Any]]],
        attrs: dict[str, object] | None = None,
        *,
        attr: str | None = None,
    ) -> None:
        self._factory = factory
        self._kwargs = attrs or {}
        self._attr = attr

    @property
    def factory(self) -> type[Factory[typing.Any]]:
        if isinstance(self._factory, type):
            return self._factory
        return self._factory()

    @property
    def attr(self) -> str | None:
        return self._attr

    async def resolve(self, store: Store) -> T:
        factory = self.factory
        logger.debug("Creating %s dependency.", factory.__name__)
        record = await factory.create(store, **self._kwargs)
        if self._attr is None:
            return typing.cast(T, record)
        return typing.cast(T, getattr(ModelProxy(record), self._attr))


type AnyDescriptor = Descriptor[typing.Any] | LazyDescriptor[typing.Any]
