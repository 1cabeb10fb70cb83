from __future__ import annotations

import dataclasses
import datetime
import decimal
import enum
import logging
import typing
import uuid

import faker

from fixtory.config import global_config
from fixtory.descriptors import (
    AnyDescriptor,
    Descriptor,
    LazyDescriptor,
    ModelProxy,
    StaticValue,
    SubFactoryDescriptor,
)

if typing.TYPE_CHECKING:
    from fixtory.persistence import Store

T = typing.TypeVar("T")

logger = logging.getLogger(__name__)


class FieldKind(enum.StrEnum):
    STATIC = "static"
    LAZY = "lazy"


@dataclasses.dataclass(frozen=True)
class FieldDescriptor:
    name: str
    kind: FieldKind
    value_type: object = typing.Any


class UnresolvedFieldError(RuntimeError):
    def __init__(self, factory_name: str, fields: typing.Sequence[str]) -> None:
        self.fields = tuple(fields)
        super().__init__(
            f"{factory_name}.build() cannot resolve lazy fields without a store; "
            f"set them explicitly: {', '.join(self.fields)}."
        )


def _collect_declarations(attrs: typing.Mapping[str, object]) -> dict[str, AnyDescriptor]:
    declarations: dict[str, AnyDescriptor] = {}

    for attr_name, attr_value in attrs.items():
        if attr_name.startswith("__"):
            continue

        if attr_name in ["_declarations", "_fields"]:
            continue

        if isinstance(attr_value, (classmethod, property, staticmethod)):
            continue

        if isinstance(attr_value, (Descriptor, LazyDescriptor)):
            declarations[attr_name] = attr_value
            continue

        declarations[attr_name] = StaticValue(attr_value)
    return declarations


def _infer_model_class(bases: tuple[type, ...], attrs: typing.Mapping[str, object]) -> object:
    orig_bases = typing.cast(tuple[object, ...], attrs.get("__orig_bases__", ()))
    for orig_base in orig_bases:
        args = typing.get_args(orig_base)
        if args and not isinstance(args[0], typing.TypeVar):
            return args[0]

    for base in bases:
        model_class = getattr(base, "__model_class__", None)
        if model_class is not None:
            return model_class

    return dict


def _collect_type_hints(model_class: object) -> dict[str, object]:
    if model_class is dict:
        return {}

    try:
        return typing.get_type_hints(model_class)
    except (AttributeError, NameError, TypeError):
        return dict(getattr(model_class, "__annotations__", {}))


def _inherited_option(
    bases: tuple[type, ...],
    attrs: typing.Mapping[str, object],
    name: str,
    default: object,
) -> object:
    if name in attrs:
        return attrs[name]
    for base in bases:
        if hasattr(base, name):
            return getattr(base, name)
    return default


class FactoryMeta(type):
    def __new__(
        cls,
        name: str,
        bases: tuple[type, ...],
        attrs: dict[str, object],
    ) -> type:
        if name == "Factory":
            return super().__new__(cls, name, bases, attrs)

        declarations: dict[str, AnyDescriptor] = {}
        for base in reversed(bases):
            declarations.update(getattr(base, "_declarations", {}))
        declarations.update(_collect_declarations(attrs))

        model_class = _infer_model_class(bases, attrs)
        hints = _collect_type_hints(model_class)
        fields = tuple(
            FieldDescriptor(
                name=field_name,
                kind=FieldKind.LAZY if descriptor.is_lazy else FieldKind.STATIC,
                value_type=hints.get(field_name, typing.Any),
            )
            for field_name, descriptor in declarations.items()
        )

        locale = typing.cast(str, _inherited_option(bases, attrs, "__locale__", global_config.locale))
        seed = typing.cast(int | None, _inherited_option(bases, attrs, "__seed__", global_config.seed))
        faker_ = faker.Faker(locale)
        faker_.seed_instance(seed)

        attrs.update(
            {
                "_declarations": declarations,
                "_fields": fields,
                "__model_class__": model_class,
                "__faker__": faker_,
            }
        )
        return super().__new__(cls, name, bases, attrs)


class BuildStrategy(typing.Protocol[T]):
    def __call__(self, model_class: object, attrs: dict[str, typing.Any]) -> T: ...


def _fresh(value: object) -> object:
    if isinstance(value, (list, dict, set)):
        return value.copy()
    return value


class Builder[T]:
    __slots__ = ("_factory", "_overridden", "_values")

    def __init__(
        self,
        factory: type[Factory[T]],
        values: dict[str, object],
        overridden: frozenset[str] = frozenset(),
    ) -> None:
        self._factory = factory
        self._values = values
        self._overridden = overridden

    def __getattr__(self, name: str) -> typing.Callable[[object], Builder[T]]:
        if name.startswith("with_") and name != "with_":
            field_name = name.removeprefix("with_")
            if field_name in self._factory._declarations:

                def setter(value: object) -> Builder[T]:
                    return self.with_(**{field_name: value})

                return setter
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __repr__(self) -> str:
        return f"<Builder {self._factory.__name__} {self._values!r}>"

    @property
    def factory(self) -> type[Factory[T]]:
        return self._factory

    @property
    def values(self) -> dict[str, object]:
        return dict(self._values)

    @property
    def unresolved(self) -> tuple[str, ...]:
        return tuple(
            field_name
            for field_name, descriptor in self._factory._declarations.items()
            if descriptor.is_lazy and field_name not in self._values
        )

    def with_(self, /, **values: object) -> Builder[T]:
        self._factory._check_field_names(values)
        return Builder(
            self._factory,
            {**self._values, **values},
            self._overridden.union(values),
        )

    async def _resolve(self, store: Store) -> dict[str, object]:
        resolved: dict[str, object] = {}
        factory_name = self._factory.__name__

        for field_name, descriptor in self._factory._declarations.items():
            if field_name in self._values:
                resolved[field_name] = _fresh(self._values[field_name])
                source = "override" if field_name in self._overridden else "default"
            else:
                resolved[field_name] = await typing.cast(LazyDescriptor[object], descriptor).resolve(store)
                source = "resolver"
            logger.debug("%s.%s resolved from %s.", factory_name, field_name, source)

        return resolved

    async def create(self, store: Store, /) -> T:
        attrs = await self._resolve(store)
        instance = self._factory._instantiate(attrs)
        logger.debug("Inserting %s record.", self._factory.__name__)
        return await store.insert(instance)

    async def get_created_id(self, store: Store, /, *, pk: str = "id") -> typing.Any:
        record = await self.create(store)
        return getattr(ModelProxy(record), pk)

    def to_dict(self) -> dict[str, object]:
        missing = self.unresolved
        if missing:
            raise UnresolvedFieldError(self._factory.__name__, missing)

        return {field_name: _fresh(self._values[field_name]) for field_name in self._factory._declarations}

    def build(self) -> T:
        return self._factory._instantiate(self.to_dict())


class Factory[T](metaclass=FactoryMeta):
    __model_class__: type[T]
    __locale__: str
    __faker__: faker.Faker
    __seed__: int
    __build_strategy__: typing.Literal["setattr", "init"] | BuildStrategy[T] = "init"

    _declarations: typing.ClassVar[dict[str, AnyDescriptor]]
    _fields: typing.ClassVar[tuple[FieldDescriptor, ...]]

    @classmethod
    def fields(cls) -> tuple[FieldDescriptor, ...]:
        return cls._fields

    @classmethod
    def dependencies(cls) -> dict[str, type[Factory[typing.Any]]]:
        """Factories this one creates records through, keyed by field name."""
        return {
            field_name: descriptor.factory
            for field_name, descriptor in cls._declarations.items()
            if isinstance(descriptor, SubFactoryDescriptor)
        }

    @classmethod
    def _check_field_names(cls, values: typing.Mapping[str, object]) -> None:
        for field_name in values:
            if field_name not in cls._declarations:
                raise TypeError(f"{cls.__name__} has no field {field_name!r}.")

    @classmethod
    def builder(cls, /, **overrides: object) -> Builder[T]:
        cls._check_field_names(overrides)
        values: dict[str, object] = {}
        faker = cls.__faker__

        for field_name, descriptor in cls._declarations.items():
            if field_name in overrides:
                values[field_name] = overrides[field_name]
                continue

            if isinstance(descriptor, Descriptor):
                values[field_name] = descriptor.resolve(faker, ModelProxy(values))

        return Builder(cls, values, frozenset(overrides))

    @classmethod
    def _instantiate(cls, attrs: dict[str, object]) -> T:
        if callable(cls.__build_strategy__):
            return cls.__build_strategy__(cls.__model_class__, attrs)

        if cls.__build_strategy__ == "init":
            return cls.__model_class__(**attrs)

        instance = cls.__model_class__()
        for attr_name, attr_value in attrs.items():
            setattr(instance, attr_name, attr_value)

        return instance

    @classmethod
    async def create(cls, store: Store, /, **overrides: object) -> T:
        return await cls.builder(**overrides).create(store)

    @classmethod
    async def create_batch(cls, store: Store, count: int, /, **overrides: object) -> list[T]:
        return [await cls.create(store, **overrides) for _ in range(count)]

    @classmethod
    async def get_created_id(cls, store: Store, /, *, pk: str = "id", **overrides: object) -> typing.Any:
        return await cls.builder(**overrides).get_created_id(store, pk=pk)

    @classmethod
    def build(cls, /, **overrides: object) -> T:
        return cls.builder(**overrides).build()

    @classmethod
    def build_batch(cls, count: int, /, **overrides: object) -> list[T]:
        return [cls.build(**overrides) for _ in range(count)]

    @classmethod
    def to_dict(cls, overrides: dict[str, object] | None = None) -> dict[str, object]:
        return cls.builder(**(overrides or {})).to_dict()

    @classmethod
    def to_json_dict(cls, overrides: dict[str, object] | None = None) -> dict[str, object]:
        attrs = cls.to_dict(overrides)
        return typing.cast(dict[str, object], _jsonify(attrs))


def _jsonify(value: object) -> object:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, decimal.Decimal):
        return float(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {k: _jsonify(v) for k, v in dataclasses.asdict(value).items()}
    if isinstance(value, dict):
        return {k: _jsonify(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_jsonify(v) for v in value]
    return value
