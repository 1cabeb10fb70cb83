import collections
import copy
import logging
import typing

from fixtory.descriptors import ModelProxy

T = typing.TypeVar("T")

logger = logging.getLogger(__name__)


class Store(typing.Protocol):
    """Persistence collaborator used by `create`.

    `insert` must assign a primary identifier and store the values
    verbatim, or raise without storing anything.
    """

    async def insert[T](self, instance: T) -> T: ...


class StoreError(Exception):
    pass


class IntegrityError(StoreError):
    pass


class MemoryStore:
    """Dict-backed store with per-model auto-increment ids and unique constraints."""

    def __init__(
        self,
        *,
        unique: typing.Mapping[type, typing.Iterable[str]] | None = None,
        pk: str = "id",
    ) -> None:
        self._pk = pk
        self._unique = {model: tuple(fields) for model, fields in (unique or {}).items()}
        self._rows: collections.defaultdict[type, dict[int, object]] = collections.defaultdict(dict)
        self._counters: collections.Counter[type] = collections.Counter()

    async def insert(self, instance: T) -> T:
        model = type(instance)
        row = copy.deepcopy(instance)

        for field_name in self._unique.get(model, ()):
            value = getattr(ModelProxy(row), field_name)
            for existing in self._rows[model].values():
                if getattr(ModelProxy(existing), field_name) == value:
                    raise IntegrityError(f"UNIQUE constraint failed: {model.__name__}.{field_name}")

        self._counters[model] += 1
        pk = self._counters[model]
        if isinstance(row, typing.MutableMapping):
            row[self._pk] = pk
        else:
            setattr(row, self._pk, pk)

        self._rows[model][pk] = row
        logger.debug("Inserted %s with %s=%d.", model.__name__, self._pk, pk)
        return copy.deepcopy(row)

    def get(self, model: type[T], pk: int) -> T | None:
        row = self._rows[model].get(pk)
        return typing.cast(T | None, copy.deepcopy(row))

    def all(self, model: type[T]) -> list[T]:
        return [typing.cast(T, copy.deepcopy(row)) for row in self._rows[model].values()]

    def count(self, model: type) -> int:
        return len(self._rows[model])
