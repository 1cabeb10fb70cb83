import pytest

from fixtory import MemoryStore, configure
from tests.assets import Doctor, Specialty


@pytest.fixture(autouse=True, scope="session")
def _seed() -> None:
    configure(seed=1)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore(unique={Specialty: ("uuid",), Doctor: ("uuid",)})
