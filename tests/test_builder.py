from uuid import UUID

import pytest

from fixtory import Builder, MemoryStore, UnresolvedFieldError, seq
from fixtory.factories import Factory
from tests.assets import Doctor, DoctorFactory, Specialty, SpecialtyFactory


class TestNewBuilder:
    def test_static_defaults_are_concrete(self) -> None:
        builder = SpecialtyFactory.builder()

        assert isinstance(builder, Builder)
        assert builder.values == {
            "name": "Test Specialty",
            "description": "Test Description",
            "is_active": True,
        }

    def test_lazy_fields_start_unset(self) -> None:
        assert SpecialtyFactory.builder().unresolved == ("uuid",)
        assert DoctorFactory.builder().unresolved == ("uuid", "specialty_id")

    def test_static_defaults_evaluated_once_per_builder(self) -> None:
        class _SomeFactory(Factory):
            code = seq()

        builder = _SomeFactory.builder()
        assert builder.build() == {"code": 1}
        assert builder.build() == {"code": 1}
        assert _SomeFactory.builder().build() == {"code": 2}


class TestSetters:
    def test_named_setter(self) -> None:
        builder = SpecialtyFactory.builder().with_name("Cardiology").with_description(None)

        assert builder.values["name"] == "Cardiology"
        assert builder.values["description"] is None

    def test_named_setter_for_lazy_field(self) -> None:
        builder = SpecialtyFactory.builder().with_uuid(UUID(int=3))
        assert builder.unresolved == ()

    def test_with_sets_several_fields(self) -> None:
        builder = DoctorFactory.builder().with_(first_name="Gregory", last_name="House")
        assert builder.values["first_name"] == "Gregory"
        assert builder.values["last_name"] == "House"

    def test_unknown_named_setter(self) -> None:
        with pytest.raises(AttributeError, match="with_title"):
            SpecialtyFactory.builder().with_title("x")

    def test_unknown_field_in_with(self) -> None:
        with pytest.raises(TypeError, match="has no field 'title'"):
            SpecialtyFactory.builder().with_(title="x")

    def test_setters_return_new_builder(self) -> None:
        base = SpecialtyFactory.builder()
        derived = base.with_name("Cardiology")

        assert derived is not base
        assert base.values["name"] == "Test Specialty"
        assert base.unresolved == ("uuid",)


class TestBuild:
    def test_build_returns_unsaved_model(self) -> None:
        specialty = SpecialtyFactory.builder().with_name("Test").with_uuid(UUID(int=1)).build()

        assert isinstance(specialty, Specialty)
        assert specialty.id is None
        assert specialty.name == "Test"
        assert specialty.uuid == UUID(int=1)
        assert specialty.is_active is True

    def test_build_with_unresolved_lazy_field_fails(self) -> None:
        builder = DoctorFactory.builder().with_uuid(UUID(int=1))

        with pytest.raises(UnresolvedFieldError, match="specialty_id"):
            builder.build()

    def test_build_never_substitutes_placeholder(self) -> None:
        builder = SpecialtyFactory.builder()
        with pytest.raises(UnresolvedFieldError):
            builder.build()
        assert builder.unresolved == ("uuid",)


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_with_overrides(self, store: MemoryStore) -> None:
        specialty = await (
            SpecialtyFactory.builder()
            .with_name("Cardiology")
            .with_description("Heart specialist")
            .create(store)
        )

        assert specialty.name == "Cardiology"
        assert specialty.description == "Heart specialist"
        assert store.get(Specialty, specialty.id) == specialty

    @pytest.mark.asyncio
    async def test_create_resolves_lazy_fields(self, store: MemoryStore) -> None:
        doctor = await DoctorFactory.builder().with_first_name("Gregory").create(store)

        assert doctor.first_name == "Gregory"
        assert doctor.specialty_id == store.all(Specialty)[0].id
        assert isinstance(doctor.uuid, UUID)

    @pytest.mark.asyncio
    async def test_create_does_not_mutate_builder(self, store: MemoryStore) -> None:
        builder = DoctorFactory.builder()
        await builder.create(store)
        assert builder.unresolved == ("uuid", "specialty_id")

    @pytest.mark.asyncio
    async def test_builder_reuse(self, store: MemoryStore) -> None:
        base = SpecialtyFactory.builder().with_name("Neurology")

        first = await base.create(store)
        second = await base.with_is_active(False).create(store)

        assert first.id != second.id
        assert first.name == second.name == "Neurology"
        assert first.is_active is True
        assert second.is_active is False
        assert base.values["is_active"] is True

    @pytest.mark.asyncio
    async def test_builder_reuse_resolves_lazy_fields_per_record(self, store: MemoryStore) -> None:
        base = DoctorFactory.builder().with_last_name("Grey")

        first = await base.create(store)
        second = await base.create(store)

        assert first.uuid != second.uuid
        assert first.specialty_id != second.specialty_id
        assert store.count(Doctor) == 2

    @pytest.mark.asyncio
    async def test_get_created_id(self, store: MemoryStore) -> None:
        pk = await SpecialtyFactory.builder().with_name("Oncology").get_created_id(store)

        assert pk == 1
        assert store.get(Specialty, pk).name == "Oncology"
