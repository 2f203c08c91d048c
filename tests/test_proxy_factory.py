"""Tests for ManagedProxyFactory: store-backed creation and class memoization."""
import pytest

from managedmodel import (
    ManagedProxyFactory,
    ModelSchemaStore,
    ModelType,
    ProxyGenerationError,
    SchemaExtractionError,
    managed_impl_type_normalizer,
)

from model_contracts import (
    Box, DictState, InternalUnmanagedType, ManagedSubType, MismatchedType, Node, Person, SomeType,
    UnmanagedImplType,
)


@pytest.fixture
def factory(store):
    """Provide a factory over a fresh store."""
    return ManagedProxyFactory(store=store)


class TestCreateInstance:
    """Instances are created through the schema store."""

    def test_creates_managed_instance(self, factory, state):
        instance = factory.create_instance(state, SomeType)
        instance.value = 42
        assert state.values == {"value": 42}
        assert instance.value == 42
        assert isinstance(instance, SomeType)

    def test_uses_registered_delegate_type(self, factory, state):
        delegate = UnmanagedImplType()
        instance = factory.create_instance(state, ManagedSubType, delegate)

        instance.unmanaged_value = "Lajos"
        assert delegate.unmanaged_value == "Lajos"
        assert isinstance(instance, InternalUnmanagedType)
        assert factory.delegate_type_for(ManagedSubType) is InternalUnmanagedType

    def test_requires_delegate_when_registered(self, factory, state):
        with pytest.raises(TypeError, match="requires a delegate"):
            factory.create_instance(state, ManagedSubType)

    def test_rejects_delegate_when_not_registered(self, factory, state):
        with pytest.raises(TypeError, match="takes no delegate"):
            factory.create_instance(state, SomeType, UnmanagedImplType())

    def test_generic_contract(self, factory, state):
        instance = factory.create_instance(state, Box[str])
        instance.item = "thing"
        assert instance.item == "thing"
        assert instance.managed_type == ModelType.of(Box[str])

    def test_schema_extracted_before_generation(self, factory, store, state):
        factory.create_instance(state, Person)
        assert ModelType.of(Person) in store.cache
        assert store.get_instance_schema(factory.create_instance(state, Person)) is store.get_schema(Person)


class TestMemoization:
    """One implementation class per (contract, delegate type)."""

    def test_class_generated_once(self, factory):
        first = factory.create_instance(DictState(Node("a")), SomeType)
        second = factory.create_instance(DictState(Node("b")), SomeType)
        assert type(first) is type(second)
        assert factory.size() == 1

    def test_parameterizations_get_own_classes(self, factory):
        assert factory.get_implementation_class(Box[int]) is not factory.get_implementation_class(Box[str])
        assert factory.size() == 2

    def test_clear(self, factory):
        impl_class = factory.get_implementation_class(SomeType)
        factory.clear()
        assert factory.size() == 0
        assert factory.get_implementation_class(SomeType) is not impl_class

    def test_impl_class_resolves_to_contract_with_normalizer(self):
        factory = ManagedProxyFactory(store=ModelSchemaStore(normalizers=[managed_impl_type_normalizer]))
        impl_class = factory.get_implementation_class(SomeType)
        assert factory.get_implementation_class(impl_class) is impl_class


class TestFailures:
    """Nothing is generated for invalid or non-contract types."""

    def test_invalid_contract(self, factory, store, state):
        with pytest.raises(SchemaExtractionError):
            factory.create_instance(state, MismatchedType)
        assert factory.size() == 0
        assert store.size() == 0

    def test_value_type_is_not_a_contract(self, factory, state):
        with pytest.raises(ProxyGenerationError, match="not a managed contract"):
            factory.create_instance(state, int)
