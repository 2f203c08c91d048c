"""Pytest configuration and shared fixtures."""
import pytest

from managedmodel import (
    ManagedProxyClassGenerator,
    ModelSchemaExtractor,
    ModelSchemaStore,
    ModelType,
    reset_generator_config,
)

from model_contracts import DictState


@pytest.fixture(autouse=True)
def reset_config():
    """Restore the default generator configuration after each test."""
    yield
    reset_generator_config()


@pytest.fixture
def store():
    """Provide a fresh schema store without normalizers."""
    return ModelSchemaStore()


@pytest.fixture
def state():
    """Provide a dict-backed element state."""
    return DictState()


@pytest.fixture
def generate():
    """Generate implementation classes, caching them per (contract, delegate type)."""
    generator = ManagedProxyClassGenerator()
    extractor = ModelSchemaExtractor()
    generated = {}

    def _generate(contract, delegate_type=None, properties=None):
        key = (ModelType.of(contract), delegate_type)
        if key not in generated:
            if properties is None:
                properties = extractor.extract_property_results(contract)
            generated[key] = generator.generate(contract, delegate_type, properties)
        return generated[key]

    return _generate
