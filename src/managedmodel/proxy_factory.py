"""
Caller-level memoization of generated implementation classes.

The generator is a pure function of (contract, delegate type, properties),
so one generated class per (ModelType, delegate type) pair is shared by all
instances. The factory also wires the schema store in front of generation,
so a contract is validated (and its schema cached) before any class is built.

Thread safety: Not thread-safe, like the store it uses. Callers sharing a
factory across threads must synchronize create_instance themselves.

Usage:
    factory = ManagedProxyFactory()
    point = factory.create_instance(state, Point)
    point.x = 1                      # state.set('x', 1)
"""

import logging
from typing import Any, Dict, Optional, Tuple, Type

from managedmodel.errors import ProxyGenerationError, type_name
from managedmodel.model_type import ModelType
from managedmodel.proxy_generator import ManagedProxyClassGenerator
from managedmodel.schema import ModelSchemaKind
from managedmodel.state import ModelElementState
from managedmodel.store import ModelSchemaStore, get_default_store

logger = logging.getLogger(__name__)

# Generated classes keyed on (contract ModelType, delegate type)
ImplementationKey = Tuple[ModelType, Optional[type]]


class ManagedProxyFactory:
    """Creates managed instances, generating each implementation class once."""

    def __init__(self, store: Optional[ModelSchemaStore] = None,
                 generator: Optional[ManagedProxyClassGenerator] = None):
        self.store = store or get_default_store()
        self.generator = generator or ManagedProxyClassGenerator()
        self._generated: Dict[ImplementationKey, Type] = {}

    def delegate_type_for(self, model_type: Any) -> Optional[type]:
        """The delegate type registered for a contract, if any."""
        raw = self.store.normalize(model_type).raw_class
        if raw is None:
            return None
        return self.store.extractor.policy.delegate_type_for(raw)

    def get_implementation_class(self, model_type: Any, delegate_type: Optional[type] = None) -> Type:
        """
        Get (generating on first use) the implementation class of a contract.

        Args:
            model_type: Contract class or ModelType
            delegate_type: Delegate type, or None for the registered one

        Returns:
            The shared implementation class

        Raises:
            SchemaExtractionError: If the contract is invalid
            ProxyGenerationError: If no class can be generated for it
        """
        schema = self.store.get_schema(model_type)
        if schema.kind is not ModelSchemaKind.STRUCT:
            raise ProxyGenerationError(
                schema.type, f"is a {schema.kind.value} type, not a managed contract")

        if delegate_type is None:
            delegate_type = self.store.extractor.policy.delegate_type_for(schema.type.raw_class)

        key = (schema.type, delegate_type)
        impl_class = self._generated.get(key)
        if impl_class is None:
            results = self.store.extractor.extract_property_results(schema.type)
            impl_class = self.generator.generate(schema.type, delegate_type, results)
            self._generated[key] = impl_class
            logger.debug(f"Generated {impl_class.__qualname__} for {schema.type.display_name} "
                         f"(delegate={type_name(delegate_type) if delegate_type else None})")
        return impl_class

    def create_instance(self, state: ModelElementState, model_type: Any, delegate: Any = None,
                        delegate_type: Optional[type] = None) -> Any:
        """
        Create a managed instance of a contract.

        Args:
            state: Element state backing the managed properties
            model_type: Contract class or ModelType
            delegate: Delegate instance, required when a delegate type applies
            delegate_type: Overrides the registered delegate type

        Returns:
            A new instance of the generated implementation class
        """
        impl_class = self.get_implementation_class(model_type, delegate_type)
        registered_delegate_type = impl_class.__managed_delegate_type__
        if registered_delegate_type is None:
            if delegate is not None:
                raise TypeError(
                    f"{impl_class.__managed_type__.display_name} takes no delegate, "
                    f"got {type_name(type(delegate))}"
                )
            return impl_class(state)
        if delegate is None:
            raise TypeError(
                f"{impl_class.__managed_type__.display_name} requires a delegate of type "
                f"{type_name(registered_delegate_type)}"
            )
        return impl_class(state, delegate)

    def clear(self) -> None:
        """Forget every generated class (for testing)."""
        self._generated.clear()

    def size(self) -> int:
        return len(self._generated)
