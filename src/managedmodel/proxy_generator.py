"""
Generation of implementation classes for managed contracts.

Given a contract ModelType, an optional delegate type and the property
extraction results, ManagedProxyClassGenerator builds a concrete subclass of
the contract whose managed properties read and write through an element
state object, and whose delegated properties and delegate-type methods are
forwarded to a delegate instance.

Generated classes:
- subclass the contract, the delegate type and ManagedInstance
- keep the contract's __name__; only __qualname__ carries the suffix
- forward the delegate type's public and special methods to the delegate
- are constructed as ``Impl(state)`` or ``Impl(state, delegate)``
- take equality and hash from the state's backing node, str() from its
  display name
- report the contract, never the generated class, in every error message

Generation is deterministic. The generator does not memoize; callers cache
the generated classes (see ManagedProxyFactory).
"""

import inspect
import logging
import types
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Type

from managedmodel.config import GeneratorConfig, get_generator_config
from managedmodel.errors import (MethodSignatureError, MissingPropertyError, ProxyGenerationError,
                                 PropertyValueTypeError, ReadOnlyPropertyError, type_name)
from managedmodel.model_type import ModelType
from managedmodel.schema import ModelPropertyExtractionResult, StateManagementType
from managedmodel.state import ManagedInstance
from managedmodel.store import MANAGED_TYPE_ATTRIBUTE

logger = logging.getLogger(__name__)

# Instance slots holding the collaborators (set with object.__setattr__)
STATE_ATTRIBUTE = '_managed_state'
DELEGATE_ATTRIBUTE = '_managed_delegate'
DELEGATE_TYPE_ATTRIBUTE = '__managed_delegate_type__'

# ManagedInstance capability names; a contract property may not reuse them
RESERVED_PROPERTY_NAMES = frozenset({'managed_type', 'backing_node'})

# Special methods the generated class defines itself or that belong to class machinery
NON_FORWARDED_SPECIAL_METHODS = frozenset({
    '__new__', '__init__', '__init_subclass__', '__class_getitem__', '__subclasshook__',
    '__getattribute__', '__getattr__', '__setattr__', '__delattr__', '__dir__',
    '__eq__', '__ne__', '__hash__', '__str__', '__repr__',
    '__getstate__', '__setstate__', '__reduce__', '__reduce_ex__', '__copy__', '__deepcopy__',
    '__del__', '__set_name__', '__get__', '__set__', '__delete__',
})

GENERATION_DEBUG_TEMPLATE = "PROXY GENERATION: {contract} - managed={managed}, delegated={delegated}, forwarded_methods={methods}"


def _adopt_metadata(function: Callable, contract: type, name: str, source: Optional[Callable] = None) -> Callable:
    """Make a generated function look like it belongs to the contract."""
    function.__name__ = name
    function.__qualname__ = f"{contract.__qualname__}.{name}"
    function.__module__ = contract.__module__
    if source is not None:
        function.__doc__ = source.__doc__
    return function


def _lookup_static(klass: type, name: str) -> Any:
    return inspect.getattr_static(klass, name, None)


def _is_special(name: str) -> bool:
    return name.startswith('__') and name.endswith('__')


def _contract_member(contract: type, name: str) -> Any:
    """The contract's own definition of ``name``, ignoring ``object``."""
    for klass in contract.__mro__:
        if klass is not object and name in klass.__dict__:
            return klass.__dict__[name]
    return None


def _backing_node_of(instance: Any) -> Any:
    state = inspect.getattr_static(instance, STATE_ATTRIBUTE, None)
    if state is None:
        return instance.backing_node
    return state.backing_node


def _forwardable_members(klass: type) -> Iterable[Tuple[str, Any]]:
    """Yield (name, attribute) for the most-derived public and special members of a class."""
    seen = set()
    for base in klass.__mro__:
        if base in (object, ManagedInstance):
            continue
        for name, attr in base.__dict__.items():
            if name in seen:
                continue
            seen.add(name)
            if _is_special(name):
                if name not in NON_FORWARDED_SPECIAL_METHODS:
                    yield name, attr
            elif not name.startswith('_'):
                yield name, attr


class ProxyMethodBindings:
    """Declarative method factories for generated implementation classes."""

    @staticmethod
    def create_init(model_type: ModelType, delegate_type: Optional[type]) -> Callable:
        contract = model_type.raw_class

        if delegate_type is None:
            def __init__(self, state):
                object.__setattr__(self, STATE_ATTRIBUTE, state)
                object.__setattr__(self, DELEGATE_ATTRIBUTE, None)
        else:
            def __init__(self, state, delegate):
                if not isinstance(delegate, delegate_type):
                    raise TypeError(
                        f"Delegate for {model_type.display_name} must be an instance of "
                        f"{type_name(delegate_type)}, got {type_name(type(delegate))}"
                    )
                object.__setattr__(self, STATE_ATTRIBUTE, state)
                object.__setattr__(self, DELEGATE_ATTRIBUTE, delegate)

        return _adopt_metadata(__init__, contract, '__init__')

    @staticmethod
    def create_identity_methods(model_type: ModelType) -> Dict[str, Any]:
        """ManagedInstance capability plus equality, hashing and display."""
        def managed_type(self) -> ModelType:
            return model_type

        def backing_node(self) -> Any:
            return object.__getattribute__(self, STATE_ATTRIBUTE).backing_node

        def __eq__(self, other: Any) -> bool:
            if self is other:
                return True
            if not isinstance(other, ManagedInstance):
                return False
            return other.managed_type == model_type and _backing_node_of(self) == _backing_node_of(other)

        def __hash__(self) -> int:
            return hash(_backing_node_of(self))

        def __str__(self) -> str:
            return object.__getattribute__(self, STATE_ATTRIBUTE).display_name

        return {
            'managed_type': property(managed_type),
            'backing_node': property(backing_node),
            '__eq__': __eq__,
            '__hash__': __hash__,
            '__str__': __str__,
            '__repr__': __str__,
        }

    @staticmethod
    def create_attribute_guards(model_type: ModelType) -> Dict[str, Any]:
        """Reject names the contract does not declare, naming the contract."""
        def __getattribute__(self, name: str) -> Any:
            try:
                return object.__getattribute__(self, name)
            except AttributeError:
                if inspect.getattr_static(type(self), name, None) is not None:
                    # Known name: the failure came from the accessor itself
                    raise
                raise MissingPropertyError(model_type, name) from None

        def __setattr__(self, name: str, value: Any) -> None:
            attr = _lookup_static(type(self), name)
            if isinstance(attr, property):
                if attr.fset is None:
                    raise ReadOnlyPropertyError(model_type, name)
                attr.fset(self, value)
            elif hasattr(attr, '__set__'):
                object.__setattr__(self, name, value)
            else:
                raise MissingPropertyError(model_type, name)

        def __delattr__(self, name: str) -> None:
            if _lookup_static(type(self), name) is None:
                raise MissingPropertyError(model_type, name)
            raise AttributeError(f"Cannot delete property: {name} for class: {model_type.display_name}")

        return {
            '__getattribute__': __getattribute__,
            '__setattr__': __setattr__,
            '__delattr__': __delattr__,
        }

    @staticmethod
    def create_managed_property(model_type: ModelType, result: ModelPropertyExtractionResult,
                                check_value_types: bool) -> property:
        contract = model_type.raw_class
        prop = result.property
        name = prop.name
        declared_type = prop.type
        annotation = declared_type.to_annotation()

        def getter(self):
            return object.__getattribute__(self, STATE_ATTRIBUTE).get(name)

        _adopt_metadata(getter, contract, name, result.getter.function)
        getter.__annotations__ = {'return': annotation}

        if result.setter is None:
            return property(getter, doc=getter.__doc__)

        def setter(self, value):
            if check_value_types and not declared_type.accepts(value):
                raise PropertyValueTypeError(model_type, name, declared_type, value)
            object.__getattribute__(self, STATE_ATTRIBUTE).set(name, value)

        _adopt_metadata(setter, contract, name, result.setter.function)
        ProxyMethodBindings._copy_setter_signature(setter, result.setter.function, annotation)
        return property(getter, setter, doc=getter.__doc__)

    @staticmethod
    def create_delegated_property(model_type: ModelType, name: str, annotation: Any, writable: bool,
                                  getter_source: Optional[Callable] = None,
                                  setter_source: Optional[Callable] = None) -> property:
        contract = model_type.raw_class

        def getter(self):
            return getattr(object.__getattribute__(self, DELEGATE_ATTRIBUTE), name)

        _adopt_metadata(getter, contract, name, getter_source)
        if annotation is not None:
            getter.__annotations__ = {'return': annotation}

        if not writable:
            return property(getter, doc=getter.__doc__)

        def setter(self, value):
            setattr(object.__getattribute__(self, DELEGATE_ATTRIBUTE), name, value)

        _adopt_metadata(setter, contract, name, setter_source)
        if setter_source is not None:
            ProxyMethodBindings._copy_setter_signature(setter, setter_source, annotation)
        return property(getter, setter, doc=getter.__doc__)

    @staticmethod
    def create_forwarding_method(model_type: ModelType, name: str, function: Callable,
                                 check_call_arguments: bool) -> Callable:
        contract = model_type.raw_class
        signature = inspect.signature(function)

        def forward(self, *args, **kwargs):
            if check_call_arguments:
                try:
                    signature.bind(self, *args, **kwargs)
                except TypeError as e:
                    raise MethodSignatureError(model_type, name, args, kwargs, str(e)) from None
            delegate = object.__getattribute__(self, DELEGATE_ATTRIBUTE)
            return getattr(delegate, name)(*args, **kwargs)

        _adopt_metadata(forward, contract, name, function)
        forward.__annotations__ = dict(getattr(function, '__annotations__', {}))
        forward.__signature__ = signature
        return forward

    @staticmethod
    def _copy_setter_signature(setter: Callable, source: Callable, annotation: Any) -> None:
        """Reproduce the contract setter's signature, including its value parameter name."""
        signature = inspect.signature(source)
        parameters = list(signature.parameters.values())
        value_parameter = parameters[1]
        if annotation is not None:
            parameters[1] = value_parameter.replace(annotation=annotation)
        setter.__signature__ = signature.replace(parameters=parameters)
        setter.__annotations__ = {value_parameter.name: annotation, 'return': None}


class ManagedProxyClassGenerator:
    """Synthesizes implementation classes for managed contracts."""

    def __init__(self, config: Optional[GeneratorConfig] = None):
        self.config = config or get_generator_config()

    def generate(self, model_type: Any, delegate_type: Optional[type] = None,
                 properties: Iterable[ModelPropertyExtractionResult] = ()) -> Type:
        """
        Generate an implementation class for a contract.

        Args:
            model_type: The contract, as ModelType or class
            delegate_type: Type of the delegate instance, or None
            properties: Extraction results for the contract's properties

        Returns:
            A new class; instantiate with ``(state)`` or ``(state, delegate)``

        Raises:
            ProxyGenerationError: If the contract cannot be satisfied
        """
        model_type = ModelType.of(model_type)
        contract = model_type.raw_class
        if contract is None:
            raise ProxyGenerationError(model_type, "contract must be a class")
        if delegate_type is not None and not isinstance(delegate_type, type):
            raise ProxyGenerationError(model_type, f"delegate type must be a class, got {delegate_type!r}")

        results = self._index_results(model_type, properties)
        reserved = sorted(RESERVED_PROPERTY_NAMES.intersection(results))
        if reserved:
            raise ProxyGenerationError(
                model_type, f"property '{reserved[0]}' clashes with the ManagedInstance capability")
        namespace: Dict[str, Any] = {
            '__module__': contract.__module__,
            '__qualname__': f"{contract.__qualname__}{self.config.impl_class_suffix}",
            '__doc__': contract.__doc__,
            MANAGED_TYPE_ATTRIBUTE: model_type,
            DELEGATE_TYPE_ATTRIBUTE: delegate_type,
            '__init__': ProxyMethodBindings.create_init(model_type, delegate_type),
        }
        namespace.update(ProxyMethodBindings.create_identity_methods(model_type))
        namespace.update(ProxyMethodBindings.create_attribute_guards(model_type))

        managed: List[str] = []
        delegated: List[str] = []
        for name, result in results.items():
            kind = result.property.state_management_type
            if kind is StateManagementType.MANAGED:
                namespace[name] = ProxyMethodBindings.create_managed_property(
                    model_type, result, self.config.check_value_types)
                managed.append(name)
            elif kind is StateManagementType.DELEGATED:
                namespace[name] = self._delegated_property(model_type, delegate_type, result)
                delegated.append(name)
            elif result.getter.is_abstract or (result.setter is not None and result.setter.is_abstract):
                # Unmanaged and not implemented by the contract: only a delegate can satisfy it
                if delegate_type is None or _lookup_static(delegate_type, name) is None:
                    raise ProxyGenerationError(
                        model_type,
                        f"unmanaged property '{name}' is not implemented and no delegate provides it",
                    )
                namespace[name] = self._delegated_property(model_type, delegate_type, result)
                delegated.append(name)

        forwarded = self._forward_delegate_members(model_type, delegate_type, namespace) if delegate_type else []

        bases = self._bases(contract, delegate_type)
        # __name__ stays the contract's so builtin error messages name the contract
        try:
            impl_class = types.new_class(contract.__name__, bases, exec_body=lambda ns: ns.update(namespace))
        except TypeError as e:
            raise ProxyGenerationError(model_type, f"cannot combine {', '.join(type_name(b) for b in bases)}: {e}") from e

        missing = sorted(getattr(impl_class, '__abstractmethods__', ()))
        if missing:
            raise ProxyGenerationError(model_type, f"abstract members not implemented: {', '.join(missing)}")

        logger.debug(GENERATION_DEBUG_TEMPLATE.format(
            contract=model_type.display_name, managed=managed, delegated=delegated, methods=forwarded,
        ))
        return impl_class

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _index_results(model_type: ModelType,
                       properties: Iterable[ModelPropertyExtractionResult]) -> Dict[str, ModelPropertyExtractionResult]:
        results: Dict[str, ModelPropertyExtractionResult] = {}
        for result in sorted(properties, key=lambda r: r.name):
            if result.name in results:
                raise ProxyGenerationError(model_type, f"property '{result.name}' is given more than once")
            results[result.name] = result
        return results

    @staticmethod
    def _bases(contract: type, delegate_type: Optional[type]) -> Tuple[type, ...]:
        bases: Tuple[type, ...] = (contract,)
        if delegate_type is not None and not issubclass(contract, delegate_type):
            bases += (delegate_type,)
        return bases + (ManagedInstance,)

    def _delegated_property(self, model_type: ModelType, delegate_type: Optional[type],
                            result: ModelPropertyExtractionResult) -> property:
        name = result.name
        if delegate_type is None:
            raise ProxyGenerationError(model_type, f"delegated property '{name}' requires a delegate type")

        delegate_attr = _lookup_static(delegate_type, name)
        annotations = getattr(delegate_type, '__annotations__', {})
        if delegate_attr is None and name not in annotations:
            raise ProxyGenerationError(
                model_type, f"delegate type {type_name(delegate_type)} does not provide property '{name}'")

        if isinstance(delegate_attr, property) and delegate_attr.fget is not None:
            delegate_annotation = getattr(delegate_attr.fget, '__annotations__', {}).get('return')
            if (delegate_annotation is not None and not isinstance(delegate_annotation, str)
                    and ModelType.of(delegate_annotation) != result.property.type):
                raise ProxyGenerationError(
                    model_type,
                    f"property '{name}' is declared as {result.property.type.display_name} but delegate type "
                    f"{type_name(delegate_type)} declares {ModelType.of(delegate_annotation).display_name}",
                )
            if result.setter is not None and delegate_attr.fset is None:
                raise ProxyGenerationError(
                    model_type, f"delegate type {type_name(delegate_type)} has no setter for property '{name}'")

        return ProxyMethodBindings.create_delegated_property(
            model_type, name, result.property.type.to_annotation(), result.setter is not None,
            result.getter.function, result.setter.function if result.setter is not None else None,
        )

    def _forward_delegate_members(self, model_type: ModelType, delegate_type: type,
                                  namespace: Dict[str, Any]) -> List[str]:
        """Forward delegate-type methods and properties the contract does not implement."""
        contract = model_type.raw_class
        forwarded: List[str] = []
        for name, attr in _forwardable_members(delegate_type):
            if name in namespace:
                continue
            own = _contract_member(contract, name)
            if own is not None and not getattr(own, '__isabstractmethod__', False):
                continue
            if inspect.isfunction(attr):
                namespace[name] = ProxyMethodBindings.create_forwarding_method(
                    model_type, name, attr, self.config.check_call_arguments)
                forwarded.append(name)
            elif isinstance(attr, property) and attr.fget is not None:
                namespace[name] = ProxyMethodBindings.create_delegated_property(
                    model_type, name, getattr(attr.fget, '__annotations__', {}).get('return'),
                    attr.fset is not None, attr.fget, attr.fset,
                )
                forwarded.append(name)
        return forwarded
