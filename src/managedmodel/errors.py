"""
Exception hierarchy for managed model schemas and generated proxies.

Every error derives from ManagedModelError and from the builtin exception a
caller would naturally catch (TypeError, AttributeError, ValueError), so
``except AttributeError`` keeps working on generated instances.
"""

from typing import Any, Optional


def type_name(t: Any) -> str:
    """Fully qualified name used in diagnostics."""
    if not isinstance(t, type):
        # ModelType and other descriptors render themselves
        display_name = getattr(t, 'display_name', None)
        if isinstance(display_name, str):
            return display_name
    module = getattr(t, '__module__', None)
    qualname = getattr(t, '__qualname__', None) or getattr(t, '__name__', None)
    if qualname is None:
        return repr(t)
    if module in (None, 'builtins'):
        return qualname
    return f"{module}.{qualname}"


class ManagedModelError(Exception):
    """Base class for all managedmodel errors."""


# =============================================================================
# EXTRACTION ERRORS
# =============================================================================

class SchemaExtractionError(ManagedModelError, ValueError):
    """Schema extraction failed for a contract type.

    Attributes:
        contract: The contract type (or ModelType) being extracted
        property_name: The offending property, if any
    """

    def __init__(self, contract: Any, property_name: Optional[str], reason: str):
        self.contract = contract
        self.property_name = property_name
        self.reason = reason
        if property_name is None:
            message = f"Invalid managed model type {type_name(contract)}: {reason}"
        else:
            message = (f"Invalid managed model type {type_name(contract)}: "
                       f"property '{property_name}' {reason}")
        super().__init__(message)


class OrphanSetterError(SchemaExtractionError):
    def __init__(self, contract: Any, property_name: str):
        super().__init__(contract, property_name, "has a setter but no getter")


class PropertyTypeMismatchError(SchemaExtractionError):
    def __init__(self, contract: Any, property_name: str, getter_type: Any, setter_type: Any):
        self.getter_type = getter_type
        self.setter_type = setter_type
        super().__init__(
            contract, property_name,
            f"getter type {type_name(getter_type)} does not match setter type {type_name(setter_type)}",
        )


class DuplicatePropertyError(SchemaExtractionError):
    def __init__(self, contract: Any, property_name: str, detail: str = "is declared more than once"):
        super().__init__(contract, property_name, detail)


class UnsupportedAccessorError(SchemaExtractionError):
    pass


# =============================================================================
# GENERATION ERRORS
# =============================================================================

class ProxyGenerationError(ManagedModelError, TypeError):
    """An implementation class could not be generated for a contract."""

    def __init__(self, contract: Any, reason: str):
        self.contract = contract
        self.reason = reason
        super().__init__(f"Cannot generate implementation for {type_name(contract)}: {reason}")


# =============================================================================
# RUNTIME ACCESS ERRORS ON GENERATED INSTANCES
# =============================================================================

class MissingPropertyError(ManagedModelError, AttributeError):
    """Access to a name the contract does not declare."""

    def __init__(self, contract: Any, property_name: str):
        self.contract = contract
        self.property_name = property_name
        super().__init__(f"No such property: {property_name} for class: {type_name(contract)}")


class ReadOnlyPropertyError(ManagedModelError, AttributeError):
    def __init__(self, contract: Any, property_name: str):
        self.contract = contract
        self.property_name = property_name
        super().__init__(f"Cannot set readonly property: {property_name} for class: {type_name(contract)}")


class PropertyValueTypeError(ManagedModelError, TypeError):
    """A managed property was assigned a value of an incompatible type."""

    def __init__(self, contract: Any, property_name: str, expected: Any, value: Any):
        self.contract = contract
        self.property_name = property_name
        self.expected = expected
        self.value = value
        super().__init__(
            f"No signature of method: {type_name(contract)}.{property_name}() is applicable "
            f"for argument types: ({type_name(type(value))}) values: [{value!r}]; "
            f"expected {type_name(expected)}"
        )


class MethodSignatureError(ManagedModelError, TypeError):
    """A forwarded method was invoked with arguments its signature rejects."""

    def __init__(self, contract: Any, method_name: str, args: tuple, kwargs: dict, detail: str):
        self.contract = contract
        self.method_name = method_name
        arg_types = ', '.join(type_name(type(a)) for a in (*args, *kwargs.values()))
        super().__init__(
            f"No signature of method: {type_name(contract)}.{method_name}() is applicable "
            f"for argument types: ({arg_types}): {detail}"
        )
