"""
Collaborator contracts for generated managed instances.

ModelElementState is supplied by the host: it owns the values of managed
properties and the identity (backing node) of the element. ManagedInstance
is mixed into every generated implementation class.
"""

from abc import ABC, abstractmethod
from typing import Any

from managedmodel.model_type import ModelType


class ModelElementState(ABC):
    """State object backing one managed instance.

    Thread safety: assumed single-writer. No get/set pair is atomic.
    """

    @abstractmethod
    def get(self, name: str) -> Any:
        """Return the current value of property ``name``."""

    @abstractmethod
    def set(self, name: str, value: Any) -> None:
        """Store ``value`` for property ``name``."""

    @property
    @abstractmethod
    def backing_node(self) -> Any:
        """Identity object used for equality and hashing of the instance."""

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human readable name, returned by str() of the instance."""


class ManagedInstance(ABC):
    """Capability exposed by every generated instance.

    Use ``isinstance(obj, ManagedInstance)`` to recognise generated
    instances regardless of their contract.
    """
    __slots__ = ()

    @property
    @abstractmethod
    def managed_type(self) -> ModelType:
        """The contract ModelType this instance implements."""

    @property
    @abstractmethod
    def backing_node(self) -> Any:
        """The backing node reported by the instance's state object."""
