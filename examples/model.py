"""
Example managed model contracts for a build description.

Contracts declare abstract properties only; the framework generates their
implementation classes and stores property values in the element state
supplied by the host (here, a dict keyed by node path).
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from managedmodel import ManagedProxyFactory, ModelElementState, managed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NodePath:
    """Identity of an element in the model graph."""
    path: str


@dataclass
class DictElementState(ModelElementState):
    """Element state holding values in a dict."""
    node: NodePath
    values: Dict[str, Any] = field(default_factory=dict)

    def get(self, name: str) -> Any:
        return self.values.get(name)

    def set(self, name: str, value: Any) -> None:
        self.values[name] = value

    @property
    def backing_node(self) -> NodePath:
        return self.node

    @property
    def display_name(self) -> str:
        return f"element '{self.node.path}'"


class Named(ABC):
    """Public view of a named element."""

    @property
    @abstractmethod
    def name(self) -> str: ...

    @name.setter
    @abstractmethod
    def name(self, name: str) -> None: ...

    @abstractmethod
    def describe(self) -> str: ...


class NamedInternal(Named):
    """Internal view, implemented by a hand-written delegate."""


class DefaultNamed(NamedInternal):
    def __init__(self, name: str = ""):
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, name: str) -> None:
        self._name = name

    def describe(self) -> str:
        return f"component {self._name}"


@managed
class Repository(ABC):
    @property
    @abstractmethod
    def url(self) -> str: ...

    @url.setter
    @abstractmethod
    def url(self, url: str) -> None: ...


@managed(delegate=NamedInternal)
class Component(Named):
    """A named component whose name lives in the delegate."""

    @property
    @abstractmethod
    def sources(self) -> List[str]: ...

    @sources.setter
    @abstractmethod
    def sources(self, sources: List[str]) -> None: ...

    @property
    @abstractmethod
    def repository(self) -> Optional[Repository]: ...

    @repository.setter
    @abstractmethod
    def repository(self, repository: Optional[Repository]) -> None: ...


def main() -> None:
    logging.basicConfig(level=logging.DEBUG)
    factory = ManagedProxyFactory()

    repository = factory.create_instance(DictElementState(NodePath("repositories.central")), Repository)
    repository.url = "https://repo.example.org"

    component = factory.create_instance(DictElementState(NodePath("components.main")), Component,
                                        DefaultNamed())
    component.name = "main"
    component.sources = ["src/main.c"]
    component.repository = repository

    logger.info(f"{component}: {component.describe()} from {component.repository.url}")


if __name__ == '__main__':
    main()
