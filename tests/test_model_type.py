"""
Tests for ModelType descriptors.

Tests cover:
- Structural equality and hashing
- Optional / union normalization
- Type variable substitution
- Value acceptance used by managed setters
"""

from typing import Any, Dict, List, Literal, Optional, Tuple, TypeVar, Union

import pytest

from managedmodel.model_type import ModelType

from model_contracts import Box, Color, SomeType

T = TypeVar('T')


class TestEquality:
    """ModelTypes compare by raw type and type arguments."""

    def test_same_parameterization_equal(self):
        assert ModelType.of(List[str]) == ModelType.of(List[str])
        assert hash(ModelType.of(List[str])) == hash(ModelType.of(List[str]))

    def test_different_arguments_not_equal(self):
        assert ModelType.of(List[str]) != ModelType.of(List[int])

    def test_raw_and_parameterized_not_equal(self):
        assert ModelType.of(list) != ModelType.of(List[str])

    def test_builtin_generic_equals_typing_generic(self):
        """list[str] and List[str] share the origin ``list``."""
        assert ModelType.of(list[str]) == ModelType.of(List[str])

    def test_optional_equals_pipe_union(self):
        assert ModelType.of(Optional[bool]) == ModelType.of(bool | None)

    def test_nested_arguments_compared_recursively(self):
        assert ModelType.of(Dict[str, List[int]]) == ModelType.of(Dict[str, List[int]])
        assert ModelType.of(Dict[str, List[int]]) != ModelType.of(Dict[str, List[str]])

    def test_usable_as_dict_key(self):
        mapping = {ModelType.of(List[str]): "strings", ModelType.of(List[int]): "ints"}
        assert mapping[ModelType.of(List[str])] == "strings"
        assert len(mapping) == 2

    def test_of_is_idempotent(self):
        model_type = ModelType.of(SomeType)
        assert ModelType.of(model_type) is model_type

    def test_none_is_none_type(self):
        assert ModelType.of(None) == ModelType.of(type(None))


class TestIntrospection:
    """Display names and helpers."""

    def test_type_arguments(self):
        model_type = ModelType.of(List[str])
        assert model_type.raw_type is list
        assert model_type.type_arguments == (ModelType.of(str),)
        assert model_type.is_generic

    def test_annotation_kept_verbatim(self):
        assert ModelType.of(List[str]).to_annotation() == List[str]
        assert ModelType.of(Optional[bool]).to_annotation() == Optional[bool]

    def test_display_name(self):
        assert ModelType.of(int).display_name == "int"
        assert ModelType.of(List[str]).display_name == "list[str]"
        assert ModelType.of(SomeType).display_name == f"{SomeType.__module__}.SomeType"

    def test_display_name_of_union(self):
        assert ModelType.of(Optional[bool]).display_name == "Union[bool, None]"

    def test_classification_helpers(self):
        assert ModelType.of(int).is_scalar
        assert ModelType.of(Color).is_scalar
        assert ModelType.of(Tuple[int, str]).is_collection
        assert ModelType.of(Optional[int]).is_optional
        assert not ModelType.of(SomeType).is_scalar
        assert ModelType.of(T).is_type_variable

    def test_literal_arguments_are_values(self):
        model_type = ModelType.of(Literal["a", "b"])
        assert [arg.raw_type for arg in model_type.type_arguments] == ["a", "b"]


class TestSubstitution:
    """Type variables are replaced by bindings."""

    def test_substitute_type_variable(self):
        assert ModelType.of(T).substitute({T: ModelType.of(int)}) == ModelType.of(int)

    def test_substitute_inside_arguments(self):
        substituted = ModelType.of(List[T]).substitute({T: ModelType.of(str)})
        assert substituted == ModelType.of(List[str])
        assert substituted.to_annotation() == List[str]

    def test_substitute_without_bindings_returns_self(self):
        model_type = ModelType.of(List[T])
        assert model_type.substitute({}) is model_type

    def test_generic_contract_instantiations_distinct(self):
        assert ModelType.of(Box[int]) != ModelType.of(Box[str])
        assert ModelType.of(Box[int]).raw_type is Box


class TestAccepts:
    """Raw type checks applied by managed setters."""

    @pytest.mark.parametrize("annotation,value", [
        (int, 123),
        (bool, True),
        (float, 123.45),
        (float, 123),
        (complex, 123),
        (str, "c"),
        (bytes, b"x"),
        (Optional[int], None),
        (Union[int, str], "x"),
        (List[str], ["a"]),
        (Any, object()),
        (Literal["a"], "a"),
        (T, object()),
    ])
    def test_accepts(self, annotation, value):
        assert ModelType.of(annotation).accepts(value)

    @pytest.mark.parametrize("annotation,value", [
        (int, "123"),
        (bool, 1),
        (str, None),
        (Optional[int], "x"),
        (List[str], ("a",)),
        (Literal["a"], "b"),
    ])
    def test_rejects(self, annotation, value):
        assert not ModelType.of(annotation).accepts(value)
