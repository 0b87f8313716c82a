from typing import Annotated, Optional

import pytest

from beanbox.errors import ResolutionError
from beanbox.introspection import (
    callable_parameters,
    describe,
    invoke,
    list_constructors,
    list_declared_fields,
    list_declared_methods,
    split_annotation,
    type_hints,
)
from beanbox.markers import Inject, constructor, inject


class Base:
    inherited: int


class Widget(Base):
    size: Annotated[int, Inject(3)]
    name: str = "widget"

    @constructor
    def small(cls) -> "Widget":
        return cls(1)

    def __init__(self, size: int, *extra, label: Optional[str] = None, **options):
        self.size = size

    @inject
    def attach(self, other: "Widget"):
        pass

    @staticmethod
    def helper(value):
        return value

    @classmethod
    def not_a_constructor(cls):
        return None


class Plain:
    pass


class Broken:
    value: "Missing"


def test_constructors_in_declaration_order():
    assert [c.name for c in list_constructors(Widget)] == ["small", "__init__"]
    assert [c.name for c in list_constructors(Plain)] == ["__init__"]
    assert list_constructors(Plain)[0].parameters == ()


def test_inherited_init_comes_first():
    class Derived(Widget):
        @constructor
        def large(cls) -> "Widget":
            return cls(10)

    assert [c.name for c in list_constructors(Derived)] == ["__init__", "large"]


def test_callable_parameters():
    parameters, variadic = callable_parameters(Widget.__init__, skip_first=True)

    assert variadic
    assert [p.name for p in parameters] == ["size", "label"]
    assert parameters[0].required and parameters[0].positional
    assert not parameters[1].required and not parameters[1].positional
    assert parameters[1].declared_type == Optional[str]


def test_declared_methods_exclude_constructors():
    methods = {m.name: m for m in list_declared_methods(Widget)}

    assert set(methods) == {"attach", "helper", "not_a_constructor"}
    assert methods["helper"].static
    assert not methods["attach"].static


def test_declared_fields_are_own_annotations():
    fields = list_declared_fields(Widget)

    assert [f.name for f in fields] == ["size", "name"]
    assert fields[0].declared_type is int
    assert fields[0].markers == (Inject(3),)
    assert list_declared_fields(Plain) == []


def test_unresolvable_annotation():
    with pytest.raises(ResolutionError, match="Missing"):
        type_hints(Broken)


def test_split_annotation():
    assert split_annotation(Annotated[int, "a", "b"]) == (int, ("a", "b"))
    assert split_annotation(int) == (int, ())
    assert split_annotation(None) == (None, ())


def test_invoke_wraps_failures():
    def fail(value):
        raise KeyError(value)

    with pytest.raises(ResolutionError, match="fail") as raised:
        invoke(fail, "x")

    assert isinstance(raised.value.__cause__, KeyError)


def test_describe():
    assert describe(Widget).endswith("test_introspection.Widget")
    assert describe(3) == "3"
