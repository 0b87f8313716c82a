from typing import Any, Optional

from beanbox.context import BeanContext
from beanbox.descriptor import BeanDescriptor
from beanbox.domain import StaticFactory, Value
from beanbox.markers import constructor
from beanbox.matcher import find_constructor, find_method, guess_argument_types, is_assignable


class Printer:
    pass


class MockPrinter(Printer):
    pass


class Shape:
    @constructor
    def from_size(cls, size: float) -> "Shape":
        shape = cls("sized")
        shape.size = size
        return shape

    def __init__(self, label: str = "default"):
        self.label = label
        self.size = None

    @constructor
    def from_parts(cls, label: str, size: int) -> "Shape":
        shape = cls(label)
        shape.size = size
        return shape


class Sizes:
    @staticmethod
    def large() -> int:
        return 10


class HelloBox(BeanDescriptor):
    def create(self) -> str:
        return "hello"


def test_is_assignable():
    assert is_assignable(Printer, MockPrinter)
    assert not is_assignable(MockPrinter, Printer)
    assert is_assignable(Optional[Printer], MockPrinter)
    assert is_assignable(Printer | None, MockPrinter)
    assert is_assignable(float, int)
    assert is_assignable(complex, float)
    assert not is_assignable(str, int)
    assert is_assignable(list[int], list)
    assert is_assignable(None, str)
    assert is_assignable(Any, str)
    assert is_assignable(object, int)


def test_guess_argument_types():
    assert guess_argument_types([2, "x", Value(Shape), HelloBox, Shape, StaticFactory(Sizes, "large")]) == (
        int,
        str,
        type,
        str,
        Shape,
        int,
    )


def test_constructors_are_matched_in_declaration_order():
    assert find_constructor(Shape, (int,)).name == "from_size"
    assert find_constructor(Shape, (str,)).name == "__init__"
    assert find_constructor(Shape, ()).name == "__init__"
    assert find_constructor(Shape, (str, int)).name == "from_parts"
    assert find_constructor(Shape, (int, int)) is None


def test_alternative_constructor_is_used_for_resolution(context: BeanContext):
    shape = context.get_bean(BeanDescriptor(Shape, 3))

    assert shape.label == "sized"
    assert shape.size == 3

    shape = context.get_bean(BeanDescriptor(Shape, "box", 4))
    assert (shape.label, shape.size) == ("box", 4)


def test_explicit_constructor_types(context: BeanContext):
    shape = context.get_bean(BeanDescriptor(Shape, "round").set_constructor_types(Any))

    assert shape.label == "sized"
    assert shape.size == "round"


def test_find_method():
    assert find_method(Sizes, "large", ())() == 10
    assert find_method(Sizes, "large", (int,)) is None
    assert find_method(Sizes, "missing", ()) is None
    assert find_method(Shape, "from_parts", (str, int)) is not None
