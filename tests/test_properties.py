import pytest

from beanbox.context import BeanContext
from beanbox.descriptor import BeanDescriptor
from beanbox.domain import Value
from beanbox.errors import NoSettableMemberError, ResolutionError


class Settable:
    label: str
    greeting = "hi"

    def __init__(self):
        self.name = None
        self.count = 0
        self.setter_calls = []

    def set_name(self, value):
        self.setter_calls.append(value)
        self.name = value.upper()


class Slotted:
    __slots__ = ("value",)


class Clock:
    @staticmethod
    def fixed(hour: int) -> int:
        return hour


class Calendar:
    def today(self) -> str:
        return "monday"

    def shift(self, days: int) -> str:
        return f"monday+{days}"


class Registry:
    def __init__(self):
        self.registered = []

    def register(self, name: str, value: int):
        self.registered.append((name, value))

    def _register_quietly(self, name: str):
        self.registered.append((name, None))


def test_setter_is_preferred_over_field(context: BeanContext):
    bean = context.get_bean(BeanDescriptor(Settable).set_property("name", "abc"))

    assert bean.name == "ABC"
    assert bean.setter_calls == ["abc"]


def test_fields_are_set_directly(context: BeanContext):
    bean = context.get_bean(
        BeanDescriptor(Settable)
        .set_property("count", 3)
        .set_property("label", "annotated")
        .set_property("greeting", "hello")
    )

    assert bean.count == 3
    assert bean.label == "annotated"
    assert bean.greeting == "hello"
    assert Settable.greeting == "hi"


def test_slots_are_fields(context: BeanContext):
    assert context.get_bean(BeanDescriptor(Slotted).set_property("value", 5)).value == 5


def test_no_settable_member(context: BeanContext):
    with pytest.raises(NoSettableMemberError, match="'missing'"):
        context.get_bean(BeanDescriptor(Settable).set_property("missing", 1))


def test_no_settable_member_is_a_resolution_error(context: BeanContext):
    with pytest.raises(ResolutionError):
        context.get_bean(BeanDescriptor(Settable).set_property("missing", 1))


def test_class_reference_is_resolved_as_a_bean(context: BeanContext):
    bean = context.get_bean(BeanDescriptor(Settable).set_property("count", Registry))

    assert bean.count is context.get_bean(Registry)


def test_class_value_is_injected_as_is(context: BeanContext):
    bean = context.get_bean(BeanDescriptor(Settable).set_property("count", Value(Registry)))

    assert bean.count is Registry


def test_static_factory(context: BeanContext):
    bean = context.get_bean(BeanDescriptor(Settable).set_static_factory("count", Clock, "fixed", 9))

    assert bean.count == 9


def test_bean_factory(context: BeanContext):
    bean = context.get_bean(
        BeanDescriptor(Settable)
        .set_bean_factory("label", Calendar, "today")
        .set_bean_factory("count", Calendar, "shift", 2)
    )

    assert bean.label == "monday"
    assert bean.count == "monday+2"


def test_factory_member_must_accept_the_arguments(context: BeanContext):
    with pytest.raises(ResolutionError, match="No member 'fixed'"):
        context.get_bean(BeanDescriptor(Settable).set_static_factory("count", Clock, "fixed", "nine"))


def test_method_injection_runs_in_order_after_properties(context: BeanContext):
    bean = context.get_bean(
        BeanDescriptor(Registry)
        .inject_method("register", "a", 1)
        .inject_method("_register_quietly", "b")
        .inject_method("register", "c", 3)
    )

    assert bean.registered == [("a", 1), ("b", None), ("c", 3)]


def test_method_injection_requires_a_matching_method(context: BeanContext):
    with pytest.raises(ResolutionError, match="No method 'register'"):
        context.get_bean(BeanDescriptor(Registry).inject_method("register", "a"))
