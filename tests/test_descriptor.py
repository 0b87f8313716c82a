import pytest

from beanbox.descriptor import BeanDescriptor, to_descriptor, to_value_spec
from beanbox.domain import BeanRef, InstanceFactory, Scope, StaticFactory, Value
from beanbox.errors import ResolutionError
from beanbox.introspection import describe


class Foo:
    i: int = 0


class C2:
    def __init__(self, a: int):
        self.a = a


class FooBox(BeanDescriptor):
    target = Foo


class HelloBox(BeanDescriptor):
    def create(self) -> str:
        return "hello"


def test_defaults():
    box = BeanDescriptor(Foo)

    assert box.target is Foo
    assert box.scope is Scope.SINGLETON
    assert box.constructor_args is None
    assert box.properties == {}
    assert box.method_injections == []
    assert not box.is_literal


def test_fluent_setters_return_the_descriptor():
    box = BeanDescriptor()

    assert (
        box.set_target(Foo)
        .set_prototype()
        .set_property("i", 1)
        .set_post_construct("start")
        .set_pre_destroy("stop")
        .inject_method("register", "a")
    ) is box
    assert box.scope is Scope.PROTOTYPE
    assert box.post_construct == "start"
    assert box.pre_destroy == "stop"


def test_last_property_write_wins():
    box = BeanDescriptor(Foo).set_property("i", 1).set_property("i", 2)

    assert box.properties == {"i": Value(2)}


def test_non_class_target_is_literal():
    assert BeanDescriptor("hello").is_literal
    assert not BeanDescriptor(Foo).is_literal
    assert BeanDescriptor(Foo).set_literal().is_literal


def test_subclass_attributes_act_as_defaults():
    box = FooBox()

    assert box.target is Foo
    assert box.scope is Scope.SINGLETON
    assert FooBox().set_prototype().scope is Scope.PROTOTYPE
    assert FooBox.scope is Scope.SINGLETON


def test_constructor_arguments_from_init():
    box = BeanDescriptor(C2, 2)

    assert box.constructor_args == (2,)
    assert BeanDescriptor().set_constructor(C2, 3).constructor_args == (3,)


def test_subclass_identity_is_its_qualified_name():
    assert FooBox().identity().endswith("test_descriptor.FooBox")


def test_plain_identity_includes_constructor_arguments():
    assert BeanDescriptor(Foo).identity().endswith("test_descriptor.Foo")
    assert BeanDescriptor(C2, 2).identity().endswith("test_descriptor.C2(2)")
    assert BeanDescriptor(C2, 2).identity() == BeanDescriptor(C2, 2).identity()
    assert BeanDescriptor(C2, 2).identity() != BeanDescriptor(C2, 3).identity()


def test_identity_of_descriptor_arguments_is_stable():
    first = BeanDescriptor(C2, FooBox).identity()
    second = BeanDescriptor(C2, FooBox()).identity()

    assert first == second
    assert first.endswith("(<" + FooBox().identity() + ">)")


def test_identity_requires_a_class_target():
    with pytest.raises(ResolutionError, match="not a class"):
        BeanDescriptor("hello").set_literal(False).identity()


def test_produced_type():
    assert HelloBox().produced_type() is str
    assert BeanDescriptor(Foo).produced_type() is Foo
    assert BeanDescriptor(42).produced_type() is int


def test_to_value_spec_classification():
    assert to_value_spec("hello") == Value("hello")
    assert to_value_spec(Value(Foo)) == Value(Foo)
    assert to_value_spec(StaticFactory(Foo, "make")) == StaticFactory(Foo, "make")

    spec = to_value_spec(Foo)
    assert isinstance(spec, BeanRef)
    assert spec.descriptor.target is Foo

    assert isinstance(to_value_spec(FooBox).descriptor, FooBox)

    box = FooBox()
    assert to_value_spec(box).descriptor is box


def test_to_descriptor():
    box = FooBox()

    assert to_descriptor(box) is box
    assert isinstance(to_descriptor(FooBox), FooBox)
    assert to_descriptor(Foo).target is Foo
    assert to_descriptor(7).is_literal


def test_factory_setters():
    box = BeanDescriptor(Foo).set_static_factory("i", int, "from_bytes", b"\x01", "big").set_bean_factory(
        "j", FooBox, "get"
    )

    assert box.properties["i"] == StaticFactory(int, "from_bytes", (b"\x01", "big"))
    spec = box.properties["j"]
    assert isinstance(spec, InstanceFactory)
    assert isinstance(spec.descriptor, FooBox)
    assert spec.member_name == "get"


def test_identity_of_self_referencing_constructor_arguments():
    box = BeanDescriptor(C2)
    box.set_constructor_args(box)

    assert box.identity() == f"{describe(C2)}(<{describe(C2)}@{id(box):x}>)"
