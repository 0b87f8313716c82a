"""Deciding whether a class needs an interception proxy, and with which advice.

Advice reaches a class in two ways:

- Marker bindings: ``context.register_advice(Transactional, TransactionBox)``
  binds a marker type to an advice source. Every class marked with
  ``@mark(Transactional())`` has all its public methods advised; a method
  marked the same way is advised on its own. Binding a marker to None means
  each marker instance names its advice in an ``advice`` attribute.
- Advisors: ``context.add_advisor(LoggingAdvice, "myapp.services.*", "get_*")``
  advises the public methods whose names match ``method_pattern`` on classes
  whose qualified name (or bare name) matches ``type_pattern``. Patterns use
  shell-style wildcards.

Classes that are themselves advice sources are never advised, so an advisor
with the default patterns does not wrap its own advice.

This module only collects advice *sources* (descriptors, descriptor types,
classes or advice objects); the resolver turns them into advice beans.
"""

import inspect
from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Any, Mapping, Optional, Sequence

from beanbox.descriptor import BeanDescriptor, to_descriptor
from beanbox.errors import ResolutionError
from beanbox.introspection import describe
from beanbox.markers import markers_of
from beanbox.proxy import AdviceChain, public_methods

__all__ = ["Advisor", "collect_advice"]


@dataclass(frozen=True)
class Advisor:
    """Advice applied to methods selected by name patterns.

    Attributes:
        advice: The advice source.
        type_pattern: Pattern matched against the class's qualified or bare name.
        method_pattern: Pattern matched against public method names.
    """

    advice: Any
    type_pattern: str = "*"
    method_pattern: str = "*"

    def matches_type(self, cls: type) -> bool:
        return fnmatchcase(describe(cls), self.type_pattern) or fnmatchcase(cls.__name__, self.type_pattern)

    def matches_method(self, name: str) -> bool:
        return fnmatchcase(name, self.method_pattern)


def collect_advice(
    cls: type, advice_bindings: Mapping[type, Any], advisors: Sequence[Advisor]
) -> AdviceChain:
    """Collect the advice sources applying to the public methods of ``cls``.

    Type-level marker advice comes first, then method-level marker advice, then
    advisors, each in registration order. Advice types get no advice.

    Raises:
        ResolutionError: If a marker bound without advice does not name its own.
    """
    chain = AdviceChain()
    if not advice_bindings and not advisors:
        return chain
    if _is_advice_type(cls, advice_bindings, advisors):
        return chain

    methods = public_methods(cls)
    for marker_type, advice in advice_bindings.items():
        for marker in _markers_of_type(markers_of(cls), marker_type):
            chain.add(_advice_source(marker, advice))
        for name, method in methods.items():
            for marker in _markers_of_type(markers_of(method), marker_type):
                chain.add(_advice_source(marker, advice), name)

    for advisor in advisors:
        if not advisor.matches_type(cls):
            continue
        for name in methods:
            if advisor.matches_method(name):
                chain.add(advisor.advice, name)
    return chain


def _markers_of_type(markers: tuple, marker_type: type) -> list:
    return [marker for marker in markers if marker is marker_type or isinstance(marker, marker_type)]


def _advice_source(marker: Any, advice: Optional[Any]) -> Any:
    if advice is not None:
        return advice
    source = getattr(marker, "advice", None)
    if source is None:
        raise ResolutionError(
            f"Marker {marker!r} is registered without advice and does not name any in an 'advice' attribute"
        )
    return source


def _is_advice_type(cls: type, advice_bindings: Mapping[type, Any], advisors: Sequence[Advisor]) -> bool:
    sources = [advice for advice in advice_bindings.values() if advice is not None]
    sources.extend(advisor.advice for advisor in advisors)
    for source in sources:
        advice_type = _advice_type(source)
        if inspect.isclass(advice_type) and advice_type is not object and issubclass(cls, advice_type):
            return True
    return False


def _advice_type(source: Any) -> Any:
    if isinstance(source, BeanDescriptor) or (inspect.isclass(source) and issubclass(source, BeanDescriptor)):
        return to_descriptor(source).produced_type()
    return source if inspect.isclass(source) else type(source)
