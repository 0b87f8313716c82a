"""Bean contexts: isolated scopes for singletons, teardown hooks and advice.

Each context owns its own singleton cache, so the same descriptor resolved in
two contexts produces two singletons. Contexts are safe to share between
threads: singleton lookup, construction and caching happen under one re-entrant
lock, so concurrent requests for the same singleton always observe one instance.

Example:
    >>> context = BeanContext()
    >>> context.register_advice(Transactional, TransactionBox)
    >>> service = context.get_bean(ServiceBox)
    >>> context.reset()  # runs pre-destroy hooks, forgets singletons
"""

import logging
import threading
from typing import Any, Callable, Optional

from beanbox.advice import Advisor
from beanbox.constants import MAX_RESOLUTION_DEPTH
from beanbox.descriptor import to_descriptor
from beanbox.domain import Scope
from beanbox.errors import ResolutionError
from beanbox.resolver import resolve

__all__ = ["BeanContext"]

logger = logging.getLogger(__name__)


class BeanContext:
    """An isolated container scope.

    Attributes:
        ignore_markers: Skip marker-driven constructor, field and method injection.
        max_depth: Nested resolutions allowed before resolution gives up with None.
        singleton_cache: Singleton identity to instance.
        pre_destroy_hooks: Singleton identity to its bound teardown hook.
        advice_bindings: Marker type to advice source.
        advisors: Pattern-based advice registrations.
        lock: Guards the singleton cache and the hook registry.
    """

    def __init__(self, ignore_markers: bool = False, max_depth: int = MAX_RESOLUTION_DEPTH):
        self.ignore_markers = ignore_markers
        self.max_depth = max_depth
        self.singleton_cache: dict[str, Any] = {}
        self.pre_destroy_hooks: dict[str, Callable] = {}
        self.advice_bindings: dict[type, Any] = {}
        self.advisors: list[Advisor] = []
        self.lock = threading.RLock()

    def get_bean(self, target: Any) -> Any:
        """Resolve ``target`` in the scope its descriptor declares.

        Args:
            target: A descriptor, a descriptor subclass, a class or a literal value.
        """
        return resolve(to_descriptor(target), self)

    def get_prototype_bean(self, target: Any) -> Any:
        """Resolve a fresh instance of ``target``, whatever scope it declares."""
        return resolve(to_descriptor(target), self, Scope.PROTOTYPE)

    def get_singleton_bean(self, target: Any) -> Any:
        """Resolve the shared instance of ``target``, whatever scope it declares."""
        return resolve(to_descriptor(target), self, Scope.SINGLETON)

    def register_advice(self, marker_type: type, advice: Optional[Any] = None) -> "BeanContext":
        """Advise every class and method marked with ``marker_type``.

        Args:
            marker_type: The marker class to look for.
            advice: The advice source: a descriptor, a descriptor subclass, a class
                or an advice object. When None each marker names its own advice in
                an ``advice`` attribute.
        """
        self.advice_bindings[marker_type] = advice
        return self

    def add_advisor(self, advice: Any, type_pattern: str = "*", method_pattern: str = "*") -> "BeanContext":
        """Advise the public methods matching ``method_pattern`` of classes matching ``type_pattern``."""
        self.advisors.append(Advisor(advice, type_pattern, method_pattern))
        return self

    def reset(self):
        """Tear down every singleton and forget it.

        Pre-destroy hooks run exactly once, most recently cached singleton first.
        A failing hook does not stop the others; the caches are cleared anyway.
        Advice registrations are kept.

        Raises:
            ResolutionError: If any hook failed, chained to the first failure.
        """
        with self.lock:
            hooks = list(self.pre_destroy_hooks.items())
            self.pre_destroy_hooks.clear()
            first_failure = None
            for identity, hook in reversed(hooks):
                logger.debug("Running pre-destroy hook of %s", identity)
                try:
                    hook()
                except Exception as e:
                    logger.exception("Pre-destroy hook of %s failed", identity)
                    if first_failure is None:
                        first_failure = e
            self.singleton_cache.clear()

        if first_failure is not None:
            raise ResolutionError(f"Pre-destroy hook failed during reset: {first_failure!r}") from first_failure
