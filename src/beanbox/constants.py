"""Naming conventions and limits shared across the container."""

CREATE_METHOD: str = "create"
"""Zero-argument descriptor member used as a custom bean factory."""

CONFIG_METHOD: str = "config"
"""Single-argument descriptor member used to further configure a new bean."""

SETTER_PREFIX: str = "set_"
"""Prefix of the setter method looked up before falling back to a field."""

MARKERS_ATTRIBUTE: str = "__beanbox_markers__"
"""Attribute holding the markers stamped on a class or function."""

CONSTRUCTOR_ATTRIBUTE: str = "__beanbox_constructor__"
"""Attribute flagging a classmethod as an alternative constructor."""

MAX_RESOLUTION_DEPTH: int = 100
"""Nested resolutions allowed on one call stack before giving up."""

INJECTABLE_PARAMETER_COUNTS = range(1, 7)
"""Parameter counts accepted for marker-injected methods."""

ADVICE_ATTRIBUTE: str = "__beanbox_advice__"
"""Instance attribute holding the advice chain of an intercepted bean."""
