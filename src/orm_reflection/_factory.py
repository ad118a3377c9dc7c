"""
Caching of reflectors per class.

Building a `Reflector` walks the whole class hierarchy, so frameworks keep
one per class. `ReflectorFactory` is that cache. It holds classes weakly, so
classes created at runtime (for example in tests) can still be collected.

The factory does no locking. Two threads asking for the same uncached class
may both build a reflector; both results are equivalent and the last one
stored is kept.
"""

import logging
from weakref import WeakKeyDictionary

from orm_reflection._reflector import Reflector
from orm_reflection._types import type_name

__all__ = [
    "ReflectorFactory",
    "get_reflector",
]

logger = logging.getLogger(__name__)


class ReflectorFactory:
    """Creates reflectors and, unless disabled, caches them per class.

    Args:
        class_cache_enabled: When False, every lookup builds a new reflector.

    Example:
        Sharing reflectors::

            from orm_reflection import ReflectorFactory

            factory = ReflectorFactory()
            assert factory.find_for_class(User) is factory.find_for_class(User)
    """

    def __init__(self, class_cache_enabled: bool = True) -> None:
        self._class_cache_enabled = class_cache_enabled
        self._reflectors: WeakKeyDictionary[type, Reflector] = WeakKeyDictionary()

    @property
    def class_cache_enabled(self) -> bool:
        """Whether reflectors are cached between lookups."""
        return self._class_cache_enabled

    @class_cache_enabled.setter
    def class_cache_enabled(self, enabled: bool) -> None:
        self._class_cache_enabled = enabled

    def find_for_class(self, cls: type) -> Reflector:
        """Return the reflector for `cls`, building it on first use.

        Errors raised while building propagate and nothing is cached, so a
        later call retries.
        """
        if not self._class_cache_enabled:
            return Reflector(cls)

        reflector = self._reflectors.get(cls)
        if reflector is None:
            logger.debug("Reflector cache miss for %s", type_name(cls))
            reflector = Reflector(cls)
            self._reflectors[cls] = reflector
        return reflector


_default_factory = ReflectorFactory()


def get_reflector(cls: type) -> Reflector:
    """Return the reflector for `cls` from the process-wide default factory."""
    return _default_factory.find_for_class(cls)
