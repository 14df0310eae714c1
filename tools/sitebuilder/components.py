from __future__ import annotations

import logging
import pathlib
import re
from typing import Callable, Dict, Iterable, List

from jinja2 import Environment
from markupsafe import Markup

from .errors import UnknownComponentError

logger = logging.getLogger(__name__)

COMPONENT_PREFIX = "components"
COMPONENT_SUFFIX = ".html"

ComponentFactory = Callable[..., Markup]


def component_name(stem: str) -> str:
    """``nav-bar`` / ``nav_bar`` -> ``NavBar``."""
    return "".join(w[:1].upper() + w[1:] for w in re.split(r"[-_\s]+", stem) if w)


class ComponentRegistry:
    """Explicit name -> factory table, built once at startup.

    Lookups of names that were never registered raise
    :class:`UnknownComponentError` instead of rendering nothing.
    """

    def __init__(self, factories: Dict[str, ComponentFactory] | None = None):
        self._factories: Dict[str, ComponentFactory] = dict(factories or {})

    @classmethod
    def discover(
        cls, env: Environment, dirs: Iterable[pathlib.Path]
    ) -> "ComponentRegistry":
        """Register every ``*.html`` under ``dirs``; earlier dirs win."""
        registry = cls()
        for d in reversed(list(dirs)):
            if not d.is_dir():
                continue
            for p in sorted(d.glob(f"*{COMPONENT_SUFFIX}")):
                name = component_name(p.stem)
                template_name = f"{COMPONENT_PREFIX}/{p.name}"
                registry.register(name, _template_factory(env, template_name))
                logger.debug("component %s -> %s", name, p)
        return registry

    def register(self, name: str, factory: ComponentFactory) -> None:
        self._factories[name] = factory

    def get(self, name: str) -> ComponentFactory:
        try:
            return self._factories[name]
        except KeyError:
            raise UnknownComponentError(name, self._factories) from None

    def render(self, name: str, /, **context) -> Markup:
        return self.get(name)(**context)

    def __contains__(self, name: str) -> bool:
        return name in self._factories

    @property
    def names(self) -> List[str]:
        return sorted(self._factories)


def _template_factory(env: Environment, template_name: str) -> ComponentFactory:
    def factory(**context) -> Markup:
        return Markup(env.get_template(template_name).render(**context))

    return factory
