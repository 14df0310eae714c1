from __future__ import annotations

import pathlib
from typing import Optional, Union

PathLike = Union[str, pathlib.Path]


class SiteBuildError(Exception):
    """Fatal error: aborts the build with a non-zero exit."""


class MalformedMetadataError(SiteBuildError):
    def __init__(self, path: Optional[PathLike], line: int,
                 reason: str = "frontmatter block opened but never closed"):
        self.path = path
        self.line = line
        self.reason = reason
        where = f"{path}:{line}" if path else f"line {line}"
        super().__init__(f"{where}: {reason}")


class DuplicateRouteError(SiteBuildError):
    def __init__(self, url_path: str, first: PathLike, second: PathLike):
        self.url_path = url_path
        self.first = first
        self.second = second
        super().__init__(
            f"{first} and {second} both resolve to route {url_path}"
        )


class InvalidMetadataError(SiteBuildError):
    def __init__(self, path: Optional[PathLike], field: str, reason: str):
        self.path = path
        self.field = field
        self.reason = reason
        super().__init__(f"{path or '<string>'}: {field}: {reason}")


class ConfigError(SiteBuildError):
    def __init__(self, path: PathLike, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class UnknownComponentError(SiteBuildError):
    def __init__(self, name: str, known=()):
        self.name = name
        self.known = tuple(sorted(known))
        hint = f" (known: {', '.join(self.known)})" if self.known else ""
        super().__init__(f"unknown component {name!r}{hint}")


class SiteBuildWarning(UserWarning):
    """Non-fatal: logged, rendering continues with a fallback."""


class UnresolvedReferenceWarning(SiteBuildWarning):
    pass


class UnsupportedHighlightLanguageWarning(SiteBuildWarning):
    pass
