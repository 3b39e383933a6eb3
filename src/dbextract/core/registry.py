"""Extractor registry.

Maps a dialect tag to the table, view and column extractors that serve it.
The table is built once from an explicit list of extractor classes; each class
declares its capability and dialect tags. Lookups never fail: a default
implementation exists for every capability.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from loguru import logger

from dbextract.core.extractors.base import (
    Capability,
    ColumnExtractor,
    TableExtractor,
    ViewExtractor,
)
from dbextract.core.extractors.default import (
    DefaultColumnsExtractor,
    DefaultTablesExtractor,
    DefaultViewExtractor,
)
from dbextract.core.extractors.native import (
    DuckDbColumnsExtractor,
    DuckDbTablesExtractor,
    DuckDbViewExtractor,
)

BUILTIN_EXTRACTORS: tuple[type, ...] = (
    DefaultTablesExtractor,
    DefaultViewExtractor,
    DefaultColumnsExtractor,
    DuckDbTablesExtractor,
    DuckDbViewExtractor,
    DuckDbColumnsExtractor,
)


@dataclass(frozen=True)
class ExtractorBinding:
    """The three extractors resolved for one dialect."""

    dialect: str
    table: TableExtractor
    view: ViewExtractor
    column: ColumnExtractor


class ExtractorRegistry:
    """Read-only lookup table from (dialect, capability) to extractor class."""

    def __init__(
        self,
        entries: Mapping[tuple[str, Capability], type],
        defaults: Mapping[Capability, type],
    ) -> None:
        missing = [c.value for c in Capability if c not in defaults]
        if missing:
            raise ValueError(f"No default extractor for: {', '.join(missing)}")
        self._entries = MappingProxyType(dict(entries))
        self._defaults = MappingProxyType(dict(defaults))

    def dialects(self) -> list[str]:
        """Return the dialect tags with at least one dedicated extractor."""
        return sorted({dialect for dialect, _ in self._entries})

    def resolve(self, dialect: str, capability: Capability) -> Any:
        """
        Return a new extractor instance for the dialect and capability.

        Falls back to the default implementation and logs a warning when no
        dialect-specific extractor is registered.
        """
        capability = Capability(capability)
        impl = self._entries.get((dialect.lower(), capability))
        if impl is None:
            impl = self._defaults[capability]
            logger.warning(
                "No {} extractor registered for dialect '{}', falling back to {}",
                capability.value,
                dialect,
                impl.__name__,
            )
        return impl()

    def binding(self, dialect: str) -> ExtractorBinding:
        """Resolve all three capabilities for a dialect."""
        return ExtractorBinding(
            dialect=dialect,
            table=self.resolve(dialect, Capability.TABLE),
            view=self.resolve(dialect, Capability.VIEW),
            column=self.resolve(dialect, Capability.COLUMN),
        )


def build_registry(implementations: Iterable[type]) -> ExtractorRegistry:
    """
    Build a registry by reading the declarations of extractor classes.

    Each class must define `capability` and `dialects`. Classes with
    `default = True` serve as the fallback for their capability.

    Raises:
        ValueError: If two classes claim the same (dialect, capability) or the
            same default capability, or a capability has no default.
    """
    entries: dict[tuple[str, Capability], type] = {}
    defaults: dict[Capability, type] = {}

    for impl in implementations:
        capability = Capability(impl.capability)
        if getattr(impl, "default", False):
            if capability in defaults:
                raise ValueError(
                    f"Duplicate default {capability.value} extractor: "
                    f"{defaults[capability].__name__} and {impl.__name__}"
                )
            defaults[capability] = impl
        for dialect in impl.dialects:
            key = (dialect.lower(), capability)
            if key in entries:
                raise ValueError(
                    f"Duplicate {capability.value} extractor for dialect '{dialect}': "
                    f"{entries[key].__name__} and {impl.__name__}"
                )
            entries[key] = impl

    return ExtractorRegistry(entries, defaults)


@lru_cache(maxsize=1)
def default_registry() -> ExtractorRegistry:
    """Return the process-wide registry of built-in extractors."""
    return build_registry(BUILTIN_EXTRACTORS)
