"""Modpack manifest models.

The manifest is the build's declarative descriptor. Fields the build does
not interpret are preserved verbatim so the manifest can be written back
to disk unchanged apart from the consumed dependency list.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ManifestDependency(BaseModel):
    """An external jar declared directly by URL and SHA-1 digest."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(min_length=1)
    sha: str = Field(min_length=1)


class ModpackManifest(BaseModel):
    """The modpack descriptor (``manifest.json``).

    ``externalDependencies`` is transient: it is consumed exactly once by
    the dependency resolver, which returns a manifest without it.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    name: str = ""
    version: str = ""
    author: str = ""
    overrides: str = "overrides"
    external_dependencies: list[ManifestDependency] | None = Field(
        default=None, alias="externalDependencies"
    )

    @property
    def has_external_dependencies(self) -> bool:
        """Whether the dependency field is present (an empty list counts)."""
        return self.external_dependencies is not None

    def without_external_dependencies(self) -> ModpackManifest:
        """Return a copy with the dependency field removed entirely.

        The returned manifest serializes without an ``externalDependencies``
        key (absent, not ``null``).
        """
        data = self.model_dump(
            mode="json",
            by_alias=True,
            exclude_unset=True,
            exclude={"external_dependencies"},
        )
        return type(self).model_validate(data)

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize to the on-disk JSON shape (aliases, set fields only)."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)
