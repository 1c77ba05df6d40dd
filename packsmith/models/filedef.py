"""Fetch descriptor models — what the content cache is asked to resolve."""

from __future__ import annotations

import hashlib
import posixpath
import string
from pathlib import Path
from typing import Literal
from urllib.parse import unquote, urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Variable-length digests (shake_*) need a length to produce hex output.
SUPPORTED_ALGORITHMS: frozenset[str] = frozenset(
    algo for algo in hashlib.algorithms_guaranteed if not algo.startswith("shake_")
)


class HashConstraint(BaseModel):
    """Acceptable digests for one hash algorithm.

    ``id`` names a ``hashlib`` algorithm (``sha1``, ``sha256`` ...);
    ``hashes`` lists the acceptable hex digests, normalized to lower case.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    hashes: list[str] = Field(min_length=1)

    @field_validator("id")
    @classmethod
    def _normalize_id(cls, value: str) -> str:
        algo = value.strip().lower()
        if algo not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"unsupported hash algorithm {value!r}")
        return algo

    @field_validator("hashes")
    @classmethod
    def _normalize_hashes(cls, value: list[str]) -> list[str]:
        normalized = [h.strip().lower() for h in value]
        for digest in normalized:
            if not digest or not all(c in string.hexdigits for c in digest):
                raise ValueError(f"digest {digest!r} is not a hex string")
        return normalized


class FileDef(BaseModel):
    """A fetch descriptor: source URL plus acceptable digests.

    At least one hash constraint is required; an artifact that cannot be
    verified is never trusted into the build. The first constraint is the
    *primary* one and keys in-flight de-duplication; a verified artifact
    is stored under the first constraint it matched.
    """

    model_config = ConfigDict(frozen=True)

    url: str = Field(min_length=1)
    hashes: list[HashConstraint] = Field(min_length=1)

    @property
    def primary(self) -> HashConstraint:
        return self.hashes[0]

    @property
    def cache_key(self) -> str:
        """Key used to de-duplicate concurrent resolutions."""
        return f"{self.primary.id}:{self.primary.hashes[0]}"

    @property
    def file_name(self) -> str:
        """Final path segment of the URL, percent-decoded."""
        path = urlsplit(self.url).path
        return unquote(posixpath.basename(path.rstrip("/")))


class CacheEntry(BaseModel):
    """A verified artifact held in the content-addressed store."""

    model_config = ConfigDict(frozen=True)

    algorithm: str
    digest: str
    path: Path
    size_bytes: int = 0


class PublishedLink(BaseModel):
    """A cached artifact materialized at a build-output location."""

    model_config = ConfigDict(frozen=True)

    destination: Path
    source: Path
    mode: Literal["symlink", "copy"] = "symlink"
