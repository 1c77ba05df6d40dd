"""Manifest dependency resolution — ``externalDependencies`` to FileDefs.

The dependency list is consumed exactly once: ``resolve()`` returns the
fetch descriptors together with a new context whose manifest no longer
carries the field. Resolving that returned context again is a no-op.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from packsmith.errors import ManifestShapeError
from packsmith.models.context import BuildContext
from packsmith.models.filedef import FileDef, HashConstraint

logger = logging.getLogger(__name__)


class DependencyResolver:
    """Maps manifest dependency entries to cache descriptors.

    Parameters
    ----------
    algorithm:
        Hash algorithm the manifest's ``sha`` values are declared in.
    """

    def __init__(self, algorithm: str = "sha1") -> None:
        self.algorithm = algorithm

    def resolve(self, context: BuildContext) -> tuple[list[FileDef], BuildContext]:
        """Return one FileDef per declared dependency, in declaration order.

        When the manifest declares no dependencies, returns ``[]`` and the
        *same* context object.
        """
        manifest = context.manifest
        if not manifest.has_external_dependencies:
            return [], context

        file_defs: list[FileDef] = []
        for index, dep in enumerate(manifest.external_dependencies or []):
            try:
                file_defs.append(
                    FileDef(
                        url=dep.url,
                        hashes=[HashConstraint(id=self.algorithm, hashes=[dep.sha])],
                    )
                )
            except ValidationError as exc:
                raise ManifestShapeError(
                    f"externalDependencies[{index}] ({dep.url!r}) is malformed: "
                    + "; ".join(err["msg"] for err in exc.errors())
                ) from exc

        logger.info("Resolved %d external dependencies", len(file_defs))
        return file_defs, context.evolve(manifest=manifest.without_external_dependencies())
