from __future__ import annotations

import logging
from pathlib import Path

from ..errors import BuildError
from .resolve import _run

logger = logging.getLogger(__name__)


def run_goimports(path: Path) -> None:
    """Normalize the import block of a generated file in place.

    Generated scaffolds rely on this to drop imports they ended up not
    using and to add standard ones they reference.
    """
    logger.debug("goimports -w %s", path)
    try:
        _run(["goimports", "-w", str(path)])
    except BuildError as e:
        raise BuildError(f"Failed to run goimports on '{path}': {e}") from e
