from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from .document import ApiDocument
from .generation import assemble, emit
from .settings import ClientSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientOutput:
    code: str


def generate_client(
    document: ApiDocument,
    settings: ClientSettings | None = None,
    *,
    max_workers: int | None = None,
    cancelled: Callable[[], bool] | None = None,
) -> ClientOutput:
    """Generate the source text of a client module for an API document.

    The run either returns the complete module or raises; no partial text is
    produced.

    Args:
        document: The API document
        settings: Client generation settings; defaults to ``ClientSettings()``
        max_workers: Compile operations on a thread pool of this size
        cancelled: Checked between operation compilations

    Raises:
        NameCollisionError: If generated names collide after sanitization
        GenerationCancelled: If ``cancelled`` returned True
    """
    settings = settings or ClientSettings()
    classes = assemble(document, settings, max_workers=max_workers, cancelled=cancelled)
    code = emit(classes, settings)
    logger.info("Generated %d clients for %d operations", len(classes), len(document.operations))
    return ClientOutput(code=code)
