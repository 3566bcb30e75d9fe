# =============================================================================
# DCE Python Client -- Logging
# =============================================================================

from __future__ import annotations

import logging

logger = logging.getLogger("dce_client")

_debug_handler: logging.Handler | None = None


def enable_debug(enabled: bool = True) -> None:
    """Turn diagnostic output on or off for the ``dce_client`` logger."""
    global _debug_handler

    if not enabled:
        logger.setLevel(logging.NOTSET)
        return

    logger.setLevel(logging.DEBUG)
    if _debug_handler is None:
        _debug_handler = logging.StreamHandler()
        _debug_handler.setFormatter(
            logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s")
        )
        logger.addHandler(_debug_handler)
