"""Shutdown orchestration for the GELF shipper.

Purpose
-------
Provide one routine that stops the transport within its grace period and
reports whether pending records were delivered.
"""

from __future__ import annotations

import logging
from typing import Callable

from lib_log_gelf.application.ports.transport import TransportPort

logger = logging.getLogger(__name__)


def create_shutdown(*, transport: TransportPort | None, timeout: float | None = None) -> Callable[[], bool]:
    """Return a callable performing the shutdown sequence.

    The callable never raises; a transport failing to stop is logged and
    reported as ``False``.
    """

    def shutdown() -> bool:
        """Drain and close the transport."""
        if transport is None:
            return True
        try:
            drained = transport.stop(timeout)
        except Exception as exc:  # noqa: BLE001
            logger.error("GELF transport raised while stopping", exc_info=exc)
            return False
        if not drained:
            logger.warning("GELF transport stopped before all queued records were written")
        return bool(drained)

    return shutdown


__all__ = ["create_shutdown"]
