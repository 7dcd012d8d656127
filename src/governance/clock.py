"""LogicalClock — внешний источник logical height.

Монотонность — соглашение вызывающего, внутри не навязывается:
уменьшение height принимается, но логируется как warning.
"""

import logging

from src.core.math.integer_math import ensure_uint


logger = logging.getLogger(__name__)


class LogicalClock:
    """Stub внешнего коллаборатора (block height)."""

    def __init__(self, height: int = 0):
        self._height = ensure_uint(height, "height")

    @property
    def height(self) -> int:
        return self._height

    def advance(self, height: int) -> int:
        """
        Установка нового height.

        Returns:
            Предыдущий height
        """
        ensure_uint(height, "height")
        previous = self._height
        if height < previous:
            logger.warning("logical clock moved backwards: %d -> %d", previous, height)
        self._height = height
        return previous
