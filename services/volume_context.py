"""
Volume Context

Process-wide trading volume declared by clients. The aggregator reads it when
attaching fees and registers a listener so that every update triggers an
immediate aggregation pass. Writes are last-writer-wins.
"""

import math
from typing import Callable, List

from core.logging import get_logger


VolumeListener = Callable[[float], None]


class VolumeContext:
    """
    Mutable volume value with change listeners.

    Example:
        >>> volume = VolumeContext()
        >>> remove = volume.add_listener(lambda v: print(f"volume -> {v}"))
        >>> volume.update(50_000_001)
        volume -> 50000001.0
    """

    def __init__(self, initial: float = 0.0) -> None:
        self._value = float(initial)
        self._listeners: List[VolumeListener] = []
        self._logger = get_logger(__name__)

    @property
    def value(self) -> float:
        return self._value

    def update(self, volume: float) -> None:
        """
        Replace the current volume and notify listeners.

        Raises:
            ValueError: If volume is not a finite number
        """
        volume = float(volume)
        if not math.isfinite(volume):
            raise ValueError(f"Volume must be a finite number, got {volume}")

        self._value = volume
        self._logger.info(f"Trading volume updated to {volume:,.2f}")

        for listener in list(self._listeners):
            try:
                listener(volume)
            except Exception as e:
                self._logger.error(f"Volume listener failed: {e}")

    def add_listener(self, listener: VolumeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove
