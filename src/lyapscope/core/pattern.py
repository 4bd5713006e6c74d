"""
Forcing-pattern encoding.

Turns a symbolic A/B forcing string into the fixed-capacity numeric
sequence the kernel indexes with ``i % length``.
"""

import logging
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

MAX_PATTERN = 32
EXCITED_SYMBOL = "B"


@dataclass(frozen=True, eq=False)
class EncodedPattern:
    """
    Fixed-capacity forcing sequence.

    ``values`` always holds MAX_PATTERN floats; only the first ``length``
    are meaningful. ``length`` is never 0.
    """

    values: np.ndarray
    length: int

    @property
    def active(self) -> np.ndarray:
        """The meaningful prefix of ``values``."""
        return self.values[: self.length]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EncodedPattern):
            return NotImplemented
        return self.length == other.length and np.array_equal(self.values, other.values)


def encode_pattern(pattern: str) -> EncodedPattern:
    """
    Encode a forcing string.

    "B" maps to 1.0 (the excited parameter), any other symbol to 0.0.
    Strings longer than MAX_PATTERN are truncated. An empty string encodes
    as a single base symbol so downstream modulo never sees zero.

    Args:
        pattern: Forcing string, nominally over {A, B}.

    Returns:
        EncodedPattern with MAX_PATTERN slots.
    """
    values = np.zeros(MAX_PATTERN, dtype=np.float64)

    if len(pattern) > MAX_PATTERN:
        logger.debug(
            "Pattern of %d symbols truncated to %d", len(pattern), MAX_PATTERN
        )
    symbols = pattern[:MAX_PATTERN]

    for i, symbol in enumerate(symbols):
        if symbol == EXCITED_SYMBOL:
            values[i] = 1.0

    length = max(len(symbols), 1)
    return EncodedPattern(values=values, length=length)
