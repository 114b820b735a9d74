"""Errors raised by vector operations."""


class VectorLengthMismatchError(ValueError):
    """Raised when two vectors of different dimensionality are combined.

    Vectors are never padded or truncated; a mismatch is an input
    contract violation.
    """

    def __init__(self, left: int, right: int) -> None:
        """Initialize the error.

        Args:
            left: Length of the first vector.
            right: Length of the second vector.
        """
        self.left = left
        self.right = right
        super().__init__(f"Vectors must have the same length: {left} != {right}")
