from typing import Iterable


class GenerationError(ValueError):
    """Base class for everything that aborts a generation pass."""


class InputShapeError(GenerationError):
    """No frames were found, or a frame does not match the first frame's size."""


class MissingComponentTypeError(GenerationError):
    def __init__(self, missing: Iterable[str]):
        self.missing = sorted(missing)
        super().__init__(
            "Save file is missing required component types: " + ", ".join(self.missing)
        )


class NumericRangeError(GenerationError):
    """A size, coordinate, address or cluster id left its integer range."""
