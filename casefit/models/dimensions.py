from typing import NamedTuple


class Dimensions(NamedTuple):
    """Length/width/height triple in a single linear unit."""

    length: float
    width: float
    height: float
