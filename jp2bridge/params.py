"""
Encoding parameters for kdu_compress and default resolution-level derivation
"""

from dataclasses import dataclass, fields, replace


DEFAULT_SLOPE = (51651, 51337, 51186, 50804, 50548, 50232)
DEFAULT_LAYERS = 6
DEFAULT_PRECINCTS = "{256,256},{256,256},{128,128}"
DEFAULT_PROGRESSION_ORDER = "RPCL"
DEFAULT_PACKET_DIVISION = "R"
DEFAULT_CODE_BLOCK_SIZE = "{64,64}"

# Smallest edge worth another wavelet decomposition level
MIN_LEVEL_SIZE = 96


def get_level_count(width, height):
    """
    Derive a resolution-level count from image dimensions.

    The larger dimension is halved until it falls below MIN_LEVEL_SIZE;
    the number of halvings is the level count.

    Args:
        width: Image width in pixels
        height: Image height in pixels

    Returns:
        int: Number of resolution levels (always >= 1)
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image dimensions: {width}x{height}")

    size = max(width, height)
    levels = 0
    while size >= MIN_LEVEL_SIZE:
        size //= 2
        levels += 1

    return max(1, levels)


@dataclass(frozen=True)
class EncodeParameters:
    """
    Describes the encoding intent of one compression job.

    A rate, when given, takes precedence over slope. levels=0 means the
    level count is resolved from the image dimensions at compression time.
    """

    rate: float = None
    slope: object = DEFAULT_SLOPE
    levels: int = 0
    precincts: str = DEFAULT_PRECINCTS
    layers: int = DEFAULT_LAYERS
    progression_order: str = DEFAULT_PROGRESSION_ORDER
    packet_division: str = DEFAULT_PACKET_DIVISION
    code_block_size: str = DEFAULT_CODE_BLOCK_SIZE
    insert_plt: bool = True
    use_reversible: bool = False
    color_space: str = None

    def __post_init__(self):
        if self.levels is None or self.levels < 0:
            raise ValueError(f"levels must be >= 0, got {self.levels}")
        if self.layers is None or self.layers < 0:
            raise ValueError(f"layers must be >= 0, got {self.layers}")
        if isinstance(self.slope, list):
            object.__setattr__(self, 'slope', tuple(self.slope))

    @classmethod
    def from_dict(cls, values):
        """
        Build parameters from a plain mapping of field names.

        Args:
            values: dict of field name to value; missing fields keep defaults

        Returns:
            EncodeParameters
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown encode parameters: {', '.join(unknown)}")
        return cls(**values)

    @property
    def quality_flag(self):
        """The (flag, value) pair selecting rate or slope control."""
        if self.rate is not None:
            return '-rate', str(self.rate)
        slope = self.slope if self.slope is not None else DEFAULT_SLOPE
        if isinstance(slope, (tuple, list)):
            return '-slope', ','.join(str(s) for s in slope)
        return '-slope', str(slope)

    def with_levels(self, levels):
        """Return a copy with the given level count."""
        return replace(self, levels=levels)

    def resolve_levels(self, width, height):
        """
        Return parameters whose level count is set.

        Args:
            width: Image width, used only when levels is unset
            height: Image height, used only when levels is unset

        Returns:
            EncodeParameters: self if levels is already positive, else a copy
        """
        if self.levels > 0:
            return self
        return self.with_levels(get_level_count(width, height))
