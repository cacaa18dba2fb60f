"""
Tests for encode parameters and level derivation
"""

import unittest

from jp2bridge.params import (
    DEFAULT_SLOPE,
    EncodeParameters,
    get_level_count,
)


class TestLevelCount(unittest.TestCase):
    """Test default resolution-level derivation."""

    def test_large_image(self):
        """4000x3000 halves down five times before dropping under 96px."""
        self.assertEqual(get_level_count(4000, 3000), 5)

    def test_uses_larger_dimension(self):
        """Test that the larger side sets the level count."""
        self.assertEqual(get_level_count(3000, 4000), get_level_count(4000, 3000))
        self.assertEqual(get_level_count(100, 6000), get_level_count(6000, 100))

    def test_larger_images_get_more_levels(self):
        """Test level growth with image size."""
        self.assertLess(get_level_count(512, 512), get_level_count(8192, 8192))

    def test_small_image_still_positive(self):
        """Test the minimum of one level."""
        self.assertEqual(get_level_count(10, 10), 1)
        self.assertEqual(get_level_count(1, 1), 1)

    def test_boundary(self):
        """Test level counts around the minimum tile size."""
        self.assertEqual(get_level_count(95, 95), 1)
        self.assertEqual(get_level_count(96, 96), 1)
        self.assertEqual(get_level_count(192, 10), 2)

    def test_invalid_dimensions(self):
        """Test error handling for non-positive dimensions."""
        with self.assertRaises(ValueError):
            get_level_count(0, 100)
        with self.assertRaises(ValueError):
            get_level_count(100, -1)


class TestEncodeParameters(unittest.TestCase):
    """Test the parameter model."""

    def test_defaults(self):
        """Test default parameter values."""
        params = EncodeParameters()
        self.assertIsNone(params.rate)
        self.assertEqual(params.slope, DEFAULT_SLOPE)
        self.assertEqual(params.levels, 0)
        self.assertEqual(params.layers, 6)
        self.assertTrue(params.insert_plt)
        self.assertFalse(params.use_reversible)
        self.assertIsNone(params.color_space)

    def test_rate_takes_precedence(self):
        """Test rate winning over slope."""
        params = EncodeParameters(rate=0.05, slope=51000)
        self.assertEqual(params.quality_flag, ('-rate', '0.05'))

    def test_slope_flag(self):
        """Test the slope quality flag."""
        self.assertEqual(EncodeParameters(slope=51000).quality_flag, ('-slope', '51000'))
        self.assertEqual(EncodeParameters(slope=[51651, 51337]).quality_flag,
                         ('-slope', '51651,51337'))

    def test_no_quality_falls_back_to_default_slope(self):
        """Test the default slope fallback."""
        flag, value = EncodeParameters(slope=None).quality_flag
        self.assertEqual(flag, '-slope')
        self.assertEqual(value, ','.join(str(s) for s in DEFAULT_SLOPE))

    def test_immutable(self):
        """Test that parameters are immutable."""
        params = EncodeParameters()
        with self.assertRaises(AttributeError):
            params.levels = 5

    def test_with_levels_returns_copy(self):
        """Test that with_levels leaves the original alone."""
        params = EncodeParameters()
        resolved = params.with_levels(4)
        self.assertEqual(resolved.levels, 4)
        self.assertEqual(params.levels, 0)

    def test_resolve_levels(self):
        """Test resolving levels from dimensions."""
        self.assertEqual(EncodeParameters().resolve_levels(4000, 3000).levels, 5)

        explicit = EncodeParameters(levels=3)
        self.assertIs(explicit.resolve_levels(4000, 3000), explicit)

    def test_negative_values_rejected(self):
        """Test rejecting negative levels and layers."""
        with self.assertRaises(ValueError):
            EncodeParameters(levels=-1)
        with self.assertRaises(ValueError):
            EncodeParameters(layers=-2)

    def test_from_dict(self):
        """Test building parameters from a mapping."""
        params = EncodeParameters.from_dict({'rate': 1.5, 'levels': 4, 'color_space': 'sRGB'})
        self.assertEqual(params.rate, 1.5)
        self.assertEqual(params.levels, 4)
        self.assertEqual(params.color_space, 'sRGB')

        with self.assertRaises(ValueError):
            EncodeParameters.from_dict({'quality': 50})


if __name__ == '__main__':
    unittest.main()
