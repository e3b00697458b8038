""" Tests for substrate geometry resolution.
"""

### IMPORTS
import unittest

# Libraries
import numpy as np

# Package
from hyperscribe.errors import ConfigurationError
from hyperscribe.methods.geometry import (Range, Point, SubstrateGeometry,
                                          resolve_geometry, UNDETERMINED)

### CLASSES

class LayerProvider(object):
    """ Supplies dimensions (and optionally unit-space positions) per layer. """

    def __init__(self, dims, positions=None):
        self.dims = dims
        self.positions = positions or {}
        self.asked = []

    def get_layer_dimensions(self, layer, depth):
        self.asked.append((layer, depth))
        return self.dims.get(layer)

    def get_neuron_positions(self, layer, depth):
        return self.positions.get(layer)


class TestRange(unittest.TestCase):

    def test_translate(self):
        r = Range(-1, 3)
        self.assertEqual(r.translate_from_unit(0), -1)
        self.assertEqual(r.translate_from_unit(0.5), 1)
        self.assertEqual(r.translate_from_unit(1), 3)
        self.assertEqual(r.translate_to_unit(1), 0.5)

    def test_default(self):
        self.assertEqual(Range(), Range(0, 1))
        self.assertEqual(Range().translate_from_unit(0.25), 0.25)

    def test_point(self):
        p = Point(0.5, 0.5).translate_from_unit(Range(-1, 1), Range(0, 2), Range(5, 6))
        self.assertEqual(p, (0.0, 1.0, 5.0))


class TestResolve(unittest.TestCase):

    def test_explicit(self):
        g = resolve_geometry(2, [3, 1], [2, 1])
        self.assertEqual(g.width, (3, 1))
        self.assertEqual(g.height, (2, 1))
        self.assertEqual(g.num_neurons(0), 6)
        self.assertEqual(g.total_neurons, 7)
        self.assertEqual(list(g.layer_offsets()), [0, 6])

    def test_length_mismatch(self):
        self.assertRaises(ConfigurationError, resolve_geometry, 3, [1, 1], [1, 1, 1])
        self.assertRaises(ConfigurationError, resolve_geometry, 2, [1, 1], [1, 1, 1])

    def test_undetermined_from_provider(self):
        provider = LayerProvider({1: (4, 5)})
        g = resolve_geometry(2, [2, UNDETERMINED], [2, 3], provider=provider)
        # Only the undetermined dimension is taken from the provider
        self.assertEqual(g.width, (2, 4))
        self.assertEqual(g.height, (2, 3))
        self.assertEqual(provider.asked, [(1, 2)])

    def test_undetermined_without_provider(self):
        self.assertRaises(ConfigurationError, resolve_geometry, 2, [2, UNDETERMINED], [2, 2])
        self.assertRaises(ConfigurationError, resolve_geometry, 2)
        provider = LayerProvider({0: (1, 1)})
        self.assertRaises(ConfigurationError, resolve_geometry, 2, provider=provider)

    def test_grid_positions(self):
        g = resolve_geometry(3, [3, 1, 2], [2, 1, 1], range_x=Range(-1, 1))
        pos = g.layer_positions(0)
        self.assertEqual(pos.shape, (6, 3))
        # Row-major: second row, last column
        np.testing.assert_allclose(pos[5], [1.0, 1.0, 0.0])
        np.testing.assert_allclose(pos[1], [0.0, 0.0, 0.0])
        # A single neuron sits in the middle of each axis
        np.testing.assert_allclose(g.layer_positions(1)[0], [0.0, 0.5, 0.5])
        np.testing.assert_allclose(g.layer_positions(2)[:, 1], [0.5, 0.5])
        self.assertFalse(g.layer_positions(0).flags.writeable)

    def test_width_one_is_centered(self):
        g = resolve_geometry(1, [1], [4])
        self.assertTrue(np.all(g.layer_positions(0)[:, 0] == 0.5))
        self.assertTrue(np.all(g.layer_positions(0)[:, 2] == 0.0))

    def test_explicit_positions(self):
        g = resolve_geometry(3, [2, 1, 1], [1, 1, 1], range_z=Range(-1, 1),
                             positions={0: [(0.1, 0.2), (0.3, 0.4, 0.9)]})
        table = g.custom_positions[0]
        # Default z of layer 0 is the start of the z range
        self.assertEqual(table[0], (0.1, 0.2, -1.0))
        self.assertEqual(table[1], (0.3, 0.4, 0.9))
        self.assertTrue(g.has_custom_positions(0))
        self.assertFalse(g.has_custom_positions(1))
        np.testing.assert_allclose(g.layer_positions(0), [[0.1, 0.2, -1.0], [0.3, 0.4, 0.9]])

    def test_explicit_positions_default_z_middle_layer(self):
        g = resolve_geometry(3, [1, 1, 1], [1, 1, 1], range_z=Range(0, 4),
                             positions={1: [(0.0, 0.0)]})
        self.assertEqual(g.custom_positions[1][0].z, 2.0)

    def test_explicit_positions_take_priority(self):
        provider = LayerProvider({}, positions={0: [(0.0, 0.0)]})
        g = resolve_geometry(1, [1], [1], positions={0: [(0.7, 0.7)]}, provider=provider)
        self.assertEqual(g.custom_positions[0][0], (0.7, 0.7, 0.0))

    def test_provider_positions_are_translated(self):
        provider = LayerProvider({}, positions={1: [(0.0, 1.0), (1.0, 0.0)]})
        g = resolve_geometry(2, [2, 2], [1, 1], range_x=Range(-1, 1), range_y=Range(-1, 1),
                             range_z=Range(10, 20), provider=provider)
        self.assertEqual(g.custom_positions[0], None)
        self.assertEqual(g.custom_positions[1], ((-1.0, 1.0, 20.0), (1.0, -1.0, 20.0)))

    def test_wrong_position_count(self):
        self.assertRaises(ConfigurationError, resolve_geometry, 1, [2], [2],
                          positions={0: [(0, 0), (0, 1), (1, 0)]})
        self.assertRaises(ConfigurationError, resolve_geometry, 1, [2], [1],
                          positions={0: [(0, 0), (0, 1), (1, 0)]})
        provider = LayerProvider({}, positions={0: [(0, 0)]})
        self.assertRaises(ConfigurationError, resolve_geometry, 1, [2], [1], provider=provider)

    def test_resize(self):
        g = resolve_geometry(2, [2, 2], [2, 2])
        g2 = g.resize([3, 1], [3, 1])
        self.assertEqual(g.width, (2, 2))
        self.assertEqual(g2.width, (3, 1))
        self.assertEqual(g2.layer_positions(0).shape, (9, 3))
        g = resolve_geometry(1, [2], [1], positions={0: [(0, 0), (1, 1)]})
        self.assertRaises(ConfigurationError, g.resize, [3], [1])

    def test_invalid_dimensions(self):
        self.assertRaises(ConfigurationError, SubstrateGeometry, 1, [0], [1])
        self.assertRaises(ConfigurationError, SubstrateGeometry, 0, [], [])


if __name__ == "__main__":
    unittest.main()
