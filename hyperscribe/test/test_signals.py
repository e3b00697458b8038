""" Tests for the PPN signal slot allocation.
"""

### IMPORTS
import unittest
from itertools import product

# Package
from hyperscribe.errors import ConfigurationError, QueryError
from hyperscribe.methods.signals import (allocate_signals, Z_COORDS_AUTO,
                                         Z_COORDS_FORCE, Z_COORDS_PREVENT)

### CONSTANTS

ALL_COMBINATIONS = list(product([True, False],   # feed_forward
                                [True, False],   # include_delta
                                [True, False],   # include_angle
                                [True, False],   # enable_bias
                                [True, False],   # enable_leo
                                [True, False],   # layer_encoding_is_input
                                [1, 2, 3, 5],    # depth
                                [Z_COORDS_AUTO, Z_COORDS_FORCE, Z_COORDS_PREVENT]))

FIELDS = ('feed_forward', 'include_delta', 'include_angle', 'enable_bias',
          'enable_leo', 'layer_encoding_is_input', 'depth', 'z_coords')


def layouts():
    for combo in ALL_COMBINATIONS:
        kwds = dict(zip(FIELDS, combo))
        yield kwds, allocate_signals(**kwds)


### CLASSES

class TestSlotAllocation(unittest.TestCase):

    def test_inputs_contiguous(self):
        for kwds, layout in layouts():
            idx = layout.input_indices()
            self.assertEqual(sorted(idx), list(range(layout.input_count)), kwds)

    def test_outputs_contiguous(self):
        for kwds, layout in layouts():
            idx = layout.output_indices()
            self.assertEqual(sorted(idx), list(range(layout.output_count)), kwds)

    def test_allocation_order(self):
        for kwds, layout in layouts():
            # input_indices() lists slots in allocation order
            idx = layout.input_indices()
            self.assertEqual(idx, sorted(idx), kwds)
            self.assertEqual(layout.output_indices(), list(range(layout.output_count)), kwds)

    def test_fixed_inputs(self):
        for kwds, layout in layouts():
            self.assertEqual(layout.bias_input, 0)
            self.assertEqual((layout.source_x, layout.source_y, layout.target_x, layout.target_y),
                             (1, 2, 3, 4))

    def test_recurrent_forces_layer_encoding(self):
        for kwds, layout in layouts():
            if not kwds['feed_forward']:
                self.assertTrue(layout.layer_encoding_is_input, kwds)
                self.assertFalse(layout.per_layer)

    def test_feedforward_depth_one_has_no_z(self):
        for kwds, layout in layouts():
            if kwds['feed_forward'] and kwds['depth'] == 1 and kwds['z_coords'] != Z_COORDS_FORCE:
                self.assertIsNone(layout.target_z, kwds)
                self.assertIsNone(layout.source_z, kwds)
                self.assertIsNone(layout.delta_z, kwds)

    def test_source_z_requires_target_z(self):
        for kwds, layout in layouts():
            if layout.source_z is not None:
                self.assertIsNotNone(layout.target_z)
            if layout.delta_z is not None:
                self.assertIsNotNone(layout.source_z)
                self.assertTrue(kwds['include_delta'])

    def test_output_counts(self):
        for kwds, layout in layouts():
            per = 1 if layout.layer_encoding_is_input else max(1, kwds['depth'] - 1)
            self.assertEqual(len(layout.weight), per)
            self.assertEqual(len(layout.bias), per if kwds['enable_bias'] else 0)
            self.assertEqual(len(layout.leo), per if kwds['enable_leo'] else 0)
            self.assertEqual(layout.output_count, per * (1 + kwds['enable_bias'] + kwds['enable_leo']))

    def test_z_rules(self):
        # Feed-forward with layer encoding only gets tz for depth > 2
        layout = allocate_signals(feed_forward=True, layer_encoding_is_input=True, depth=3)
        self.assertEqual(layout.target_z, 5)
        self.assertIsNone(layout.source_z)
        layout = allocate_signals(feed_forward=True, layer_encoding_is_input=True, depth=2)
        self.assertIsNone(layout.target_z)
        # Separate outputs per layer need no z at all
        layout = allocate_signals(feed_forward=True, layer_encoding_is_input=False, depth=4)
        self.assertIsNone(layout.target_z)
        # Recurrent gets both
        layout = allocate_signals(feed_forward=False, depth=2, include_delta=True)
        self.assertEqual((layout.target_z, layout.source_z, layout.delta_z), (5, 6, 7))
        self.assertEqual((layout.delta_y, layout.delta_x), (8, 9))
        layout = allocate_signals(feed_forward=False, depth=2, z_coords=Z_COORDS_PREVENT)
        self.assertIsNone(layout.target_z)
        layout = allocate_signals(feed_forward=True, depth=1, z_coords=Z_COORDS_FORCE)
        self.assertEqual((layout.target_z, layout.source_z), (5, 6))

    def test_delta_order_y_before_x(self):
        layout = allocate_signals(feed_forward=True, depth=2, include_delta=True, include_angle=True)
        self.assertEqual(layout.delta_y, 5)
        self.assertEqual(layout.delta_x, 6)
        self.assertEqual(layout.angle, 7)
        self.assertEqual(layout.input_count, 8)

    def test_shared_outputs(self):
        layout = allocate_signals(feed_forward=True, depth=4, layer_encoding_is_input=True,
                                  enable_bias=True, enable_leo=True)
        self.assertEqual((layout.weight, layout.bias, layout.leo), ((0,), (1,), (2,)))

    def test_per_layer_outputs(self):
        layout = allocate_signals(feed_forward=True, depth=3, enable_bias=True, enable_leo=True)
        self.assertEqual(layout.weight, (0, 1))
        self.assertEqual(layout.bias, (2, 3))
        self.assertEqual(layout.leo, (4, 5))
        self.assertEqual(layout.output_count, 6)

    def test_three_layer_feedforward_scenario(self):
        layout = allocate_signals(feed_forward=True, depth=3, layer_encoding_is_input=False,
                                  enable_bias=False, enable_leo=False)
        self.assertEqual(len(layout.weight), 2)
        self.assertEqual(layout.output_count, 2)
        self.assertNotEqual(layout.output_slot('weight', 0), layout.output_slot('weight', 1))

    def test_output_slot_contract(self):
        shared = allocate_signals(feed_forward=True, depth=3, layer_encoding_is_input=True)
        self.assertEqual(shared.output_slot('weight'), 0)
        self.assertRaises(QueryError, shared.output_slot, 'weight', 0)
        self.assertRaises(QueryError, shared.output_slot, 'bias')
        per_layer = allocate_signals(feed_forward=True, depth=3)
        self.assertRaises(QueryError, per_layer.output_slot, 'weight', 2)

    def test_invalid(self):
        self.assertRaises(ConfigurationError, allocate_signals, depth=0)
        self.assertRaises(ConfigurationError, allocate_signals, depth=2, z_coords='sometimes')


if __name__ == "__main__":
    unittest.main()
