""" Assignment of PPN input and output slots.

    The order in which slots are handed out is fixed: inputs are bias,
    source x/y, target x/y, target z, source z, delta z, delta y, delta x
    and angle (each only when enabled); outputs are the weight output(s),
    then bias output(s), then link expression output(s).
"""

### IMPORTS ###
import logging
from collections import namedtuple

# Local
from ..errors import ConfigurationError, QueryError

logger = logging.getLogger(__name__)

# Modes for the z coordinate inputs
Z_COORDS_AUTO = 'auto'
Z_COORDS_FORCE = 'force'
Z_COORDS_PREVENT = 'prevent'

BIAS_INPUT = 0

OUTPUT_CATEGORIES = ('weight', 'bias', 'leo')


### CLASSES ###

_LAYOUT_FIELDS = ('feed_forward', 'layer_encoding_is_input', 'depth',
                  'source_x', 'source_y', 'target_x', 'target_y',
                  'target_z', 'source_z', 'delta_z', 'delta_y', 'delta_x', 'angle',
                  'input_count',
                  'weight', 'bias', 'leo',
                  'output_count')


class SignalLayout(namedtuple('SignalLayout', _LAYOUT_FIELDS)):
    """ Slot indices of every PPN input and output.

        Optional inputs are None when they are not used. The output
        categories (weight, bias, leo) are tuples of slot indices: one
        slot shared by all layers, one slot per layer transition, or
        empty when the category is disabled.
    """
    __slots__ = ()

    bias_input = BIAS_INPUT

    @property
    def per_layer(self):
        """ True if there is a separate output per layer transition. """
        return not self.layer_encoding_is_input

    @property
    def has_z(self):
        return self.target_z is not None

    @property
    def has_delta(self):
        return self.delta_x is not None

    def input_indices(self):
        """ All used input slots, in allocation order. """
        idx = [BIAS_INPUT, self.source_x, self.source_y, self.target_x, self.target_y,
               self.target_z, self.source_z, self.delta_z, self.delta_y, self.delta_x, self.angle]
        return [i for i in idx if i is not None]

    def output_indices(self):
        return list(self.weight + self.bias + self.leo)

    def output_slot(self, category, layer=None):
        """ Returns the output slot for the given category, and for
            the given source layer if outputs are per layer.
        """
        slots = getattr(self, category)
        if not slots:
            raise QueryError("The %s output is not enabled." % category)
        if layer is None:
            return slots[0]
        if not self.per_layer:
            raise QueryError("A layer index was given for the %s output, but all layers "
                             "share a single output (layer encoding is input)." % category)
        if not 0 <= layer < len(slots):
            raise QueryError("Layer index %d out of range for %d %s outputs." % (layer, len(slots), category))
        return slots[layer]


### FUNCTIONS ###

def uses_z_inputs(feed_forward, layer_encoding_is_input, depth, z_coords=Z_COORDS_AUTO):
    """ Whether the target (and possibly source) z coordinate is an input. """
    if z_coords == Z_COORDS_FORCE:
        return True
    if z_coords == Z_COORDS_PREVENT:
        return False
    return (feed_forward and layer_encoding_is_input and depth > 2) or (not feed_forward and depth > 1)


def allocate_signals(feed_forward=True,
                     include_delta=False,
                     include_angle=False,
                     enable_bias=False,
                     enable_leo=False,
                     layer_encoding_is_input=False,
                     depth=1,
                     z_coords=Z_COORDS_AUTO):
    """ Computes the slot layout for the given feature set.

        :param feed_forward:            Whether the substrate is strictly feed-forward.
        :param layer_encoding_is_input: Use a single weight output for all layer transitions
                                        and pass the layer as z coordinate instead. Always
                                        true for recurrent substrates.
        :param z_coords:                'auto', or 'force'/'prevent' to override whether
                                        z coordinate inputs are used.
    """
    if depth < 1:
        raise ConfigurationError("Substrate depth must be at least 1, is %r." % (depth,))
    if z_coords not in (Z_COORDS_AUTO, Z_COORDS_FORCE, Z_COORDS_PREVENT):
        raise ConfigurationError("Unknown z coordinate mode %r." % (z_coords,))

    # Recurrent substrates have no layer transitions to give separate outputs.
    if not feed_forward:
        layer_encoding_is_input = True

    count = BIAS_INPUT + 1
    source_x, source_y, target_x, target_y = range(count, count + 4)
    count += 4
    logger.debug("PPN: added bias, sx, sy, tx, ty inputs.")

    target_z = source_z = delta_z = delta_y = delta_x = angle = None
    if uses_z_inputs(feed_forward, layer_encoding_is_input, depth, z_coords):
        target_z = count
        count += 1
        logger.debug("PPN: added tz input.")
        if z_coords == Z_COORDS_FORCE or not feed_forward:
            source_z = count
            count += 1
            logger.debug("PPN: added sz input.")
            if include_delta:
                delta_z = count
                count += 1
                logger.debug("PPN: added delta z input.")
    if include_delta:
        delta_y, delta_x = count, count + 1
        count += 2
        logger.debug("PPN: added delta x and y inputs.")
    if include_angle:
        angle = count
        count += 1
        logger.debug("PPN: added angle input.")
    input_count = count

    # One output for all layers, or one per layer transition (depth 1 is a
    # single horizontal layer and still gets one).
    per_category = 1 if layer_encoding_is_input else max(1, depth - 1)
    enabled = {'weight': True, 'bias': enable_bias, 'leo': enable_leo}
    outputs = {}
    count = 0
    for category in OUTPUT_CATEGORIES:
        if enabled[category]:
            outputs[category] = tuple(range(count, count + per_category))
            count += per_category
            logger.debug("PPN: added %d %s output(s).", per_category, category)
        else:
            outputs[category] = ()
    output_count = count

    logger.info("PPN input/output size: %d/%d", input_count, output_count)

    return SignalLayout(feed_forward=bool(feed_forward),
                        layer_encoding_is_input=bool(layer_encoding_is_input),
                        depth=depth,
                        source_x=source_x, source_y=source_y,
                        target_x=target_x, target_y=target_y,
                        target_z=target_z, source_z=source_z,
                        delta_z=delta_z, delta_y=delta_y, delta_x=delta_x,
                        angle=angle,
                        input_count=input_count,
                        weight=outputs['weight'], bias=outputs['bias'], leo=outputs['leo'],
                        output_count=output_count)
