""" Implements HyperNEAT's conversion
    from genotype to phenotype.

    A :class:`HyperNEATTranscriber` resolves the substrate geometry and
    the PPN signal layout once. Each genotype is then turned into a
    :class:`PPN` query session, which is queried with the coordinates
    of pairs of substrate neurons. :class:`HyperNEATDeveloper` uses this
    to build a complete substrate network.
"""

### IMPORTS ###
import math
import logging
from itertools import product

# Libs
import numpy as np

# Local
from ..errors import ConfigurationError, QueryError
from ..networks.rnn import NeuralNetwork, NetworkTranscriber
from .geometry import resolve_geometry
from .signals import allocate_signals, BIAS_INPUT, Z_COORDS_AUTO
from . import properties

logger = logging.getLogger(__name__)

# Shortcuts
two_pi = 2 * math.pi

# Known PPN output ranges
BOUNDS_UNIT = 'unit'            # [0, 1]
BOUNDS_PLUSMINUS = 'plusminus'  # [-1, 1]
BOUNDS_OTHER = 'other'


### FUNCTIONS ###

def output_bounds(min_response, max_response):
    """ Classifies the output range of a PPN. """
    if min_response == 0 and max_response == 1:
        return BOUNDS_UNIT
    if min_response == -1 and max_response == 1:
        return BOUNDS_PLUSMINUS
    return BOUNDS_OTHER


def ranged_output(value, min_value, max_value, value_range, threshold, bounds=BOUNDS_OTHER):
    """ Converts a raw PPN output to a value in [min_value, max_value].

        Outputs of PPNs with a [0, 1] or [-1, 1] range are scaled onto
        the value range, other outputs are clipped. If a threshold is
        given, values with a magnitude up to the threshold become 0 and
        the remaining values are stretched back out to the full range.
        Requires threshold != max_value and threshold != -min_value.
    """
    if bounds == BOUNDS_UNIT:
        output = value * value_range + min_value
    elif bounds == BOUNDS_PLUSMINUS:
        output = ((value + 1) * 0.5) * value_range + min_value
    else:
        output = min(max_value, max(min_value, value))

    if threshold > 0:
        if abs(output) > threshold:
            if output > 0:
                output = (output - threshold) * (max_value / (max_value - threshold))
            else:
                output = (output + threshold) * (min_value / (min_value + threshold))
        else:
            output = 0.0
    return output


def ranged_outputs(values, min_value, max_value, value_range, threshold, bounds=BOUNDS_OTHER):
    """ Array version of :func:`ranged_output`. """
    values = np.asarray(values, dtype=float)
    if bounds == BOUNDS_UNIT:
        out = values * value_range + min_value
    elif bounds == BOUNDS_PLUSMINUS:
        out = ((values + 1) * 0.5) * value_range + min_value
    else:
        out = np.clip(values, min_value, max_value)

    if threshold > 0:
        pos = out > threshold
        neg = out < -threshold
        result = np.zeros(out.shape)
        result[pos] = (out[pos] - threshold) * (max_value / (max_value - threshold))
        result[neg] = (out[neg] + threshold) * (min_value / (min_value + threshold))
        out = result
    return out


def angle_input(sx, sy, tx, ty):
    """ Angle of the source relative to the target in the XY plane,
        as a fraction of a full turn in [0, 1).
    """
    angle = math.atan2(sy - ty, sx - tx) / two_pi
    if angle < 0:
        angle += 1
    # Tiny negative angles round up to a full turn
    if angle >= 1:
        angle = 0.0
    return angle


### CLASSES ###

class PPN(object):
    """ A query session on a single pattern-producing network.
        Holds the input and output vectors, which are reused between
        queries. Sessions are not thread-safe, create one per
        transcription.
    """

    def __init__(self, activator, layout, geometry, custom_z_from_y=False):
        """ Constructor

            :param activator:       Object with min_response, max_response, reset()
                                    and query(input_vector).
            :param layout:          The :class:`~hyperscribe.methods.signals.SignalLayout`.
            :param geometry:        The :class:`~hyperscribe.methods.geometry.SubstrateGeometry`.
            :param custom_z_from_y: Fill the z inputs of neurons with custom positions
                                    from their y coordinate.
        """
        self.activator = activator
        self.layout = layout
        self.geometry = geometry
        self.custom_z_from_y = custom_z_from_y
        self.inputs = np.zeros(layout.input_count)
        self.inputs[BIAS_INPUT] = 1.0
        self._outputs = None
        self.min_response = activator.min_response
        self.max_response = activator.max_response
        self.bounds = output_bounds(self.min_response, self.max_response)

    ## Coordinates

    def _set_coordinates(self, ix, iy, iz, x, y, z):
        geometry = self.geometry
        self.inputs[ix] = geometry.range_x.translate_from_unit(x)
        self.inputs[iy] = geometry.range_y.translate_from_unit(y)
        if iz is not None and z is not None:
            self.inputs[iz] = geometry.range_z.translate_from_unit(z)

    def set_source_coordinates(self, x, y, z=None):
        """ Set the source neuron's unit coordinates. They are translated
            to the configured ranges. The z coordinate is ignored if it is
            not a PPN input.
        """
        layout = self.layout
        self._set_coordinates(layout.source_x, layout.source_y, layout.source_z, x, y, z)

    def set_target_coordinates(self, x, y, z=None):
        """ Set the target neuron's unit coordinates. """
        layout = self.layout
        self._set_coordinates(layout.target_x, layout.target_y, layout.target_z, x, y, z)

    def set_source_point(self, p):
        self.set_source_coordinates(p.x, p.y, p.z)

    def set_target_point(self, p):
        self.set_target_coordinates(p.x, p.y, p.z)

    def _set_from_grid(self, ix, iy, iz, x, y, z):
        geometry = self.geometry
        if geometry.depth == 1:
            z = 0
        if not 0 <= z < geometry.depth:
            raise QueryError("Layer index %d is outside the substrate (depth %d)." % (z, geometry.depth))
        w, h = geometry.width[z], geometry.height[z]
        if not (0 <= x < w and 0 <= y < h):
            raise QueryError("Grid index (%d, %d) is outside layer %d (%dx%d)." % (x, y, z, w, h))
        pos = geometry.layer_positions(z)[y * w + x]
        self.inputs[ix] = pos[0]
        self.inputs[iy] = pos[1]
        if iz is not None:
            if self.custom_z_from_y and geometry.custom_positions[z] is not None:
                self.inputs[iz] = pos[1]
            else:
                self.inputs[iz] = pos[2]

    def set_source_coordinates_from_grid_indices(self, x, y, z):
        """ Set the source neuron by its indices in a grid-based substrate,
            z being the layer. Layers with custom neuron positions use
            the position at row-major offset y * width + x.
        """
        layout = self.layout
        self._set_from_grid(layout.source_x, layout.source_y, layout.source_z, x, y, z)

    def set_target_coordinates_from_grid_indices(self, x, y, z):
        layout = self.layout
        self._set_from_grid(layout.target_x, layout.target_y, layout.target_z, x, y, z)

    def clear_source_coordinates(self):
        """ Zeroes the source inputs, as is done when querying bias weights. """
        layout = self.layout
        for i in (layout.source_x, layout.source_y, layout.source_z):
            if i is not None:
                self.inputs[i] = 0.0

    def source_coordinates(self):
        """ Current (x, y, z) source inputs, in range space. z is None
            if it isn't an input.
        """
        layout = self.layout
        return self._read(layout.source_x, layout.source_y, layout.source_z)

    def target_coordinates(self):
        layout = self.layout
        return self._read(layout.target_x, layout.target_y, layout.target_z)

    def _read(self, ix, iy, iz):
        z = float(self.inputs[iz]) if iz is not None else None
        return (float(self.inputs[ix]), float(self.inputs[iy]), z)

    ## Querying

    def query(self, *coords):
        """ Query the PPN. Coordinates can be given as (sx, sy, tx, ty),
            (sx, sy, sz, tx, ty, tz) or (source_point, target_point); they
            are set before querying. Without arguments the current
            coordinates are used.

            :returns: The value of the (first) weight output. Other outputs
                      can be retrieved with the accessor methods.
        """
        if coords:
            if len(coords) == 4:
                self.set_source_coordinates(coords[0], coords[1])
                self.set_target_coordinates(coords[2], coords[3])
            elif len(coords) == 6:
                self.set_source_coordinates(*coords[:3])
                self.set_target_coordinates(*coords[3:])
            elif len(coords) == 2:
                self.set_source_point(coords[0])
                self.set_target_point(coords[1])
            else:
                raise TypeError("query() takes 0, 2, 4 or 6 coordinate arguments (%d given)" % len(coords))

        layout = self.layout
        inputs = self.inputs
        if layout.delta_x is not None:
            inputs[layout.delta_x] = inputs[layout.source_x] - inputs[layout.target_x]
            inputs[layout.delta_y] = inputs[layout.source_y] - inputs[layout.target_y]
            if layout.delta_z is not None:
                inputs[layout.delta_z] = inputs[layout.source_z] - inputs[layout.target_z]
        if layout.angle is not None:
            inputs[layout.angle] = angle_input(inputs[layout.source_x], inputs[layout.source_y],
                                               inputs[layout.target_x], inputs[layout.target_y])

        self.activator.reset()
        outputs = np.asarray(self.activator.query(inputs), dtype=float).ravel()
        if outputs.size != layout.output_count:
            raise QueryError("PPN returned %d outputs, layout needs %d." % (outputs.size, layout.output_count))
        self._outputs = outputs
        return float(outputs[layout.weight[0]])

    def query_with_grid_indices(self, sx, sy, sz, tx, ty, tz):
        """ Query with grid indices, see :meth:`set_source_coordinates_from_grid_indices`. """
        self.set_source_coordinates_from_grid_indices(sx, sy, sz)
        self.set_target_coordinates_from_grid_indices(tx, ty, tz)
        return self.query()

    ## Outputs

    @property
    def outputs(self):
        """ Read-only copy of the most recent output vector. """
        out = self._checked_outputs().copy()
        out.flags.writeable = False
        return out

    def _checked_outputs(self):
        if self._outputs is None:
            raise QueryError("PPN outputs were requested before the first query().")
        return self._outputs

    def _value(self, category, layer):
        outputs = self._checked_outputs()
        return float(outputs[self.layout.output_slot(category, layer)])

    def weight(self, layer=None):
        """ Weight output, for the given source layer if there is one
            weight output per layer transition.
        """
        return self._value('weight', layer)

    def bias_weight(self, layer=None):
        """ Bias output. The bias is usually queried for a target neuron
            after clearing the source coordinates.
        """
        return self._value('bias', layer)

    def leo(self, layer=None):
        """ Link expression output. """
        return self._value('leo', layer)

    def output(self, index):
        return float(self._checked_outputs()[index])

    def ranged_weight(self, min_value, max_value, value_range, threshold, layer=None):
        return ranged_output(self.weight(layer), min_value, max_value, value_range, threshold, self.bounds)

    def ranged_bias_weight(self, min_value, max_value, value_range, threshold, layer=None):
        return ranged_output(self.bias_weight(layer), min_value, max_value, value_range, threshold, self.bounds)

    def ranged_output(self, index, min_value, max_value, value_range, threshold):
        return ranged_output(self.output(index), min_value, max_value, value_range, threshold, self.bounds)


class HyperNEATTranscriber(object):
    """ Holds the substrate geometry and PPN signal layout,
        and creates PPN query sessions for genotypes.
    """

    def __init__(self, depth,
                 width=None,
                 height=None,
                 feedforward=True,
                 enable_bias=False,
                 include_delta=False,
                 include_angle=False,
                 layer_encoding_is_input=False,
                 enable_leo=False,
                 leo_locality_seeding=False,
                 connection_expression_threshold=0.2,
                 connection_weight_max=3.0,
                 connection_weight_min=None,
                 connection_range=-1,
                 cycles_per_step=1,
                 range_x=None,
                 range_y=None,
                 range_z=None,
                 neuron_positions=None,
                 z_coords=Z_COORDS_AUTO,
                 custom_z_from_y=False,
                 dimension_provider=None,
                 ppn_transcriber=None):
        """ Constructor

            :param depth:                  Number of layers, including input and output layers.
            :param width:                  Width of each layer, -1 for widths the dimension_provider defines.
            :param height:                 Height of each layer, as width.
            :param feedforward:            Restrict the substrate to a feed-forward topology.
            :param enable_bias:            Add a bias output to the PPN for substrate neuron biases.
            :param include_delta:          Input the per-axis differences between source and target.
            :param include_angle:          Input the angle between source and target in the XY plane.
            :param layer_encoding_is_input: Use one weight output for all layers, with the layer as
                                           z input. Always true for recurrent substrates.
            :param enable_leo:             Add a link expression output.
            :param leo_locality_seeding:   Stored for genotype seeding, not used here.
            :param connection_expression_threshold: Minimum PPN output magnitude for a nonzero weight.
            :param connection_weight_max:  Maximum substrate weight.
            :param connection_weight_min:  Minimum substrate weight, defaults to -connection_weight_max.
            :param connection_range:       Maximum grid distance between connected neurons, -1 for no limit.
            :param cycles_per_step:        Activation cycles per step for recurrent substrates.
            :param range_x:                :class:`~hyperscribe.methods.geometry.Range` of x coordinates.
            :param neuron_positions:       Dict from layer index to range-space neuron positions.
            :param z_coords:               'auto', 'force' or 'prevent' z coordinate inputs.
            :param custom_z_from_y:        Use the y coordinate of custom positions as z input.
            :param dimension_provider:     Supplies layer dimensions/positions left undetermined.
            :param ppn_transcriber:        Object with transcribe(genotype), defaults to a
                                           :class:`~hyperscribe.networks.rnn.NetworkTranscriber`.
        """
        self.feedforward = feedforward
        self.enable_bias = enable_bias
        self.include_delta = include_delta
        self.include_angle = include_angle
        self.enable_leo = enable_leo
        self.leo_locality_seeding = leo_locality_seeding
        self.connection_expression_threshold = connection_expression_threshold
        self.connection_weight_max = connection_weight_max
        self.connection_weight_min = (-connection_weight_max if connection_weight_min is None
                                      else connection_weight_min)
        self.connection_range = connection_range
        self.cycles_per_step = depth - 1 if feedforward else cycles_per_step
        self.custom_z_from_y = custom_z_from_y

        if enable_leo and connection_expression_threshold != 0:
            logger.warning("LEO is enabled but the connection expression threshold is not 0. It is "
                           "recommended to set the connection expression threshold to 0 when LEO is enabled.")

        threshold = connection_expression_threshold
        if threshold > 0 and (threshold == self.connection_weight_max or threshold == -self.connection_weight_min):
            raise ConfigurationError("Connection expression threshold (%g) must differ from the weight "
                                     "bounds (%g, %g)." % (threshold, self.connection_weight_min,
                                                           self.connection_weight_max))

        self.geometry = resolve_geometry(depth, width, height,
                                         range_x=range_x, range_y=range_y, range_z=range_z,
                                         positions=neuron_positions,
                                         provider=dimension_provider)

        self.layout = allocate_signals(feed_forward=feedforward,
                                       include_delta=include_delta,
                                       include_angle=include_angle,
                                       enable_bias=enable_bias,
                                       enable_leo=enable_leo,
                                       layer_encoding_is_input=layer_encoding_is_input,
                                       depth=depth,
                                       z_coords=z_coords)
        self.layer_encoding_is_input = self.layout.layer_encoding_is_input

        if ppn_transcriber is None:
            ppn_transcriber = NetworkTranscriber(outputs=self.layout.output_count)
        self.ppn_transcriber = ppn_transcriber

    @classmethod
    def from_properties(cls, props, dimension_provider=None, ppn_transcriber=None, **kwds):
        """ Creates a transcriber from a flat dict of properties, see
            :mod:`hyperscribe.methods.properties` for the keys. Extra
            keyword arguments override the properties.
        """
        kwargs = properties.transcriber_kwargs(props)
        kwargs.update(kwds)
        return cls(dimension_provider=dimension_provider, ppn_transcriber=ppn_transcriber, **kwargs)

    @property
    def depth(self):
        return self.geometry.depth

    @property
    def width(self):
        return self.geometry.width

    @property
    def height(self):
        return self.geometry.height

    @property
    def ppn_input_count(self):
        return self.layout.input_count

    @property
    def ppn_output_count(self):
        return self.layout.output_count

    def leo_enabled(self):
        return self.enable_leo

    def resize(self, width, height, connection_range=-1):
        """ Specify new dimensions for each layer. Sessions created
            earlier keep the old geometry.
        """
        self.geometry = self.geometry.resize(width, height)
        self.connection_range = connection_range

    def ppn(self, genotype):
        """ Transcribes the genotype and returns a new query session for it. """
        activator = self.ppn_transcriber.transcribe(genotype)
        return PPN(activator, self.layout, self.geometry, self.custom_z_from_y)


class HyperNEATDeveloper(object):

    """ HyperNEAT developer object. Builds a substrate network
        by querying a PPN for every candidate connection.
    """

    def __init__(self, transcriber, node_type='tanh'):
        """ Constructor

            :param transcriber: A :class:`HyperNEATTranscriber`.
            :param node_type:   What node type to assign to the substrate nodes.
        """
        self.transcriber = transcriber
        self.node_type = node_type

    def layer_pairs(self):
        """ (source layer, target layer) pairs that get connected. """
        depth = self.transcriber.depth
        if depth == 1:
            return [(0, 0)]
        if self.transcriber.feedforward:
            return [(l, l + 1) for l in range(depth - 1)]
        # Recurrent: everything may connect to anything but the input layer.
        return [(s, t) for s, t in product(range(depth), repeat=2) if t > 0]

    def convert(self, genotype):
        """ Performs conversion.

            :param genotype: Anything the transcriber's PPN transcriber accepts.
            :returns: A :class:`~hyperscribe.networks.rnn.NeuralNetwork` whose node 0
                      is a bias node, followed by the neurons of each layer in order.
        """
        t = self.transcriber
        ppn = t.ppn(genotype)
        geometry = ppn.geometry
        layout = ppn.layout

        w_min, w_max = t.connection_weight_min, t.connection_weight_max
        w_range = w_max - w_min
        threshold = t.connection_expression_threshold
        max_dist = t.connection_range

        # Node 0 is the bias
        offsets = geometry.layer_offsets() + 1
        num_nodes = geometry.total_neurons + 1
        raw = np.zeros((num_nodes, num_nodes))
        expressed = np.zeros((num_nodes, num_nodes), dtype=bool)

        for (sl, tl) in self.layer_pairs():
            layer = sl if layout.per_layer else None
            for ty, tx in product(range(geometry.height[tl]), range(geometry.width[tl])):
                ppn.set_target_coordinates_from_grid_indices(tx, ty, tl)
                j = offsets[tl] + ty * geometry.width[tl] + tx
                for sy, sx in product(range(geometry.height[sl]), range(geometry.width[sl])):
                    if max_dist >= 0 and (abs(sx - tx) > max_dist or abs(sy - ty) > max_dist):
                        continue
                    ppn.set_source_coordinates_from_grid_indices(sx, sy, sl)
                    ppn.query()
                    if layout.leo and ppn.leo(layer) <= 0:
                        continue
                    i = offsets[sl] + sy * geometry.width[sl] + sx
                    raw[j, i] = ppn.weight(layer)
                    expressed[j, i] = True

        cm = ranged_outputs(raw, w_min, w_max, w_range, threshold, ppn.bounds)
        cm[~expressed] = 0

        if layout.bias:
            ppn.clear_source_coordinates()
            first = 1 if geometry.depth > 1 else 0
            for tl in range(first, geometry.depth):
                layer = max(0, tl - 1) if layout.per_layer else None
                for ty, tx in product(range(geometry.height[tl]), range(geometry.width[tl])):
                    ppn.set_target_coordinates_from_grid_indices(tx, ty, tl)
                    ppn.query()
                    j = offsets[tl] + ty * geometry.width[tl] + tx
                    cm[j, 0] = ppn.ranged_bias_weight(w_min, w_max, w_range, threshold, layer)

        outputs = geometry.num_neurons(geometry.depth - 1)
        net = NeuralNetwork().from_matrix(cm, node_types=[self.node_type], outputs=outputs)

        if t.feedforward and geometry.depth > 1:
            net.make_feedforward()

        if not np.all(np.isfinite(net.cm)):
            raise Exception("Network contains NaN/inf weights.")

        return net
