""" Substrate geometry: layer dimensions, coordinate ranges
    and neuron positions, resolved once before any PPN is queried.
"""

### IMPORTS ###
import logging
from collections import namedtuple

# Libs
import numpy as np

# Local
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

# Marks a layer dimension that has to be supplied by a dimension provider.
UNDETERMINED = -1


### CLASSES ###

class Range(object):
    """ A closed interval [start, end] that unit coordinates are mapped onto.
    """
    __slots__ = ('start', 'end', 'range')

    def __init__(self, start=0.0, end=1.0):
        self.start = float(start)
        self.end = float(end)
        self.range = self.end - self.start

    def translate_from_unit(self, u):
        return self.start + u * self.range

    def translate_to_unit(self, v):
        if self.range == 0:
            return 0.0
        return (v - self.start) / self.range

    def __eq__(self, other):
        return isinstance(other, Range) and (self.start, self.end) == (other.start, other.end)

    def __hash__(self):
        return hash((self.start, self.end))

    def __repr__(self):
        return 'Range(%r, %r)' % (self.start, self.end)


class Point(namedtuple('Point', 'x y z')):
    """ Neuron position. Whether it is in unit space or range space
        depends on where it came from.
    """
    __slots__ = ()

    def __new__(cls, x, y, z=0.0):
        return super(Point, cls).__new__(cls, float(x), float(y), float(z))

    def translate_from_unit(self, range_x, range_y, range_z):
        return Point(range_x.translate_from_unit(self.x),
                     range_y.translate_from_unit(self.y),
                     range_z.translate_from_unit(self.z))


class SubstrateGeometry(object):
    """ Resolved layer sizes, coordinate ranges and neuron positions
        of a substrate. Immutable once constructed, so it can be shared
        between any number of transcriptions.
    """

    def __init__(self, depth, width, height,
                 range_x=None, range_y=None, range_z=None,
                 custom_positions=None):
        """ Constructor. Use :func:`resolve_geometry` when some layers
            are supplied by a dimension provider.

            :param width:            Width of each layer, starting with the input layer.
            :param height:           Height of each layer.
            :param custom_positions: Per layer either None (regular grid) or a sequence
                                     of width*height range-space points in row-major order.
        """
        if depth < 1:
            raise ConfigurationError("Substrate depth must be at least 1, is %r." % (depth,))
        if len(width) != depth or len(height) != depth:
            raise ConfigurationError("Got %d widths and %d heights for a substrate of depth %d." %
                                     (len(width), len(height), depth))
        for layer, (w, h) in enumerate(zip(width, height)):
            if w < 1 or h < 1:
                raise ConfigurationError("Layer %d has unresolved or invalid dimensions %rx%r." %
                                         (layer, w, h))
        self.depth = int(depth)
        self.width = tuple(int(w) for w in width)
        self.height = tuple(int(h) for h in height)
        self.range_x = range_x or Range()
        self.range_y = range_y or Range()
        self.range_z = range_z or Range()

        if custom_positions is None:
            custom_positions = [None] * depth
        if len(custom_positions) != depth:
            raise ConfigurationError("Got neuron positions for %d layers, substrate has %d." %
                                     (len(custom_positions), depth))
        positions = []
        for layer, table in enumerate(custom_positions):
            if table is not None:
                table = tuple(Point(*p) for p in table)
                check_position_count(table, layer, self.width[layer] * self.height[layer])
            positions.append(table)
        self.custom_positions = tuple(positions)

        # Range-space coordinates of every neuron, row-major per layer.
        self._layer_positions = tuple(self._build_layer_positions(layer) for layer in range(depth))

    def _build_layer_positions(self, layer):
        table = self.custom_positions[layer]
        if table is not None:
            pos = np.array(table, dtype=float).reshape(-1, 3)
        else:
            w, h = self.width[layer], self.height[layer]
            xs = np.arange(w) / (w - 1.0) if w > 1 else np.array([0.5])
            ys = np.arange(h) / (h - 1.0) if h > 1 else np.array([0.5])
            pos = np.zeros((w * h, 3))
            pos[:, 0] = np.tile(xs, h)
            pos[:, 1] = np.repeat(ys, w)
            pos[:, 2] = self.unit_z(layer)
            pos[:, 0] = self.range_x.translate_from_unit(pos[:, 0])
            pos[:, 1] = self.range_y.translate_from_unit(pos[:, 1])
            pos[:, 2] = self.range_z.translate_from_unit(pos[:, 2])
        pos.flags.writeable = False
        return pos

    def unit_z(self, layer):
        """ Unit z coordinate of the given layer. """
        return float(layer) / (self.depth - 1) if self.depth > 1 else 0.0

    def num_neurons(self, layer):
        return self.width[layer] * self.height[layer]

    @property
    def total_neurons(self):
        return sum(self.num_neurons(l) for l in range(self.depth))

    def has_custom_positions(self, layer):
        return self.custom_positions[layer] is not None

    def layer_positions(self, layer):
        """ Returns a read-only (width*height, 3) array with the
            range-space position of each neuron in the layer.
        """
        return self._layer_positions[layer]

    def layer_offsets(self):
        """ Index of the first neuron of each layer when all layers
            are numbered consecutively, starting with the input layer.
        """
        return np.cumsum([0] + [self.num_neurons(l) for l in range(self.depth)])[:-1]

    def resize(self, width, height):
        """ Returns a copy of this geometry with new layer dimensions.
            Custom positions are kept, and must still fit.
        """
        return SubstrateGeometry(self.depth, width, height,
                                 self.range_x, self.range_y, self.range_z,
                                 self.custom_positions)

    def __repr__(self):
        dims = ', '.join('%dx%d' % wh for wh in zip(self.width, self.height))
        return 'SubstrateGeometry(depth=%d, layers=[%s])' % (self.depth, dims)


### FUNCTIONS ###

def check_position_count(positions, layer, count, source='configuration'):
    if len(positions) != count:
        raise ConfigurationError("The %s specifies %d neuron positions for layer %d, "
                                 "but the layer has %d neurons." % (source, len(positions), layer, count))


def resolve_geometry(depth, width=None, height=None,
                     range_x=None, range_y=None, range_z=None,
                     positions=None, provider=None):
    """ Determines the concrete geometry of a substrate.

        :param width:     Per-layer widths, UNDETERMINED (-1) for layers whose
                          size the provider should supply. None means all layers.
        :param height:    Per-layer heights, as for width.
        :param positions: Dict (or sequence) of explicitly configured range-space
                          neuron positions per layer, (x, y) or (x, y, z) tuples.
        :param provider:  Optional object with get_layer_dimensions(layer, depth)
                          and/or get_neuron_positions(layer, depth).
    """
    if depth < 1:
        raise ConfigurationError("Substrate depth must be at least 1, is %r." % (depth,))
    width = list(width) if width is not None else [UNDETERMINED] * depth
    height = list(height) if height is not None else [UNDETERMINED] * depth
    if len(width) != depth:
        raise ConfigurationError("Number of layer widths (%d) does not match depth (%d)." % (len(width), depth))
    if len(height) != depth:
        raise ConfigurationError("Number of layer heights (%d) does not match depth (%d)." % (len(height), depth))
    range_x = range_x or Range()
    range_y = range_y or Range()
    range_z = range_z or Range()

    get_dimensions = getattr(provider, 'get_layer_dimensions', None)
    get_positions = getattr(provider, 'get_neuron_positions', None)

    for layer in range(depth):
        if width[layer] == UNDETERMINED or height[layer] == UNDETERMINED:
            dims = get_dimensions(layer, depth) if get_dimensions is not None else None
            if dims is None:
                raise ConfigurationError("Dimensions of layer %d are to be determined externally, "
                                         "but no provider supplies them." % layer)
            if width[layer] == UNDETERMINED:
                width[layer] = int(dims[0])
            if height[layer] == UNDETERMINED:
                height[layer] = int(dims[1])
            logger.info("Provider defines dimensions for layer %d: %dx%d", layer, width[layer], height[layer])

    if positions is None:
        positions = {}
    elif not isinstance(positions, dict):
        positions = dict(enumerate(positions))

    custom = []
    for layer in range(depth):
        count = width[layer] * height[layer]
        table = positions.get(layer)
        if table is not None:
            # Explicit positions are already in range space, only the default z is translated.
            default_z = range_z.translate_from_unit(float(layer) / (depth - 1) if depth > 1 else 0.0)
            table = [Point(p[0], p[1], p[2] if len(p) > 2 else default_z) for p in table]
            check_position_count(table, layer, count)
        elif get_positions is not None:
            table = get_positions(layer, depth)
            if table is not None:
                check_position_count(table, layer, count, source='provider')
                unit_z = float(layer) / (depth - 1) if depth > 1 else 0.0
                table = [Point(p[0], p[1], p[2] if len(p) > 2 else unit_z).translate_from_unit(range_x, range_y, range_z)
                         for p in table]
                logger.info("Provider defines neuron positions for layer %d: %s", layer,
                            ', '.join('(%g, %g, %g)' % tuple(p) for p in table))
        custom.append(table)

    return SubstrateGeometry(depth, width, height, range_x, range_y, range_z, custom)
