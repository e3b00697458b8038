""" Reading transcriber settings from a flat mapping of
    string keys to string values.
"""

### IMPORTS ###
import re

# Local
from ..errors import ConfigurationError
from .geometry import Range, UNDETERMINED

### CONSTANTS ###

HYPERNEAT_FEED_FORWARD = 'ann.hyperneat.feedforward'
HYPERNEAT_ENABLE_BIAS = 'ann.hyperneat.enablebias'
HYPERNEAT_INCLUDE_DELTA = 'ann.hyperneat.includedelta'
HYPERNEAT_INCLUDE_ANGLE = 'ann.hyperneat.includeangle'
HYPERNEAT_LAYER_ENCODING = 'ann.hyperneat.useinputlayerencoding'
HYPERNEAT_CONNECTION_EXPRESSION_THRESHOLD = 'ann.hyperneat.connection.expression.threshold'
HYPERNEAT_CONNECTION_WEIGHT_MIN = 'ann.hyperneat.connection.weight.min'
HYPERNEAT_CONNECTION_WEIGHT_MAX = 'ann.hyperneat.connection.weight.max'
HYPERNEAT_CONNECTION_RANGE = 'ann.hyperneat.connection.range'
HYPERNEAT_LEO = 'ann.hyperneat.leo'
HYPERNEAT_LEO_LOCALITY = 'ann.hyperneat.leo.localityseeding'
SUBSTRATE_DEPTH = 'ann.hyperneat.depth'
SUBSTRATE_WIDTH = 'ann.hyperneat.width'
SUBSTRATE_HEIGHT = 'ann.hyperneat.height'
SUBSTRATE_CYCLES_PER_STEP = 'ann.hyperneat.cyclesperstep'
RANGE_X = 'ann.hyperneat.range.x'
RANGE_Y = 'ann.hyperneat.range.y'
RANGE_Z = 'ann.hyperneat.range.z'
NEURON_POSITIONS_FOR_LAYER = 'ann.hyperneat.layer.positions'

# Layer size token meaning "supplied by the dimension provider"
EXTERNAL_SIZE_TOKEN = 'f'

TRUE_VALUES = ('true', 'yes', 'on', '1')
FALSE_VALUES = ('false', 'no', 'off', '0')

_required = object()
_tuple_re = re.compile(r'\(([^()]*)\)')


### FUNCTIONS ###

def _get(props, key, default):
    if key not in props:
        if default is _required:
            raise ConfigurationError("Required property %s is not set." % key)
        return default
    return props[key]


def get_bool(props, key, default=_required):
    value = _get(props, key, default)
    if isinstance(value, bool) or value is None:
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ConfigurationError("Property %s must be a boolean, is %r." % (key, value))


def get_float(props, key, default=_required):
    value = _get(props, key, default)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError("Property %s must be a number, is %r." % (key, value))


def get_int(props, key, default=_required):
    value = _get(props, key, default)
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        raise ConfigurationError("Property %s must be an integer, is %r." % (key, value))


def parse_numbers(text, key):
    text = text.strip().strip('[]()')
    try:
        return [float(v) for v in text.split(',') if v.strip()]
    except ValueError:
        raise ConfigurationError("Property %s must be a list of numbers, is %r." % (key, text))


def parse_layer_sizes(text, depth, key):
    """ Parses a comma separated list of layer sizes, in which
        EXTERNAL_SIZE_TOKEN marks sizes to be determined by the provider.
    """
    sizes = []
    for token in str(text).split(','):
        token = token.strip()
        if token == EXTERNAL_SIZE_TOKEN:
            sizes.append(UNDETERMINED)
            continue
        try:
            sizes.append(int(token))
        except ValueError:
            raise ConfigurationError("Invalid layer size %r in %s." % (token, key))
    if len(sizes) != depth:
        raise ConfigurationError("Number of comma-separated layer dimensions in %s (%d) does not match %s (%d)." %
                                 (key, len(sizes), SUBSTRATE_DEPTH, depth))
    return sizes


def get_layer_sizes(props, key, depth):
    if key not in props:
        return [UNDETERMINED] * depth
    return parse_layer_sizes(props[key], depth, key)


def get_range(props, key):
    if key not in props:
        return Range()
    values = parse_numbers(str(props[key]), key)
    if len(values) != 2:
        raise ConfigurationError("Property %s must be a pair min, max; is %r." % (key, props[key]))
    return Range(*values)


def parse_positions(text, key):
    """ Parses '(x, y[, z]), (x, y[, z]), ...' into a list of tuples.
    """
    positions = []
    for match in _tuple_re.finditer(str(text)):
        coords = parse_numbers(match.group(1), key)
        if len(coords) not in (2, 3):
            raise ConfigurationError("Neuron position (%s) in %s must have 2 or 3 coordinates." % (match.group(1), key))
        positions.append(tuple(coords))
    if not positions:
        raise ConfigurationError("Property %s does not contain any neuron positions." % key)
    return positions


def get_layer_positions(props, depth):
    """ Returns a dict from layer index to the positions configured for it. """
    positions = {}
    for layer in range(depth):
        key = '%s.%d' % (NEURON_POSITIONS_FOR_LAYER, layer)
        if key in props:
            positions[layer] = parse_positions(props[key], key)
    return positions


def transcriber_kwargs(props):
    """ Translates properties into keyword arguments for
        :class:`~hyperscribe.methods.hyperneat.HyperNEATTranscriber`.
    """
    depth = get_int(props, SUBSTRATE_DEPTH)
    weight_max = get_float(props, HYPERNEAT_CONNECTION_WEIGHT_MAX)
    return dict(
        depth=depth,
        width=get_layer_sizes(props, SUBSTRATE_WIDTH, depth),
        height=get_layer_sizes(props, SUBSTRATE_HEIGHT, depth),
        feedforward=get_bool(props, HYPERNEAT_FEED_FORWARD),
        enable_bias=get_bool(props, HYPERNEAT_ENABLE_BIAS, False),
        include_delta=get_bool(props, HYPERNEAT_INCLUDE_DELTA, False),
        include_angle=get_bool(props, HYPERNEAT_INCLUDE_ANGLE, False),
        layer_encoding_is_input=get_bool(props, HYPERNEAT_LAYER_ENCODING, False),
        enable_leo=get_bool(props, HYPERNEAT_LEO, False),
        leo_locality_seeding=get_bool(props, HYPERNEAT_LEO_LOCALITY, False),
        connection_expression_threshold=get_float(props, HYPERNEAT_CONNECTION_EXPRESSION_THRESHOLD, 0.2),
        connection_weight_max=weight_max,
        connection_weight_min=get_float(props, HYPERNEAT_CONNECTION_WEIGHT_MIN, -weight_max),
        connection_range=get_int(props, HYPERNEAT_CONNECTION_RANGE, -1),
        cycles_per_step=get_int(props, SUBSTRATE_CYCLES_PER_STEP, 1),
        range_x=get_range(props, RANGE_X),
        range_y=get_range(props, RANGE_Y),
        range_z=get_range(props, RANGE_Z),
        neuron_positions=get_layer_positions(props, depth),
    )
