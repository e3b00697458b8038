""" Weight-matrix neural networks. Used both as the pattern-producing
    network that gets queried, and as the substrate network that the
    queries produce.
"""

### IMPORTS ###
import os
import copy

# Libraries
import numpy as np
np.seterr(over='ignore', divide='raise')

# Shortcuts

inf = float('inf')
sqrt_two_pi = np.sqrt(np.pi * 2)

### FUNCTIONS ###

# Node functions
def ident(x):
    return x

def bound(x, clip=(-1.0, 1.0)):
    return np.clip(x, *clip)

def gauss(x):
    """ Returns the pdf of a gaussian.
    """
    return np.exp(-x ** 2 / 2.0) / sqrt_two_pi

def sigmoid(x):
    """ Sigmoid function.
    """
    return 1 / (1 + np.exp(-x))

def sigmoid2(x):
    """ Sigmoid function, steepened like in NEAT.
    """
    return 1 / (1 + np.exp(-4.9*x))

def tanh(x):
    return np.tanh(x)

def summed(fn):
    return lambda x: fn(sum(x))

### CONSTANTS ###

SIMPLE_NODE_FUNCS = {
    'sin': np.sin,
    'abs': np.abs,
    'ident': ident,
    'linear': ident,
    'bound': bound,
    'gauss': gauss,
    'sigmoid': sigmoid,
    'sigmoid2': sigmoid2,
    'exp': sigmoid,
    'tanh': tanh,
    None : ident
}

def rbfgauss(x):
    return np.exp(-(x ** 2).sum() / 2.0) / sqrt_two_pi

def rbfwavelet(x):
    return np.exp(-(x ** 2).sum() / ( 2* 0.5**2 )) * np.sin(2 * np.pi * x[0])

COMPLEX_NODE_FUNCS = {
    'rbfgauss': rbfgauss,
    'rbfwavelet': rbfwavelet
}

# (min, max) of each node function's output
RESPONSE_BOUNDS = {
    'sin': (-1.0, 1.0),
    'abs': (0.0, inf),
    'ident': (-inf, inf),
    'linear': (-inf, inf),
    'bound': (-1.0, 1.0),
    'gauss': (0.0, 1 / sqrt_two_pi),
    'sigmoid': (0.0, 1.0),
    'sigmoid2': (0.0, 1.0),
    'exp': (0.0, 1.0),
    'tanh': (-1.0, 1.0),
    'rbfgauss': (0.0, 1 / sqrt_two_pi),
    'rbfwavelet': (-1.0, 1.0),
    None: (-inf, inf)
}


### CLASSES ###

class NeuralNetwork(object):
    """ A neural network. Can have recursive connections.
        The last `outputs` nodes are the output nodes.
    """

    def from_matrix(self, matrix, node_types=['sigmoid'], outputs=1):
        """ Constructs a network from a weight matrix.
        """
        # Initialize net
        self.original_shape = matrix.shape[:matrix.ndim//2]
        # If the connectivity matrix is given as a hypercube, squash it down to 2D
        n_nodes = int(np.prod(self.original_shape))
        self.cm  = np.array(matrix, dtype=float).reshape((n_nodes,n_nodes))
        self.node_types = list(node_types)
        if len(self.node_types) == 1:
            self.node_types *= n_nodes
        if len(self.node_types) != n_nodes:
            raise Exception("Got %d node types for %d nodes." % (len(self.node_types), n_nodes))
        self.node_type_names = list(self.node_types)
        self.set_outputs(outputs)
        self.act = np.zeros(self.cm.shape[0])
        self.optimize()
        return self

    def optimize(self):
        # If all nodes are simple nodes
        if all(fn in SIMPLE_NODE_FUNCS for fn in self.node_types):
            # Simply always sum the node inputs, this is faster
            self.sum_all_node_inputs = True
            self.cm = np.nan_to_num(self.cm)
            # If all nodes are identical types
            if all(fn == self.node_types[0] for fn in self.node_types):
                self.all_nodes_same_function = True
            self.node_types = [SIMPLE_NODE_FUNCS[fn] for fn in self.node_types]
        else:
            nt = []
            for fn in self.node_types:
                if fn in SIMPLE_NODE_FUNCS:
                    # Substitute the function(x) for function(sum(x))
                    nt.append(summed(SIMPLE_NODE_FUNCS[fn]))
                else:
                    nt.append(COMPLEX_NODE_FUNCS[fn])
            self.node_types = nt

    def __init__(self, source=None):
        # Set instance vars
        self.feedforward    = False
        self.cm             = None
        self.node_types     = None
        self.node_type_names = None
        self.original_shape = None
        self.outputs        = 1
        self.propagate      = 1
        self.min_response   = -inf
        self.max_response   = inf
        self.sum_all_node_inputs = False
        self.all_nodes_same_function = False

        if source is not None:
            try:
                data = source.get_network_data()
            except AttributeError:
                raise Exception("Cannot convert from %s to %s" % (source.__class__, self.__class__))
            self.from_matrix(*data, outputs=getattr(source, 'outputs', 1))
            if getattr(source, 'feedforward', False):
                self.make_feedforward()

    def set_outputs(self, outputs):
        """ Sets the number of output nodes, and derives the response
            bounds from their node types.
        """
        self.outputs = outputs
        self.min_response, self.max_response = response_bounds(self.node_type_names[-outputs:])
        return self

    def num_nodes(self):
        return self.cm.shape[0]

    def make_feedforward(self):
        """ Checks that there are no recursive connections, and
            marks the network as feedforward.
        """
        if np.triu(np.nan_to_num(self.cm)).any():
            raise Exception("Connection Matrix does not describe feedforward network. \n %s" % np.sign(self.cm))
        self.feedforward = True
        self.cm[np.triu_indices(self.cm.shape[0])] = 0
        return self

    def flush(self):
        """ Reset activation values. """
        self.act = np.zeros(self.cm.shape[0])

    reset = flush

    def feed(self, input_activation, add_bias=True, propagate=1):
        """ Feed an input to the network, returns the entire
            activation state, you need to extract the output nodes
            manually.

            :param add_bias: Add a bias input automatically, before other inputs.
        """
        if propagate != 1 and self.feedforward:
            raise Exception("Feedforward networks have a fixed number of propagation steps.")
        act = self.act
        node_types = self.node_types
        cm = self.cm
        input_activation = np.asarray(input_activation, dtype=float)

        if add_bias:
            input_activation = np.hstack((1.0, input_activation))

        if input_activation.size >= act.size:
            raise Exception("More input values (%s) than nodes (%s)." % (input_activation.shape, act.shape))

        input_size = min(act.size - 1, input_activation.size)

        # Feed forward nets reset the activation, and activate as many
        # times as there are nodes
        if self.feedforward:
            act = np.zeros(cm.shape[0])
            propagate = len(node_types)
        for _ in range(propagate):
            act[:input_size] = input_activation.flat[:input_size]

            if self.sum_all_node_inputs:
                nodeinputs = np.dot(self.cm, act)
            else:
                nodeinputs = self.cm * act
                nodeinputs = [ni[~np.isnan(ni)] for ni in nodeinputs]

            if self.all_nodes_same_function:
                act = node_types[0](nodeinputs)
            else:
                for i in range(len(node_types)):
                    act[i] = node_types[i](nodeinputs[i])

        self.act = act
        return act.reshape(self.original_shape)

    def query(self, input_vector):
        """ Activates the network with a complete input vector (the
            bias is expected at index 0) and returns the output nodes.
        """
        propagate = 1 if self.feedforward else self.propagate
        act = self.feed(input_vector, add_bias=False, propagate=propagate)
        return act.flat[-self.outputs:]

    def cm_string(self):
        cp = self.cm.copy()
        s = np.empty(cp.shape, dtype='U1')
        s[cp == 0] = ' '
        s[cp > 0] = '+'
        s[cp < 0] = '-'
        return '\n'.join([''.join(l) + '|' for l in s])

    def visualize(self, filename):
        """ Stores an image of the connectivity matrix,
            positive weights in blue and negative in red.
        """
        from matplotlib import image
        directory = os.path.dirname(filename)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)
        limit = max(np.abs(self.cm).max(), 1e-9)
        image.imsave(filename, self.cm, cmap='RdBu', vmin=-limit, vmax=limit)

    def __str__(self):
        return 'Neuralnet with %d nodes.' % (self.act.shape[0])


class NetworkTranscriber(object):
    """ Turns genotypes into queryable :class:`NeuralNetwork` instances.
        This is the pattern-producing network provider used by the
        HyperNEAT transcriber.
    """

    def __init__(self, outputs=None, activation_steps=10):
        """ Constructor

            :param outputs:          Number of output nodes, if the genotype doesn't say.
            :param activation_steps: Propagation steps for networks that are not feedforward.
        """
        self.outputs = outputs
        self.activation_steps = activation_steps

    def transcribe(self, genotype):
        if isinstance(genotype, NeuralNetwork):
            # Each session gets its own activation state
            network = copy.deepcopy(genotype)
        else:
            network = NeuralNetwork(genotype)
        if self.outputs is not None:
            network.set_outputs(self.outputs)
        network.propagate = self.activation_steps
        return network


### FUNCTIONS ###

def response_bounds(node_types):
    """ Returns the (min, max) output of a set of node types,
        given as names.
    """
    bounds = [RESPONSE_BOUNDS.get(nt, (-inf, inf)) if isinstance(nt, str) or nt is None else (-inf, inf)
              for nt in node_types]
    if not bounds:
        return (-inf, inf)
    return (min(b[0] for b in bounds), max(b[1] for b in bounds))

