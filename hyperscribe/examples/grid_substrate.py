#!/usr/bin/env python

### IMPORTS ###
import logging

# Libs
import numpy as np

from hyperscribe.log import setup_logging
from hyperscribe.methods.hyperneat import HyperNEATTranscriber, HyperNEATDeveloper
from hyperscribe.networks.rnn import NeuralNetwork

setup_logging(logging.DEBUG)

# A 3 layer feed-forward substrate, with one weight output per layer transition.
props = {
    'ann.hyperneat.feedforward': 'true',
    'ann.hyperneat.depth': '3',
    'ann.hyperneat.width': '3,2,1',
    'ann.hyperneat.height': '3,2,1',
    'ann.hyperneat.range.x': '-1,1',
    'ann.hyperneat.range.y': '-1,1',
    'ann.hyperneat.includedelta': 'true',
    'ann.hyperneat.connection.weight.max': '3.0',
    'ann.hyperneat.connection.expression.threshold': '0.3',
}
transcriber = HyperNEATTranscriber.from_properties(props)

# A random PPN without hidden nodes: inputs connect straight to the tanh outputs.
n_in, n_out = transcriber.ppn_input_count, transcriber.ppn_output_count
cm = np.zeros((n_in + n_out, n_in + n_out))
cm[n_in:, :n_in] = np.random.normal(0, 2.0, (n_out, n_in))
ppn = NeuralNetwork().from_matrix(cm, node_types=['ident'] * n_in + ['tanh'] * n_out, outputs=n_out)
ppn.make_feedforward()

net = HyperNEATDeveloper(transcriber).convert(ppn)
print(net)
print(net.cm_string())
print(net.feed(np.ones(9))[-1])
