from .rnn import NeuralNetwork, NetworkTranscriber
