""" hyperscribe: transcription of pattern-producing networks
    into spatially laid out substrate networks (HyperNEAT).
"""

__version__ = '0.1.0'
