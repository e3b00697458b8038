from .geometry import Range, Point, SubstrateGeometry, resolve_geometry, UNDETERMINED
from .signals import SignalLayout, allocate_signals
from .hyperneat import (HyperNEATTranscriber, HyperNEATDeveloper, PPN,
                        ranged_output, ranged_outputs, output_bounds)
