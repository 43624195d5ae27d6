from .datapoint import CHANNELS, Datapoint, FieldKind
from .meter import MeterModel
from .loader import MetadataLoader

__all__ = ["MeterModel",
           "Datapoint",
           "FieldKind",
           "CHANNELS",
           "MetadataLoader"]
