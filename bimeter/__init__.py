"""Reassembly of single-datapoint telemetry from two-channel bidirectional energy meters."""

__version__ = "0.1.0"
