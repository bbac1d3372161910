"""Simulator of a gossip-style heartbeat membership protocol over an emulated network."""

__version__ = "0.1.0"