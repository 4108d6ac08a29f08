"""Beacon Probe - end-to-end probe for the Beacon Socket.IO query API."""

__version__ = "0.1.0"
