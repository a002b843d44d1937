"""PortPilot: turn GitHub repositories into a themed public portfolio."""

__version__ = "0.1.0"
