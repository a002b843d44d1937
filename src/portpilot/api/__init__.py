"""HTTP API for PortPilot."""
