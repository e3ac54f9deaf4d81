"""Voice relay service: assistant and speech relays plus the run/poll client."""

__version__ = "1.0.0"
