"""Currency exchange order and reserve settlement service."""

__version__ = "0.1.0"
