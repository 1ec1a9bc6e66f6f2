"""Domain modules of the exchange engine."""
