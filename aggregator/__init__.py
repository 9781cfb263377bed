"""Radio and traffic aggregator API."""

__version__ = "1.0.0"
