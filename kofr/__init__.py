"""kofr - Kafka Connect CLI for connect cluster management."""

__version__ = "0.1.0"
