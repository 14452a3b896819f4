"""NotifyKit: scheduling, cancelling and querying local notifications."""

__version__ = "1.0.0"
