"""World simulator: a periodic, persisted population and food model."""

__version__ = "0.1.0"
