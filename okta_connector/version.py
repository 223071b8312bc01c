"""Version information for okta-connector."""

__version__ = "0.1.0"
