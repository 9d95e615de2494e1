"""shapequery - typed structured extraction over the Anthropic Messages API."""

__version__ = "0.1.0"
