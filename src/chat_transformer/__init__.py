"""Convert ChatGPT and Claude conversation exports into linear, indexed records."""

__version__ = "0.1.0"
