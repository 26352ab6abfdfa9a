"""HTTP gateway relaying encrypted one-time SMS commands to a serial modem."""

__version__ = "0.1.0"
