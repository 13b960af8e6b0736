"""Ancestree - family tree and DNA ancestry backend."""

__version__ = "0.1.0"
