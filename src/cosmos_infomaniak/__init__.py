"""Cosmos Infomaniak image upload and infrastructure tooling"""

__version__ = "1.0.0"
