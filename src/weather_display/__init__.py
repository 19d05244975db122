"""Weather display data layer: contract, providers, favorites and refresh service."""

__version__ = "0.1.0"
