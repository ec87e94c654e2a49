"""Visual novel toolkit: script events, verified image assets, asset manifests and configuration."""

__version__ = "0.1.0"