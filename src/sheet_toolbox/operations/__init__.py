"""Operation packages; each sub-package exposes an ``operation`` module."""
