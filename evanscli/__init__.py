"""Flags, layered configuration, cache, update checks and usage text for a gRPC client command line."""

__version__ = "0.1.0"