"""envoy-compat: SPIRE/Envoy SDS compatibility test runner."""

__version__ = "0.1.0"
