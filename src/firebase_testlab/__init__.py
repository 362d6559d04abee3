"""Firebase Test Lab CI step."""

__version__ = "0.3.0"
