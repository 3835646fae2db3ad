"""QueryDesk backend: session-scoped datasets with cached SQL and natural-language queries."""

__version__ = "0.1.0"
