"""DerivEdge tick server: Deriv feed ingestion, indicators, signals and fan-out."""

__version__ = "0.1.0"
