"""SII Folios - automation of the SII folio (CAF) request workflow."""

__version__ = "1.0.0"
