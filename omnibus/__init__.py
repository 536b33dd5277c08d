"""KC Frequency Omnibus: frequency catalog, trunked systems and radio exports."""

__version__ = "1.0.0"
