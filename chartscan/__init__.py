"""ChartScan: static checks for Helm charts and their values files."""

__version__ = "0.4.0"
