"""Chain Balance Monitor - Low balance alerts for on-chain accounts."""

__version__ = "0.1.0"
