"""Stock checker for the Hefame distributor portal."""

__version__ = "0.1.0"
