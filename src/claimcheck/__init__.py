"""claimcheck: retrieval-grounded insurance claim decisions."""

__version__ = "0.1.0"
