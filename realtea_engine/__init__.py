"""RealTea engine: credibility, user trust and ranking for submitted events."""

__version__ = "0.1.0"
