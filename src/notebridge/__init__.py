"""NoteBridge: turn links shared in chat into summarized, tagged notes."""

__version__ = "0.1.0"
