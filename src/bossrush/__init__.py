"""Boss Rush: shared boss combat with per-weapon progression."""

__version__ = "0.1.0"
