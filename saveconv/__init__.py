"""Project64 -> Gopher64 N64 save converter."""

__version__ = "0.1.0"
