"""Customer Location Registry — delivery location entry with duplicate warnings."""

__version__ = "0.2.0"
