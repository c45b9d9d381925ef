"""eccmon - memory ECC error counter monitor for management controllers."""

__version__ = "0.1.0"
