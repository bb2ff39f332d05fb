"""Windows Registry state convergence."""

__version__ = "0.1.0"
