"""clearcli: operator command line for a perpetual futures clearing house."""

__version__ = "0.1.0"
