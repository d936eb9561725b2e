"""Mirror Cloud Build step progress to a GitHub commit status."""

__version__ = "0.1.0"
