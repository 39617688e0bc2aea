"""Graph-based step interpreter driving the advisor assistant's flows."""

__version__ = "0.1.0"
