"""Two-sided quoting engine for a central-limit-order-book venue."""

__version__ = '0.1.0'
