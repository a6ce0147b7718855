"""Court hearing scheduling and adjournment service."""

__version__ = "1.0.0"
