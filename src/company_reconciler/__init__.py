"""Company record reconciliation and outreach tracker projection."""

__version__ = "0.1.0"
