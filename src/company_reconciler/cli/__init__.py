"""Command line interface: ``python -m company_reconciler.cli <command>``."""
