"""Dash docset generator for the BigQuery Standard SQL reference."""

__version__ = "1.0.0"
