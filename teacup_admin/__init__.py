"""Teacup Admin module: command line tools for the report database."""
