"""Courier command line interface."""
