"""Auxiliary tools run from the command line."""
