"""Earn deposit engine: amount entry and transaction preparation for yield positions."""

__version__ = "0.1.0"
