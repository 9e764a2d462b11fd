"""Shared constants, exceptions, logging and address helpers."""
