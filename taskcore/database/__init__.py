"""Persistence layer for taskcore."""
