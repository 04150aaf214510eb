"""LAS Alias Manager - reconcile LAS curve mnemonics against an alias dictionary."""

__version__ = "0.1.0"
