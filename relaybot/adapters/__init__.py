"""Adapters for the external collaborators (NLU, directory, relay transport)."""
