"""Neurocom: retrieval-augmented chat and voice streaming backend."""
