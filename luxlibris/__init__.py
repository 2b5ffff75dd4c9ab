"""Lux Libris assessment scoring, Reading DNA and seasonal theme backend."""
