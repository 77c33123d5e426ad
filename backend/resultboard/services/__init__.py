"""Result-board domain services: time codec, catalog, result store, views.

This package holds the domain logic imported by the HTTP routes and CLI
commands, keeping transport concerns out of the stores and projections.
"""
