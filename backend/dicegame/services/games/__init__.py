"""Game domain services: scoring, the turn/round engine and the room registry.

This package contains pure(ish) domain logic that should be imported by
HTTP routes and socket handlers, keeping transport concerns separated
from core game mechanics.
"""
