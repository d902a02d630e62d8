"""
Cardsmith - Schema-driven card game engine

Turns a declarative, data-only card game description (a "game schema") into
a playable session:
- Deck construction, shuffling and dealing
- Action validation and execution driven by the schema
- Heuristic bots that always find a legal move
- A rule enrichment pipeline for free-text special rules
- An explicit effect/predicate IR evaluated by a small interpreter
"""

__version__ = "0.1.0"
