"""
Uno Engine - Server-side rule engine for asynchronous UNO games.

Every player action (play, draw, pass) runs through a phased rule pipeline:
- Pre-validate: turn ownership and game status gating
- Validate: card legality and required inputs
- Apply: declarative effects computed by independent rules
- Finalize: win detection, scoring and statistics

Effects from all rules are merged with conflict detection and applied
atomically by the persistence collaborator. The deck is never stored;
it is reconstructed from a seed and the visible game state.
"""

__version__ = "0.1.0"
