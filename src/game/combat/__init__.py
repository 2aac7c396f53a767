"""Combat system components.

This package contains the combat logic:
- combat_resolver.py: Attack resolution through armor, weapon durability and defender health
"""

from .combat_resolver import CombatResolver, AttackOutcome

__all__ = [
    "CombatResolver",
    "AttackOutcome",
]
