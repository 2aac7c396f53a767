"""
Combat resolution system for executing attacks and applying damage.

This module resolves one weapon attack against a defending agent. The
exchange runs in a fixed order: the defender's equipped armor absorbs what
it can, the weapon loses one point of durability, and whatever damage gets
past the armor comes off the defender's health. Armor, weapon and defender
are each destroyed when their health drops to zero or below.
"""
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

from ...core.data import (
    Entity, ArmorOutcome, WeaponOutcome, DestroyReason, LogLevel
)
from ...core.entities import DeadEntityError
from ...core.events import AttackResolved, EntityDestroyed, LogMessage, ManagerInitialized
from ..entities.components import Attack, Health

if TYPE_CHECKING:
    from ...core.entities import World
    from ...core.events import EventManager
    from ..managers.inventory_manager import InventoryManager


@dataclass
class AttackOutcome:
    """Result of one attack, complete enough to render a combat log."""
    defender: Entity
    defender_name: str
    weapon: Entity
    weapon_name: str
    attack_value: int = 0

    armor: Optional[Entity] = None
    armor_name: str = ""
    armor_outcome: ArmorOutcome = ArmorOutcome.NOT_EQUIPPED
    armor_health: Optional[int] = None
    absorbed: int = 0

    weapon_outcome: WeaponOutcome = WeaponOutcome.DUD
    weapon_health: Optional[int] = None

    damage_to_defender: int = 0
    defender_health: Optional[int] = None
    defender_destroyed: bool = False

    @property
    def armor_consulted(self) -> bool:
        """Whether the defender had active armor that was checked."""
        return self.armor_outcome != ArmorOutcome.NOT_EQUIPPED

    @property
    def armor_destroyed(self) -> bool:
        return self.armor_outcome == ArmorOutcome.BROKEN

    @property
    def weapon_destroyed(self) -> bool:
        return self.weapon_outcome == WeaponOutcome.BROKEN

    @property
    def had_effect(self) -> bool:
        """Whether the weapon could attack at all."""
        return self.weapon_outcome != WeaponOutcome.DUD


class CombatResolver:
    """Handles attack execution and damage application."""

    def __init__(
        self,
        world: "World",
        inventory: "InventoryManager",
        event_manager: "EventManager",
        armor_kind: Optional[Entity] = None,
        step_source: Optional[Callable[[], int]] = None
    ):
        self.world = world
        self.inventory = inventory
        self.event_manager = event_manager
        self.armor_kind = armor_kind
        self._step_source = step_source or (lambda: 0)

        self.event_manager.publish(
            ManagerInitialized(step=0, manager_name="CombatResolver"),
            source="CombatResolver"
        )

    def resolve_attack(self, defender: Entity, weapon: Entity) -> AttackOutcome:
        """
        Resolve one attack of ``weapon`` against ``defender``.

        Args:
            defender: The agent being attacked
            weapon: The item used to attack

        Returns:
            AttackOutcome describing armor, weapon and defender results

        Raises:
            DeadEntityError: If the defender or the weapon no longer exists
        """
        if not self.world.is_alive(defender):
            raise DeadEntityError(defender, "resolve_attack")
        if not self.world.is_alive(weapon):
            raise DeadEntityError(weapon, "resolve_attack")

        names = self.inventory.kinds
        outcome = AttackOutcome(
            defender=defender,
            defender_name=self.world.describe(defender),
            weapon=weapon,
            weapon_name=names.display_name(weapon),
        )

        self._emit_log(f">> {outcome.defender_name} is attacked with a {outcome.weapon_name}!")

        attack = self.world.get(weapon, Attack)
        if attack is None:
            # A weapon without Attack power: nothing happens
            self._emit_log(" - the weapon is a dud")
            self._publish_outcome(outcome)
            return outcome

        outcome.attack_value = attack.value
        carried = self._apply_armor(outcome, attack.value)
        self._wear_weapon(outcome)
        self._damage_defender(outcome, carried)

        self._publish_outcome(outcome)
        return outcome

    def _apply_armor(self, outcome: AttackOutcome, attack_value: int) -> int:
        """Let the defender's active armor absorb the hit.

        Returns:
            Damage carried through to the defender
        """
        armor = None
        if self.inventory.has_inventory(outcome.defender):
            armor = self.inventory.find_item(outcome.defender, self.armor_kind, active_required=True)

        if armor is None:
            outcome.armor_outcome = ArmorOutcome.NOT_EQUIPPED
            self._emit_log(f" - {outcome.defender_name} fights without armor!")
            return attack_value

        outcome.armor = armor
        outcome.armor_name = self.inventory.kinds.display_name(armor)

        armor_health = self.world.get_mut(armor, Health)
        if armor_health is None:
            outcome.armor_outcome = ArmorOutcome.DUD
            self._emit_log(f" - the {outcome.armor_name} armor is a dud")
            return attack_value

        self._emit_log(f" - {outcome.defender_name} defends with {outcome.armor_name}")

        armor_health.value -= attack_value
        outcome.armor_health = armor_health.value

        if armor_health.is_depleted():
            # Whatever the armor could not take carries over to the defender
            carried = -armor_health.value
            outcome.absorbed = attack_value - carried
            outcome.armor_outcome = ArmorOutcome.BROKEN
            self._destroy(armor, outcome.armor_name, DestroyReason.ARMOR_BROKEN)
            self._emit_log(f" - {outcome.armor_name} is destroyed!")
            return carried

        outcome.absorbed = attack_value
        outcome.armor_outcome = ArmorOutcome.ABSORBED
        self._emit_log(
            f" - {outcome.armor_name} has {armor_health.value} health left after taking {attack_value} damage"
        )
        return 0

    def _wear_weapon(self, outcome: AttackOutcome) -> None:
        """Use up one point of the weapon's durability."""
        weapon = outcome.weapon
        if not self.world.is_alive(weapon):
            # The weapon was the armor that just broke
            outcome.weapon_outcome = WeaponOutcome.BROKEN
            return

        weapon_health = self.world.get_mut(weapon, Health)
        if weapon_health is None:
            outcome.weapon_outcome = WeaponOutcome.NO_DURABILITY
            return

        weapon_health.value -= 1
        outcome.weapon_health = weapon_health.value

        if weapon_health.is_depleted():
            outcome.weapon_outcome = WeaponOutcome.BROKEN
            self._emit_log(f" - {outcome.weapon_name} is destroyed!")
            self._destroy(weapon, outcome.weapon_name, DestroyReason.WEAPON_BROKEN)
        else:
            outcome.weapon_outcome = WeaponOutcome.WORN
            self._emit_log(f" - {outcome.weapon_name} has {weapon_health.value} uses left")

    def _damage_defender(self, outcome: AttackOutcome, damage: int) -> None:
        """Apply the damage that got past the armor."""
        defender = outcome.defender
        current = self.world.get(defender, Health)
        outcome.defender_health = current.value if current is not None else None

        if damage == 0 or current is None or not self.world.is_alive(defender):
            return

        defender_health = self.world.get_mut(defender, Health)
        defender_health.value -= damage
        outcome.damage_to_defender = damage
        outcome.defender_health = defender_health.value

        if defender_health.is_depleted():
            outcome.defender_destroyed = True
            self._emit_log(f" - {outcome.defender_name} died!")
            self._destroy(defender, outcome.defender_name, DestroyReason.DEFENDER_KILLED)
        else:
            self._emit_log(
                f" - {outcome.defender_name} has {defender_health.value} health after taking {damage} damage"
            )

    def _destroy(self, entity: Entity, name: str, reason: DestroyReason) -> None:
        if self.world.destroy(entity):
            self.event_manager.publish(
                EntityDestroyed(step=self._step_source(), entity=entity, name=name, reason=reason),
                source="CombatResolver"
            )

    def _publish_outcome(self, outcome: AttackOutcome) -> None:
        self.event_manager.publish(
            AttackResolved(step=self._step_source(), outcome=outcome),
            source="CombatResolver"
        )

    def _emit_log(self, message: str, category: str = "BATTLE", level: LogLevel = LogLevel.INFO) -> None:
        """Emit a log message event."""
        self.event_manager.publish(
            LogMessage(
                step=self._step_source(),
                message=message,
                category=category,
                level=level,
                source="CombatResolver"
            ),
            source="CombatResolver"
        )
