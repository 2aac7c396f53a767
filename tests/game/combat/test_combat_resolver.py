"""
Unit tests for the CombatResolver.

Tests the armor, weapon durability and defender health exchange of a single
attack, including every destruction cascade.
"""

import pytest

from src.core.data import ArmorOutcome, WeaponOutcome, DestroyReason
from src.core.entities import DeadEntityError
from src.core.events import EventType
from src.game.combat import CombatResolver
from src.game.entities.components import Attack, Health


@pytest.fixture
def player(builder):
    return builder.agent("Player", health=10)


def weapon_with(world, builder, attack, health=None):
    weapon = builder.item(template="IronSword", health=health)
    world.set(weapon, Attack(attack))
    return weapon


def health_of(world, entity):
    return world.get(entity, Health).value


class TestArmor:
    """Test armor absorbing hits."""

    def test_armor_absorbs_weak_hit(self, world, combat, builder, player):
        armor = builder.item(template="WoodenArmor", container=player, active=True)
        sword = builder.item(template="IronSword", container=player)

        outcome = combat.resolve_attack(player, sword)

        assert outcome.armor == armor
        assert outcome.armor_outcome == ArmorOutcome.ABSORBED
        assert outcome.absorbed == 2
        assert outcome.armor_health == 8
        assert health_of(world, armor) == 8
        assert health_of(world, player) == 10
        assert outcome.damage_to_defender == 0
        assert outcome.defender_health == 10

    def test_hit_exactly_as_strong_as_armor(self, world, combat, builder, player):
        armor = builder.item(template="WoodenArmor", container=player, health=3, active=True)
        outcome = combat.resolve_attack(player, weapon_with(world, builder, 3))

        assert outcome.armor_outcome == ArmorOutcome.BROKEN
        assert outcome.absorbed == 3
        assert not world.is_alive(armor)
        assert health_of(world, player) == 10

    def test_overflow_carries_to_defender(self, world, combat, builder, player):
        armor = builder.item(template="WoodenArmor", container=player, health=3, active=True)

        outcome = combat.resolve_attack(player, weapon_with(world, builder, 5))

        assert outcome.armor_outcome == ArmorOutcome.BROKEN
        assert outcome.armor_destroyed
        assert outcome.absorbed == 3
        assert outcome.armor_health == -2
        assert not world.is_alive(armor)
        assert outcome.damage_to_defender == 2
        assert health_of(world, player) == 8

    def test_inactive_armor_is_ignored(self, world, combat, builder, player):
        armor = builder.item(template="WoodenArmor", container=player)
        outcome = combat.resolve_attack(player, builder.item(template="IronSword"))

        assert outcome.armor_outcome == ArmorOutcome.NOT_EQUIPPED
        assert not outcome.armor_consulted
        assert health_of(world, armor) == 10
        assert health_of(world, player) == 8

    def test_first_active_armor_is_used(self, world, combat, builder, player):
        builder.item(template="WoodenArmor", container=player)
        worn = builder.item(template="IronArmor", container=player, active=True)

        outcome = combat.resolve_attack(player, builder.item(template="IronSword"))

        assert outcome.armor == worn
        assert health_of(world, worn) == 18

    def test_armor_without_health_is_a_dud(self, world, combat, builder, player):
        armor = builder.item(kind="Armor", container=player, active=True)
        outcome = combat.resolve_attack(player, builder.item(template="IronSword"))

        assert outcome.armor == armor
        assert outcome.armor_outcome == ArmorOutcome.DUD
        assert outcome.armor_consulted
        assert world.is_alive(armor)
        assert health_of(world, player) == 8

    def test_armor_damage_stays_on_the_instance(self, world, combat, builder, registry, player):
        builder.item(template="WoodenArmor", container=player, active=True)
        combat.resolve_attack(player, builder.item(template="IronSword"))
        assert health_of(world, registry["WoodenArmor"]) == 10

    def test_without_armor_kind_armor_is_ignored(self, world, inventory, event_manager, builder, player):
        combat = CombatResolver(world, inventory, event_manager, armor_kind=None)
        armor = builder.item(template="WoodenArmor", container=player, active=True)

        outcome = combat.resolve_attack(player, builder.item(template="IronSword"))

        assert outcome.armor_outcome == ArmorOutcome.NOT_EQUIPPED
        assert health_of(world, armor) == 10
        assert health_of(world, player) == 8


class TestWeapon:
    """Test weapon durability."""

    def test_weapon_loses_one_use(self, world, combat, builder, player):
        sword = builder.item(template="IronSword")
        outcome = combat.resolve_attack(player, sword)

        assert outcome.weapon_outcome == WeaponOutcome.WORN
        assert outcome.weapon_health == 9
        assert health_of(world, sword) == 9

    def test_weapon_breaks_on_last_use(self, world, combat, builder, player):
        sword = builder.item(template="IronSword", health=1)
        outcome = combat.resolve_attack(player, sword)

        assert outcome.weapon_outcome == WeaponOutcome.BROKEN
        assert outcome.weapon_destroyed
        assert not world.is_alive(sword)
        assert health_of(world, player) == 8

    def test_broken_weapon_cannot_attack_again(self, combat, builder, player):
        sword = builder.item(template="IronSword", health=1)
        combat.resolve_attack(player, sword)
        with pytest.raises(DeadEntityError):
            combat.resolve_attack(player, sword)

    def test_weapon_without_health_never_wears(self, world, combat, builder, player):
        club = builder.item(kind="Sword")
        world.set(club, Attack(3))

        outcome = combat.resolve_attack(player, club)

        assert outcome.weapon_outcome == WeaponOutcome.NO_DURABILITY
        assert outcome.weapon_health is None
        assert world.is_alive(club)
        assert health_of(world, player) == 7

    def test_weapon_without_attack_is_a_dud(self, world, combat, builder, player):
        armor = builder.item(template="WoodenArmor", container=player, active=True)
        stick = builder.item(template="WoodenArmor")

        outcome = combat.resolve_attack(player, stick)

        assert outcome.weapon_outcome == WeaponOutcome.DUD
        assert not outcome.had_effect
        assert outcome.armor_outcome == ArmorOutcome.NOT_EQUIPPED
        assert health_of(world, armor) == 10
        assert health_of(world, stick) == 10
        assert health_of(world, player) == 10

    def test_inherited_attack(self, world, combat, builder, player):
        rusty = builder.item(template="RustyIronSword")
        outcome = combat.resolve_attack(player, rusty)

        assert outcome.attack_value == 2
        assert outcome.weapon_name == "RustyIronSword"
        assert outcome.weapon_health == 2

    def test_weapon_that_is_the_broken_armor(self, world, combat, builder, player):
        shield = builder.item(template="WoodenArmor", container=player, health=1, active=True)
        world.set(shield, Attack(3))

        outcome = combat.resolve_attack(player, shield)

        assert outcome.armor_outcome == ArmorOutcome.BROKEN
        assert outcome.weapon_outcome == WeaponOutcome.BROKEN
        assert not world.is_alive(shield)
        assert health_of(world, player) == 8


class TestDefender:
    """Test damage reaching the defender."""

    def test_unarmored_defender_takes_full_damage(self, world, combat, builder, player):
        outcome = combat.resolve_attack(player, builder.item(template="IronSword"))

        assert outcome.damage_to_defender == 2
        assert outcome.defender_health == 8
        assert not outcome.defender_destroyed

    def test_lethal_hit(self, world, combat, builder):
        victim = builder.agent("Victim", health=2)
        outcome = combat.resolve_attack(victim, builder.item(template="IronSword"))

        assert outcome.defender_destroyed
        assert outcome.defender_health == 0
        assert not world.is_alive(victim)

    def test_dead_defender_raises(self, world, combat, builder):
        victim = builder.agent("Victim", health=2)
        sword = builder.item(template="IronSword")
        combat.resolve_attack(victim, sword)

        with pytest.raises(DeadEntityError):
            combat.resolve_attack(victim, sword)

    def test_defender_without_health(self, world, combat, builder):
        statue = builder.agent("Statue")
        outcome = combat.resolve_attack(statue, builder.item(template="IronSword"))

        assert outcome.defender_health is None
        assert outcome.damage_to_defender == 0
        assert world.is_alive(statue)

    def test_defender_without_inventory(self, world, combat, builder):
        dummy = world.entity("Dummy")
        world.set(dummy, Health(5))

        outcome = combat.resolve_attack(dummy, builder.item(template="IronSword"))

        assert outcome.armor_outcome == ArmorOutcome.NOT_EQUIPPED
        assert health_of(world, dummy) == 3

    def test_full_cascade(self, world, combat, builder):
        victim = builder.agent("Victim", health=1)
        armor = builder.item(template="WoodenArmor", container=victim, health=1, active=True)
        sword = weapon_with(world, builder, 4, health=1)

        outcome = combat.resolve_attack(victim, sword)

        assert outcome.armor_destroyed
        assert outcome.weapon_destroyed
        assert outcome.defender_destroyed
        assert not any(world.is_alive(entity) for entity in (victim, armor, sword))


class TestCombatEvents:
    """Test the events and log lines an attack produces."""

    def test_destroyed_events_in_cascade_order(self, world, event_manager, combat, builder):
        victim = builder.agent("Victim", health=1)
        armor = builder.item(template="WoodenArmor", container=victim, health=1, active=True)
        sword = weapon_with(world, builder, 4, health=1)
        destroyed = []
        event_manager.subscribe(EventType.ENTITY_DESTROYED, destroyed.append)

        combat.resolve_attack(victim, sword)
        event_manager.process_events()

        assert [(event.entity, event.reason) for event in destroyed] == [
            (armor, DestroyReason.ARMOR_BROKEN),
            (sword, DestroyReason.WEAPON_BROKEN),
            (victim, DestroyReason.DEFENDER_KILLED),
        ]

    def test_attack_resolved_carries_outcome(self, event_manager, combat, builder, player):
        received = []
        event_manager.subscribe(EventType.ATTACK_RESOLVED, received.append)

        outcome = combat.resolve_attack(player, builder.item(template="IronSword"))
        event_manager.process_events()

        assert [event.outcome for event in received] == [outcome]

    def test_log_lines_with_armor(self, event_manager, combat, builder, player):
        builder.item(template="WoodenArmor", container=player, active=True)
        lines = []
        event_manager.subscribe(EventType.LOG_MESSAGE, lambda event: lines.append(event.message))

        combat.resolve_attack(player, builder.item(template="IronSword"))
        event_manager.process_events()

        assert lines == [
            ">> Player is attacked with a IronSword!",
            " - Player defends with WoodenArmor",
            " - WoodenArmor has 8 health left after taking 2 damage",
            " - IronSword has 9 uses left",
        ]

    def test_log_lines_without_armor(self, event_manager, combat, builder):
        victim = builder.agent("Victim", health=2)
        lines = []
        event_manager.subscribe(EventType.LOG_MESSAGE, lambda event: lines.append(event.message))

        combat.resolve_attack(victim, builder.item(template="IronSword"))
        event_manager.process_events()

        assert lines == [
            ">> Victim is attacked with a IronSword!",
            " - Victim fights without armor!",
            " - IronSword has 9 uses left",
            " - Victim died!",
        ]
