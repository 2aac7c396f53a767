#!/usr/bin/env python3

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.core.data import ARMOR_OUTCOME_NAMES, WEAPON_OUTCOME_NAMES
from src.game.combat import AttackOutcome
from src.game.simulation import Simulation


def setup_chest_scenario(sim: Simulation) -> dict[str, int]:
    """Populate a world with a loot chest and a player.

    The chest holds an iron sword, a wooden armor and 30 coins; the player
    carries 20 coins and has 10 health.
    """
    chest = sim.create_container("Chest")
    sim.spawn_item("IronSword", container=chest)
    sim.spawn_item("WoodenArmor", container=chest)
    sim.spawn_item(kind="Coin", amount=30, container=chest)

    player = sim.create_inventory_owner("Player", health=10)
    sim.spawn_item(kind="Coin", amount=20, container=player)

    return {"chest": chest, "player": player}


def print_inventory(sim: Simulation, ref: int) -> None:
    for line in sim.describe_inventory(ref):
        print(line)
    print()


def describe_outcome(outcome: AttackOutcome) -> str:
    """Summarize an attack outcome on one line."""
    return (
        f"armor: {ARMOR_OUTCOME_NAMES[outcome.armor_outcome]}, "
        f"weapon: {WEAPON_OUTCOME_NAMES[outcome.weapon_outcome]}, "
        f"damage taken: {outcome.damage_to_defender}"
    )


def print_new_log_lines(sim: Simulation, already_printed: int) -> int:
    messages = sim.log_manager.get_formatted_messages()
    for line in messages[already_printed:]:
        print(line)
    print()
    return len(messages)


def main():
    sim = Simulation()
    handles = setup_chest_scenario(sim)
    chest, player = handles["chest"], handles["player"]
    printed = len(sim.log_manager.get_formatted_messages())

    print_inventory(sim, chest)
    print_inventory(sim, player)

    sim.transfer_all(player, chest)
    printed = print_new_log_lines(sim, printed)

    print_inventory(sim, player)
    print_inventory(sim, chest)

    armor = sim.find_item(player, "Armor")
    if armor is not None:
        sim.equip(armor)
    printed = len(sim.log_manager.get_formatted_messages())

    sword = sim.spawn_item("IronSword")
    outcome = sim.resolve_attack(player, sword)
    print_new_log_lines(sim, printed)
    print(describe_outcome(outcome))


if __name__ == "__main__":
    main()
