#!/usr/bin/env python3

import sys

from src.core.config_loader import load_simulation_config
from src.game.simulation import Simulation
from demos.inventory_demo import setup_chest_scenario, print_inventory, print_new_log_lines, describe_outcome


def main():
    config_path = sys.argv[1] if len(sys.argv) > 1 else None
    sim = Simulation(load_simulation_config(config_path))

    try:
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

        # Keep swinging fresh swords until the player goes down
        while sim.is_alive(player):
            outcome = sim.resolve_attack(player, sim.spawn_item("IronSword"))
            printed = print_new_log_lines(sim, printed)
            print(describe_outcome(outcome))
            print()
    except KeyboardInterrupt:
        print("\n\nSimulation interrupted by user")
    finally:
        path = sim.log_manager.save_log_to_file()
        if path:
            print(f"Log saved to {path}")


if __name__ == "__main__":
    main()
