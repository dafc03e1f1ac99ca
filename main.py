import argparse
import logging
import sys

from ck2world.config_loader import ConfigLoader, ConfigurationError
from ck2world.export import render_realm_graph, write_summary
from ck2world.loader import WorldLoadError
from ck2world.paths import CONFIGURATION_FILE
from ck2world.world import World


def setup_logging():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler()
        ]
    )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Link and restructure a parsed CK2 save for EU4 export.")
    parser.add_argument("--config", default=str(CONFIGURATION_FILE), help="Path to configuration.json")
    parser.add_argument("--save", default=None, help="Parsed save tables (overrides save_path from the config)")
    return parser.parse_args(argv)


def run_main(argv=None):
    setup_logging()
    args = parse_args(argv)
    try:
        config_loader = ConfigLoader(args.config)
    except ConfigurationError as e:
        logging.error(f"Failed to load configuration: {e}")
        return 1

    config = config_loader.config
    save_path = args.save or config.save_path
    if not save_path:
        logging.error("No save tables given; set save_path in the configuration or pass --save.")
        return 1

    try:
        world = World.load(save_path, config.ck2_path)
    except WorldLoadError as e:
        logging.error(f"Failed to load save: {e}")
        return 1

    try:
        world.build(config, hre_mapper=config_loader.hre_mapper)
    except ConfigurationError as e:
        logging.error(f"Failed to build world: {e}")
        return 1

    write_summary(world, config.output_dir)
    if config.render_graph:
        render_realm_graph(world, config.output_dir)
    return 0


if __name__ == "__main__":
    sys.exit(run_main())
