#!/usr/bin/env python3
"""
Dicebot - NATS-hosted dice roller orchestrator

- Loads configuration and logging
- Connects to NATS
- Loads the dice-roller plugin from plugins/dice-roller and runs it

The chat platform connector lives elsewhere: it publishes !roll commands to
dicebot.command.dice.roll and delivers replies from dicebot.platform.*.
"""

import argparse
import asyncio
import importlib
import inspect
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from nats.aio.client import Client as NATS

from common.config import ConfigError, get_config, get_plugin_config


logger = logging.getLogger(__name__)

PLUGIN_DIR = Path(__file__).parent / "plugins" / "dice-roller"


def load_plugin_class(plugin_dir: Path = PLUGIN_DIR) -> type:
    """
    Import plugin.py from a plugin directory and return its plugin class.

    The plugin directory is added to sys.path so the plugin's own modules
    import the same way they do under its tests.

    Raises:
        ImportError: If no class ending with "Plugin" is defined there
    """
    if str(plugin_dir) not in sys.path:
        sys.path.insert(0, str(plugin_dir))

    module = importlib.import_module("plugin")

    for name, obj in inspect.getmembers(module, inspect.isclass):
        if name.endswith("Plugin") and obj.__module__ == module.__name__:
            return obj

    raise ImportError(f"No plugin class found in {plugin_dir}")


class Dicebot:
    """
    Dicebot Orchestrator

    Responsibilities:
    1. Connect to NATS
    2. Start the dice-roller plugin
    3. Coordinate graceful shutdown
    """

    def __init__(self, config_path: str = "config.json", log_level: Optional[str] = None):
        self.config, self.nats_params = get_config(config_path, log_level)
        self.nats: Optional[NATS] = None
        self.plugin: Optional[Any] = None

    async def start(self) -> None:
        """Start all components in correct order"""
        try:
            logger.info(f"Connecting to NATS: {self.nats_params['servers']}")
            self.nats = NATS()
            await self.nats.connect(**self.nats_params)
            logger.info("Connected to NATS")

            plugin_class = load_plugin_class()
            plugin_config = get_plugin_config(self.config, plugin_class.NAMESPACE)
            self.plugin = plugin_class(self.nats, plugin_config)
            await self.plugin.initialize()

            logger.info("Dicebot started")

        except Exception as e:
            logger.error(f"Failed to start Dicebot: {e}", exc_info=True)
            await self.stop()
            raise

    async def stop(self) -> None:
        """Stop all components in reverse order"""
        logger.info("Shutting down Dicebot...")

        if self.plugin:
            await self.plugin.shutdown()
            self.plugin = None

        if self.nats:
            try:
                await self.nats.drain()
                await self.nats.close()
            except Exception as e:
                logger.error(f"Error during disconnect: {e}")
            self.nats = None

        logger.info("Dicebot stopped")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Dicebot dice roller plugin host')
    parser.add_argument(
        '--config',
        default='config.json',
        help='Path to JSON or YAML config file (default: config.json)'
    )
    parser.add_argument(
        '--log-level',
        default=None,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (overrides the config file)'
    )
    return parser.parse_args(argv)


async def main(argv=None) -> int:
    """Entry point"""
    args = parse_args(argv)

    try:
        bot = Dicebot(args.config, args.log_level)
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    try:
        await bot.start()
        # Run until interrupted
        await asyncio.Event().wait()
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Received shutdown signal")
    except Exception:
        return 1
    finally:
        await bot.stop()

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
