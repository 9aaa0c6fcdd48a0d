#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import json
import logging

import yaml
from packaging import version


LOG_FORMAT = '[%(asctime).19s] [%(name)s] [%(levelname)s] %(message)s'

MIN_CONFIG_VERSION = '2.0'


class ConfigError(Exception):
    """Configuration file missing, unreadable or invalid."""
    pass


class RobustFileHandler(logging.FileHandler):
    """FileHandler that gracefully handles flush errors on Windows"""

    def flush(self):
        """Flush the stream, catching OSError on Windows file handles"""
        try:
            super().flush()
        except OSError as e:
            # EINVAL from a Windows handle in an inconsistent state
            if e.errno != 22:
                raise


def configure_logger(logger,
                     log_file=None,
                     log_format=None,
                     log_level=logging.INFO):
    """Configure a logger with a file or stream handler

    Args:
        logger: Logger instance or logger name string
        log_file: File path string or file-like object (None for stderr)
        log_format: Format string for log messages
        log_level: Logging level (e.g., logging.INFO, logging.DEBUG)

    Returns:
        Configured logger instance
    """
    if isinstance(log_file, str):
        handler = RobustFileHandler(
            log_file,
            mode='a',
            encoding='utf-8',
            errors='replace'
        )
    else:
        handler = logging.StreamHandler(log_file)  # Default to stderr if None

    formatter = logging.Formatter(log_format)

    if isinstance(logger, str):
        logger = logging.getLogger(logger)

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(log_level)

    return logger


def parse_log_level(name):
    """Turn a level name like 'info' into a logging constant

    Raises:
        ConfigError: If the name is not a logging level
    """
    level = getattr(logging, str(name).upper(), None)
    if not isinstance(level, int):
        raise ConfigError(f"Unknown log level: {name}")
    return level


def load_config_file(config_file):
    """Load a configuration dictionary from a JSON or YAML file

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    try:
        with open(config_file, 'r', encoding='utf-8') as fp:
            if config_file.endswith(('.yaml', '.yml')):
                conf = yaml.safe_load(fp)
            else:
                conf = json.load(fp)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {config_file}: {e}") from e
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot parse config file {config_file}: {e}") from e

    if not isinstance(conf, dict):
        raise ConfigError(f"Config file {config_file} must contain a mapping")
    return conf


def get_config(config_file, log_level=None):
    """Load and validate configuration, then configure logging

    Args:
        config_file: Path to a JSON or YAML config file
        log_level: Level name overriding the config's logging.level

    Returns:
        Tuple of (conf, nats_params) where:
            conf: Full configuration dictionary from config file
            nats_params: Keyword arguments for the NATS client connect()

    Raises:
        ConfigError: If the file is invalid or uses an old config version
    """
    conf = load_config_file(config_file)

    config_version = conf.get('version', '1.0')
    if version.parse(str(config_version)) < version.parse(MIN_CONFIG_VERSION):
        raise ConfigError(
            f"Configuration version {config_version} not supported "
            f"(requires {MIN_CONFIG_VERSION} or later)"
        )

    nats_config = conf.get('nats')
    if not nats_config:
        raise ConfigError("Missing 'nats' section in configuration")

    logging_config = conf.get('logging', {})
    level = parse_log_level(log_level or logging_config.get('level', 'info'))

    logging.basicConfig(level=level, format=LOG_FORMAT)

    log_file = logging_config.get('log_file')
    if log_file:
        configure_logger(logging.getLogger(), log_file=log_file,
                         log_format=LOG_FORMAT, log_level=level)

    return conf, {
        'servers': [nats_config.get('url', 'nats://localhost:4222')],
        'max_reconnect_attempts': nats_config.get('max_reconnect_attempts', -1),
        'reconnect_time_wait': nats_config.get('reconnect_delay', 2),
        'connect_timeout': nats_config.get('connection_timeout', 5),
    }


def get_plugin_config(conf, namespace):
    """Return one plugin's config section with the platform name filled in"""
    plugin_conf = dict(conf.get('plugins', {}).get(namespace, {}))
    plugin_conf.setdefault('platform', conf.get('platform', 'cytube'))
    return plugin_conf
