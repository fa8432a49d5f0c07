#!/usr/bin/env python3
"""
gps-date: set the system clock from gpsd once at boot

Main entry point. The program:
1. Connects to gpsd in the foreground, retrying up to --num-retries times
2. Detaches from the terminal (unless --no-detach)
3. Reads gpsd reports, reconnecting forever if gpsd goes away
4. Sets the system clock from the first report with a real fix
5. Exits 0 on success, 1 on retry exhaustion or a failed clock set

Usage:
    # Boot-time use from an init script
    gps-date

    # Remote gpsd, foreground, 10 attempts 2s apart
    gps-date --no-detach -n 10 -s 2 gpshost 2947

    # Settings from a file
    gps-date --config /etc/gps-date/config.toml

Configuration (TOML, every key optional):
    [gpsd]
    host = "localhost"
    port = "2947"
    read_timeout = 0        # seconds, 0 = wait forever

    [retry]
    num_retries = 60
    retry_sleep = 1
    reconnect_interval = 1

    [daemon]
    no_detach = false

    [logging]
    syslog = true
    debug = false
"""

import argparse
import copy
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml

from .daemon import daemonize
from .engine.retry import NUM_RETRIES, RECONNECT_INTERVAL, RETRY_SLEEP, RetryPolicy
from .engine.session import GpsDateSession
from .errors import ConfigError, RetriesExhausted
from .gpsd.connection import DEFAULT_GPSD_PORT, connect
from .logging_utils import setup_logging
from .output.clock_setter import ClockSetter

logger = logging.getLogger('gps-date')

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

DEFAULT_CONFIG: Dict[str, Any] = {
    'gpsd': {
        'host': 'localhost',
        'port': DEFAULT_GPSD_PORT,
        'read_timeout': 0,
    },
    'retry': {
        'num_retries': NUM_RETRIES,
        'retry_sleep': RETRY_SLEEP,
        'reconnect_interval': RECONNECT_INTERVAL,
    },
    'daemon': {
        'no_detach': False,
    },
    'logging': {
        'syslog': True,
        'debug': False,
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from a TOML file over the built-in defaults.

    A missing file yields the defaults; main() reports it once logging is set up.
    """
    if config_path:
        path = Path(config_path)
        if path.exists():
            try:
                with open(path, 'r') as f:
                    return _merge(DEFAULT_CONFIG, toml.load(f))
            except toml.TomlDecodeError as e:
                raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    return copy.deepcopy(DEFAULT_CONFIG)


def apply_args(config: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """Overlay command-line values onto a loaded configuration."""
    config = copy.deepcopy(config)
    if args.host is not None:
        config['gpsd']['host'] = args.host
    if args.port is not None:
        config['gpsd']['port'] = args.port
    if args.num_retries is not None:
        config['retry']['num_retries'] = args.num_retries
    if args.retry_sleep is not None:
        config['retry']['retry_sleep'] = args.retry_sleep
    if args.no_detach:
        config['daemon']['no_detach'] = True
    if args.debug:
        config['logging']['debug'] = True
    if args.no_syslog:
        config['logging']['syslog'] = False
    return config


def build_session(config: Dict[str, Any]) -> GpsDateSession:
    """
    Build a GpsDateSession from a configuration dictionary.

    Raises:
        ConfigError: A value is missing or out of range
    """
    gpsd_cfg = config.get('gpsd', {})
    retry_cfg = config.get('retry', {})

    host = str(gpsd_cfg.get('host', 'localhost'))
    port = str(gpsd_cfg.get('port', DEFAULT_GPSD_PORT))

    try:
        read_timeout = float(gpsd_cfg.get('read_timeout', 0) or 0)
        retry_policy = RetryPolicy(
            num_retries=int(retry_cfg.get('num_retries', NUM_RETRIES)),
            retry_sleep=float(retry_cfg.get('retry_sleep', RETRY_SLEEP)),
            reconnect_interval=float(retry_cfg.get('reconnect_interval', RECONNECT_INTERVAL)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid numeric setting: {e}") from e
    if read_timeout < 0:
        raise ConfigError(f"read_timeout must not be negative, got {read_timeout}")

    detach = None if config.get('daemon', {}).get('no_detach', False) else daemonize

    return GpsDateSession(
        connect_fn=lambda: connect(host, port),
        retry_policy=retry_policy,
        clock_setter=ClockSetter(),
        detach=detach,
        read_timeout=read_timeout or None,
        target=host,
    )


def run(session: GpsDateSession) -> int:
    """Drive a session to completion and map the result to an exit status."""
    try:
        outcome = session.run()
    except RetriesExhausted as e:
        failure = e.last_failure
        if failure is not None:
            logger.error(f"no gpsd running or network error: {failure.errno}, {failure.reason}")
        else:
            logger.error(f"no gpsd running or network error: {e}")
        return EXIT_FAILURE
    finally:
        session.close()

    return EXIT_SUCCESS if outcome.success else EXIT_FAILURE


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='gps-date',
        description='gps-date: set the system clock from gpsd once at boot',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Wait for gpsd on localhost, detach, set the clock
    gps-date

    # Stay in the foreground, remote gpsd
    gps-date --no-detach gpshost 2947
        """
    )

    parser.add_argument(
        'host',
        nargs='?',
        help='gpsd host (default: localhost)'
    )
    parser.add_argument(
        'port',
        nargs='?',
        help=f'gpsd port (default: {DEFAULT_GPSD_PORT})'
    )
    parser.add_argument(
        '--num-retries', '-n',
        type=int,
        help=f'Startup connection attempts (default: {NUM_RETRIES})'
    )
    parser.add_argument(
        '--retry-sleep', '-s',
        type=int,
        help=f'Seconds between startup attempts (default: {int(RETRY_SLEEP)})'
    )
    parser.add_argument(
        '--no-detach', '-d',
        action='store_true',
        help='Stay in the foreground after connecting'
    )
    parser.add_argument(
        '--config', '-c',
        help='Path to TOML configuration file'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument(
        '--no-syslog',
        action='store_true',
        help='Log to stderr only'
    )
    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = apply_args(load_config(args.config), args)
        setup_logging(
            debug=bool(config['logging'].get('debug')),
            use_syslog=bool(config['logging'].get('syslog', True)),
        )
        if args.config and not Path(args.config).exists():
            logger.warning(f"Config file {args.config} not found, using defaults")
        session = build_session(config)
    except ConfigError as e:
        parser.error(str(e))

    sys.exit(run(session))


if __name__ == '__main__':
    main()
