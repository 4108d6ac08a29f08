"""
Beacon Probe Orchestrator

Single entry point for a probe run against a Beacon server.
Connects once, runs the requested categories in order, and always
closes the connection before returning or re-raising.

Usage:
    python -m beacon_probe.probe
    python -m beacon_probe.probe core
    python -m beacon_probe.probe mtr --dimension minecraft:the_nether
"""

import argparse
import logging
import sys
from datetime import datetime
from enum import Enum
from typing import Callable, List

from beacon_probe.config.config_main import (
    ConfigurationError, ProbeConfig, KNOWN_CATEGORIES, parse_categories,
)
from beacon_probe.data.artifact_store import ArtifactStore
from beacon_probe.data.beacon.beacon_client import BeaconClient

from .network_queries import run_mtr_queries
from .server_queries import run_core_queries

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class RunState(Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RUNNING = "running"
    DRAINING = "draining"
    CLOSED = "closed"
    FATAL_ERROR = "fatal_error"


_TRANSITIONS = {
    RunState.IDLE: {RunState.CONNECTING, RunState.FATAL_ERROR},
    RunState.CONNECTING: {RunState.CONNECTED, RunState.FATAL_ERROR},
    RunState.CONNECTED: {RunState.RUNNING, RunState.DRAINING},
    RunState.RUNNING: {RunState.RUNNING, RunState.DRAINING},
    RunState.DRAINING: {RunState.CLOSED},
    RunState.CLOSED: set(),
    RunState.FATAL_ERROR: set(),
}


class ProbeRun:
    """Sequences one probe run and tracks its lifecycle state."""

    def __init__(self, config: ProbeConfig, categories: List[str],
                 client_factory: Callable[..., BeaconClient] = BeaconClient):
        self.config = config
        self.categories = categories
        self.client_factory = client_factory
        self.state = RunState.IDLE
        self.current_category = None
        self.history = [RunState.IDLE]
        self.results = {}

    def _transition(self, state: RunState):
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid run state transition {self.state.value} -> {state.value}")
        logger.debug(f"Run state {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def execute(self) -> dict:
        """
        Run every requested category.

        Returns:
            Per-category results

        Raises:
            ConfigurationError, BeaconConnectionError: before anything runs
            Any error raised inside a category, after the connection is closed
        """
        try:
            self.config.validate()
            store = ArtifactStore(self.config.output.output_dir)
            store.prepare()
            client = self.client_factory(self.config.beacon)
            self._transition(RunState.CONNECTING)
            client.connect()
        except BaseException as e:
            logger.error(f"Fatal error before run: {e}")
            if self.state is RunState.CONNECTING:
                # connect() failed; release whatever the client holds
                client.close()
            self._transition(RunState.FATAL_ERROR)
            raise

        self._transition(RunState.CONNECTED)
        try:
            for category in self.categories:
                self._transition(RunState.RUNNING)
                self.current_category = category
                self.results[category] = self._run_category(category, client, store)
        except Exception as e:
            logger.error(f"Category '{self.current_category}' failed: {e}")
            raise
        finally:
            self._transition(RunState.DRAINING)
            client.close()
            self._transition(RunState.CLOSED)

        return self.results

    def _run_category(self, category: str, client: BeaconClient, store: ArtifactStore):
        if category == "core":
            return run_core_queries(client, store, self.config.player)
        if category == "mtr":
            return run_mtr_queries(client, store, self.config.mtr)
        raise ConfigurationError(f"Unknown category: {category}")


def run_probe(categories: List[str] = None, config: ProbeConfig = None,
              client_factory: Callable[..., BeaconClient] = BeaconClient) -> dict:
    """
    Execute a complete probe run.

    Args:
        categories: Categories to run (default: all, in catalogue order)
        config: Probe configuration (default: read from environment)
        client_factory: Builds the client from the beacon config
    """
    print(f"\n{'#'*70}")
    print(f"# BEACON PROBE")
    print(f"# Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"{'#'*70}\n")

    overall_start = datetime.now()
    categories = parse_categories(categories or [])
    config = config or ProbeConfig()

    print("Running categories:",
          "all" if len(categories) == len(KNOWN_CATEGORIES) else ", ".join(categories))

    run = ProbeRun(config, categories, client_factory)
    try:
        results = run.execute()
    except Exception as e:
        print(f"\n{'!'*70}")
        print(f"! PROBE FAILED ({run.state.value})")
        print(f"! Error: {e}")
        print(f"{'!'*70}\n")
        raise

    overall_duration = (datetime.now() - overall_start).total_seconds()
    print(f"\n{'#'*70}")
    print(f"# PROBE COMPLETE")
    print(f"# Total duration: {overall_duration:.2f} seconds")
    print(f"# Output: {config.output.output_dir}")
    print(f"{'#'*70}\n")
    return results


def main(argv: List[str] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description='Beacon end-to-end probe',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run every category
  python -m beacon_probe.probe

  # Only the MTR category, another dimension
  python -m beacon_probe.probe mtr --dimension minecraft:the_nether

Required environment: BEACON_PORT, BEACON_KEY (a .env file is read).
        """
    )

    parser.add_argument(
        'categories',
        nargs='*',
        help=f'Categories to run ({", ".join(KNOWN_CATEGORIES)}; default: all)'
    )

    parser.add_argument(
        '--output-dir',
        type=str,
        default=None,
        help='Artifact directory (default: OUTPUT_DIR or ./output)'
    )

    parser.add_argument(
        '--dimension',
        type=str,
        default=None,
        help='MTR dimension (default: BEACON_MTR_DIMENSION or minecraft:overworld)'
    )

    parser.add_argument(
        '--no-bulk',
        action='store_true',
        help='Skip per-entity bulk exports'
    )

    args = parser.parse_args(argv)

    try:
        config = ProbeConfig()
        if args.output_dir:
            config.output.output_dir = args.output_dir
        if args.dimension:
            config.mtr.dimension = args.dimension
        if args.no_bulk:
            config.mtr.bulk_export = False
        run_probe(args.categories, config)
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return 1
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
