"""
Main entry point for a full Beacon probe run.

Runs every category against the server configured in the environment.
"""

import sys

from beacon_probe.probe.orchestrator import main


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
