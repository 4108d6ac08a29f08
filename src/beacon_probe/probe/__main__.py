"""
Beacon Probe Entry Point

Allows running the probe via:
    python -m beacon_probe.probe [categories]
"""

import sys

from .orchestrator import main

if __name__ == "__main__":
    sys.exit(main())
