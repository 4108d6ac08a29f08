"""
Beacon Probe Module

Exhaustive end-to-end probe of a Beacon server's Socket.IO query API.

Entry Point:
    python -m beacon_probe.probe [core] [mtr]

Components:
    - pagination: cursor walker for paginated listings
    - reconcile: id-keyed merge of overlapping entity listings
    - resolver: route/station/platform/depot target resolution
    - exporter: per-entity bulk detail export
    - server_queries: core catalogue (status, players, logs, sessions)
    - network_queries: MTR catalogue (discovery, walk, probes, exports)
    - orchestrator: run lifecycle and CLI
"""

from .orchestrator import run_probe, ProbeRun, RunState

__all__ = ['run_probe', 'ProbeRun', 'RunState']
