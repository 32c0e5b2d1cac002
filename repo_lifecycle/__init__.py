"""
Repository Lifecycle - plugin repository state tracking engine

Tracks externally discovered repositories from UNKNOWN through detection,
availability, installation and activation, with an explicit ERROR state,
per-repository event history, a broadcast queue for live-update consumers and
advisory processing locks for bulk operations.
"""

__version__ = "0.1.0"
__author__ = "Repository Lifecycle Team"
