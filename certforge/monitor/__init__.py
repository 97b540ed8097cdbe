"""Terminal views of flow progress and version history.

Modules
-------
renderer
    ``FlowRenderer`` turns flow sessions, results and version chains into
    Rich renderables.
"""

from certforge.monitor.renderer import FlowRenderer

__all__ = ["FlowRenderer"]
