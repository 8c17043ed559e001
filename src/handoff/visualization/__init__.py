"""
Visualization of preset graphs.
"""

from handoff.visualization.mermaid import export_preset_mermaid, write_preset_mermaid

__all__ = ["export_preset_mermaid", "write_preset_mermaid"]
