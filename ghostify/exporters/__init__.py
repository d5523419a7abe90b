"""
Ghost import file assembly and validation.
"""

from .ghost_exporter import GHOST_VERSION, LAYOUTS, ExportResult, GhostExporter

__all__ = ["GHOST_VERSION", "LAYOUTS", "ExportResult", "GhostExporter"]
