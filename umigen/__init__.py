"""
umigen - Building energy simulation results to UMI templates.

Aggregates per-archetype simulation output (report data and tabular
summaries) into zone-level tables, load profiles and template documents.
"""

__version__ = "0.1.0"
