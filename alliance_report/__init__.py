"""Top-level alliance_report package.

Subpackages: ``api`` (record source), ``compute`` (aggregation engine),
``report`` (catalog, assembly, output) and ``cli``.
"""

__version__ = "1.0.0"

__all__ = ["api", "compute", "report", "cli"]
