"""Team catalog, report assembly, formatting and publishing."""
