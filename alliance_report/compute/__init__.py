from . import core

build_roster_index = core.build_roster_index
compute_category = core.compute_category
build_table = core.build_table
sort_rows = core.sort_rows
column_letters = core.column_letters
compute_range = core.compute_range

__all__ = [
    "build_roster_index",
    "compute_category",
    "build_table",
    "sort_rows",
    "column_letters",
    "compute_range",
]
