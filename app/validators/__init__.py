"""
app/validators package marker.
"""

from app.validators.csv_row_parser import REQUIRED_COLUMNS, CSVRowParser

__all__ = [
    "CSVRowParser",
    "REQUIRED_COLUMNS",
]
