from .csv_report import generate_context_csv, generate_csv, iso_timestamp
from .summary import generate_summary

__all__ = [
    "generate_context_csv",
    "generate_csv",
    "generate_summary",
    "iso_timestamp",
]
