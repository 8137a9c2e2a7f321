from .writer import (
    sanitize_name,
    set_output,
    write_context_csv,
    write_csv,
    write_step_summary,
)

__all__ = [
    "sanitize_name",
    "set_output",
    "write_context_csv",
    "write_csv",
    "write_step_summary",
]
