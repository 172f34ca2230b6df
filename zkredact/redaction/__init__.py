"""Redaction transform, committed journal, and program identity."""

from zkredact.redaction.engine import (
    REDACTION_MARKER,
    RedactionResult,
    join_lines,
    line_count,
    normalize_indices,
    parse_index_list,
    redact,
    split_lines,
)
from zkredact.redaction.journal import Journal
from zkredact.redaction.program import PROGRAM_ID, ProgramInputs, run_program

__all__ = [
    "REDACTION_MARKER",
    "PROGRAM_ID",
    "Journal",
    "ProgramInputs",
    "RedactionResult",
    "join_lines",
    "line_count",
    "normalize_indices",
    "parse_index_list",
    "redact",
    "run_program",
    "split_lines",
]
