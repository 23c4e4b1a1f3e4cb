"""Answer Map parsing and validation.

Exports:
    - `parse_answer_map`: raw model text -> validated Answer Map.
    - `strip_code_fences`: markdown fence removal.
"""

from sheet_scanner.core.answer_map import parse_answer_map, strip_code_fences, validate_answer_map

__all__ = ["parse_answer_map", "strip_code_fences", "validate_answer_map"]
