"""Answer Map parsing for raw model output.

Processing flow:
    1. Remove markdown code-fence markers (```json and ```).
    2. Trim surrounding whitespace.
    3. Parse the remainder as JSON.
    4. Validate the Answer Map shape and return the value unmodified.

Answer Map shape:
    - JSON object.
    - Keys: non-empty question-number strings.
    - Values: `null`, a single uppercase letter, or a non-empty array of single
      uppercase letters.

Failure model:
    - Unparsable text -> `UpstreamParseError`.
    - Parsed JSON of the wrong shape -> `MalformedAnswerMapError`.

Determinism:
    Pure functions; identical input text yields identical output.
"""

import json
import re
from typing import Dict, List, Optional, Union

from sheet_scanner.errors import MalformedAnswerMapError, UpstreamParseError


AnswerValue = Union[None, str, List[str]]
AnswerMap = Dict[str, AnswerValue]

CODE_FENCE_PATTERN = re.compile(r"```json|```")
OPTION_LETTER_PATTERN = re.compile(r"[A-Z]")


def strip_code_fences(text: str) -> str:
    """Remove every code-fence marker and trim surrounding whitespace."""
    return CODE_FENCE_PATTERN.sub("", text or "").strip()


def _is_option_letter(value) -> bool:
    return isinstance(value, str) and bool(OPTION_LETTER_PATTERN.fullmatch(value))


def _describe_invalid_value(value) -> Optional[str]:
    """Return a reason string when `value` is not a valid answer, else `None`."""
    if value is None or _is_option_letter(value):
        return None

    if isinstance(value, list):
        if not value:
            return "empty option list"
        bad = [item for item in value if not _is_option_letter(item)]
        if bad:
            return f"invalid options {bad!r}"
        return None

    return f"unsupported value {value!r}"


def validate_answer_map(value) -> AnswerMap:
    """Check that `value` is an Answer Map and return it unchanged.

    Raises:
        MalformedAnswerMapError: On the first violation found.
    """
    if not isinstance(value, dict):
        raise MalformedAnswerMapError(
            f"Expected a JSON object, got {type(value).__name__}"
        )

    for question, answer in value.items():
        if not question.strip():
            raise MalformedAnswerMapError("Empty question number key")

        reason = _describe_invalid_value(answer)
        if reason:
            raise MalformedAnswerMapError(f"Question {question!r}: {reason}")

    return value


def parse_answer_map(text: str) -> AnswerMap:
    """Turn raw model text into a validated Answer Map.

    Edge cases:
        - Fenced and unfenced variants of the same JSON parse identically.
        - `{}` is a valid (empty) Answer Map.
    """
    cleaned = strip_code_fences(text)

    try:
        parsed = json.loads(cleaned)
    except ValueError as err:
        raise UpstreamParseError("Model response is not valid JSON", err) from err

    return validate_answer_map(parsed)
