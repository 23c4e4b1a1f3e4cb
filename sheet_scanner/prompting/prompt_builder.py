"""Instruction text sent alongside every answer-sheet image.

This module only builds prompt strings. Model invocation, image encoding, and
output parsing happen in `sheet_scanner.llm.service`.

Output contract demanded of the model:
    - Strictly valid JSON, one key per detected question number (as a string).
    - Value is one uppercase option letter when exactly one bubble is marked.
    - Value is `null` when no bubble is confidently marked.
    - Value is an array of letters when several bubbles are marked.
    - No markdown and no explanations.

Prompt safety model:
    The model is still free to ignore the contract. The parser strips code fences
    and validates the shape; nothing here is parser-enforced.
"""


# =========================================================
# ANSWER SHEET INSTRUCTION
# =========================================================
# Sentence order is fixed; keep the JSON contract sentences together so the
# parser and the prompt describe the same shape.

ANSWER_SHEET_INSTRUCTION = (
    "Analyze this image of an MCQ (Multiple Choice Question) sheet. "
    "Identify the question numbers and the selected option(s) for each. "
    "Return the result strictly as a JSON object where keys are question numbers (e.g., '1', '2') "
    "and values are the selected options (e.g., 'A', 'B', 'C', 'D'). "
    "If a question is not answered, use null. "
    "If multiple options are marked for a single question, return them as an array (e.g., ['A', 'C']). "
    "Do not include any markdown formatting or explanations, just the raw JSON."
)


def build_answer_sheet_prompt() -> str:
    """Return the instruction string for one answer-sheet analysis call."""
    return ANSWER_SHEET_INSTRUCTION
