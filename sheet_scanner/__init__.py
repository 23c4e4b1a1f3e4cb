"""MCQ answer-sheet scanner service.

Architectural role:
    Accepts an uploaded answer-sheet photo, asks a hosted multimodal model which
    bubbles are filled, and relays the model's Answer Map back to the caller.

Package split:
    - `config`: environment-driven `Settings`.
    - `errors`: input-rejection and analysis error taxonomy.
    - `api`: HTTP and CLI adapters plus upload staging.
    - `llm`: Gemini transport and the analysis client.
    - `prompting`: fixed instruction text.
    - `core`: Answer Map parsing and validation.
"""

__version__ = "1.0.0"
