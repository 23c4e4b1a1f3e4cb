"""LLM access package.

Architectural role:
    Provides the Gemini transport and the analysis client that turns a staged
    answer-sheet image into an Answer Map.

Module split:
    - `client`: Gemini REST transport and response text extraction.
    - `mime`: MIME type selection for staged images.
    - `service`: analysis client (read, encode, call, parse).
"""
