"""Sheet scanner API adapter package.

Architectural role:
- Defines the external interaction boundary for HTTP and CLI interfaces.
- Performs transport-level validation, upload staging, and response shaping.
- Delegates model work to `sheet_scanner.llm.service`.
"""
