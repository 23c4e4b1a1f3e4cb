"""Analysis client: staged answer-sheet image -> Answer Map.

Model call flow:
    file bytes -> MIME selection -> base64 -> `GeminiClient.generate_content`
    -> fence stripping -> JSON parse -> shape validation.

State:
    Holds only its `Settings` and transport; no per-request state survives a
    call, so one instance is shared by all requests.

Failure scenarios:
    - Unreadable file -> `AnalysisError`.
    - Missing credential -> `ConfigurationError`.
    - Transport/HTTP failure -> `UpstreamRequestError`.
    - Non-JSON reply -> `UpstreamParseError`.
    - JSON of the wrong shape -> `MalformedAnswerMapError`.
"""

import base64
import logging

from sheet_scanner.config import Settings
from sheet_scanner.core.answer_map import AnswerMap, parse_answer_map
from sheet_scanner.errors import AnalysisError
from sheet_scanner.llm.client import GeminiClient
from sheet_scanner.llm.mime import detect_mime_type
from sheet_scanner.prompting.prompt_builder import build_answer_sheet_prompt


logger = logging.getLogger(__name__)


class AnalysisClient:
    """Send answer-sheet images to the configured Gemini model."""

    def __init__(self, settings: Settings, transport: GeminiClient | None = None):
        self.settings = settings
        self.transport = transport or GeminiClient(settings)

        if not settings.api_key:
            logger.error("Gemini API key is empty; analysis requests will fail")
        else:
            logger.info(
                "Gemini API key loaded (length %d); model=%s",
                len(settings.api_key),
                settings.model_name,
            )

    def analyze_image(self, image_path: str) -> AnswerMap:
        """Analyze one stored image and return its Answer Map.

        Raises:
            AnalysisError: Any failure; subclasses identify the failure kind.
        """
        try:
            with open(image_path, "rb") as f:
                image_bytes = f.read()
        except OSError as err:
            raise AnalysisError("Could not read staged image", err) from err

        mime_type = detect_mime_type(image_path)
        image_b64 = base64.b64encode(image_bytes).decode("ascii")

        logger.debug(
            "Submitting %d bytes as %s to %s",
            len(image_bytes),
            mime_type,
            self.settings.model_name,
        )

        text = self.transport.generate_content(
            build_answer_sheet_prompt(),
            image_b64,
            mime_type,
        )
        return parse_answer_map(text)
