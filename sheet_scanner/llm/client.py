"""Gemini REST transport.

Architectural role:
    Executes HTTP requests against the Gemini `generateContent` and model-listing
    endpoints and extracts the completion text.

Model invocation flow:
    `service.AnalysisClient.analyze_image` -> `GeminiClient.generate_content`
    -> `POST {api_base}/models/{model}:generateContent` -> joined text parts.

Retry behavior:
    No retry loop is implemented. Each HTTP call is attempted once with the
    configured timeout.

Failure handling model:
    Every transport, HTTP-status, and response-shape failure is raised as
    `UpstreamRequestError` with the original exception as cause. Credential
    absence raises `ConfigurationError` before any network call.
"""

import logging

import requests

from sheet_scanner.config import Settings
from sheet_scanner.errors import ConfigurationError, UpstreamRequestError


logger = logging.getLogger(__name__)


def _describe_http_error(err: requests.exceptions.RequestException) -> str:
    """Build an error label with the upstream status code when one exists."""
    status_code = None
    if getattr(err, "response", None) is not None:
        status_code = getattr(err.response, "status_code", None)

    if status_code:
        return f"Gemini HTTP error ({status_code})"
    return "Gemini request failed"


def extract_text(data: dict) -> str:
    """Join the text parts of the first candidate in a `generateContent` reply.

    Raises:
        UpstreamRequestError: When the reply carries no candidate text (for
            example a prompt blocked by safety filters).
    """
    try:
        candidate = data["candidates"][0]
        parts = candidate["content"]["parts"]
    except (KeyError, IndexError, TypeError) as err:
        feedback = data.get("promptFeedback") if isinstance(data, dict) else None
        raise UpstreamRequestError(
            f"Gemini response has no candidate content (feedback={feedback!r})", err
        ) from err

    text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
    if not text.strip():
        raise UpstreamRequestError(
            f"Gemini response text is empty (finishReason={candidate.get('finishReason')!r})"
        )
    return text


class GeminiClient:
    """Thin `requests` wrapper bound to one `Settings` instance."""

    def __init__(self, settings: Settings, session: requests.Session | None = None):
        self.settings = settings
        self.session = session or requests.Session()

    def _headers(self) -> dict:
        if not self.settings.api_key:
            raise ConfigurationError("Gemini API key is not configured")
        return {
            "x-goog-api-key": self.settings.api_key,
            "Content-Type": "application/json",
        }

    def generate_content(self, prompt: str, image_b64: str, mime_type: str) -> str:
        """Send one instruction plus one inline image and return the reply text.

        Args:
            prompt: Instruction text.
            image_b64: Base64-encoded image bytes.
            mime_type: Declared image MIME type.
        """
        url = f"{self.settings.api_base}/models/{self.settings.model_name}:generateContent"
        payload = {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": prompt},
                        {"inline_data": {"mime_type": mime_type, "data": image_b64}},
                    ],
                }
            ]
        }

        headers = self._headers()
        try:
            response = self.session.post(
                url,
                headers=headers,
                json=payload,
                timeout=self.settings.timeout_seconds,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as err:
            raise UpstreamRequestError(_describe_http_error(err), err) from err
        except ValueError as err:
            raise UpstreamRequestError("Gemini response body is not JSON", err) from err

        return extract_text(data)

    def list_models(self) -> list:
        """Return model descriptors exposed to the configured credential."""
        headers = self._headers()
        models = []
        page_token = None

        while True:
            params = {"pageToken": page_token} if page_token else None
            try:
                response = self.session.get(
                    f"{self.settings.api_base}/models",
                    headers=headers,
                    params=params,
                    timeout=self.settings.timeout_seconds,
                )
                response.raise_for_status()
                data = response.json()
            except requests.exceptions.RequestException as err:
                raise UpstreamRequestError(_describe_http_error(err), err) from err
            except ValueError as err:
                raise UpstreamRequestError("Gemini model list is not JSON", err) from err

            if not isinstance(data, dict):
                raise UpstreamRequestError(
                    f"Gemini model list has unexpected shape ({type(data).__name__})"
                )

            models.extend(data.get("models", []))
            page_token = data.get("nextPageToken")
            if not page_token:
                return models
