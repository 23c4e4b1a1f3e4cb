import base64
import struct
import zlib

import pytest

from conftest import image_bytes
from sheet_scanner.config import Settings
from sheet_scanner.errors import AnalysisError, MalformedAnswerMapError, UpstreamParseError
from sheet_scanner.llm.mime import detect_mime_type, mime_type_from_suffix, sniff_mime_type
from sheet_scanner.llm.service import AnalysisClient
from sheet_scanner.prompting.prompt_builder import ANSWER_SHEET_INSTRUCTION


class FakeTransport:
    def __init__(self, text='{"1": "A"}'):
        self.text = text
        self.calls = []

    def generate_content(self, prompt, image_b64, mime_type):
        self.calls.append((prompt, image_b64, mime_type))
        return self.text


def write(tmp_path, name, data):
    path = tmp_path / name
    path.write_bytes(data)
    return str(path)


# ============================================================
# MIME selection
# ============================================================

@pytest.mark.parametrize(
    "name,expected",
    [
        ("a.png", "image/png"),
        ("A.PNG", "image/png"),
        ("a.gif", "image/gif"),
        ("a.jpg", "image/jpeg"),
        ("a.jpeg", "image/jpeg"),
        ("a", "image/jpeg"),
        ("a.webp", "image/jpeg"),
    ],
)
def test_suffix_policy(name, expected):
    assert mime_type_from_suffix(name) == expected


@pytest.mark.parametrize(
    "image_format,expected",
    [("PNG", "image/png"), ("JPEG", "image/jpeg"), ("GIF", "image/gif")],
)
def test_content_sniffing_beats_wrong_suffix(tmp_path, image_format, expected):
    path = write(tmp_path, "mislabelled.jpg" if image_format != "JPEG" else "mislabelled.png", image_bytes(image_format))

    assert sniff_mime_type(path) == expected
    assert detect_mime_type(path) == expected


def test_unrecognized_content_falls_back_to_suffix(tmp_path):
    path = write(tmp_path, "noise.gif", b"not an image at all")

    assert sniff_mime_type(path) is None
    assert detect_mime_type(path) == "image/gif"


# ============================================================
# Analysis client
# ============================================================

def test_analyze_image_sends_prompt_and_base64(tmp_path):
    data = image_bytes("PNG")
    path = write(tmp_path, "sheet.png", data)
    transport = FakeTransport('```json\n{"1": "A", "2": null}\n```')
    client = AnalysisClient(Settings(api_key="k"), transport=transport)

    result = client.analyze_image(path)

    assert result == {"1": "A", "2": None}
    prompt, image_b64, mime_type = transport.calls[0]
    assert prompt == ANSWER_SHEET_INSTRUCTION
    assert base64.b64decode(image_b64) == data
    assert mime_type == "image/png"


def test_non_json_model_text_raises_parse_error(tmp_path):
    path = write(tmp_path, "sheet.png", image_bytes("PNG"))
    client = AnalysisClient(Settings(api_key="k"), transport=FakeTransport("I cannot determine the answers"))

    with pytest.raises(UpstreamParseError):
        client.analyze_image(path)


def test_wrong_shape_raises_malformed_error(tmp_path):
    path = write(tmp_path, "sheet.png", image_bytes("PNG"))
    client = AnalysisClient(Settings(api_key="k"), transport=FakeTransport('["A", "B"]'))

    with pytest.raises(MalformedAnswerMapError):
        client.analyze_image(path)


def test_missing_file_raises_analysis_error(tmp_path):
    transport = FakeTransport()
    client = AnalysisClient(Settings(api_key="k"), transport=transport)

    with pytest.raises(AnalysisError):
        client.analyze_image(str(tmp_path / "gone.png"))

    assert transport.calls == []


def test_prompt_states_output_contract():
    assert "JSON" in ANSWER_SHEET_INSTRUCTION
    assert "null" in ANSWER_SHEET_INSTRUCTION
    assert "array" in ANSWER_SHEET_INSTRUCTION
    assert "markdown" in ANSWER_SHEET_INSTRUCTION


def png_with_dimensions(width, height):
    """Minimal PNG whose header declares `width` x `height` pixels."""
    def chunk(kind, body):
        crc = zlib.crc32(kind + body) & 0xFFFFFFFF
        return struct.pack(">I", len(body)) + kind + body + struct.pack(">I", crc)

    ihdr = struct.pack(">IIBBBBB", width, height, 1, 0, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", ihdr) + chunk(b"IEND", b"")


def test_huge_dimensions_fall_back_to_suffix(tmp_path):
    path = write(tmp_path, "poster.png", png_with_dimensions(20000, 20000))

    assert sniff_mime_type(path) is None
    assert detect_mime_type(path) == "image/png"


def test_huge_dimensions_still_reach_the_model(tmp_path):
    path = write(tmp_path, "poster.png", png_with_dimensions(20000, 20000))
    transport = FakeTransport('{"1": "B"}')
    client = AnalysisClient(Settings(api_key="k"), transport=transport)

    assert client.analyze_image(path) == {"1": "B"}
    assert transport.calls[0][2] == "image/png"
