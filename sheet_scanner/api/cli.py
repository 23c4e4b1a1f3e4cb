"""
Command line adapter for the sheet scanner.

Architectural role:
- Runs the HTTP service locally and prints the URLs it is reachable at.
- Analyzes a local image without going through HTTP.
- Lists Gemini models usable with `generateContent`.

Commands:
- `serve [--host HOST] [--port PORT] [--reload]`
- `analyze PATH`
- `list-models`

Error handling strategy:
- Analysis/listing failures print a one-line error to stderr and exit with 1.
- Configuration errors surface the same way; no traceback is printed.

Side effects:
- Writes to stdout extensively for operator feedback.
- `serve` blocks in the uvicorn event loop until interrupted.
"""

import argparse
import json
import logging
import socket
import sys

from sheet_scanner.config import Settings, configure_logging, load_settings
from sheet_scanner.errors import AnalysisError
from sheet_scanner.llm.client import GeminiClient
from sheet_scanner.llm.service import AnalysisClient


logger = logging.getLogger(__name__)


# =========================================================
# NETWORK HELPERS
# =========================================================

def get_local_ip() -> str:
    """Best-effort LAN IPv4 address; `localhost` when none is routable."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # UDP connect sends nothing; it only selects the outbound interface.
        sock.connect(("10.255.255.255", 1))
        address = sock.getsockname()[0]
    except OSError:
        return "localhost"
    finally:
        sock.close()

    if address.startswith("127."):
        return "localhost"
    return address


# =========================================================
# COMMANDS
# =========================================================

def serve(settings: Settings, host: str, port: int, reload: bool = False) -> int:
    import uvicorn

    local_ip = get_local_ip()
    print("\nMCQ Scanner Backend Server is starting")
    print("\nAccess URLs:")
    print(f"   Local:    http://localhost:{port}")
    print(f"   Network:  http://{local_ip}:{port}")
    print("\nAPI Endpoint:")
    print(f"   POST http://{local_ip}:{port}/api/analyze-sheet\n")

    uvicorn.run(
        "sheet_scanner.api.http_api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )
    return 0


def analyze(settings: Settings, path: str) -> int:
    client = AnalysisClient(settings)
    try:
        answer_map = client.analyze_image(path)
    except AnalysisError as err:
        print(f"Analysis failed: {err}", file=sys.stderr)
        return 1

    print(json.dumps(answer_map, indent=2))
    return 0


def list_models(settings: Settings) -> int:
    client = GeminiClient(settings)
    try:
        models = client.list_models()
    except AnalysisError as err:
        print(f"Error listing models: {err}", file=sys.stderr)
        return 1

    print("Available models that support generateContent:\n")
    print("=" * 80)

    for model in models:
        methods = model.get("supportedGenerationMethods") or []
        if "generateContent" not in methods:
            continue
        print(f"\nModel: {model.get('name')}")
        print(f"   Display Name: {model.get('displayName')}")
        print(f"   Description: {model.get('description')}")
        print(f"   Supported Methods: {', '.join(methods)}")
        print("-" * 80)

    return 0


# =========================================================
# ENTRYPOINT
# =========================================================

def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sheet-scanner",
        description="MCQ answer-sheet scanner backed by a hosted multimodal model.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="run the HTTP API")
    serve_parser.add_argument("--host", default=settings.host)
    serve_parser.add_argument("--port", type=int, default=settings.port)
    serve_parser.add_argument("--reload", action="store_true")

    analyze_parser = subparsers.add_parser("analyze", help="analyze a local image")
    analyze_parser.add_argument("path")

    subparsers.add_parser("list-models", help="list models supporting generateContent")

    return parser


def main(argv=None) -> int:
    settings = load_settings()
    configure_logging(settings.log_level)

    args = build_parser(settings).parse_args(argv)

    if args.command == "serve":
        return serve(settings, args.host, args.port, args.reload)
    if args.command == "analyze":
        return analyze(settings, args.path)
    return list_models(settings)


if __name__ == "__main__":
    sys.exit(main())
