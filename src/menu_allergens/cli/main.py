from __future__ import annotations

import argparse
import json
import mimetypes
import os
import sys
from typing import Any, Callable, Optional, Sequence

from ..acquisition.artifacts import KIND_DOCUMENT, KIND_IMAGE, UploadedArtifact, classify_upload
from ..config import load_settings
from ..domain.codes import EXPORT_MODES, format_additive_values, format_allergen_values, vocabulary
from ..domain.models import ImportResult
from ..errors import MenuImportError, ValidationError
from ..logging import get_logger
from ..paths import expand_abs
from ..service import MenuImportService

LOG = get_logger("cli-main")


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _read_text_file(path: str) -> str:
    full = expand_abs(path)
    try:
        with open(full, "r", encoding="utf-8-sig") as fh:
            return fh.read()
    except OSError as exc:
        raise ValidationError(f"Datei konnte nicht gelesen werden: {full} ({exc.strerror})") from exc
    except UnicodeDecodeError as exc:
        raise ValidationError(f"Datei muss UTF-8-kodiert sein: {full}") from exc


def _load_artifact(path: str, expected_kind: str) -> UploadedArtifact:
    full = expand_abs(path)
    try:
        with open(full, "rb") as fh:
            data = fh.read()
    except OSError as exc:
        raise ValidationError(f"Datei konnte nicht gelesen werden: {full} ({exc.strerror})") from exc
    media_type, _ = mimetypes.guess_type(full)
    return classify_upload(data, media_type, filename=os.path.basename(full), expected_kind=expected_kind)


def _print_result(result: ImportResult, mode: Optional[str]) -> None:
    if mode is None:
        _print_json(result.as_dict())
        return
    for product in result.products:
        print(
            "\t".join(
                [
                    product.name,
                    format_allergen_values(product.allergens, mode),
                    format_additive_values(product.additives, mode),
                ]
            )
        )
    for message in result.warning_messages():
        print(f"Warnung: {message}", file=sys.stderr)


def _handle_codes(ns: argparse.Namespace) -> int:
    _print_json(vocabulary())
    return 0


def _import_handler(method: str) -> Callable[[argparse.Namespace], int]:
    def _handler(ns: argparse.Namespace) -> int:
        service = MenuImportService(load_settings())
        text = _read_text_file(ns.path)
        result = getattr(service, method)(text)
        _print_result(result, ns.format)
        return 0

    return _handler


def _handle_parse_menu(ns: argparse.Namespace) -> int:
    texts = [t for t in (ns.text, _read_text_file(ns.text_file) if ns.text_file else None) if t]
    if ns.image and ns.pdf:
        raise ValidationError("Bitte nur ein Bild oder eine PDF-Datei angeben.")
    artifact: Optional[UploadedArtifact] = None
    if ns.image:
        artifact = _load_artifact(ns.image, KIND_IMAGE)
    elif ns.pdf:
        artifact = _load_artifact(ns.pdf, KIND_DOCUMENT)
    service = MenuImportService(load_settings())
    result = service.parse_menu("\n\n".join(texts) or None, artifact)
    _print_result(result, ns.format)
    return 0


def _handle_suggest(ns: argparse.Namespace) -> int:
    service = MenuImportService(load_settings())
    _print_json(service.suggest_allergens(ns.name).as_dict())
    return 0


def _handle_serve(ns: argparse.Namespace) -> int:
    from ..api.app import create_app
    import uvicorn

    allow_origins = ns.allow_origins
    if allow_origins and len(allow_origins) == 1 and allow_origins[0] == "*":
        allow_origins = ["*"]
    app = create_app(settings=load_settings(), allow_origins=allow_origins)
    uvicorn.run(app, host=ns.host, port=ns.port, log_level=ns.log_level)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="menu-allergens",
        description="Import menu products with allergen and additive codes from CSV, pasted tables or free text.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    codes = subparsers.add_parser("codes", help="Print the allergen and additive vocabulary as JSON.")
    codes.set_defaults(handler=_handle_codes)

    for name, method, help_text in (
        ("import-csv", "import_csv", "Import a CSV file with a header row (Name, Allergene, Zusatzstoffe)."),
        ("import-paste", "import_paste", "Import rows copied from a spreadsheet (tab- or ';'-separated)."),
    ):
        cmd = subparsers.add_parser(name, help=help_text)
        cmd.add_argument("path", help="Path to the UTF-8 text file")
        cmd.add_argument("--format", choices=EXPORT_MODES, help="Print a tab-separated table instead of JSON")
        cmd.set_defaults(handler=_import_handler(method))

    parse = subparsers.add_parser("parse-menu", help="Extract products from menu text, an image or a PDF via OpenAI.")
    parse.add_argument("--text", help="Menu text")
    parse.add_argument("--text-file", help="File containing menu text")
    parse.add_argument("--image", help="Menu photo (PNG, JPEG or WEBP)")
    parse.add_argument("--pdf", help="Menu as PDF")
    parse.add_argument("--format", choices=EXPORT_MODES, help="Print a tab-separated table instead of JSON")
    parse.set_defaults(handler=_handle_parse_menu)

    suggest = subparsers.add_parser("suggest", help="Suggest likely allergens and additives for one product name.")
    suggest.add_argument("name")
    suggest.set_defaults(handler=_handle_suggest)

    serve = subparsers.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--log-level", default="info")
    serve.add_argument(
        "--allow-origin",
        action="append",
        dest="allow_origins",
        help="Allowed CORS origin (can be provided multiple times, use '*' for any).",
    )
    serve.set_defaults(handler=_handle_serve)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    provided = list(argv) if argv is not None else sys.argv[1:]
    LOG.debug("CLI invoked with arguments: %s", provided)
    args = build_parser().parse_args(provided)
    try:
        code = args.handler(args)
    except ValidationError as exc:
        LOG.error("%s", exc.message)
        print(exc.message, file=sys.stderr)
        return 2
    except MenuImportError as exc:
        LOG.error("%s failed: %s", args.command, exc.message)
        print(exc.message, file=sys.stderr)
        return 1
    LOG.info("Subcommand '%s' finished with exit code %d.", args.command, code)
    return code


if __name__ == "__main__":
    sys.exit(main())
