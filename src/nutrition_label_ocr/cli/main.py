from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Sequence

from ..config import load_ocr_settings, parse_preprocess_mode
from ..domain.intake import compute_total_calories
from ..domain.models import PreprocessMode
from ..imaging.io import load_image, save_image
from ..logging import get_logger
from ..ocr.engine import TesseractEngine
from ..parsing.nutrition import is_successful, parse
from ..paths import expand_abs
from ..pipeline import prepare_image, scan_label

LOG = get_logger("cli-main")

_MODE_CHOICES = [m.value for m in PreprocessMode]


def _add_image_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--image", required=True, help="Path to the nutrition label photo")
    p.add_argument("--crop", type=float, help="Centered crop percentage (50-100, default from env or 70)")
    p.add_argument("--mode", choices=_MODE_CHOICES, help="Binarization mode (default from env or grayscale-threshold)")
    p.add_argument("--max-dim", type=int, help="Longest side after downscaling (default from env or 1200)")


def _handle_scan(ns: argparse.Namespace) -> int:
    settings = load_ocr_settings(os.getcwd())
    image_path = expand_abs(ns.image)
    if not os.path.isfile(image_path):
        LOG.error(f"Image not found: {image_path}")
        return 2

    buffer = load_image(image_path)
    engine = TesseractEngine(ns.tesseract_cmd or settings.tesseract_cmd)
    try:
        outcome = scan_label(
            buffer,
            engine,
            crop_percentage=ns.crop if ns.crop is not None else settings.crop_percentage,
            mode=parse_preprocess_mode(ns.mode, settings.preprocess_mode),
            max_dimension=ns.max_dim or settings.max_dimension,
            dpi=ns.dpi or settings.dpi,
            on_message=lambda msg: LOG.debug(msg),
        )
    except Exception as exc:
        LOG.error(f"OCR failed: {exc}")
        return 1

    out = outcome.to_dict()
    out["successful"] = is_successful(outcome.parsed)
    if ns.servings is not None or ns.quantity is not None:
        out["total_calories"] = compute_total_calories(
            outcome.parsed,
            consumed_servings=ns.servings,
            consumed_quantity=ns.quantity,
        )
    print(json.dumps(out, ensure_ascii=False, indent=2))
    if not out["successful"]:
        LOG.warning("Calories or serving size missing; review the raw text and fill fields manually")
    return 0


def _handle_parse(ns: argparse.Namespace) -> int:
    if ns.text is not None:
        text = ns.text
    else:
        text_path = expand_abs(ns.text_file)
        if not os.path.isfile(text_path):
            LOG.error(f"Text file not found: {text_path}")
            return 2
        with open(text_path, "r", encoding="utf-8") as f:
            text = f.read()
    parsed = parse(text)
    out = {"parsed": parsed.to_dict(), "successful": is_successful(parsed)}
    print(json.dumps(out, ensure_ascii=False, indent=2))
    return 0


def _handle_preprocess(ns: argparse.Namespace) -> int:
    settings = load_ocr_settings(os.getcwd())
    image_path = expand_abs(ns.image)
    if not os.path.isfile(image_path):
        LOG.error(f"Image not found: {image_path}")
        return 2
    processed = prepare_image(
        load_image(image_path),
        crop_percentage=ns.crop if ns.crop is not None else settings.crop_percentage,
        mode=parse_preprocess_mode(ns.mode, settings.preprocess_mode),
        max_dimension=ns.max_dim or settings.max_dimension,
    )
    written = save_image(processed, ns.output)
    LOG.info(f"Wrote: {written}")
    print(written)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    provided = list(argv) if argv is not None else sys.argv[1:]
    LOG.info(f"CLI invoked with arguments: {provided}")

    parser = argparse.ArgumentParser(
        prog="nutrition-ocr",
        description="Read calories, serving size and macros from nutrition label photos.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan = subparsers.add_parser("scan", help="Preprocess a label photo and run the OCR cascade.")
    _add_image_args(scan)
    scan.add_argument("--dpi", type=int, help="DPI hint passed to Tesseract (default from env or 300)")
    scan.add_argument("--tesseract-cmd", help="Path to the tesseract binary (overrides TESSERACT_CMD)")
    scan.add_argument("--servings", type=float, help="Servings consumed, to compute total calories")
    scan.add_argument("--quantity", type=float, help="Quantity consumed in ml/g, to compute total calories")
    scan.set_defaults(handler=_handle_scan)

    parse_cmd = subparsers.add_parser("parse", help="Extract nutrition fields from already recognized text.")
    src = parse_cmd.add_mutually_exclusive_group(required=True)
    src.add_argument("--text")
    src.add_argument("--text-file")
    parse_cmd.set_defaults(handler=_handle_parse)

    pre = subparsers.add_parser("preprocess", help="Write the image exactly as it would be fed to OCR.")
    _add_image_args(pre)
    pre.add_argument("--output", required=True)
    pre.set_defaults(handler=_handle_preprocess)

    args = parser.parse_args(provided)
    code = args.handler(args)
    LOG.info(f"Subcommand '{args.command}' finished with exit code {code}.")
    return code


if __name__ == "__main__":
    sys.exit(main())
