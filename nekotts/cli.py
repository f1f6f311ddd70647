from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from nekotts.api import build_context, list_voices, synthesize_to_file
from nekotts.config import SUPPORTED_DEVICES, Settings
from nekotts.errors import SynthesisError
from nekotts.logging_utils import configure_logging, ensure_timestamped_handlers


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Offline text-to-speech to a WAV file.")
    parser.add_argument("text", nargs="?", help="Text to speak; reads stdin when omitted.")
    parser.add_argument("-o", "--output", default="output.wav", help="Output WAV path.")
    parser.add_argument("--voice", default=None, help="Voice id (default: catalog default).")
    parser.add_argument("--language", default=None, help="Language code, e.g. en-us, es, fr, de.")
    parser.add_argument("--speed", type=float, default=1.0, help="Speaking rate (0.5-2.0).")
    parser.add_argument("--pitch", type=float, default=1.0, help="Pitch factor (0.5-2.0).")
    parser.add_argument("--device", choices=SUPPORTED_DEVICES, default=None, help="Inference device.")
    parser.add_argument("--list-voices", action="store_true", help="Print the voice catalog and exit.")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    parser.add_argument("--log-dir", default=None, help="Directory for an additional log file.")
    return parser


def _setup_logging(debug: bool, log_dir: Optional[str]) -> None:
    configure_logging(logging.DEBUG if debug else None)
    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        logging.getLogger().addHandler(logging.FileHandler(path / "nekotts.log", encoding="utf-8"))
        ensure_timestamped_handlers()


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    _setup_logging(args.debug, args.log_dir)
    settings = Settings.from_env()
    if args.device:
        settings = dataclasses.replace(settings, device=args.device)
    context = build_context(settings)

    if args.list_voices:
        json.dump(list_voices(context, language=args.language), sys.stdout, indent=2, ensure_ascii=False)
        sys.stdout.write("\n")
        return 0

    text = args.text if args.text is not None else sys.stdin.read()
    try:
        result = synthesize_to_file(
            text,
            args.output,
            context,
            voice_id=args.voice,
            speed=args.speed,
            pitch=args.pitch,
            language=args.language,
        )
    except SynthesisError as exc:
        logging.getLogger(__name__).error("cli_synthesis_failed reason=%s", exc)
        sys.stderr.write(json.dumps(exc.to_payload()) + "\n")
        return 1
    sys.stdout.write(json.dumps(result, ensure_ascii=False) + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
