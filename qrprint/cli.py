"""qrprint CLI — print-ready QR stickers, composites and business cards."""

import argparse
import io
import sys
from dataclasses import replace
from pathlib import Path

from PIL import Image
from pydantic import ValidationError

from qrprint.config import Settings
from qrprint.errors import QRPrintError
from qrprint.logging import audit, get_logger, setup_logging

log = get_logger("cli")

EXIT_VERIFY_FAILED = 1
EXIT_FAILED = 2
EXIT_RETRYABLE = 3


def _write(path: Path, png: bytes):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(png)
    with Image.open(io.BytesIO(png)) as img:
        print(f"Wrote: {path} ({img.size[0]}x{img.size[1]})")


def _check_scan(png: bytes, expected: str) -> bool:
    from qrprint.verify import scan

    with Image.open(io.BytesIO(png)) as img:
        r = scan(img, expected=expected)
    status = "PASS" if r.success else "FAIL"
    print(f"  [{r.decoder:8s}] {status} | {r.decode_time_ms:6.1f}ms | {r.decoded_data or r.error}")
    return r.success


def _sticker_style(args, settings: Settings):
    from qrprint.sticker import STYLES, StickerStyle

    style = STYLES[args.style] if args.style else StickerStyle.from_config(settings.sticker)
    if args.caption is not None:
        style = replace(style, caption=args.caption)
    return style


def cmd_qr(args, settings: Settings) -> int:
    """Render a bare QR raster."""
    from qrprint.composite import encode_png
    from qrprint.generator import generate_qr

    img = generate_qr(
        args.data,
        args.size,
        ecc=args.ecc or settings.qr.ecc,
        quiet_zone=settings.qr.quiet_zone if args.quiet_zone is None else args.quiet_zone,
    )
    png = encode_png(img)
    _write(Path(args.output), png)
    if args.verify and not _check_scan(png, args.data):
        return EXIT_VERIFY_FAILED
    return 0


def cmd_sticker(args, settings: Settings) -> int:
    """Render a framed sticker at its natural size."""
    from qrprint.composite import encode_png
    from qrprint.sticker import StickerSpec, render_sticker

    style = _sticker_style(args, settings)
    if args.width is not None:
        spec = StickerSpec.for_width(args.payload, args.width, style)
    else:
        spec = StickerSpec(args.payload, qr_size=args.qr_size, style=style)

    img = render_sticker(spec, ecc=settings.qr.ecc, quiet_zone=settings.qr.quiet_zone)
    png = encode_png(img)
    _write(Path(args.output), png)
    if args.verify and not _check_scan(png, args.payload):
        return EXIT_VERIFY_FAILED
    return 0


def cmd_composite(args, settings: Settings) -> int:
    """Place a sticker onto a design image and save the final design."""
    from qrprint.composite import composite_filename, generate_final_design
    from qrprint.mapper import Region, Space

    region = Region(args.x, args.y, args.width, args.height, Space(args.space))
    result = generate_final_design(
        args.design, region, args.payload,
        style=_sticker_style(args, settings),
        settings=settings,
    )

    output = Path(args.output) if args.output else Path(args.out_dir) / composite_filename(args.name)
    _write(output, result.png)
    r = result.region
    print(f"  Sticker: {r.x},{r.y} {r.width}x{r.height} (native px)")
    if args.verify and not _check_scan(result.png, args.payload):
        return EXIT_VERIFY_FAILED
    return 0


def cmd_card(args, settings: Settings) -> int:
    """Render the front and/or back of a business card."""
    from qrprint.cards import CardContent, ColorPalette, Contact, LayoutKind, Profile, render_card
    from qrprint.composite import card_filename

    kind = LayoutKind.parse(args.layout)
    if not kind.is_front:
        raise ValueError("--layout must name a front layout; use --side back for the back")
    sides = ("front", "back") if args.side == "both" else (args.side,)
    if "back" in sides and not args.url:
        raise ValueError("--url is required to render the card back")

    content = CardContent(
        profile=Profile(name=args.name, title=args.title or "", company=args.company or "", photo=args.photo),
        contact=Contact(phone=args.phone, email=args.email, website=args.website),
    )
    palette = ColorPalette(primary=args.primary, background=args.background, text=args.text)

    out_dir = Path(args.out_dir)
    exit_code = 0
    for side in sides:
        png = render_card(kind, content, palette, side=side, public_url=args.url, settings=settings)
        _write(out_dir / card_filename(args.name, kind.value if side == "front" else "back"), png)
        if side == "back" and args.verify and not _check_scan(png, args.url):
            exit_code = EXIT_VERIFY_FAILED
    return exit_code


def cmd_layouts(args, settings: Settings) -> int:
    """List the available card front layouts."""
    from qrprint.cards import available_layouts

    for layout_id, name, description in available_layouts():
        print(f"  {layout_id:10s} {name:10s} {description}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    from qrprint.sticker import STYLES

    parser = argparse.ArgumentParser(prog="qrprint", description="Print-ready QR stickers, composites and business cards")

    # Global flags
    parser.add_argument("-V", "--verbose", action="store_true", help="Enable DEBUG-level logging")
    parser.add_argument("--log-file", default=None, help="Write JSON logs to file")
    parser.add_argument("--json-logs", action="store_true", help="JSON logs on the console too")
    parser.add_argument("--config", default=None, help="Path to a qrprint.toml settings file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- qr ---
    p_qr = subparsers.add_parser("qr", help="Render a bare QR code")
    p_qr.add_argument("data", help="Payload to encode (used verbatim)")
    p_qr.add_argument("-o", "--output", default="output/qr.png", help="Output PNG path")
    p_qr.add_argument("-s", "--size", type=int, default=300, help="Raster edge in pixels")
    p_qr.add_argument("-e", "--ecc", default=None, choices=["L", "M", "Q", "H"], help="Error correction level")
    p_qr.add_argument("--quiet-zone", type=int, default=None, help="Quiet zone in modules")
    p_qr.add_argument("--verify", action="store_true", help="Decode the result and check the payload")

    def add_style_flags(p):
        p.add_argument("--style", default=None, choices=sorted(STYLES), help="Gradient frame style")
        p.add_argument("--caption", default=None, help="Caption text under the QR")

    # --- sticker ---
    p_st = subparsers.add_parser("sticker", help="Render a framed QR sticker")
    p_st.add_argument("payload", help="Payload to encode (used verbatim)")
    p_st.add_argument("-o", "--output", default="output/sticker.png", help="Output PNG path")
    size = p_st.add_mutually_exclusive_group()
    size.add_argument("--qr-size", type=int, default=260, help="Raw QR edge in pixels (min 80)")
    size.add_argument("--width", type=int, default=None, help="Outer sticker width; the QR size follows")
    add_style_flags(p_st)
    p_st.add_argument("--verify", action="store_true", help="Decode the result and check the payload")

    # --- composite ---
    p_comp = subparsers.add_parser("composite", help="Place a sticker onto a design image")
    p_comp.add_argument("design", help="Design image path or http(s) URL")
    p_comp.add_argument("payload", help="Payload to encode (used verbatim)")
    p_comp.add_argument("--x", type=float, required=True, help="Region left edge")
    p_comp.add_argument("--y", type=float, required=True, help="Region top edge")
    p_comp.add_argument("--width", type=float, default=120, help="Region width (min 120)")
    p_comp.add_argument("--height", type=float, default=160, help="Region height (min 160)")
    p_comp.add_argument("--space", default="display", choices=["display", "native"],
                        help="Pixel space the region was measured in")
    p_comp.add_argument("--name", default="design", help="Name used for the output filename")
    p_comp.add_argument("--out-dir", default="output", help="Directory for the output file")
    p_comp.add_argument("-o", "--output", default=None, help="Explicit output path (overrides --name)")
    add_style_flags(p_comp)
    p_comp.add_argument("--verify", action="store_true", help="Decode the result and check the payload")

    # --- card ---
    p_card = subparsers.add_parser("card", help="Render a business card")
    p_card.add_argument("--layout", default="classic", help="Front layout id (see `qrprint layouts`)")
    p_card.add_argument("--side", default="both", choices=["front", "back", "both"], help="Which side(s) to render")
    p_card.add_argument("--name", required=True, help="Full name")
    p_card.add_argument("--title", default=None, help="Job title")
    p_card.add_argument("--company", default=None, help="Company")
    p_card.add_argument("--photo", default=None, help="Profile photo path or http(s) URL")
    p_card.add_argument("--phone", default=None)
    p_card.add_argument("--email", default=None)
    p_card.add_argument("--website", default=None)
    p_card.add_argument("--primary", default="#1E40AF", help="Primary colour (hex)")
    p_card.add_argument("--background", default="#FFFFFF", help="Background colour (hex)")
    p_card.add_argument("--text", default="#1F2937", help="Preferred text colour (hex)")
    p_card.add_argument("--url", default=None, help="Public card URL encoded on the back")
    p_card.add_argument("--out-dir", default="output", help="Directory for the output files")
    p_card.add_argument("--verify", action="store_true", help="Decode the back QR and check the URL")

    # --- layouts ---
    subparsers.add_parser("layouts", help="List card layouts")

    return parser


COMMANDS = {
    "qr": cmd_qr,
    "sticker": cmd_sticker,
    "composite": cmd_composite,
    "card": cmd_card,
    "layouts": cmd_layouts,
}


def main(argv: list[str] | None = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    overrides = {}
    if args.verbose:
        overrides["verbose"] = True
    if args.json_logs:
        overrides["json_logs"] = True
    if args.log_file:
        overrides["log_file"] = args.log_file
    try:
        settings = Settings.load(args.config, **overrides)
    except (ValidationError, ValueError) as e:
        print(f"error[config]: {e}", file=sys.stderr)
        sys.exit(EXIT_FAILED)

    # Setup logging before any command runs
    level = "DEBUG" if settings.verbose else "INFO"
    setup_logging(level=level, log_file=settings.log_file, json_format=settings.json_logs)
    audit("cli.start", logger=log, command=args.command, verbose=settings.verbose)

    try:
        code = COMMANDS[args.command](args, settings)
    except QRPrintError as e:
        print(f"error[{e.stage.value}]: {e.message}", file=sys.stderr)
        audit("cli.done", logger=log, command=args.command, stage=e.stage.value, retryable=e.retryable)
        sys.exit(EXIT_RETRYABLE if e.retryable else EXIT_FAILED)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(EXIT_FAILED)

    audit("cli.done", logger=log, command=args.command, exit_code=code)
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
