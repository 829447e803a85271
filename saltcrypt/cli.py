"""Command line front end: encrypt/decrypt with any mode and padding."""
import argparse
import sys

from saltcrypt.common.config import load_settings
from saltcrypt.common.errors import CipherError
from saltcrypt.common.modes import BlockMode, PaddingScheme, display_name, parse_mode, parse_padding
from saltcrypt.common.utils import b64d, b64e, configure_logging
from saltcrypt.crypto import aes


def _decode(text: str, encoding: str) -> bytes:
    text = text.strip()
    if encoding == "hex":
        return bytes.fromhex(text)
    return b64d(text)


def _encode(data: bytes, encoding: str) -> str:
    if encoding == "hex":
        return data.hex()
    return b64e(data)


def _read_input(args) -> bytes:
    if args.infile:
        with open(args.infile, "rb") as f:
            return f.read()
    if args.text is not None:
        return args.text.encode("utf-8")
    return sys.stdin.buffer.read()


def _key_from_args(args) -> bytes:
    if args.key_hex:
        return bytes.fromhex(args.key_hex)
    return args.key.encode("utf-8")


def build_parser() -> argparse.ArgumentParser:
    settings = load_settings()
    parser = argparse.ArgumentParser(
        prog="saltcrypt",
        description="AES encrypt/decrypt with OpenSSL-compatible salted headers",
    )
    parser.add_argument("command", choices=["encrypt", "decrypt", "list"], help="Operation")

    key = parser.add_mutually_exclusive_group()
    key.add_argument("--key", help="Key as UTF-8 text (16, 24 or 32 bytes)")
    key.add_argument("--key-hex", help="Key as hex")

    parser.add_argument(
        "--iv-hex",
        help="IV/nonce as hex; omit to use a salted header derived from the key",
    )
    parser.add_argument(
        "--mode",
        default=display_name(settings.default_mode),
        help="Block mode: CBC, CFB, CTR, OFB, GCM, ECB (default: %(default)s)",
    )
    parser.add_argument(
        "--padding",
        default=display_name(settings.default_padding),
        help="Padding for CBC/ECB: PKCS7, ISO97971, ANSIX923, ISO10126, ZeroPadding, "
             "NoPadding (default: %(default)s)",
    )
    parser.add_argument("--text", help="Input text (plaintext, or encoded ciphertext for decrypt)")
    parser.add_argument("--in", dest="infile", help="Read input from file instead of --text/stdin")
    parser.add_argument(
        "--encoding",
        choices=["base64", "hex"],
        default="base64",
        help="Ciphertext encoding (default: base64)",
    )
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "list":
        print("Modes:    " + ", ".join(display_name(m) for m in BlockMode))
        print("Padding:  " + ", ".join(display_name(p) for p in PaddingScheme))
        return 0

    if not args.key and not args.key_hex:
        print("[!] --key or --key-hex is required", file=sys.stderr)
        return 2

    try:
        mode = parse_mode(args.mode)
        padding = parse_padding(args.padding)
        key = _key_from_args(args)
        iv = bytes.fromhex(args.iv_hex) if args.iv_hex else None
        data = _read_input(args)

        if args.command == "encrypt":
            out = aes.encrypt(data, key, iv, mode, padding)
            print(_encode(out, args.encoding))
        else:
            out = aes.decrypt(_decode(data.decode("ascii"), args.encoding), key, iv, mode, padding)
            sys.stdout.buffer.write(out)
            sys.stdout.buffer.flush()
    except CipherError as e:
        print(f"[!] {type(e).__name__}: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        # bad hex/base64 input
        print(f"[!] Invalid input: {e}", file=sys.stderr)
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
