import sys
import argparse
import json
import importlib.util
from abc import ABC, abstractmethod
from typing import Iterator, List, Optional, TextIO
from pathlib import Path

__version__ = "1.0"

ALPHABET_SIZE = 26
DEFAULT_SHIFT = 3
# Original input buffer held 100 chars including the terminator
DEFAULT_MAX_LENGTH = 99
# Shipped inside the package so installed copies find it too
DEFAULT_PLUGIN_DIR = Path(__file__).parent / "plugins"

# Verbose mode (disabled by default, enabled with --verbose)
VERBOSE = False

def log_info(msg: str):
    """Print info message only if verbose mode is enabled."""
    if VERBOSE:
        print(f"[INFO] {msg}", file=sys.stderr)

def log_warn(msg: str):
    """Print warning message only if verbose mode is enabled."""
    if VERBOSE:
        print(f"[WARN] {msg}", file=sys.stderr)

# ==========================================
#  CORE: Shift Arithmetic
# ==========================================

def normalize_shift(shift: int) -> int:
    """Reduce any integer shift into the 0..25 range."""
    # bool is an int subclass; True as a shift is almost certainly a mistake
    if isinstance(shift, bool) or not isinstance(shift, int):
        raise TypeError(f"shift must be an integer, not {type(shift).__name__}")
    return shift % ALPHABET_SIZE

def shift_char(char: str, shift: int) -> str:
    """Shift one ASCII letter within its case's alphabet. Anything else is returned unchanged."""
    if 'a' <= char <= 'z':
        return chr((ord(char) - ord('a') + shift) % ALPHABET_SIZE + ord('a'))
    if 'A' <= char <= 'Z':
        return chr((ord(char) - ord('A') + shift) % ALPHABET_SIZE + ord('A'))
    return char

def shift_text(text: str, shift: int) -> str:
    shift = normalize_shift(shift)
    if shift == 0:
        return text
    return "".join(shift_char(c, shift) for c in text)

def encrypt(text: str, shift: int) -> str:
    """
    Encrypt text with the Caesar cipher.

    Each ASCII letter moves `shift` places forward, wrapping from 'z' to 'a'
    (and 'Z' to 'A'). Case is preserved and non-letters pass through.
    """
    return shift_text(text, shift)

def decrypt(text: str, shift: int) -> str:
    """Invert encrypt(): move each ASCII letter `shift` places back."""
    return shift_text(text, -normalize_shift(shift))

# ==========================================
#  FRAMEWORK: Abstract Base Class & Registry
# ==========================================

class CipherStrategy(ABC):
    """Abstract base class that all ciphers must implement."""

    # Strategies that ignore the user's shift set this to their own value
    fixed_shift: Optional[int] = None

    @property
    @abstractmethod
    def name(self) -> str:
        """The command-line name for this cipher."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Short description for help text."""
        pass

    @abstractmethod
    def encode(self, text: str, shift: int) -> str:
        pass

    @abstractmethod
    def decode(self, text: str, shift: int) -> str:
        pass

CIPHER_REGISTRY = {}

def register_cipher(cls):
    """Decorator to auto-register ciphers."""
    cipher = cls()
    CIPHER_REGISTRY[cipher.name] = cipher
    return cls

@register_cipher
class CaesarCipher(CipherStrategy):
    name = "caesar"
    description = "Classical Caesar shift over A-Z and a-z (any integer shift, mod 26)."

    def encode(self, text: str, shift: int) -> str:
        return encrypt(text, shift)

    def decode(self, text: str, shift: int) -> str:
        return decrypt(text, shift)

# ==========================================
#  PLUGIN SYSTEM: Dynamic Cipher Loading
# ==========================================

def load_plugins(plugin_dir: str = None) -> List[str]:
    """
    Load cipher plugins from a directory with manifest.json.

    Args:
        plugin_dir: Path to plugins directory (default: ./plugins relative to this module)

    Returns:
        List of successfully loaded plugin names
    """
    if plugin_dir is None:
        plugin_dir = DEFAULT_PLUGIN_DIR
    else:
        plugin_dir = Path(plugin_dir)

    if not plugin_dir.exists():
        return []

    manifest_path = plugin_dir / "manifest.json"
    if not manifest_path.exists():
        log_warn(f"No manifest.json in {plugin_dir}. Skipping plugin loading.")
        return []

    try:
        with open(manifest_path, "r", encoding="utf-8") as f:
            manifest = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        log_warn(f"Failed to read manifest.json: {e}")
        return []

    loaded = []
    for entry in manifest.get("plugins", []):
        filename = entry.get("file")
        expected_cipher = entry.get("cipher")

        if not filename:
            continue

        filepath = plugin_dir / filename
        if not filepath.exists():
            log_warn(f"Plugin file not found: {filepath}")
            continue

        try:
            spec = importlib.util.spec_from_file_location(filepath.stem, filepath)
            if spec and spec.loader:
                module = importlib.util.module_from_spec(spec)
                # Plugins get the framework without importing this module
                module.CipherStrategy = CipherStrategy
                module.register_cipher = register_cipher
                module.shift_text = shift_text
                spec.loader.exec_module(module)

                if expected_cipher and expected_cipher in CIPHER_REGISTRY:
                    loaded.append(expected_cipher)
                elif expected_cipher:
                    log_warn(f"Plugin {filename} did not register cipher '{expected_cipher}'")
                else:
                    loaded.append(filename)
        except Exception as e:
            log_warn(f"Failed to load plugin {filename}: {e}")

    return loaded

# ==========================================
#  INPUT: Bounds-checked Token Reading
# ==========================================

def iter_tokens(stream: TextIO) -> Iterator[str]:
    """Yield whitespace-delimited tokens, reading one line at a time."""
    for line in stream:
        yield from line.split()

def next_token(tokens: Iterator[str]) -> str:
    try:
        return next(tokens)
    except StopIteration:
        raise ValueError("unexpected end of input") from None

def check_length(text: str, max_length: int, truncate: bool = False) -> str:
    """
    Enforce the input length limit.

    A max_length of 0 disables the check. Over-length text is rejected with
    ValueError, or cut down to max_length when truncate is set.
    """
    if max_length <= 0 or len(text) <= max_length:
        return text
    if truncate:
        log_warn(f"Input truncated from {len(text)} to {max_length} characters.")
        return text[:max_length]
    raise ValueError(f"input is {len(text)} characters, limit is {max_length}")

def parse_shift(raw: str) -> int:
    try:
        # int() would also take non-ASCII digits such as '٣'
        if not raw.isascii():
            raise ValueError
        return int(raw)
    except ValueError:
        raise ValueError(f"invalid shift value '{raw}'") from None

def shift_arg(raw: str) -> int:
    """argparse type for --shift."""
    try:
        return parse_shift(raw)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None

def prompt_input(stream: TextIO, shift: Optional[int], max_length: int,
                 truncate: bool = False):
    """
    Run the interactive prompts and return (text, shift).

    Prompts go to stdout. The shift prompt is skipped when a shift is
    already known.
    """
    tokens = iter_tokens(stream)

    print("Enter the string")
    text = check_length(next_token(tokens), max_length, truncate)

    if shift is None:
        print("Enter the shift value")
        shift = parse_shift(next_token(tokens))

    return text, shift

# ==========================================
#  CLI LOGIC
# ==========================================

def list_ciphers():
    """Print all available ciphers."""
    print("\nAvailable Ciphers:")
    print("=" * 60)
    for name, cipher in CIPHER_REGISTRY.items():
        shift_info = f"shift={cipher.fixed_shift:<2}" if cipher.fixed_shift is not None else "shift=any"
        print(f"  {name:<10} [{shift_info}]  {cipher.description}")
    print("=" * 60)
    print(f"\nTotal: {len(CIPHER_REGISTRY)} cipher(s) registered.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=f"Caesar Cipher Engine v{__version__}",
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    method_help = "\n".join(f"  {k:<10}: {v.description}" for k, v in CIPHER_REGISTRY.items())
    parser.add_argument("-m", "--method", choices=list(CIPHER_REGISTRY.keys()), default="caesar",
                        help=f"Select cipher algorithm (default: caesar).\n{method_help}")

    # Without -e/-d the text is encrypted, printed, decrypted and printed again
    action_group = parser.add_mutually_exclusive_group()
    action_group.add_argument("-e", "--encrypt", action="store_true", help="Encrypt only")
    action_group.add_argument("-d", "--decrypt", action="store_true", help="Decrypt only")
    action_group.add_argument("-l", "--list", action="store_true", help="List all available ciphers")

    parser.add_argument("-s", "--shift", type=shift_arg, metavar="N",
                        help=f"Shift value, any integer (prompted for when reading interactively,\n"
                             f"otherwise default: {DEFAULT_SHIFT})")

    parser.add_argument("--max-length", type=int, default=DEFAULT_MAX_LENGTH, metavar="N",
                        help=f"Longest accepted interactive input (default: {DEFAULT_MAX_LENGTH}, 0 = no limit)")
    parser.add_argument("--truncate", action="store_true",
                        help="Truncate over-length interactive input instead of rejecting it")

    parser.add_argument("--plugin-dir", type=str, metavar="PATH",
                        help="Custom plugin directory (must contain manifest.json)")

    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable verbose output (info and warning messages)")

    io_group = parser.add_mutually_exclusive_group()
    io_group.add_argument("-t", "--text", help="Direct text input")
    io_group.add_argument("-i", "--input", help="Input file path")

    parser.add_argument("-o", "--output", help="Output file path")

    return parser


def _scan_plugin_dir(argv: List[str]) -> Optional[str]:
    for i, arg in enumerate(argv):
        if arg == "--plugin-dir" and i + 1 < len(argv):
            return argv[i + 1]
        if arg.startswith("--plugin-dir="):
            return arg.split("=", 1)[1]
    return None


def main(argv: List[str] = None):
    global VERBOSE

    if argv is None:
        argv = sys.argv[1:]

    # Preliminary scans, needed before plugin loading
    VERBOSE = "--verbose" in argv or "-v" in argv

    # Plugins are loaded before parsing so they appear in --list and -m choices
    loaded_plugins = load_plugins(_scan_plugin_dir(argv))
    if loaded_plugins:
        log_info(f"Loaded plugins: {', '.join(loaded_plugins)}")

    args = build_parser().parse_args(argv)

    if args.list:
        list_ciphers()
        sys.exit(0)

    cipher = CIPHER_REGISTRY[args.method]

    # 1. READ INPUT
    shift = args.shift
    if args.text is not None:
        source_text = args.text
    elif args.input:
        try:
            with open(args.input, "r", encoding="utf-8") as f:
                source_text = f.read()
            # The final newline belongs to the file, not the message
            if source_text.endswith("\n"):
                source_text = source_text[:-1]
        except FileNotFoundError:
            sys.exit(f"Error: File '{args.input}' not found.")
    else:
        # A fixed-shift cipher never needs the shift prompt
        known_shift = shift if shift is not None else cipher.fixed_shift
        try:
            source_text, shift = prompt_input(sys.stdin, known_shift, args.max_length, args.truncate)
        except ValueError as e:
            sys.exit(f"Input Error: {e}")
        except KeyboardInterrupt:
            sys.exit(0)

    # 2. RESOLVE SHIFT
    if cipher.fixed_shift is not None:
        if args.shift is not None and args.shift != cipher.fixed_shift:
            log_warn(f"Cipher '{cipher.name}' always shifts by {cipher.fixed_shift}; ignoring --shift {args.shift}.")
        shift = cipher.fixed_shift
    elif shift is None:
        shift = DEFAULT_SHIFT
        log_info(f"No shift given, using default of {DEFAULT_SHIFT}.")

    if not 0 <= shift < ALPHABET_SIZE:
        log_info(f"Shift {shift} normalized to {normalize_shift(shift)}.")

    # 3. TRANSFORM
    if args.encrypt:
        lines = [cipher.encode(source_text, shift)]
    elif args.decrypt:
        lines = [cipher.decode(source_text, shift)]
    else:
        encrypted = cipher.encode(source_text, shift)
        lines = [encrypted, cipher.decode(encrypted, shift)]

    # 4. WRITE OUTPUT
    if args.output:
        try:
            with open(args.output, "w", encoding="utf-8") as f:
                for line in lines:
                    f.write(line)
                    f.write("\n")
        except OSError as e:
            sys.exit(f"Error writing output: {e}")
    else:
        for line in lines:
            print(line)

if __name__ == "__main__":
    main()
