"""Command-line option parsing for the compressor front end."""

from __future__ import annotations

import enum
import os
import re
import sys
from collections import deque
from dataclasses import dataclass, field
from typing import Iterator, NamedTuple, Optional, Sequence

PACKAGE_VERSION = "0.651"
PRIO_MIN = -20
PRIO_MAX = 20
DEFAULT_SUFFIX = ".lrz"
DEFAULT_LEVEL = 7


class OptionError(Exception):
    """Raised for invalid command lines; ``show_usage`` asks for the usage text."""

    def __init__(self, message: str, show_usage: bool = False) -> None:
        super().__init__(message)
        self.show_usage = show_usage


class Compression(enum.Enum):
    """Back-end compression applied after the rzip stage."""

    LZMA = "lzma"
    BZIP2 = "bzip2"
    ZLIB = "gzip"
    LZO = "lzo"
    NONE = "none"
    ZPAQ = "zpaq"


class Action(enum.Enum):
    """What the program should do once options are parsed."""

    RUN = "run"
    HELP = "help"
    VERSION = "version"
    LICENSE = "license"


@dataclass
class Options:
    """Settings chosen on the command line."""

    compat: bool = False
    lrzcat: bool = False
    action: Action = Action.RUN
    compression: Compression = Compression.LZMA
    decompress: bool = False
    test_only: bool = False
    info: bool = False
    stdin: bool = False
    stdout: bool = False
    force_replace: bool = False
    keep_files: bool = True
    keep_broken: bool = False
    check: bool = False
    hash: bool = False
    encrypt: bool = False
    passphrase: Optional[str] = None
    show_progress: bool = True
    output: bool = True
    verbosity: int = 0
    unlimited: bool = False
    threshold: bool = True
    recurse: bool = False
    level: int = DEFAULT_LEVEL
    nice_val: int = 19
    nice_set: bool = False
    threads: int = field(default_factory=lambda: os.cpu_count() or 1)
    ramsize: Optional[int] = None
    window: int = 0
    outname: Optional[str] = None
    outdir: Optional[str] = None
    suffix: str = DEFAULT_SUFFIX
    files: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def program_name(self) -> str:
        return "lrz" if self.compat else "lrzip"


class _ArgMode(enum.Enum):
    NONE = 0
    REQUIRED = 1
    OPTIONAL = 2


class _LongOption(NamedTuple):
    name: str
    has_arg: _ArgMode
    val: str


_N, _R, _O = _ArgMode.NONE, _ArgMode.REQUIRED, _ArgMode.OPTIONAL

_LONG_OPTIONS = (
    _LongOption("bzip2", _N, "b"),
    _LongOption("check", _N, "c"),
    _LongOption("check", _N, "C"),
    _LongOption("decompress", _N, "d"),
    _LongOption("delete", _N, "D"),
    _LongOption("encrypt", _O, "e"),
    _LongOption("force", _N, "f"),
    _LongOption("gzip", _N, "g"),
    _LongOption("help", _N, "h"),
    _LongOption("hash", _N, "H"),
    _LongOption("info", _N, "i"),
    _LongOption("keep-broken", _N, "k"),
    _LongOption("keep-broken", _N, "K"),
    _LongOption("lzo", _N, "l"),
    _LongOption("lzma", _N, "/"),
    _LongOption("level", _O, "L"),
    _LongOption("license", _N, "L"),
    _LongOption("maxram", _R, "m"),
    _LongOption("no-compress", _N, "n"),
    _LongOption("nice-level", _R, "N"),
    _LongOption("outfile", _R, "o"),
    _LongOption("outdir", _R, "O"),
    _LongOption("threads", _R, "p"),
    _LongOption("progress", _N, "P"),
    _LongOption("quiet", _N, "q"),
    _LongOption("very-quiet", _N, "Q"),
    _LongOption("recursive", _N, "r"),
    _LongOption("suffix", _R, "S"),
    _LongOption("test", _N, "t"),
    _LongOption("threshold", _R, "T"),
    _LongOption("unlimited", _N, "U"),
    _LongOption("verbose", _N, "v"),
    _LongOption("version", _N, "V"),
    _LongOption("window", _R, "w"),
    _LongOption("zpaq", _N, "z"),
    _LongOption("fast", _N, "1"),
    _LongOption("best", _N, "9"),
)


def _long_table(compat: bool) -> tuple[_LongOption, ...]:
    if not compat:
        return _LONG_OPTIONS
    renamed = {1: "stdout", 11: "keep"}
    return tuple(
        opt._replace(name=renamed[i]) if i in renamed else opt
        for i, opt in enumerate(_LONG_OPTIONS)
    )


def _short_table(optstring: str) -> dict[str, bool]:
    return {m.group(1): bool(m.group(2)) for m in re.finditer(r"([^:])(:?)", optstring)}


_SHORTS = _short_table("bcCdDefghHiKlL:nN:o:O:p:PqQrS:tTUm:vVw:z?")
_COMPAT_SHORTS = _short_table("bcCdefghHikKlLnN:o:O:p:PrS:tTUm:vVw:z?123456789")

_COMPRESSORS = {
    "b": Compression.BZIP2,
    "g": Compression.ZLIB,
    "l": Compression.LZO,
    "n": Compression.NONE,
    "z": Compression.ZPAQ,
}


def _parse_long(text: str, queue: deque, longs: Sequence[_LongOption]) -> tuple[str, Optional[str]]:
    name, eq, value = text.partition("=")
    exact = [opt for opt in longs if opt.name == name]
    if exact:
        opt = exact[0]
    else:
        matches = [opt for opt in longs if opt.name.startswith(name)]
        if not matches:
            raise OptionError(f"unrecognized option '--{name}'", show_usage=True)
        first = matches[0]
        if any((m.has_arg, m.val) != (first.has_arg, first.val) for m in matches[1:]):
            raise OptionError(f"option '--{name}' is ambiguous", show_usage=True)
        opt = first
    if opt.has_arg is _ArgMode.NONE:
        if eq:
            raise OptionError(f"option '--{opt.name}' doesn't allow an argument", show_usage=True)
        return opt.val, None
    if eq:
        return opt.val, value
    if opt.has_arg is _ArgMode.OPTIONAL:
        return opt.val, None
    if not queue:
        raise OptionError(f"option '--{opt.name}' requires an argument", show_usage=True)
    return opt.val, queue.popleft()


def _parse_short(cluster: str, queue: deque, shorts: dict[str, bool]) -> Iterator[tuple[str, Optional[str]]]:
    pos = 0
    while pos < len(cluster):
        ch = cluster[pos]
        pos += 1
        if ch not in shorts:
            raise OptionError(f"invalid option -- '{ch}'", show_usage=True)
        if not shorts[ch]:
            yield ch, None
            continue
        if pos < len(cluster):
            value = cluster[pos:]
            pos = len(cluster)
        elif queue:
            value = queue.popleft()
        else:
            raise OptionError(f"option requires an argument -- '{ch}'", show_usage=True)
        yield ch, value


def _getopt(
    args: Sequence[str], shorts: dict[str, bool], longs: Sequence[_LongOption]
) -> Iterator[tuple[Optional[str], str]]:
    """Yield ``(option, argument)`` pairs, and ``(None, operand)`` for operands."""
    queue = deque(args)
    while queue:
        arg = queue.popleft()
        if arg == "--":
            for rest in queue:
                yield None, rest
            return
        if arg.startswith("--"):
            yield _parse_long(arg[2:], queue, longs)
        elif arg.startswith("-") and arg != "-":
            yield from _parse_short(arg[1:], queue, shorts)
        else:
            yield None, arg


def _strtol(text: Optional[str]) -> tuple[int, str]:
    """Parse a leading decimal integer, returning it with the unparsed rest."""
    if text is None:
        return 0, ""
    match = re.match(r"\s*([+-]?\d+)", text)
    if not match:
        return 0, text
    return int(match.group(1)), text[match.end():]


def _number(text: Optional[str], what: str, valid, message: str) -> int:
    value, rest = _strtol(text)
    if not valid(value):
        raise OptionError(message)
    if rest:
        raise OptionError(f"Extra characters after {what}: '{rest}'")
    return value


def _apply(opts: Options, c: str, optarg: Optional[str]) -> Action:
    if c in _COMPRESSORS:
        if opts.compression is not Compression.LZMA:
            raise OptionError("Can only use one of -l, -b, -g, -z or -n")
        opts.compression = _COMPRESSORS[c]
    elif c == "/":
        opts.compression = Compression.LZMA
    elif c in ("c", "C"):
        if c == "c" and opts.compat:
            opts.keep_files = True
            opts.stdout = True
        else:
            opts.check = True
            opts.hash = True
    elif c == "d":
        opts.decompress = True
    elif c == "D":
        opts.keep_files = False
    elif c == "e":
        opts.encrypt = True
        opts.passphrase = optarg
    elif c == "f":
        opts.force_replace = True
    elif c == "h":
        return Action.HELP
    elif c == "H":
        opts.hash = True
    elif c == "i":
        opts.info = True
        opts.decompress = False
    elif c in ("k", "K"):
        if c == "k" and opts.compat:
            opts.keep_files = True
        else:
            opts.keep_broken = True
    elif c == "L":
        if opts.compat:
            return Action.LICENSE
        opts.level = _number(optarg, "compression level", lambda v: 1 <= v <= 9,
                             "Invalid compression level (must be 1-9)")
    elif c == "m":
        value, rest = _strtol(optarg)
        if rest:
            raise OptionError(f"Extra characters after ramsize: '{rest}'")
        opts.ramsize = value * 1024 * 1024 * 100
    elif c == "N":
        opts.nice_set = True
        opts.nice_val = _number(optarg, "nice level", lambda v: PRIO_MIN <= v <= PRIO_MAX,
                                f"Invalid nice value (must be {PRIO_MIN}...{PRIO_MAX})")
    elif c == "o":
        if opts.outdir is not None:
            raise OptionError("Cannot have -o and -O together")
        if opts.stdout:
            raise OptionError("Cannot specify an output filename when outputting to stdout")
        opts.outname = optarg
        opts.suffix = ""
    elif c == "O":
        if opts.outname is not None:
            raise OptionError("Cannot have options -o and -O together")
        if opts.stdout:
            raise OptionError("Cannot specify an output directory when outputting to stdout")
        opts.outdir = optarg if optarg.endswith("/") else optarg + "/"
    elif c == "p":
        opts.threads = _number(optarg, "number of threads", lambda v: v >= 1,
                               "Must have at least one thread")
    elif c == "P":
        opts.show_progress = True
    elif c == "q":
        opts.show_progress = False
    elif c == "Q":
        opts.show_progress = False
        opts.output = False
    elif c == "r":
        opts.recurse = True
    elif c == "S":
        if opts.outname is not None:
            raise OptionError("Specified output filename already, can't specify an extension.")
        if opts.stdout:
            raise OptionError("Cannot specify a filename suffix when outputting to stdout")
        opts.suffix = optarg
    elif c == "t":
        if opts.outname is not None:
            raise OptionError("Cannot specify an output file name when just testing.")
        if opts.compat:
            opts.keep_files = True
        if not opts.keep_files:
            raise OptionError("Doubt that you want to delete a file when just testing.")
        opts.test_only = True
    elif c == "T":
        opts.threshold = False
    elif c == "U":
        opts.unlimited = True
    elif c == "v":
        if not opts.show_progress:
            opts.show_progress = True
        elif opts.verbosity == 0:
            opts.verbosity = 1
        elif opts.verbosity == 1:
            opts.verbosity = 2
    elif c == "V":
        return Action.VERSION
    elif c == "w":
        opts.window = _number(optarg, "window size", lambda v: v >= 1, "Window must be positive")
    elif c in "123456789" and len(c) == 1:
        opts.level = int(c)
    else:
        raise OptionError(f"unrecognized option '-{c}'", show_usage=True)
    return Action.RUN


def _finalise(opts: Options) -> None:
    if opts.compat and not opts.show_progress:
        opts.output = False
    if opts.outname is not None:
        if len(opts.files) > 1:
            raise OptionError("Cannot specify output filename with more than 1 file")
        if opts.recurse:
            raise OptionError("Cannot specify output filename with recursive")
    if opts.verbosity and not opts.show_progress:
        opts.warnings.append("Cannot have -v and -q options. -v wins.")
        opts.show_progress = True
    if opts.unlimited and opts.window:
        opts.warnings.append("If -U used, cannot specify a window size with -w.")
        opts.window = 0
    if not opts.files:
        opts.stdin = True
    if opts.unlimited and opts.stdin:
        opts.warnings.append("Cannot have -U and stdin, unlimited mode disabled.")
        opts.unlimited = False


def parse_args(argv: Optional[Sequence[str]] = None, program: str = "lrzip") -> Options:
    """Parse command-line arguments; ``program`` selects the invocation mode."""
    args = list(sys.argv[1:] if argv is None else argv)
    name = os.path.basename(program)
    opts = Options()
    if name == "lrunzip":
        opts.decompress = True
    elif name == "lrzcat":
        opts.decompress = True
        opts.stdout = True
        opts.lrzcat = True
    elif name == "lrz":
        opts.compat = True
        opts.show_progress = False
        opts.keep_files = False
        opts.nice_val = 0

    shorts = _COMPAT_SHORTS if opts.compat else _SHORTS
    for opt, value in _getopt(args, shorts, _long_table(opts.compat)):
        if opt is None:
            opts.files.append(value)
            continue
        action = _apply(opts, opt, value)
        if action is not Action.RUN:
            opts.action = action
            return opts
    _finalise(opts)
    return opts