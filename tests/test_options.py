import pytest

from lrzkit.options import (
    DEFAULT_LEVEL,
    DEFAULT_SUFFIX,
    Action,
    Compression,
    OptionError,
    parse_args,
)


def test_no_arguments_uses_stdin():
    opts = parse_args([], "lrzip")
    assert opts.stdin is True
    assert opts.files == []
    assert opts.action is Action.RUN
    assert opts.level == DEFAULT_LEVEL
    assert opts.suffix == DEFAULT_SUFFIX
    assert opts.compression is Compression.LZMA


def test_program_name_modes():
    assert parse_args(["f"], "/usr/bin/lrunzip").decompress is True
    cat = parse_args(["f"], "lrzcat")
    assert cat.decompress and cat.stdout and cat.lrzcat
    compat = parse_args(["f"], "lrz")
    assert compat.compat is True
    assert compat.keep_files is False
    assert compat.show_progress is False
    assert compat.output is False


def test_compression_selection():
    assert parse_args(["-b", "f"]).compression is Compression.BZIP2
    assert parse_args(["--zpaq", "f"]).compression is Compression.ZPAQ
    assert parse_args(["-b", "--lzma", "f"]).compression is Compression.LZMA


def test_two_compressors_rejected():
    with pytest.raises(OptionError, match="Can only use one"):
        parse_args(["-b", "-g", "f"])


def test_level_option():
    assert parse_args(["-L", "5", "f"]).level == 5
    assert parse_args(["--level=3", "f"]).level == 3
    with pytest.raises(OptionError, match="Invalid compression level"):
        parse_args(["-L", "0", "f"])
    with pytest.raises(OptionError, match="'x'"):
        parse_args(["-L5x", "f"])
    with pytest.raises(OptionError):
        parse_args(["--level", "f"])


def test_fast_and_best_aliases():
    assert parse_args(["--fast", "f"]).level == 1
    assert parse_args(["--best", "f"]).level == 9
    assert parse_args(["-9", "f"], "lrz").level == 9


def test_output_directory_gets_trailing_slash():
    assert parse_args(["-O", "dir", "f"]).outdir == "dir/"
    assert parse_args(["-O", "dir/", "f"]).outdir == "dir/"


def test_outname_conflicts():
    with pytest.raises(OptionError, match="-o and -O"):
        parse_args(["-O", "d", "-o", "x", "f"])
    with pytest.raises(OptionError, match="more than 1 file"):
        parse_args(["-o", "x", "a", "b"])
    with pytest.raises(OptionError, match="recursive"):
        parse_args(["-r", "-o", "x", "a"])
    with pytest.raises(OptionError, match="outputting to stdout"):
        parse_args(["-O", "d", "f"], "lrzcat")


def test_outname_clears_suffix():
    opts = parse_args(["-o", "out", "f"])
    assert opts.outname == "out"
    assert opts.suffix == ""


def test_verbosity_levels():
    assert parse_args(["-v", "f"]).verbosity == 1
    assert parse_args(["-vv", "f"]).verbosity == 2
    assert parse_args(["-vvv", "f"]).verbosity == 2


def test_verbose_wins_over_quiet():
    opts = parse_args(["-v", "-q", "f"])
    assert opts.show_progress is True
    assert "Cannot have -v and -q options. -v wins." in opts.warnings


def test_unlimited_conflicts():
    opts = parse_args(["-U", "-w", "3", "f"])
    assert opts.window == 0
    assert opts.unlimited is True
    assert parse_args(["-U"]).unlimited is False


def test_early_actions_stop_parsing():
    assert parse_args(["-h", "-x"]).action is Action.HELP
    assert parse_args(["-V"]).action is Action.VERSION
    assert parse_args(["-L"], "lrz").action is Action.LICENSE


def test_unknown_option_requests_usage():
    with pytest.raises(OptionError) as info:
        parse_args(["-x", "f"])
    assert info.value.show_usage is True


def test_check_sets_hash():
    opts = parse_args(["--check", "f"])
    assert opts.check and opts.hash


def test_compat_c_writes_stdout():
    opts = parse_args(["-c", "f"], "lrz")
    assert opts.stdout is True
    assert opts.keep_files is True
    assert opts.check is False


def test_test_only_refuses_deletion():
    with pytest.raises(OptionError, match="Doubt"):
        parse_args(["-D", "-t", "f"])
    assert parse_args(["-t", "f"]).test_only is True


def test_encrypt_passphrase():
    opts = parse_args(["--encrypt=secret", "f"])
    assert opts.encrypt is True
    assert opts.passphrase == "secret"
    assert parse_args(["-e", "f"]).passphrase is None


def test_maxram_in_hundreds_of_mb():
    assert parse_args(["-m", "2", "f"]).ramsize == 2 * 1024 * 1024 * 100


@pytest.mark.parametrize(
    "args,message",
    [
        (["-N", "21", "f"], "Invalid nice value"),
        (["-p", "0", "f"], "at least one thread"),
        (["-w", "0", "f"], "Window must be positive"),
        (["-p", "2z", "f"], "Extra characters after number of threads"),
    ],
)
def test_numeric_errors(args, message):
    with pytest.raises(OptionError, match=message):
        parse_args(args)


def test_nice_value_accepted():
    opts = parse_args(["-N", "-5", "f"])
    assert opts.nice_val == -5
    assert opts.nice_set is True


def test_operands_are_permuted():
    opts = parse_args(["file", "-d"])
    assert opts.files == ["file"]
    assert opts.decompress is True


def test_double_dash_ends_options():
    opts = parse_args(["--", "-d"])
    assert opts.files == ["-d"]
    assert opts.decompress is False


def test_long_option_abbreviation_and_ambiguity():
    assert parse_args(["--decomp", "f"]).decompress is True
    with pytest.raises(OptionError, match="ambiguous"):
        parse_args(["--ke", "f"])


def test_required_long_argument_missing():
    with pytest.raises(OptionError, match="requires an argument"):
        parse_args(["--threshold"])