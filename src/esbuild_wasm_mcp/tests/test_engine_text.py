"""Tests for CLI flag rendering, log parsing, message formatting and metafile analysis."""

from __future__ import annotations

import pytest

from esbuild_wasm_mcp.engine.flags import entry_point_args, kebab, to_cli_flags
from esbuild_wasm_mcp.engine.messages import analyze_metafile, format_message, format_messages, parse_log
from esbuild_wasm_mcp.foundation.errors import Diagnostic
from esbuild_wasm_mcp.options import compile_pattern

LOG = """\
✘ [ERROR] Could not resolve "react"

    src/index.ts:1:18:
      1 │ import React from "react"
        ╵                   ~~~~~~~

  You can mark the path "react" as external to exclude it from the bundle.

▲ [WARNING] Comparison with -0 using the "===" operator will also match 0 [equals-negative-zero]

    src/math.ts:3:10:
      3 │ if (x === -0) {}
        ╵           ~~

1 error
"""

METAFILE = {
    "inputs": {
        "src/index.ts": {"bytes": 200, "imports": [{"path": "src/util.ts", "kind": "import-statement"}]},
        "src/util.ts": {"bytes": 100, "imports": []},
    },
    "outputs": {
        "out.js": {
            "bytes": 2048,
            "inputs": {"src/index.ts": {"bytesInOutput": 1536}, "src/util.ts": {"bytesInOutput": 512}},
        },
    },
}


# ═════════════════════════════════════════════════════════════════════════════
# CLI Flags
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize("name, flag", [
    ("minify", "minify"), ("minifyWhitespace", "minify-whitespace"), ("outExtension", "out-extension"),
])
def test_kebab(name: str, flag: str) -> None:
    assert kebab(name) == flag


def test_scalar_and_boolean_flags() -> None:
    flags = to_cli_flags({"bundle": True, "minify": False, "format": "esm", "lineLimit": 80, "outdir": None})
    assert flags == ["--bundle", "--minify=false", "--format=esm", "--line-limit=80"]


def test_keyed_and_repeated_flags() -> None:
    flags = to_cli_flags({"define": {"DEBUG": "false"}, "external": ["react", "vue"], "target": ["es2020", "chrome58"]})
    assert flags == ["--define:DEBUG=false", "--external:react", "--external:vue", "--target=es2020,chrome58"]


def test_patterns_render_as_source() -> None:
    assert to_cli_flags({"mangleProps": compile_pattern("^_")}) == ["--mangle-props=^_"]


def test_tsconfig_raw_object_is_json() -> None:
    assert to_cli_flags({"tsconfigRaw": {"compilerOptions": {}}}) == ['--tsconfig-raw={"compilerOptions":{}}']


def test_none_values_dropped_and_objects_validated() -> None:
    assert to_cli_flags({"target": None, "bundle": True}) == ["--bundle"]
    with pytest.raises(ValueError, match="does not accept an object"):
        to_cli_flags({"format": {"x": 1}})


def test_entry_point_args() -> None:
    assert entry_point_args(["a.ts", "b.ts"]) == ["a.ts", "b.ts"]
    assert entry_point_args({"main": "src/index.ts"}) == ["main=src/index.ts"]
    assert entry_point_args([{"in": "src/a.ts", "out": "a"}]) == ["a=src/a.ts"]
    assert entry_point_args(None) == []


# ═════════════════════════════════════════════════════════════════════════════
# Log Parsing
# ═════════════════════════════════════════════════════════════════════════════


def test_parse_log_splits_errors_and_warnings() -> None:
    errors, warnings = parse_log(LOG)
    assert [e.text for e in errors] == ['Could not resolve "react"']
    assert [w.id for w in warnings] == ["equals-negative-zero"]


def test_parse_log_reads_locations_and_notes() -> None:
    (error,), (warning,) = parse_log(LOG)
    assert error.location.file == "src/index.ts"
    assert (error.location.line, error.location.column) == (1, 18)
    assert error.location.line_text == 'import React from "react"'
    assert error.notes[0].text.startswith("You can mark the path")
    assert warning.location.line == 3


def test_parse_log_ignores_noise() -> None:
    assert parse_log("1 error\n\n") == ([], [])


# ═════════════════════════════════════════════════════════════════════════════
# Message Formatting
# ═════════════════════════════════════════════════════════════════════════════


def test_format_error_with_location() -> None:
    text = format_message({
        "text": "Unexpected end of file",
        "location": {"file": "a.ts", "line": 2, "column": 3, "lineText": "let"},
    }, "error")
    assert text.splitlines()[:4] == [
        "✘ [ERROR] Unexpected end of file",
        "",
        "    a.ts:2:3:",
        "      2 │ let",
    ]
    assert text.endswith("\n")


def test_format_warning_without_location() -> None:
    assert format_message(Diagnostic(text="careful", id="x-y"), "warning") == "▲ [WARNING] careful [x-y]\n\n"


def test_format_messages_one_string_each_without_color() -> None:
    out = format_messages([{"text": "a"}, {"text": "b"}], "error")
    assert len(out) == 2
    assert all("\033[" not in s for s in out)


def test_format_with_color_adds_ansi() -> None:
    assert "\033[31m" in format_message({"text": "a"}, "error", color=True)


def test_formatted_parse_round_trip_keeps_text() -> None:
    errors, _ = parse_log(format_message({"text": "boom", "location": {"file": "f.js", "line": 1, "column": 0}}, "error"))
    assert errors[0].text == "boom"
    assert errors[0].location.file == "f.js"


# ═════════════════════════════════════════════════════════════════════════════
# Metafile Analysis
# ═════════════════════════════════════════════════════════════════════════════


def test_analyze_metafile_lists_inputs_by_size() -> None:
    lines = analyze_metafile(METAFILE).splitlines()
    assert lines[1] == "  out.js  2.0kb  100.0%"
    assert lines[2] == "   ├ src/index.ts  1.5kb  75.0%"
    assert lines[3] == "   └ src/util.ts  512b  25.0%"


def test_analyze_metafile_verbose_adds_importers() -> None:
    text = analyze_metafile(METAFILE, verbose=True)
    assert "└ imported by src/index.ts" in text


def test_analyze_empty_metafile() -> None:
    assert analyze_metafile({}).strip() == ""
