"""Plain-text diagnostics: parse esbuild's log output, render messages and metafiles.

esbuild's command line exposes neither ``formatMessages`` nor
``analyzeMetafile``; both are rendered here in esbuild's own text layout, and
``parse_log`` turns the CLI's ``--color=false`` log back into Diagnostics.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

from ..foundation.errors import Diagnostic, JsonDict
from .protocol import MessageKind


_HEADER = re.compile(r"^(?:✘|▲|X|\^)\s+\[(ERROR|WARNING)\]\s+(.*?)(?:\s+\[([a-z0-9-]+)\])?$")
_LOCATION = re.compile(r"^\s{4}(\S.*?):(\d+):(\d+):$")
_SOURCE = re.compile(r"^\s+\d+ │ ?(.*)$")
_NOTE = re.compile(r"^ {2}(\S.*)$")

_ANSI = {"error": "\033[31m", "warning": "\033[33m", "bold": "\033[1m", "green": "\033[32m", "reset": "\033[0m"}


# ─────────────────────────────────────────────────────────────────────────────
# Log parsing
# ─────────────────────────────────────────────────────────────────────────────


def parse_log(text: str) -> tuple[list[Diagnostic], list[Diagnostic]]:
    """Split esbuild's plain-text log into (errors, warnings)."""
    parsed: list[tuple[str, JsonDict]] = []
    message: JsonDict | None = None
    target: JsonDict | None = None  # message or note receiving the next location

    for line in text.splitlines():
        if m := _HEADER.match(line):
            message = {"text": m.group(2), "id": m.group(3) or "", "location": None, "notes": []}
            parsed.append((m.group(1), message))
            target = message
        elif message is None:
            continue
        elif m := _LOCATION.match(line):
            if target is not None:
                target["location"] = {"file": m.group(1), "line": int(m.group(2)),
                                      "column": int(m.group(3)), "lineText": ""}
        elif m := _SOURCE.match(line):
            if target is not None and target["location"] is not None and not target["location"]["lineText"]:
                target["location"]["lineText"] = m.group(1)
        elif m := _NOTE.match(line):
            note: JsonDict = {"text": m.group(1), "location": None, "notes": []}
            message["notes"].append(note)
            target = note

    errors = [Diagnostic.model_validate(msg) for level, msg in parsed if level == "ERROR"]
    warnings = [Diagnostic.model_validate(msg) for level, msg in parsed if level == "WARNING"]
    return errors, warnings


# ─────────────────────────────────────────────────────────────────────────────
# Message formatting
# ─────────────────────────────────────────────────────────────────────────────


def _location_lines(diag: Diagnostic, indent: int, color: bool) -> list[str]:
    loc = diag.location
    if loc is None:
        return []
    pad, gutter = " " * indent, " " * len(str(loc.line))
    where = f"{loc.file}:{loc.line}:{loc.column}:"
    if color:
        where = f"{_ANSI['bold']}{where}{_ANSI['reset']}"
    lines = [f"{pad}{where}"]
    if loc.line_text:
        caret = f"{_ANSI['green']}^{_ANSI['reset']}" if color else "^"
        lines += [f"{pad}  {loc.line} │ {loc.line_text}", f"{pad}  {gutter} ╵ {' ' * loc.column}{caret}"]
    return [*lines, ""]


def format_message(message: Diagnostic | Mapping[str, Any], kind: MessageKind, *, color: bool = False) -> str:
    """Render one message the way esbuild prints it."""
    diag = message if isinstance(message, Diagnostic) else Diagnostic.model_validate(message)
    icon, label = ("✘", "ERROR") if kind == "error" else ("▲", "WARNING")
    header = f"{icon} [{label}] {diag.text}" + (f" [{diag.id}]" if diag.id else "")
    if color:
        header = f"{_ANSI[kind]}{header}{_ANSI['reset']}"

    lines = [header, "", *_location_lines(diag, 4, color)]
    for note in diag.notes:
        lines += [f"  {note.text}", "", *_location_lines(note, 4, color)]
    return "\n".join(lines) + "\n"


def format_messages(
    messages: Sequence[Diagnostic | Mapping[str, Any]], kind: MessageKind, *, color: bool = False,
) -> list[str]:
    return [format_message(m, kind, color=color) for m in messages]


# ─────────────────────────────────────────────────────────────────────────────
# Metafile analysis
# ─────────────────────────────────────────────────────────────────────────────


def _size(n: int) -> str:
    if n < 1024:
        return f"{n}b"
    if n < 1024 * 1024:
        return f"{n / 1024:.1f}kb"
    return f"{n / (1024 * 1024):.1f}mb"


def _importers(metafile: Mapping[str, Any]) -> dict[str, list[str]]:
    """Reverse import graph: file -> files importing it."""
    graph: dict[str, list[str]] = {}
    for path, info in (metafile.get("inputs") or {}).items():
        for imp in info.get("imports") or ():
            if target := imp.get("path"):
                graph.setdefault(target, []).append(path)
    return graph


def analyze_metafile(metafile: Mapping[str, Any], *, verbose: bool = False) -> str:
    """Per-output size breakdown of a build metafile.

    With ``verbose``, each input also lists the files that import it.
    """
    outputs = metafile.get("outputs") or {}
    importers = _importers(metafile) if verbose else {}
    lines: list[str] = [""]

    for out_path, out in sorted(outputs.items(), key=lambda kv: -int(kv[1].get("bytes", 0))):
        total = int(out.get("bytes", 0))
        lines.append(f"  {out_path}  {_size(total)}  100.0%")
        inputs = sorted((out.get("inputs") or {}).items(), key=lambda kv: -int(kv[1].get("bytesInOutput", 0)))
        for i, (in_path, info) in enumerate(inputs):
            size = int(info.get("bytesInOutput", 0))
            pct = (size / total * 100) if total else 0.0
            branch = "└" if i == len(inputs) - 1 else "├"
            lines.append(f"   {branch} {in_path}  {_size(size)}  {pct:.1f}%")
            if verbose:
                stem = " " if branch == "└" else "│"
                lines += [f"   {stem}  └ imported by {src}" for src in importers.get(in_path, ())]
        lines.append("")

    return "\n".join(lines)
