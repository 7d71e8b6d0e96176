"""Loading Go packages through the go tool and parsing their sources."""

from __future__ import annotations

import json
import os
import subprocess
from dataclasses import dataclass, field

from .syntax import Package, parse_dir


class PackageNotFoundError(LookupError):
    """Raised when a Go package cannot be loaded."""


@dataclass
class GoPackage:
    """A Go package as reported by the go tool."""

    name: str = ""
    pkg_path: str = ""
    go_files: list[str] = field(default_factory=list)
    other_files: list[str] = field(default_factory=list)
    imports: dict[str, "GoPackage"] = field(default_factory=dict, repr=False)


def _decode_stream(text: str) -> list[dict]:
    decoder = json.JSONDecoder()
    objects, pos = [], 0
    text = text.strip()
    while pos < len(text):
        obj, pos = decoder.raw_decode(text, pos)
        objects.append(obj)
        pos = len(text) - len(text[pos:].lstrip())
    return objects


def load(path: str) -> GoPackage:
    """Load a package with its dependencies by import path or relative path."""
    try:
        proc = subprocess.run(
            ["go", "list", "-e", "-json", "-deps", "--", path], capture_output=True, text=True
        )
        objects = _decode_stream(proc.stdout or "")
    except (OSError, json.JSONDecodeError) as exc:
        raise PackageNotFoundError(f"failed to list package {path}: {exc}") from exc
    if not objects:
        raise PackageNotFoundError((proc.stderr or "").strip() or "package not found")

    target = ([o for o in objects if not o.get("DepOnly")] or objects)[-1]
    if target.get("Error"):
        raise PackageNotFoundError(target["Error"].get("Err", "package not found"))

    by_path = {}
    for obj in objects:
        directory = obj.get("Dir", "")
        by_path[obj.get("ImportPath", "")] = GoPackage(
            name=obj.get("Name", ""),
            pkg_path=obj.get("ImportPath", ""),
            go_files=[os.path.join(directory, f) for f in obj.get("GoFiles", [])],
            other_files=[os.path.join(directory, f) for f in obj.get("OtherFiles", [])],
        )
    for obj in objects:
        written = {actual: source for source, actual in obj.get("ImportMap", {}).items()}
        imports = by_path[obj.get("ImportPath", "")].imports
        for actual in obj.get("Imports", []):
            if actual in by_path:
                imports[written.get(actual, actual)] = by_path[actual]
    return by_path[target.get("ImportPath", "")]


def package_dir(package: GoPackage) -> str:
    """The directory holding the package's files."""
    files = package.go_files + package.other_files
    return os.path.dirname(files[0]) if files else package.pkg_path


def package_ast(package: GoPackage) -> Package:
    """Parse the package's directory, returning its syntax tree."""
    return parse_dir(package_dir(package)).get(package.name) or Package(package.name)