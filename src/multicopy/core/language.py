# src/multicopy/core/language.py
import re
from pathlib import PurePath
from typing import Dict

FENCE_LANGUAGES: Dict[str, str] = {
    "ts": "ts", "tsx": "tsx", "mts": "ts", "cts": "ts",
    "js": "javascript", "jsx": "jsx", "mjs": "javascript", "cjs": "javascript",
    "py": "python", "pyi": "python", "pyw": "python",
    "java": "java", "kt": "kotlin", "kts": "kotlin", "scala": "scala", "groovy": "groovy",
    "c": "c", "h": "c",
    "cpp": "cpp", "cc": "cpp", "cxx": "cpp", "hpp": "cpp", "hh": "cpp", "hxx": "cpp",
    "cs": "csharp", "fs": "fsharp",
    "go": "go", "rs": "rust", "swift": "swift", "dart": "dart",
    "rb": "ruby", "php": "php", "pl": "perl", "pm": "perl", "lua": "lua", "r": "r",
    "ex": "elixir", "exs": "elixir", "erl": "erlang", "hs": "haskell", "clj": "clojure",
    "sh": "bash", "bash": "bash", "zsh": "zsh", "fish": "fish",
    "ps1": "powershell", "psm1": "powershell", "bat": "bat", "cmd": "bat",
    "html": "html", "htm": "html", "xml": "xml", "svg": "xml",
    "css": "css", "scss": "scss", "sass": "sass", "less": "less",
    "vue": "vue", "svelte": "svelte",
    "json": "json", "jsonc": "jsonc", "yaml": "yaml", "yml": "yaml", "toml": "toml",
    "ini": "ini", "cfg": "ini", "conf": "ini", "env": "dotenv", "properties": "properties",
    "md": "markdown", "markdown": "markdown", "rst": "rst",
    "sql": "sql", "graphql": "graphql", "gql": "graphql", "proto": "protobuf",
    "tf": "hcl", "tfvars": "hcl", "hcl": "hcl",
    "dockerfile": "dockerfile", "mk": "makefile", "cmake": "cmake", "gradle": "groovy",
}

_PLAIN_TAG = re.compile(r"[a-z0-9+-]+")


def extension_of(path: PurePath) -> str:
    """Lower-cased suffix without the dot, '' when the name has none."""
    return path.suffix[1:].lower()


def fence_language(extension: str) -> str:
    """Maps an extension to a fence tag; '' means a bare fence."""
    ext = extension.lower()
    tag = FENCE_LANGUAGES.get(ext)
    if tag is not None:
        return tag
    if _PLAIN_TAG.fullmatch(ext):
        return ext
    return ""
