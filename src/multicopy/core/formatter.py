# src/multicopy/core/formatter.py
from dataclasses import dataclass

from multicopy.config import BundleConfig
from multicopy.core.language import fence_language
from multicopy.models import FileEntry

FENCE = "```"
FENCE_CLOSE = "\n" + FENCE
JSON_MARKER = "\n/* ...JSON truncated... */"
JSON_MARKER_MARGIN = 64


@dataclass(frozen=True)
class FormattedBlock:
    block: str
    fence_lang: str
    meta_text: str
    body: str


def byte_length(text: str) -> int:
    return len(text.encode("utf-8"))


def truncate_utf8(text: str, limit: int) -> str:
    """
    Keeps at most ``limit`` encoded bytes of ``text``.
    A multi-byte character cut in half at the boundary is dropped.
    """
    raw = text.encode("utf-8")
    if len(raw) <= limit:
        return text
    return raw[:max(0, limit)].decode("utf-8", errors="ignore")


def cap_json_body(body: str, extension: str, max_json_bytes: int) -> str:
    """Caps a JSON body to ``max_json_bytes`` before it is fenced."""
    if extension != "json" or byte_length(body) <= max_json_bytes:
        return body
    return truncate_utf8(body, max(0, max_json_bytes - JSON_MARKER_MARGIN)) + JSON_MARKER


def metadata_text(entry: FileEntry) -> str:
    return (
        f"Name: {entry.path.name}\n"
        f"Size: {entry.size_bytes} bytes\n"
        f"Relative path: {entry.rel_path}\n"
    )


def fence_open(lang: str) -> str:
    return f"{FENCE}{lang}\n" if lang else f"{FENCE}\n"


def block_prefix(meta_text: str, lang: str, config: BundleConfig) -> str:
    """Everything that precedes the body: metadata and the opening fence, in configured order."""
    if not config.include_headers:
        return fence_open(lang)
    if config.metadata_inside_fence:
        return fence_open(lang) + meta_text
    return meta_text + fence_open(lang)


def format_block(entry: FileEntry, config: BundleConfig) -> FormattedBlock:
    """Wraps one decoded file in a labeled fence. Pure; ``entry.text`` must not be None."""
    body = cap_json_body(entry.text, entry.extension, config.max_json_bytes)
    lang = fence_language(entry.extension)
    meta = metadata_text(entry)
    block = block_prefix(meta, lang, config) + body + FENCE_CLOSE
    return FormattedBlock(block=block, fence_lang=lang, meta_text=meta, body=body)
