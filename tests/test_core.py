# tests/test_core.py
import os
import pytest
from pathlib import Path

from multicopy.config import BundleConfig
from multicopy.core.formatter import (
    FENCE_CLOSE,
    JSON_MARKER,
    byte_length,
    cap_json_body,
    format_block,
    truncate_utf8,
)
from multicopy.core.ignore import build_ignore_spec, expand_braces, filter_ignored
from multicopy.core.language import extension_of, fence_language
from multicopy.core.scanner import SelectionScanner, flatten_selection
from multicopy.core.sniffer import is_binary
from multicopy.host import LocalHost
from multicopy.models import FileEntry


def make_entry(name="a.ts", text="x", size=1, rel_path=None):
    path = Path("/work") / name
    return FileEntry(
        path=path,
        rel_path=rel_path or name,
        extension=extension_of(path),
        size_bytes=size,
        text=text,
    )


# --- Test 1: Binary sniffing ---

def test_empty_buffer_is_text():
    assert is_binary(b"") is False

def test_nul_byte_means_binary():
    assert is_binary(b"hello\0world") is True
    assert is_binary(b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR") is True

def test_nul_after_sniff_window_is_ignored():
    assert is_binary(b"a" * 1024 + b"\0") is False

def test_control_ratio_threshold():
    # Exactly 20% is still text, anything above is binary.
    assert is_binary(b"\x01" * 20 + b"a" * 80) is False
    assert is_binary(b"\x01" * 21 + b"a" * 79) is True

def test_whitespace_controls_are_common():
    assert is_binary(b"\t\n\x0b\x0c\r" * 50) is False


# --- Test 2: Language tags ---

def test_known_extensions():
    assert fence_language("ts") == "ts"
    assert fence_language("py") == "python"
    assert fence_language("yml") == "yaml"
    assert fence_language("JS") == "javascript"

def test_unknown_plain_extension_is_used_as_is():
    assert fence_language("zig") == "zig"
    assert fence_language("C++") == "c++"

def test_unusable_extension_gives_bare_fence():
    assert fence_language("") == ""
    assert fence_language("c#") == ""
    assert fence_language("we ird") == ""

def test_extension_of():
    assert extension_of(Path("src/App.TSX")) == "tsx"
    assert extension_of(Path("Makefile")) == ""
    assert extension_of(Path("archive.tar.gz")) == "gz"


# --- Test 3: Ignore globs ---

@pytest.fixture
def host(tmp_path):
    return LocalHost(tmp_path)

def test_no_globs_returns_input_unchanged(tmp_path, host):
    refs = [tmp_path / "a.ts"]
    assert filter_ignored(refs, (), host) is refs

def test_glob_excludes_matching_files(tmp_path, host):
    refs = [tmp_path / "x.log", tmp_path / "y.ts", tmp_path / "deep" / "z.log"]
    kept = filter_ignored(refs, ["**/*.log"], host)
    assert kept == [tmp_path / "y.ts"]

def test_glob_matching_is_case_insensitive(tmp_path, host):
    refs = [tmp_path / "build" / "OUT.LOG", tmp_path / "Dist" / "app.js"]
    assert filter_ignored(refs, ["**/*.log", "dist/**"], host) == []

def test_glob_matches_dotfiles(tmp_path, host):
    refs = [tmp_path / ".env", tmp_path / "src" / ".hidden.ts"]
    assert filter_ignored(refs, ["**/.*"], host) == []
    assert filter_ignored(refs, ["**/*.ts"], host) == [tmp_path / ".env"]

def test_glob_braces_expand_to_alternatives(tmp_path, host):
    refs = [tmp_path / "a.png", tmp_path / "img" / "b.JPG", tmp_path / "c.ts"]
    assert filter_ignored(refs, ["**/*.{png,jpg}"], host) == [tmp_path / "c.ts"]

def test_expand_braces():
    assert expand_braces("*.{png,jpg}") == ["*.png", "*.jpg"]
    assert expand_braces("{a,b{c,d}}.ts") == ["a.ts", "bc.ts", "bd.ts"]
    assert expand_braces("{x}.ts") == ["{x}.ts"]
    assert expand_braces("plain.ts") == ["plain.ts"]

def test_glob_matches_whole_path_only(tmp_path, host):
    refs = [tmp_path / "src" / "a.ts", tmp_path / "b.ts", tmp_path / "lib" / "c.log", tmp_path / "c.log"]
    # A bare folder name does not pull in the files below it.
    assert filter_ignored(refs[:2], ["src"], host) == refs[:2]
    # A glob without a slash only matches at the top level.
    assert filter_ignored(refs[2:], ["*.log"], host) == [tmp_path / "lib" / "c.log"]
    assert filter_ignored(refs, ["src/**"], host) == refs[1:]

def test_bang_and_hash_are_literal(tmp_path, host):
    refs = [tmp_path / "a.ts", tmp_path / "!b.ts", tmp_path / "#c.ts"]
    # "!a.ts" does not re-include a.ts; it only matches a file literally named "!a.ts".
    assert filter_ignored(refs, ["*.ts", "!a.ts"], host) == []
    assert filter_ignored(refs, ["!b.ts", "#c.ts"], host) == [tmp_path / "a.ts"]

def test_paths_outside_base_are_matched_on_full_path(tmp_path):
    host = LocalHost(tmp_path / "workspace")
    ref = tmp_path / "elsewhere" / "notes.log"
    assert filter_ignored([ref], ["**/*.log"], host) == []

def test_build_ignore_spec_skips_blank_globs():
    matcher = build_ignore_spec(["", "   ", "*.tmp", "build/"])
    assert matcher.matches("a.tmp")
    assert not matcher.matches("a.txt")
    assert not matcher.matches("build/out.js")


# --- Test 4: Selection flattening ---

@pytest.fixture
def project(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "util").mkdir()
    (tmp_path / "src" / "main.ts").write_text("main", encoding="utf-8")
    (tmp_path / "src" / "util" / "helper.ts").write_text("helper", encoding="utf-8")
    (tmp_path / "README.md").write_text("# Readme", encoding="utf-8")
    return tmp_path

def test_flatten_expands_folders_recursively(project, host):
    files = flatten_selection([project / "src", project / "README.md"], host)
    assert sorted(files) == sorted([
        project / "src" / "main.ts",
        project / "src" / "util" / "helper.ts",
        project / "README.md",
    ])
    # The explicitly selected file comes after the folder it was listed after.
    assert files[-1] == project / "README.md"

def test_flatten_deduplicates(project, host):
    main = project / "src" / "main.ts"
    files = flatten_selection([main, project / "src", main], host)
    assert files.count(main) == 1

def test_flatten_missing_path_raises(project, host):
    with pytest.raises(OSError):
        flatten_selection([project / "src", project / "missing"], host)

def test_flatten_survives_symlink_cycle(project, host):
    try:
        os.symlink(project / "src", project / "src" / "util" / "loop", target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not available")

    files = flatten_selection([project / "src"], host)
    names = sorted(p.name for p in files)
    assert names == ["helper.ts", "main.ts"]

def test_flatten_skips_dangling_symlink(project, host):
    broken = project / "src" / "broken.ts"
    try:
        os.symlink(project / "src" / "gone.ts", broken)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not available")

    st = host.stat_path(broken)
    assert st.is_file is False and st.is_directory is False

    files = flatten_selection([project / "src"], host)
    assert sorted(p.name for p in files) == ["helper.ts", "main.ts"]


# --- Test 5: Reading entries ---

def test_read_entry_text_and_binary(project, host):
    (project / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00")
    scanner = SelectionScanner(host)
    text_entry = scanner.read_entry(project / "src" / "main.ts")
    assert text_entry.text == "main"
    assert text_entry.rel_path == "src/main.ts"
    assert text_entry.extension == "ts"
    assert text_entry.size_bytes == 4

    binary_entry = scanner.read_entry(project / "logo.png")
    assert binary_entry.text is None

def test_read_error_becomes_skip(project):
    class FailingHost(LocalHost):
        def read_file_bytes(self, ref):
            raise PermissionError("denied")

    entry = SelectionScanner(FailingHost(project)).read_entry(project / "src" / "main.ts")
    assert entry.text is None

def test_threaded_reads_keep_order(project, host):
    paths = [project / "src" / "util" / "helper.ts", project / "src" / "main.ts", project / "README.md"]
    entries = SelectionScanner(host).read_entries(paths, workers=4)
    assert [e.path for e in entries] == paths


# --- Test 6: Block formatting ---

def test_default_block_has_metadata_before_fence():
    formatted = format_block(make_entry(), BundleConfig())
    assert formatted.block == (
        "Name: a.ts\nSize: 1 bytes\nRelative path: a.ts\n"
        "```ts\nx\n```"
    )
    assert formatted.fence_lang == "ts"

def test_block_without_headers():
    formatted = format_block(make_entry(), BundleConfig(include_headers=False))
    assert formatted.block == "```ts\nx\n```"

def test_block_with_metadata_inside_fence():
    formatted = format_block(make_entry(), BundleConfig(metadata_inside_fence=True))
    assert formatted.block.startswith("```ts\nName: a.ts\n")
    assert formatted.block.endswith("Relative path: a.ts\nx" + FENCE_CLOSE)

def test_block_name_is_final_segment():
    entry = make_entry(name="pkg/mod.py", rel_path="pkg/mod.py")
    formatted = format_block(entry, BundleConfig())
    assert formatted.meta_text.startswith("Name: mod.py\n")
    assert "Relative path: pkg/mod.py\n" in formatted.meta_text

def test_unknown_extension_gets_bare_fence():
    formatted = format_block(make_entry(name="notes.we ird"), BundleConfig(include_headers=False))
    assert formatted.block == "```\nx\n```"

def test_json_body_is_capped():
    body = '{"k": "' + "v" * 5000 + '"}'
    capped = cap_json_body(body, "json", 1024)
    assert capped.endswith(JSON_MARKER)
    assert byte_length(capped) == 1024 - 64 + byte_length(JSON_MARKER)

def test_json_cap_only_applies_to_json():
    body = "v" * 5000
    assert cap_json_body(body, "txt", 1024) == body
    assert cap_json_body("{}", "json", 1024) == "{}"

def test_truncate_utf8_never_splits_characters():
    text = "é" * 10  # two bytes each
    cut = truncate_utf8(text, 5)
    assert cut == "éé"
    assert truncate_utf8(text, 100) == text
    assert truncate_utf8(text, 0) == ""
