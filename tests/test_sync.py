"""Tests for compile, apply, update and check."""

import builtins
import stat

import pytest
from conftest import tracked

from imosid import storage
from imosid.document.section import digest
from imosid.errors import DocumentReadError, DocumentWriteError
from imosid.paths import metafile_path
from imosid.storage import read_document, write_document
from imosid.sync import (
    SourceCache,
    apply_all,
    apply_file,
    check_tree,
    compile_file,
    resolve_source,
    update_document,
)


class TestCompileFile:
    def test_compiles_comment_file(self, write):
        path = write("bashrc", tracked("s", "alias ll='ls -l'\n", targethash="OLD"))
        assert compile_file(path)
        doc = read_document(path)
        assert not doc.modified
        assert doc.get_section("s").targethash == digest("alias ll='ls -l'\n")
        assert not compile_file(path)

    def test_unmanaged_file_untouched(self, write):
        path = write("notes.txt", "plain\n")
        assert not compile_file(path)
        assert path.read_text() == "plain\n"

    def test_metafile_created_then_stable(self, write):
        path = write("settings.json", '{"a": 1}\n')
        assert compile_file(path, use_metafile=True)
        assert metafile_path(path).is_file()
        assert not compile_file(path, use_metafile=True)

        path.write_text('{"a": 2}\n')
        assert read_document(path).modified
        assert compile_file(path, use_metafile=True)
        assert not read_document(path).modified

    def test_explicit_prefix(self, write):
        text = "//... s begin\n//... s hash OLD\nint x;\n//... s end\n"
        path = write("main.unknown", text)
        assert compile_file(path, comment_prefix="//")
        assert not read_document(path, "//").modified


class TestStorage:
    def test_detects_prefix(self, write):
        path = write("init.vim", '"... s begin\n"... s hash X\nset nu\n"... s end\n')
        doc = read_document(path)
        assert doc.comment_prefix == '"'
        assert doc.section_names() == ["s"]

    def test_round_trip_on_disk(self, write, sections_text):
        path = write("script.sh", sections_text)
        write_document(read_document(path))
        assert path.read_text() == sections_text

    def test_read_only_document(self, write, monkeypatch):
        def no_write_access(file, mode="r", *args, **kwargs):
            if mode == "r+b":
                raise PermissionError(13, "Permission denied", str(file))
            return builtins.open(file, mode, *args, **kwargs)

        monkeypatch.setattr(storage, "open", no_write_access, raising=False)
        path = write("locked.sh", tracked("s", "x\n"))
        doc = read_document(path)
        assert doc.section_names() == ["s"]
        assert doc.read_only
        with pytest.raises(DocumentWriteError, match="read-only"):
            write_document(doc)

    def test_non_utf8_raises(self, tmp_path):
        path = tmp_path / "blob.bin"
        path.write_bytes(b"\xff\xfe\x00")
        with pytest.raises(DocumentReadError):
            read_document(path)


class TestApplyFile:
    def test_creates_target(self, write, tmp_path):
        target = tmp_path / "home" / ".bashrc"
        src = write("dotfiles/bashrc", f"#... all target {target}\n" + tracked("s", "x\n"))
        assert apply_file(read_document(src)) == "created"
        created = read_document(target)
        assert created.section_names() == ["s"]
        assert created.target_path is None
        assert not created.modified

    def test_dry_run_creates_nothing(self, write, tmp_path):
        target = tmp_path / "home" / ".bashrc"
        src = write("dotfiles/bashrc", f"#... all target {target}\n" + tracked("s", "x\n"))
        assert apply_file(read_document(src), dry_run=True) == "created"
        assert not target.exists()

    def test_unchanged(self, write, tmp_path):
        target = write("home/.bashrc", tracked("s", "x\n"))
        src = write("dotfiles/bashrc", f"#... all target {target}\n" + tracked("s", "x\n"))
        before = target.stat().st_mtime_ns
        assert apply_file(read_document(src)) == "unchanged"
        assert target.stat().st_mtime_ns == before

    def test_updates_target(self, write):
        target = write("home/.bashrc", "mine\n" + tracked("s", "old\n"))
        src = write("dotfiles/bashrc", f"#... all target {target}\n" + tracked("s", "new\n"))
        assert apply_file(read_document(src)) == "updated"
        assert target.read_text() == tracked("s", "new\n")

    def test_merge_keeps_local_lines(self, write):
        target = write("home/.bashrc", "mine\n" + tracked("s", "old\n") + tracked("local", "l\n"))
        src = write("dotfiles/bashrc", f"#... all target {target}\n" + tracked("s", "new\n"))
        assert apply_file(read_document(src)) == "updated"
        assert target.read_text() == "mine\n" + tracked("s", "new\n") + tracked("local", "l\n")

    def test_local_changes_survive(self, write):
        local = tracked("s", "edited\n", targethash=digest("old\n"))
        target = write("home/.bashrc", local)
        src = write("dotfiles/bashrc", f"#... all target {target}\n" + tracked("s", "new\n"))
        assert apply_file(read_document(src)) == "unchanged"
        assert target.read_text() == local

    def test_no_target(self, write):
        src = write("dotfiles/bashrc", tracked("s", "x\n"))
        assert apply_file(read_document(src)) == "skipped"

    def test_sets_permissions(self, write, tmp_path):
        target = tmp_path / "home" / "secret.sh"
        src = write(
            "dotfiles/secret.sh",
            f"#... all target {target}\n#... all permissions 100600\n" + tracked("s", "x\n"),
        )
        assert apply_file(read_document(src)) == "created"
        assert stat.S_IMODE(target.stat().st_mode) == 0o600

    def test_metafile_source_creates_target(self, write, tmp_path):
        src = write("dotfiles/settings.json", '{"a": 1}\n')
        compile_file(src, use_metafile=True)
        target = tmp_path / "home" / "settings.json"
        sidecar = metafile_path(src)
        sidecar.write_text(sidecar.read_text() + f'target = "{target}"\n')

        assert apply_file(read_document(src)) == "created"
        assert target.read_text() == '{"a": 1}\n'
        created = read_document(target)
        assert created.uses_metafile
        assert created.metafile.source == str(src.resolve())
        assert not created.modified

    def test_relative_metafile_source_stays_updatable(self, write, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        src = write("dotfiles/settings.json", '{"a": 1}\n')
        compile_file(src, use_metafile=True)
        target = tmp_path / "home" / "settings.json"
        sidecar = metafile_path(src)
        sidecar.write_text(sidecar.read_text() + f'target = "{target}"\n')
        assert apply_file(read_document("dotfiles/settings.json")) == "created"

        src.write_text('{"a": 2}\n')
        compile_file(src, use_metafile=True)
        doc = read_document(target)
        assert doc.metafile.source == str(src.resolve())
        assert update_document(doc, SourceCache())
        write_document(doc)
        assert target.read_text() == '{"a": 2}\n'
        assert not read_document(target).modified


class TestApplyAll:
    def test_collects_results(self, write, tmp_path):
        home = tmp_path / "home"
        write("dotfiles/a.sh", f"#... all target {home / 'a.sh'}\n" + tracked("s", "1\n"))
        write("dotfiles/b.sh", tracked("s", "2\n"))
        write("dotfiles/blob.bin", "")
        (tmp_path / "dotfiles" / "bad.sh").write_bytes(b"\xff\xfe")

        result = apply_all(tmp_path / "dotfiles")
        assert [p.endswith("a.sh") for p in result["created"]] == [True]
        assert result["updated"] == []
        assert len(result["errors"]) == 1
        assert result["errors"][0]["path"].endswith("bad.sh")
        assert result["dry_run"] is False
        assert (home / "a.sh").is_file()

    def test_write_failure_does_not_stop_walk(self, write, tmp_path):
        home = tmp_path / "home"
        src = write("dotfiles/a.json", "{}\n")
        compile_file(src, use_metafile=True)
        sidecar = metafile_path(src)
        sidecar.write_text(sidecar.read_text() + f'target = "{home / "a.json"}"\n')
        (home / "a.json.imosid.toml").mkdir(parents=True)
        write("dotfiles/b.sh", f"#... all target {home / 'b.sh'}\n" + tracked("s", "x\n"))

        result = apply_all(tmp_path / "dotfiles")
        assert [e["path"].endswith("a.json") for e in result["errors"]] == [True]
        assert [p.endswith("b.sh") for p in result["created"]] == [True]
        assert (home / "b.sh").is_file()


class TestUpdateDocument:
    def test_relative_source(self, write):
        write("dots/upstream.sh", tracked("s", "new\n"))
        target_path = write("dots/target.sh", tracked("s", "old\n", source="upstream.sh"))
        target = read_document(target_path)
        assert update_document(target, SourceCache())
        section = target.get_section("s")
        assert section.content == "new\n"
        assert section.source == "upstream.sh"

    def test_already_current(self, write):
        write("dots/upstream.sh", tracked("s", "same\n"))
        target = read_document(write("dots/target.sh", tracked("s", "same\n", source="upstream.sh")))
        assert not update_document(target, SourceCache())

    def test_missing_source_logged(self, write, caplog):
        target = read_document(write("dots/target.sh", tracked("s", "x\n", source="gone.sh")))
        assert not update_document(target, SourceCache())
        assert "gone.sh" in caplog.text

    def test_section_filter(self, write):
        write("dots/up.sh", tracked("a", "A\n") + tracked("b", "B\n"))
        body = tracked("a", "a\n", source="up.sh") + tracked("b", "b\n", source="up.sh")
        target = read_document(write("dots/target.sh", body))
        cache = SourceCache()
        assert update_document(target, cache, sections=["b"])
        assert target.get_section("a").content == "a\n"
        assert target.get_section("b").content == "B\n"
        assert len(cache) == 1

    def test_explicit_source(self, write):
        target = read_document(write("target.sh", tracked("s", "old\n")))
        source = read_document(write("other.sh", tracked("s", "new\n")))
        assert update_document(target, SourceCache(), source=source)
        assert target.get_section("s").content == "new\n"


class TestSourceCache:
    def test_reads_once(self, write):
        path = write("up.sh", tracked("s", "x\n"))
        cache = SourceCache()
        first = cache.get(path)
        path.write_text(tracked("s", "changed\n"))
        assert cache.get(path) is first
        assert path in cache
        assert len(cache) == 1

    def test_resolve_source(self, write, tmp_path):
        doc = read_document(write("dots/t.sh", "x\n"))
        assert resolve_source("up.sh", doc) == tmp_path / "dots" / "up.sh"
        assert resolve_source("/abs/up.sh", doc).as_posix() == "/abs/up.sh"


class TestCheckTree:
    def test_reports_state(self, write, tmp_path):
        write("ok.sh", tracked("s", "x\n"))
        write("edited.sh", tracked("s", "y\n", targethash="OLD"))
        write("plain.txt", "nothing tracked\n")
        write(".git/config", "[core]\n")
        result = check_tree(tmp_path)
        assert result["checked"] == 3
        assert [p.endswith("edited.sh") for p in result["modified"]] == [True]
        assert [p.endswith("plain.txt") for p in result["unmanaged"]] == [True]
        assert result["errors"] == []

    def test_metafile_counts_as_managed(self, write, tmp_path):
        path = write("settings.json", "{}\n")
        compile_file(path, use_metafile=True)
        result = check_tree(tmp_path)
        assert result["checked"] == 1
        assert result["unmanaged"] == []
