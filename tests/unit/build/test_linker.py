"""Tests for archiving and linking."""

import os
from pathlib import Path

import pytest

from seastar.build.linker import END_GROUP, START_GROUP, LinkError, Linker, LinkMode, archive_name, is_archive, needs_rearchive


class TestLinkCommand:
    """Link group rule."""

    def test_objects_only_have_no_group(self):
        cmd = Linker().build_link_command("gcc", [Path("a.o"), Path("b.o")], Path("out"))

        assert cmd == ["gcc", "a.o", "b.o", "-o", "out"]

    def test_group_wraps_archives(self):
        inputs = [Path("main.o"), Path("deps/c/libc.a"), Path("deps/b/libb.a")]

        cmd = Linker().build_link_command("g++", inputs, Path("target/app"), "-lm -pthread")

        assert cmd == [
            "g++",
            "main.o",
            START_GROUP,
            "deps/c/libc.a",
            "deps/b/libb.a",
            END_GROUP,
            "-lm",
            "-pthread",
            "-o",
            "target/app",
        ]

    def test_group_starts_at_first_archive(self):
        inputs = [Path("a.o"), Path("liba.a"), Path("late.o")]

        cmd = Linker().build_link_command("gcc", inputs, Path("out"))

        assert cmd.index(START_GROUP) == 2
        assert cmd.index(END_GROUP) == 5
        assert cmd.count(START_GROUP) == 1

    def test_archive_command(self):
        cmd = Linker().build_archive_command([Path("a.o"), Path("b.o")], Path("libx.a"))

        assert cmd == ["ar", "rcs", "libx.a", "a.o", "b.o"]

    def test_custom_archiver(self):
        assert Linker(archiver="llvm-ar").build_archive_command([], Path("l.a"))[0] == "llvm-ar"


def test_archive_helpers():
    assert archive_name("ring") == "libring.a"
    assert is_archive(Path("libring.a"))
    assert is_archive(Path("RING.LIB"))
    assert not is_archive(Path("main.o"))


class TestNeedsRearchive:
    """Archives are rebuilt when missing or older than an object."""

    def test_missing_archive(self, tmp_path):
        obj = tmp_path / "ring.c.o"
        obj.write_bytes(b"")

        assert needs_rearchive(tmp_path / "libring.a", [obj])

    def test_archive_newer_than_objects(self, tmp_path):
        obj = tmp_path / "ring.c.o"
        obj.write_bytes(b"")
        archive = tmp_path / "libring.a"
        archive.write_bytes(b"")
        os.utime(obj, (1000, 1000))
        os.utime(archive, (2000, 2000))

        assert not needs_rearchive(archive, [obj])

    def test_object_newer_than_archive(self, tmp_path):
        old = tmp_path / "a.c.o"
        new = tmp_path / "b.c.o"
        archive = tmp_path / "libring.a"
        for path in (old, new, archive):
            path.write_bytes(b"")
        os.utime(old, (1000, 1000))
        os.utime(archive, (2000, 2000))
        os.utime(new, (3000, 3000))

        assert needs_rearchive(archive, [old, new])


class TestLinker:
    """Tests running the archiver and link driver."""

    def test_archive_creates_parent(self, tmp_path, fake_toolchain):
        output = tmp_path / "deps" / "ring" / "libring.a"

        Linker().archive([tmp_path / "ring.c.o"], output)

        assert output.exists()
        assert fake_toolchain.archive_calls() == [["ar", "rcs", str(output), str(tmp_path / "ring.c.o")]]

    def test_archive_replaces_existing_file(self, tmp_path, fake_toolchain):
        output = tmp_path / "libring.a"
        output.write_bytes(b"stale members")
        fake_toolchain.fail["ar"] = "ar: out of space"

        with pytest.raises(LinkError):
            Linker().archive([tmp_path / "ring.c.o"], output)

        assert not output.exists()

    def test_link(self, tmp_path, fake_toolchain):
        output = tmp_path / "target" / "app"

        Linker().link("gcc", [tmp_path / "main.c.o"], output, "-lm")

        assert output.exists()
        assert fake_toolchain.calls[-1][-3:] == ["-lm", "-o", str(output)]

    def test_run_dispatches_on_mode(self, tmp_path, fake_toolchain):
        linker = Linker()

        linker.run(LinkMode.ARCHIVE, "gcc", [tmp_path / "a.o"], tmp_path / "liba.a")
        linker.run(LinkMode.EXECUTABLE, "gcc", [tmp_path / "a.o"], tmp_path / "a")

        assert fake_toolchain.calls[0][:2] == ["ar", "rcs"]
        assert fake_toolchain.calls[1][0] == "gcc"

    def test_link_failure_reports_command(self, tmp_path, fake_toolchain):
        fake_toolchain.fail["gcc"] = "undefined reference to `ring_push'"

        with pytest.raises(LinkError) as exc_info:
            Linker().link("gcc", [tmp_path / "main.c.o"], tmp_path / "app")

        message = str(exc_info.value)
        assert "Linking failed (exit status 1)" in message
        assert "ring_push" in message
        assert exc_info.value.command.startswith("gcc ")

    def test_archiver_not_found(self, tmp_path, fake_toolchain):
        fake_toolchain.missing.add("ar")

        with pytest.raises(LinkError, match="Static library creation failed"):
            Linker().archive([tmp_path / "a.o"], tmp_path / "liba.a")
