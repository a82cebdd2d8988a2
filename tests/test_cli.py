"""End-to-end tests for the CLI commands."""

import io
from unittest.mock import MagicMock, patch

import pikepdf
import pytest
from PIL import Image

from pagedeck.cli import main
from pagedeck.utils.config_manager import ConfigManager


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    config = ConfigManager(config_path=str(tmp_path / "config" / "settings.json"))
    monkeypatch.setattr("pagedeck.utils.config_manager._config_manager", config)
    return config


@pytest.fixture
def inputs(tmp_path, pdf_bytes):
    a = tmp_path / "a.pdf"
    b = tmp_path / "b.pdf"
    a.write_bytes(pdf_bytes(3, width_base=100))
    b.write_bytes(pdf_bytes(2, width_base=200))
    return a, b


def _open(path):
    return pikepdf.open(io.BytesIO(path.read_bytes()))


class TestInfo:
    def test_lists_combined_sequence(self, inputs, capsys):
        assert main(["info", str(inputs[0]), str(inputs[1])]) == 0
        out = capsys.readouterr().out
        assert "Total: 5 pages" in out
        assert "b.pdf p.2" in out

    def test_missing_input(self, tmp_path, capsys):
        assert main(["info", str(tmp_path / "nope.pdf")]) == 1
        assert "not found" in capsys.readouterr().err

    def test_invalid_pdf(self, tmp_path, capsys):
        bad = tmp_path / "bad.pdf"
        bad.write_bytes(b"junk")
        assert main(["info", str(bad)]) == 1
        assert "could not load bad.pdf" in capsys.readouterr().err


class TestAssemble:
    def test_applies_operations_in_order(self, inputs, tmp_path):
        out = tmp_path / "out.pdf"
        code = main(
            [
                "assemble",
                str(inputs[0]),
                str(inputs[1]),
                "-o",
                str(out),
                "--op",
                "delete:2",
                "--op",
                "move:4:1",
                "--op",
                "rotate-right:1",
            ]
        )
        assert code == 0
        with _open(out) as pdf:
            assert [int(p.mediabox[2]) for p in pdf.pages] == [201, 100, 102, 200]
            assert int(pdf.pages[0].obj.get("/Rotate", 0)) == 90

    def test_undo_then_move_many(self, inputs, tmp_path):
        out = tmp_path / "out.pdf"
        code = main(
            [
                "assemble",
                str(inputs[0]),
                "-o",
                str(out),
                "--op",
                "delete:1,3",
                "--op",
                "undo",
                "--op",
                "move-many:1,3:4",
            ]
        )
        assert code == 0
        with _open(out) as pdf:
            assert [int(p.mediabox[2]) for p in pdf.pages] == [101, 100, 102]

    def test_rotated_range_is_undone_in_one_step(self, inputs, tmp_path):
        out = tmp_path / "out.pdf"
        code = main(
            [
                "assemble",
                str(inputs[0]),
                "-o",
                str(out),
                "--op",
                "rotate-right:1-3",
                "--op",
                "undo",
            ]
        )
        assert code == 0
        with _open(out) as pdf:
            assert [int(p.obj.get("/Rotate", 0)) for p in pdf.pages] == [0, 0, 0]

    def test_rotated_range(self, inputs, tmp_path):
        out = tmp_path / "out.pdf"
        code = main(
            ["assemble", str(inputs[0]), "-o", str(out), "--op", "rotate-left:2-3"]
        )
        assert code == 0
        with _open(out) as pdf:
            assert [int(p.obj.get("/Rotate", 0)) for p in pdf.pages] == [0, 270, 270]

    def test_metadata(self, inputs, tmp_path, isolated_config):
        isolated_config.set("metadata.author", "Config Author", save_immediately=False)
        out = tmp_path / "out.pdf"
        code = main(["assemble", str(inputs[0]), "-o", str(out), "--subject", "Scans"])
        assert code == 0
        with _open(out) as pdf:
            assert str(pdf.docinfo["/Title"]) == "a"
            assert str(pdf.docinfo["/Author"]) == "Config Author"
            assert str(pdf.docinfo["/Subject"]) == "Scans"

    def test_bad_operation(self, inputs, tmp_path, capsys):
        code = main(["assemble", str(inputs[0]), "-o", str(tmp_path / "o.pdf"), "--op", "x:1"])
        assert code == 1
        assert "Unknown operation" in capsys.readouterr().err

    def test_deleting_everything_fails(self, inputs, tmp_path, capsys):
        out = tmp_path / "out.pdf"
        code = main(["assemble", str(inputs[1]), "-o", str(out), "--op", "delete:1-2"])
        assert code == 1
        assert "No pages to merge" in capsys.readouterr().err
        assert not out.exists()


class TestRender:
    def test_writes_image(self, inputs, tmp_path, capsys):
        buf = io.BytesIO()
        Image.new("RGB", (30, 10), "white").save(buf, format="PNG")
        result = MagicMock(returncode=0, stdout=buf.getvalue(), stderr=b"")
        out = tmp_path / "page.png"

        with patch("pagedeck.services.page_renderer.subprocess.run", return_value=result):
            code = main(
                ["render", str(inputs[0]), "--page", "2", "--rotation", "90", "-o", str(out)]
            )

        assert code == 0
        with Image.open(out) as image:
            assert image.size == (10, 30)
        assert "10x30" in capsys.readouterr().out

    def test_page_out_of_range(self, inputs, tmp_path, capsys):
        code = main(["render", str(inputs[1]), "--page", "5", "-o", str(tmp_path / "p.png")])
        assert code == 1
        assert "out of range" in capsys.readouterr().err


class TestNoCommand:
    def test_prints_help(self, capsys):
        assert main([]) == 0
        assert "pagedeck-cli" in capsys.readouterr().out
