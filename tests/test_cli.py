import argparse
import logging
import os

import numpy as np
import pytest
from stl import mesh

from image2relief.cli import build_parser, main, parse_size, settings_from_args


class TestParseSize:

    def test_valid(self):
        assert parse_size("200x150") == (200, 150)
        assert parse_size("3X4") == (3, 4)

    @pytest.mark.parametrize("value", ["200", "axb", "0x10", "1x2x3"])
    def test_invalid(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_size(value)


class TestSettingsFromArgs:

    def test_defaults(self):
        settings = settings_from_args(build_parser().parse_args(["in.png"]))
        assert settings.base_thickness == 3.0
        assert settings.pixel_size == 1.0
        assert settings.normalize_rows and settings.center
        assert settings.normals == 'zero'

    def test_flags(self):
        args = build_parser().parse_args(
            ["in.png", "-b", "1.5", "-p", "0.2", "--no-normalize", "--no-center", "--normals", "computed"])
        settings = settings_from_args(args)
        assert (settings.base_thickness, settings.pixel_size) == (1.5, 0.2)
        assert not settings.normalize_rows
        assert not settings.center
        assert settings.normals == 'computed'

    def test_legacy_ignores_pixel_size(self):
        settings = settings_from_args(build_parser().parse_args(["in.png", "--legacy", "-p", "4"]))
        assert settings.pixel_size == 1.0
        assert not settings.normalize_rows
        assert not settings.center

    def test_legacy_warns_about_pixel_size(self, caplog):
        with caplog.at_level(logging.WARNING, logger='image2relief.cli'):
            settings_from_args(build_parser().parse_args(["in.png", "--legacy", "-p", "4"]))
        assert "ignoring pixel size 4.0" in caplog.text

    def test_legacy_default_pixel_size_is_quiet(self, caplog):
        with caplog.at_level(logging.WARNING, logger='image2relief.cli'):
            settings_from_args(build_parser().parse_args(["in.png", "--legacy"]))
        assert caplog.records == []


class TestMain:

    def test_converts_to_sibling_stl(self, make_png):
        path = make_png(np.full((2, 3), 200), name="photo.png")
        assert main([path]) == 0
        output = os.path.splitext(path)[0] + '.stl'
        assert len(mesh.Mesh.from_file(output).vectors) == 12 * 6

    def test_output_and_resize(self, make_png, tmp_path):
        path = make_png(np.full((20, 10), 30))
        output = tmp_path / "custom.stl"
        assert main([path, "-o", str(output), "--size", "4x2", "--fit", "stretch", "--ascii"]) == 0
        assert output.read_bytes().startswith(b"solid")
        assert len(mesh.Mesh.from_file(str(output)).vectors) == 12 * 8

    def test_invalid_pixel_size(self, make_png):
        path = make_png(np.full((2, 2), 127))
        assert main([path, "-p", "0"]) == 1

    def test_missing_input(self, tmp_path):
        assert main([str(tmp_path / "missing.png")]) == 1

    def test_bad_size_argument(self, make_png):
        path = make_png(np.full((2, 2), 127))
        with pytest.raises(SystemExit) as excinfo:
            main([path, "--size", "wide"])
        assert excinfo.value.code == 2
