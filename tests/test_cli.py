"""Tests for the command-line interface.

Taichi is initialized once per session by conftest.py; tests that call main()
replace init_taichi so the session's fields are not torn down.
"""

import io
import os

import numpy as np
import pytest
from PIL import Image as PILImage

from sphere_tracer import cli
from sphere_tracer.config import RenderConfig


@pytest.fixture
def no_reinit(monkeypatch):
    calls = []
    monkeypatch.setattr(cli, "init_taichi", lambda config: calls.append(config) or "cpu")
    return calls


@pytest.fixture
def clean_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith("SPHERE_TRACER_"):
            monkeypatch.delenv(name)


def _parse_ppm(text):
    lines = text.splitlines()
    assert lines[0] == "P3"
    width, height = (int(x) for x in lines[1].split())
    assert lines[2] == "255"
    values = np.array([[int(v) for v in line.split()] for line in lines[3:]])
    return width, height, values


class TestParser:
    def test_defaults_follow_config(self):
        args = cli.build_parser(RenderConfig(width=64, scene="single")).parse_args([])
        assert args.width == 64
        assert args.scene == "single"
        assert args.samples_per_pixel == 100
        assert args.output is None

    def test_options(self):
        args = cli.build_parser().parse_args(
            [
                "--width", "40",
                "--height", "20",
                "--samples", "3",
                "--max-depth", "7",
                "--seed", "9",
                "--scene", "random",
                "-o", "out.png",
                "--log-level", "debug",
            ]
        )
        config = cli.config_from_args(args)

        assert (config.width, config.height) == (40, 20)
        assert config.samples_per_pixel == 3
        assert config.max_depth == 7
        assert config.seed == 9
        assert config.scene == "random"
        assert config.output == "out.png"
        assert config.log_level == "DEBUG"

    def test_quiet_overrides_level(self):
        args = cli.build_parser().parse_args(["--quiet", "--log-level", "DEBUG"])
        assert cli.config_from_args(args).log_level == "WARNING"

    def test_debug_flag_can_be_turned_off(self):
        parser = cli.build_parser(RenderConfig(debug=True))
        assert parser.parse_args([]).debug is True
        assert parser.parse_args(["--no-debug"]).debug is False
        assert cli.build_parser().parse_args(["--debug"]).debug is True

    def test_unknown_scene_exits(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["--scene", "teapot"])


class TestRenderScene:
    def test_writes_ppm_to_stream(self):
        config = RenderConfig(
            width=16, height=8, samples_per_pixel=2, max_depth=5, seed=4, scene="single"
        )
        stream = io.StringIO()

        assert cli.render_scene(config, stdout=stream) == 4

        width, height, values = _parse_ppm(stream.getvalue())
        assert (width, height) == (16, 8)
        assert values.shape == (16 * 8, 3)
        assert values.min() >= 0 and values.max() <= 255

    def test_seeded_output_is_reproducible(self):
        config = RenderConfig(
            width=12, height=6, samples_per_pixel=2, max_depth=5, seed=21, scene="showcase"
        )
        first, second = io.StringIO(), io.StringIO()
        cli.render_scene(config, stdout=first)
        cli.render_scene(config, stdout=second)
        assert first.getvalue() == second.getvalue()


class TestMain:
    def test_renders_png(self, tmp_path, no_reinit, clean_env):
        output = tmp_path / "scene.png"
        status = cli.main(
            [
                "--width", "10",
                "--height", "5",
                "--samples", "1",
                "--max-depth", "3",
                "--seed", "1",
                "--scene", "single",
                "--quiet",
                "-o", str(output),
            ]
        )

        assert status == 0
        assert len(no_reinit) == 1
        with PILImage.open(output) as image:
            assert image.size == (10, 5)

    def test_environment_defaults(self, tmp_path, no_reinit, clean_env, monkeypatch):
        output = tmp_path / "scene.ppm"
        monkeypatch.setenv("SPHERE_TRACER_WIDTH", "6")
        monkeypatch.setenv("SPHERE_TRACER_HEIGHT", "4")
        monkeypatch.setenv("SPHERE_TRACER_SAMPLES_PER_PIXEL", "1")
        monkeypatch.setenv("SPHERE_TRACER_SCENE", "single")

        assert cli.main(["--quiet", "--seed", "2", "-o", str(output)]) == 0
        assert output.read_text().startswith("P3\n6 4\n255\n")

    def test_invalid_value_exits(self, no_reinit, clean_env):
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["--samples", "0"])
        assert excinfo.value.code == 2
        assert no_reinit == []

    def test_bad_environment_exits(self, no_reinit, clean_env, monkeypatch):
        monkeypatch.setenv("SPHERE_TRACER_WIDTH", "wide")
        with pytest.raises(SystemExit) as excinfo:
            cli.main([])
        assert excinfo.value.code == 2

    def test_render_failure_returns_one(self, no_reinit, clean_env, monkeypatch):
        def fail(config):
            raise RuntimeError("boom")

        monkeypatch.setattr(cli, "render_scene", fail)
        assert cli.main(["--quiet"]) == 1

    def test_stdout_carries_only_the_image(self, capfd, monkeypatch, clean_env):
        def noisy_init(config):
            print("[Taichi] Starting on arch=x64")
            os.write(1, b"[Taichi] native message\n")
            return "cpu"

        monkeypatch.setattr(cli, "init_taichi", noisy_init)
        capfd.readouterr()

        status = cli.main(
            [
                "--width", "4",
                "--height", "2",
                "--samples", "1",
                "--seed", "1",
                "--scene", "single",
                "--quiet",
            ]
        )
        captured = capfd.readouterr()

        assert status == 0
        lines = captured.out.splitlines()
        assert lines[0] == "P3"
        assert lines[1:3] == ["4 2", "255"]
        assert len(lines) == 3 + 4 * 2
        assert "[Taichi] Starting on arch=x64" in captured.err
        assert "[Taichi] native message" in captured.err

    def test_stdout_restored_after_main(self, capfd, no_reinit, clean_env, tmp_path):
        output = tmp_path / "out.ppm"
        cli.main(
            [
                "--width", "2",
                "--height", "2",
                "--samples", "1",
                "--scene", "single",
                "--quiet",
                "-o", str(output),
            ]
        )
        capfd.readouterr()

        print("after")
        assert capfd.readouterr().out == "after\n"
