"""
Tests for the framegrade command line interface.
"""

import pytest
import numpy as np
import cv2
import yaml
from click.testing import CliRunner

from cli import main
from framegrade import __version__
from framegrade.io import load_image
from framegrade.processing.lut import identity_lut, save_lut, load_lut_file


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def frame(tmp_path):
    """16x8 PNG with a horizontal gray ramp."""
    ramp = np.tile(np.linspace(20, 235, 16).astype(np.uint8), (8, 1))
    path = tmp_path / "frame.png"
    cv2.imwrite(str(path), np.stack([ramp, ramp, ramp], axis=-1))
    return path


class TestBasics:

    def test_version(self, runner):
        result = runner.invoke(main, ['version'])
        assert result.exit_code == 0
        assert f"FrameGrade v{__version__}" in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(main, ['--help'])
        assert result.exit_code == 0
        for command in ('grade', 'grade-dir', 'histogram', 'lut', 'mask'):
            assert command in result.output

    def test_custom_config(self, runner, tmp_path, frame):
        config = tmp_path / "config.yaml"
        config.write_text("grading:\n  lut_export_size: 3\n")
        out = tmp_path / "small.cube"
        result = runner.invoke(main, ['-c', str(config), 'lut', 'export', str(out)])
        assert result.exit_code == 0, result.output
        assert "LUT_3D_SIZE 3" in out.read_text()


class TestGradeCommands:

    def test_grade_brightens(self, runner, tmp_path, frame):
        out = tmp_path / "graded.png"
        result = runner.invoke(main, ['grade', str(frame), str(out), '--exposure', '1'])
        assert result.exit_code == 0, result.output
        assert "Graded frame.png" in result.output

        before = load_image(frame).pixels[:, :, 0].astype(int)
        after = load_image(out).pixels[:, :, 0].astype(int)
        assert np.all(after >= before)
        assert after.sum() > before.sum()

    def test_grade_file_and_flag_override(self, runner, tmp_path, frame):
        grade_file = tmp_path / "grade.yaml"
        grade_file.write_text(yaml.safe_dump({
            'options': {'saturation': -100, 'exposure': 2},
            'curves': {'red': [255, 0]},
        }))
        out = tmp_path / "graded.png"
        result = runner.invoke(main, ['-q', 'grade', str(frame), str(out),
                                      '--grade-file', str(grade_file), '--exposure', '0'])
        assert result.exit_code == 0, result.output
        assert result.output == ""

        before = load_image(frame).pixels
        after = load_image(out).pixels
        np.testing.assert_array_equal(after[:, :, 0], 255 - before[:, :, 0])
        np.testing.assert_array_equal(after[:, :, 1], before[:, :, 1])

    @pytest.mark.parametrize('grade', [
        {'wheels': {'toe': {'lift': 0.1}}},
        {'wheels': {'shadows': {'lift': 0.1, 'offset': 2}}},
        {'curves': {'alpha': [0, 255]}},
        {'options': ['exposure', 1]},
    ])
    def test_grade_file_with_bad_sections(self, runner, tmp_path, frame, grade):
        grade_file = tmp_path / "grade.yaml"
        grade_file.write_text(yaml.safe_dump(grade))
        result = runner.invoke(main, ['grade', str(frame), str(tmp_path / "o.png"),
                                      '--grade-file', str(grade_file)])
        assert result.exit_code == 2
        assert "invalid grade" in result.output
        assert not isinstance(result.exception, TypeError)

    def test_grade_with_lut(self, runner, tmp_path, frame):
        lut_path = tmp_path / "identity.cube"
        save_lut(identity_lut(5), lut_path)
        out = tmp_path / "graded.png"
        result = runner.invoke(main, ['grade', str(frame), str(out), '--lut', str(lut_path),
                                      '--lut-strength', '50', '--lut-blend', 'screen'])
        assert result.exit_code == 0, result.output
        assert load_image(out).pixels[:, :, 0].mean() > load_image(frame).pixels[:, :, 0].mean()

    def test_grade_missing_input(self, runner, tmp_path):
        result = runner.invoke(main, ['grade', str(tmp_path / "none.png"), str(tmp_path / "o.png")])
        assert result.exit_code == 2

    def test_grade_unreadable_input(self, runner, tmp_path):
        bad = tmp_path / "bad.png"
        bad.write_bytes(b"garbage")
        result = runner.invoke(main, ['grade', str(bad), str(tmp_path / "o.png")])
        assert result.exit_code == 1

    def test_grade_dir(self, runner, tmp_path, frame):
        frames = tmp_path / "frames"
        frames.mkdir()
        for i in range(3):
            (frames / f"f{i:03d}.png").write_bytes(frame.read_bytes())
        (frames / "readme.txt").write_text("not a frame")

        out_dir = tmp_path / "graded"
        result = runner.invoke(main, ['-q', 'grade-dir', str(frames), str(out_dir),
                                      '--contrast', '30', '--workers', '2', '--suffix', '.jpg'])
        assert result.exit_code == 0, result.output
        assert sorted(p.name for p in out_dir.iterdir()) == ["f000.jpg", "f001.jpg", "f002.jpg"]

    def test_grade_dir_reports_failures(self, runner, tmp_path):
        frames = tmp_path / "frames"
        frames.mkdir()
        (frames / "broken.png").write_bytes(b"garbage")
        result = runner.invoke(main, ['grade-dir', str(frames), str(tmp_path / "out")])
        assert result.exit_code == 1
        assert "GRADING SUMMARY" in result.output

    def test_grade_dir_empty(self, runner, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()
        result = runner.invoke(main, ['grade-dir', str(empty), str(tmp_path / "out")])
        assert result.exit_code == 1

    def test_histogram(self, runner, frame):
        result = runner.invoke(main, ['histogram', str(frame), '--bins', '8'])
        assert result.exit_code == 0, result.output
        assert "frame.png: 16x8" in result.output
        assert "Luminance" in result.output


class TestLUTCommands:

    def test_export_then_info(self, runner, tmp_path):
        out = tmp_path / "look.cube"
        result = runner.invoke(main, ['lut', 'export', str(out), '--size', '5', '--contrast', '20'])
        assert result.exit_code == 0, result.output

        result = runner.invoke(main, ['lut', 'info', str(out)])
        assert result.exit_code == 0, result.output
        assert "Size:       5" in result.output
        assert "Format:     cube" in result.output
        assert "Generated by FrameGrade" in result.output

    def test_export_3dl(self, runner, tmp_path):
        out = tmp_path / "look.3dl"
        result = runner.invoke(main, ['lut', 'export', str(out), '--size', '9', '--hue', '15'])
        assert result.exit_code == 0, result.output
        assert out.read_text().startswith("Mesh 3 12")

    def test_apply_identity(self, runner, tmp_path, frame):
        lut_path = tmp_path / "identity.3dl"
        save_lut(identity_lut(3), lut_path)
        out = tmp_path / "applied.png"
        result = runner.invoke(main, ['lut', 'apply', str(lut_path), str(frame), str(out)])
        assert result.exit_code == 0, result.output
        np.testing.assert_array_equal(load_image(out).pixels, load_image(frame).pixels)

    def test_builtins_listing(self, runner):
        result = runner.invoke(main, ['lut', 'builtins'])
        assert result.exit_code == 0, result.output
        assert 'cinematic_orange_teal' in result.output
        assert 'Landscape Vivid' in result.output

    def test_write_builtin(self, runner, tmp_path):
        out = tmp_path / 'vintage.cube'
        result = runner.invoke(main, ['lut', 'builtin', 'Vintage Film', str(out), '--size', '3'])
        assert result.exit_code == 0, result.output
        written = load_lut_file(out)
        assert written.title == 'Vintage Film'
        assert written.lookup(0, 0, 0) == pytest.approx((0.05, 0.03, 0.0), abs=1e-6)

    def test_unknown_builtin(self, runner, tmp_path):
        result = runner.invoke(main, ['lut', 'builtin', 'sepia', str(tmp_path / 'x.cube')])
        assert result.exit_code == 2
        assert not (tmp_path / 'x.cube').exists()

    def test_info_rejects_malformed_file(self, runner, tmp_path):
        bad = tmp_path / "bad.cube"
        bad.write_text("LUT_3D_SIZE 2\n0 0 0\n")
        result = runner.invoke(main, ['lut', 'info', str(bad)])
        assert result.exit_code == 1


class TestMaskCommands:

    def test_luminance_mask(self, runner, tmp_path, frame):
        out = tmp_path / "mask.png"
        result = runner.invoke(main, ['mask', 'luminance', str(frame), str(out),
                                      '--min', '128', '--max', '255'])
        assert result.exit_code == 0, result.output
        mask = load_image(out).pixels[:, :, 0]
        assert mask[0, 0] == 0
        assert mask[0, -1] == 255

    def test_color_mask(self, runner, tmp_path, frame):
        out = tmp_path / "mask.png"
        result = runner.invoke(main, ['mask', 'color', str(frame), str(out),
                                      '--target', '20', '20', '20', '--tolerance', '1', '--invert'])
        assert result.exit_code == 0, result.output
        mask = load_image(out).pixels[:, :, 0]
        assert mask[0, 0] == 0
        assert mask[0, -1] == 255

    def test_gradient_mask(self, runner, tmp_path, frame):
        out = tmp_path / "mask.png"
        result = runner.invoke(main, ['mask', 'gradient', str(frame), str(out),
                                      '--start', '0,0', '--end', '15,0',
                                      '--stop', '0,0', '--stop', '1,1'])
        assert result.exit_code == 0, result.output
        mask = load_image(out).pixels[:, :, 0]
        assert mask[0, 0] == 0
        assert mask[0, 15] == 255

    def test_gradient_bad_point(self, runner, tmp_path, frame):
        result = runner.invoke(main, ['mask', 'gradient', str(frame), str(tmp_path / "m.png"),
                                      '--start', 'left', '--end', '15,0'])
        assert result.exit_code != 0

    def test_composite_with_target(self, runner, tmp_path, frame):
        spec = tmp_path / "layers.yaml"
        spec.write_text(yaml.safe_dump({'layers': [
            {'name': 'Bright', 'type': 'luminance', 'parameters': {'min': 128, 'max': 255}},
            {'name': 'Hidden', 'type': 'gradient', 'visible': False,
             'parameters': {'start': [0, 0], 'end': [15, 0]}},
        ]}))
        target = tmp_path / "black.png"
        cv2.imwrite(str(target), np.zeros((8, 16, 3), dtype=np.uint8))

        out = tmp_path / "composite.png"
        saved_mask = tmp_path / "combined.png"
        result = runner.invoke(main, ['mask', 'composite', str(frame), str(out),
                                      '--mask-spec', str(spec), '--target', str(target),
                                      '--save-mask', str(saved_mask)])
        assert result.exit_code == 0, result.output
        assert "Composited 1 of 2 layers" in result.output

        pixels = load_image(out).pixels
        source = load_image(frame).pixels
        assert pixels[0, 0, 0] == 0
        assert pixels[0, -1, 0] == source[0, -1, 0]
        assert saved_mask.exists()

    def test_composite_invalid_spec(self, runner, tmp_path, frame):
        spec = tmp_path / "layers.yaml"
        spec.write_text(yaml.safe_dump([{'name': 'Broken', 'type': 'sparkle'}]))
        result = runner.invoke(main, ['mask', 'composite', str(frame), str(tmp_path / "o.png"),
                                      '--mask-spec', str(spec)])
        assert result.exit_code == 1

    @pytest.mark.parametrize('stops', [
        [{'position': 0, 'opacity': 1}],
        [[0, 1, 0.5]],
        ['left'],
    ])
    def test_composite_bad_gradient_stops(self, runner, tmp_path, frame, stops):
        spec = tmp_path / "layers.yaml"
        spec.write_text(yaml.safe_dump([{'name': 'Ramp', 'type': 'gradient', 'parameters': {
            'start': [0, 0], 'end': [15, 0], 'stops': stops}}]))
        result = runner.invoke(main, ['mask', 'composite', str(frame), str(tmp_path / "o.png"),
                                      '--mask-spec', str(spec)])
        assert result.exit_code == 1
        assert "Invalid mask spec" in result.output


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
