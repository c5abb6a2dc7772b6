"""
Tests for mask generation, compositing and the layer stack.
"""

import io

import pytest
import numpy as np
from PIL import Image

from framegrade.errors import BufferShapeError, MaskNotFoundError, MaskLockedError
from framegrade.processing.buffer import PixelBuffer
from framegrade.processing.masking import (
    MaskGenerator, MaskLayer, MaskLayerStack, MaskKind, PathVertex, PathVertexKind,
    VectorMask, LuminanceMask, ColorMask, GradientMask, GradientKind, GradientStop,
    combine_masks, composite_masks, apply_mask, composite_with_target,
    export_mask_png, import_mask, generate_mask
)
from conftest import buffer_from_rgb


def gray_row(*levels):
    return buffer_from_rgb([[[v, v, v] for v in levels]])


def square(closed=True, feather=0.0):
    points = [PathVertex(2, 2), PathVertex(7, 2), PathVertex(7, 7), PathVertex(2, 7)]
    return VectorMask(points=points, closed=closed, feather=feather)


@pytest.fixture
def blank_10():
    return PixelBuffer.blank(10, 10, (0, 0, 0, 255))


class TestLuminanceMask:

    def test_hard_band(self):
        layer = MaskLayer("band", LuminanceMask(100, 200))
        mask = generate_mask(layer, gray_row(50, 150, 250))
        np.testing.assert_array_equal(mask[0], [0.0, 1.0, 0.0])
        assert mask.dtype == np.float32

    def test_soft_band_ramps_from_nearest_edge(self):
        layer = MaskLayer("soft", LuminanceMask(100, 200, softness=50))
        mask = generate_mask(layer, gray_row(125, 150, 190, 90))
        np.testing.assert_allclose(mask[0], [0.5, 1.0, 0.2, 0.0], atol=1e-5)

    def test_swapped_bounds(self):
        params = LuminanceMask(min_luminance=200, max_luminance=100)
        assert (params.min_luminance, params.max_luminance) == (100, 200)


class TestColorMask:

    def test_hard_tolerance(self):
        image = buffer_from_rgb([[[200, 0, 0], [210, 0, 0], [0, 0, 200]]])
        mask = generate_mask(MaskLayer("red", ColorMask((200, 0, 0), tolerance=10)), image)
        np.testing.assert_array_equal(mask[0], [1.0, 1.0, 0.0])

    def test_softness_ramps_near_threshold(self):
        image = buffer_from_rgb([[[200, 0, 0], [230, 0, 0], [250, 0, 0]]])
        layer = MaskLayer("red", ColorMask((200, 0, 0), tolerance=10, softness=50))
        mask = generate_mask(layer, image)[0]
        assert mask[0] == 1.0
        assert 0.0 < mask[1] < 1.0
        assert mask[2] == 0.0

    def test_zero_tolerance_matches_exact_color(self):
        image = buffer_from_rgb([[[10, 20, 30], [10, 20, 31]]])
        mask = generate_mask(MaskLayer("exact", ColorMask((10, 20, 30), tolerance=0)), image)
        np.testing.assert_array_equal(mask[0], [1.0, 0.0])


class TestGradientMask:

    def test_linear_default_stops(self):
        image = PixelBuffer.blank(101, 3)
        layer = MaskLayer("ramp", GradientMask(GradientKind.LINEAR, (0, 0), (100, 0)))
        mask = generate_mask(layer, image)
        assert mask[1, 0] == pytest.approx(1.0)
        assert mask[1, 50] == pytest.approx(0.5)
        assert mask[1, 100] == pytest.approx(0.0)

    def test_outside_endpoints_clamps(self):
        image = PixelBuffer.blank(40, 1)
        layer = MaskLayer("ramp", GradientMask(GradientKind.LINEAR, (10, 0), (20, 0)))
        mask = generate_mask(layer, image)
        assert mask[0, 0] == 1.0
        assert mask[0, 39] == 0.0

    def test_radial(self):
        image = PixelBuffer.blank(100, 100)
        layer = MaskLayer("spot", GradientMask(GradientKind.RADIAL, (50, 50), (60, 50)))
        mask = generate_mask(layer, image)
        assert mask[50, 50] == pytest.approx(1.0)
        assert mask[50, 55] == pytest.approx(0.5)
        assert mask[50, 70] == 0.0

    def test_angular_renders_as_linear(self):
        image = PixelBuffer.blank(21, 2)
        linear = generate_mask(MaskLayer("a", GradientMask("linear", (0, 0), (20, 0))), image)
        angular = generate_mask(MaskLayer("b", GradientMask("angular", (0, 0), (20, 0))), image)
        np.testing.assert_array_equal(linear, angular)

    def test_custom_stops_are_sorted(self):
        image = PixelBuffer.blank(11, 1)
        stops = [GradientStop(1.0, 1.0), GradientStop(0.0, 0.0), GradientStop(0.5, 1.0)]
        layer = MaskLayer("stops", GradientMask(GradientKind.LINEAR, (0, 0), (10, 0), stops))
        mask = generate_mask(layer, image)[0]
        assert mask[0] == 0.0
        assert mask[5] == pytest.approx(1.0)
        assert mask[10] == pytest.approx(1.0)

    def test_degenerate_gradient_is_empty(self):
        image = PixelBuffer.blank(8, 8)
        layer = MaskLayer("dot", GradientMask(GradientKind.LINEAR, (4, 4), (4, 4)))
        assert not generate_mask(layer, image).any()

    def test_empty_stops_are_empty(self):
        image = PixelBuffer.blank(8, 8)
        layer = MaskLayer("none", GradientMask(GradientKind.LINEAR, (0, 0), (8, 0), stops=[]))
        assert not generate_mask(layer, image).any()


class TestVectorMask:

    def test_closed_path_is_filled(self, blank_10):
        mask = generate_mask(MaskLayer("box", square()), blank_10)
        assert mask[4, 4] == 1.0
        assert mask[2, 2] == 1.0
        assert mask[0, 0] == 0.0
        assert mask[9, 9] == 0.0

    def test_open_path_is_filled(self, blank_10):
        opened = generate_mask(MaskLayer("open", square(closed=False)), blank_10)
        closed = generate_mask(MaskLayer("closed", square()), blank_10)
        assert opened[4, 4] == 1.0
        np.testing.assert_array_equal(opened, closed)

    def test_curve_segments(self, blank_10):
        points = [
            PathVertex(0, 5, PathVertexKind.MOVE),
            PathVertex(9, 5, PathVertexKind.CURVE, control1=(3, 0), control2=(6, 0)),
        ]
        mask = generate_mask(MaskLayer("arc", VectorMask(points, closed=False)), blank_10)
        # The arc peaks near y=1.25 and the fill closes it along y=5
        assert mask[5, 0] == 1.0
        assert mask[5, 9] == 1.0
        assert mask[3, 4] == 1.0
        assert mask[0, 4] == 0.0
        assert not mask[6:].any()

    def test_curve_without_controls_is_skipped(self, blank_10):
        points = [PathVertex(1, 1), PathVertex(8, 8, PathVertexKind.CURVE)]
        mask = generate_mask(MaskLayer("bad", VectorMask(points, closed=False)), blank_10)
        assert not mask.any()

    def test_two_point_path_has_no_area(self, blank_10):
        points = [PathVertex(1, 1), PathVertex(8, 8)]
        assert not generate_mask(MaskLayer("segment", VectorMask(points)), blank_10).any()

    def test_empty_path(self, blank_10):
        assert not generate_mask(MaskLayer("empty", VectorMask()), blank_10).any()

    def test_feather_softens_edges(self, blank_10):
        hard = generate_mask(MaskLayer("hard", square()), blank_10)
        soft = generate_mask(MaskLayer("soft", square(feather=6)), blank_10)
        assert set(np.unique(hard)) <= {0.0, 1.0}
        assert ((soft > 0.0) & (soft < 1.0)).any()
        assert soft[0, 0] > 0.0


class TestInversion:

    def test_inverted_mask(self):
        image = gray_row(50, 150)
        layer = MaskLayer("band", LuminanceMask(100, 200), inverted=True)
        np.testing.assert_array_equal(generate_mask(layer, image)[0], [1.0, 0.0])

    def test_double_inversion_is_identity(self, random_image):
        stack = MaskLayerStack()
        mask_id = stack.add_color_mask("key", (128, 128, 128), tolerance=30, softness=40)
        before = stack.mask_for(mask_id, random_image)
        stack.toggle_inversion(mask_id)
        stack.toggle_inversion(mask_id)
        np.testing.assert_array_equal(stack.mask_for(mask_id, random_image), before)


class TestCompositor:
    """Combining masks and applying them."""

    def test_each_layer_only_reduces_coverage(self):
        rng = np.random.default_rng(1)
        masks = [rng.random((6, 6)).astype(np.float32) for _ in range(3)]
        previous = combine_masks([], [], (6, 6))
        assert np.all(previous == 1.0)
        for count in range(1, 4):
            current = combine_masks(masks[:count], [80.0] * count, (6, 6))
            assert np.all(current <= previous + 1e-7)
            previous = current

    def test_zero_opacity_has_no_effect(self):
        combined = combine_masks([np.zeros((4, 4), dtype=np.float32)], [0.0], (4, 4))
        assert np.all(combined == 1.0)

    def test_half_opacity(self):
        combined = combine_masks([np.zeros((4, 4), dtype=np.float32)], [50.0], (4, 4))
        np.testing.assert_allclose(combined, 0.5)

    def test_apply_mask_scales_alpha(self, random_image):
        mask = np.full(random_image.shape, 0.5, dtype=np.float32)
        out = apply_mask(random_image, mask)
        np.testing.assert_array_equal(out.pixels[:, :, :3], random_image.pixels[:, :, :3])
        expected = np.clip(np.rint(random_image.alpha * 0.5), 0, 255)
        np.testing.assert_array_equal(out.alpha, expected)

    def test_apply_mask_shape_mismatch(self, random_image):
        with pytest.raises(BufferShapeError):
            apply_mask(random_image, np.ones((2, 2), dtype=np.float32))

    def test_target_blend(self):
        source = PixelBuffer.blank(4, 4, (255, 255, 255, 10))
        target = PixelBuffer.blank(4, 4, (0, 0, 0, 255))
        out = composite_with_target(source, target, np.full((4, 4), 0.25, dtype=np.float32))
        assert np.all(out.pixels[:, :, :3] == 64)
        assert np.all(out.alpha == 255)

    def test_target_size_mismatch(self):
        source = PixelBuffer.blank(4, 4)
        target = PixelBuffer.blank(5, 4)
        layer = MaskLayer("all", LuminanceMask(0, 255))
        with pytest.raises(BufferShapeError):
            composite_masks([layer], source, target)

    def test_invisible_layers_are_skipped(self):
        source = gray_row(50, 150)
        hidden = MaskLayer("hidden", LuminanceMask(100, 200), visible=False)
        result = composite_masks([hidden], source)
        assert result.applied_layers == []
        np.testing.assert_array_equal(result.mask, np.ones((1, 2)))
        np.testing.assert_array_equal(result.image.pixels, source.pixels)

    def test_luminance_layer_mattes_alpha(self):
        source = gray_row(50, 150, 250)
        result = composite_masks([MaskLayer("band", LuminanceMask(100, 200))], source)
        np.testing.assert_array_equal(result.image.alpha[0], [0, 255, 0])
        np.testing.assert_array_equal(result.mask_buffer.pixels[0, :, 0], [0, 255, 0])
        assert result.elapsed_ms >= 0


class TestMaskLayerStack:
    """Layer management operations."""

    @pytest.fixture
    def stack(self):
        stack = MaskLayerStack(MaskGenerator(curve_segments=8))
        stack.add_luminance_mask("Highlights", 180, 255, softness=20)
        stack.add_gradient_mask("Sky", GradientKind.LINEAR, (0, 0), (0, 47))
        stack.add_vector_mask("Subject", [PathVertex(10, 10), PathVertex(40, 10), PathVertex(25, 40)])
        return stack

    def test_add_returns_ids(self, stack):
        assert len(stack) == 3
        kinds = [layer.kind for layer in stack]
        assert kinds == [MaskKind.LUMINANCE, MaskKind.GRADIENT, MaskKind.VECTOR]
        assert all(layer.id.startswith("mask_") for layer in stack)

    def test_unknown_id(self, stack):
        with pytest.raises(MaskNotFoundError):
            stack.get("mask_missing")
        with pytest.raises(KeyError):
            stack.set_opacity("mask_missing", 10)

    def test_locked_layer_rejects_edits(self, stack):
        layer = stack.layers[2]
        assert stack.toggle_lock(layer.id) is True

        with pytest.raises(MaskLockedError):
            stack.update_vector_points(layer.id, [PathVertex(0, 0)])
        with pytest.raises(MaskLockedError):
            stack.set_opacity(layer.id, 50)
        with pytest.raises(MaskLockedError):
            stack.toggle_inversion(layer.id)
        with pytest.raises(MaskLockedError):
            stack.remove(layer.id)

        assert stack.toggle_visibility(layer.id) is False
        assert len(layer.shape.points) == 3
        assert layer.opacity == 100.0

    def test_update_vector_points(self, stack):
        layer = stack.layers[2]
        stack.update_vector_points(layer.id, [PathVertex(0, 0), PathVertex(5, 5)])
        assert [p.point for p in layer.shape.points] == [(0, 0), (5, 5)]

    def test_update_points_on_non_vector_layer(self, stack):
        with pytest.raises(TypeError):
            stack.update_vector_points(stack.layers[0].id, [])

    def test_opacity_is_clamped(self, stack):
        mask_id = stack.layers[0].id
        stack.set_opacity(mask_id, 150)
        assert stack.get(mask_id).opacity == 100.0
        stack.set_opacity(mask_id, -5)
        assert stack.get(mask_id).opacity == 0.0

    def test_duplicate(self, stack):
        original = stack.layers[0]
        stack.toggle_lock(original.id)
        copy_id = stack.duplicate(original.id)
        copy = stack.get(copy_id)

        assert copy.name == "Highlights Copy"
        assert copy.id != original.id
        assert not copy.locked
        assert copy.shape == original.shape
        assert copy.shape is not original.shape
        assert stack.layers[-1] is copy

    def test_reorder(self, stack):
        names = [layer.name for layer in stack]
        stack.reorder(0, 10)
        assert [layer.name for layer in stack] == names
        stack.reorder(2, 0)
        assert [layer.name for layer in stack] == ["Subject", "Highlights", "Sky"]

    def test_select_and_remove(self, stack):
        mask_id = stack.layers[1].id
        stack.select(mask_id)
        assert stack.selected.name == "Sky"
        stack.remove(mask_id)
        assert stack.selected is None
        assert mask_id not in stack
        with pytest.raises(MaskNotFoundError):
            stack.select(mask_id)

    def test_clear(self, stack):
        stack.clear()
        assert len(stack) == 0

    def test_mask_for_ignores_visibility(self, stack, random_image):
        mask_id = stack.layers[1].id
        stack.toggle_visibility(mask_id)
        mask = stack.mask_for(mask_id, random_image)
        assert mask[0, 0] == pytest.approx(1.0)

    def test_composite(self, stack, random_image):
        result = stack.composite(random_image)
        assert result.image.shape == random_image.shape
        assert len(result.applied_layers) == 3
        assert np.all(result.image.alpha <= random_image.alpha)


class TestSerialization:

    def test_layer_from_dict(self):
        layer = MaskLayer.from_dict({
            'name': 'Sky',
            'type': 'gradient',
            'opacity': 60,
            'parameters': {'kind': 'radial', 'start': [5, 5], 'end': [15, 5],
                           'stops': [[0, 1], [1, 0.25]]},
        })
        assert layer.kind == MaskKind.GRADIENT
        assert layer.shape.kind == GradientKind.RADIAL
        assert layer.shape.stops[1].alpha == 0.25
        assert layer.opacity == 60.0

    def test_stops_as_mappings(self):
        layer = MaskLayer.from_dict({
            'type': 'gradient',
            'parameters': {'stops': [{'position': 1, 'alpha': 0}, {'position': 0, 'alpha': 1}]},
        })
        assert [(s.position, s.alpha) for s in layer.shape.stops] == [(1.0, 0.0), (0.0, 1.0)]

    def test_to_dict_keeps_identity(self):
        layer = MaskLayer("Key", ColorMask((1, 2, 3), tolerance=15), inverted=True)
        again = MaskLayer.from_dict(layer.to_dict())
        assert again.id == layer.id
        assert again.inverted
        assert again.shape == layer.shape

    def test_unsupported_shape(self):
        with pytest.raises(TypeError):
            MaskLayer("bad", shape="circle")


class TestMaskExchange:
    """PNG export and raster import."""

    def test_export_png(self):
        png = export_mask_png(np.array([[0.0, 0.5, 1.0]], dtype=np.float32))
        with Image.open(io.BytesIO(png)) as img:
            assert img.mode == "RGB"
            assert img.size == (3, 1)
            pixels = np.asarray(img)
        np.testing.assert_array_equal(pixels[0, :, 0], [0, 128, 255])
        np.testing.assert_array_equal(pixels[0, :, 0], pixels[0, :, 2])

    def test_import_mask(self):
        png = export_mask_png(np.ones((4, 4), dtype=np.float32))
        layer = import_mask("Imported", png)
        assert layer.name == "Imported"
        assert isinstance(layer.shape, LuminanceMask)
        assert (layer.shape.min_luminance, layer.shape.max_luminance) == (0.0, 255.0)
        assert layer.shape.softness == 10.0

    def test_import_rejects_garbage(self):
        with pytest.raises(OSError):
            import_mask("bad", b"not an image")


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
