"""
Tests for transform chain module.

These tests verify the correctness of:
    - Single-step matrices (rotate / scale / translate)
    - Left-to-right accumulation order of a chain
    - Decoding of transformation objects, including leniency rules
    - Rotation matrix validation
"""

import pytest
import numpy as np
from numpy.testing import assert_allclose

from camview.errors import MissingField
from camview.transforms import (
    Rotate,
    Scale,
    Translate,
    apply_transform,
    compose,
    decode_chain,
    decode_step,
    rotation,
    step_matrix,
    translation,
    uniform_scale,
    validate_rotation_matrix,
)


class TestStepMatrices:
    """Tests for single-step matrices."""

    def test_rotation_about_z(self):
        """90 deg about +Z maps +X to +Y."""
        M = rotation(90, (0, 0, 1))
        assert_allclose(apply_transform(M, [1, 0, 0]), [0, 1, 0], atol=1e-12)

    def test_rotation_axis_need_not_be_normalised(self):
        assert_allclose(rotation(37, (0, 0, 5)), rotation(37, (0, 0, 1)), atol=1e-12)

    def test_rotation_minus_90_about_x(self):
        """The usual model fix-up: -90 deg about X maps +Y to -Z."""
        M = rotation(-90, (1, 0, 0))
        assert_allclose(apply_transform(M, [0, 1, 0]), [0, 0, -1], atol=1e-12)

    def test_rotation_is_proper(self):
        for angle, axis in [(10, (1, 2, 3)), (-170, (0, 1, 0)), (359, (1, 1, 0))]:
            assert validate_rotation_matrix(rotation(angle, axis)[:3, :3])

    def test_rotation_zero_axis_is_identity(self):
        assert_allclose(rotation(45, (0, 0, 0)), np.eye(4))

    def test_uniform_scale(self):
        M = step_matrix(Scale(2.5))
        assert_allclose(M, np.diag([2.5, 2.5, 2.5, 1.0]))

    def test_translation(self):
        M = step_matrix(Translate((1, -2, 3)))
        assert_allclose(apply_transform(M, [0, 0, 0]), [1, -2, 3])

    def test_step_matrix_rejects_non_step(self):
        with pytest.raises(TypeError):
            step_matrix("scale")


class TestCompose:
    """Tests for chain composition order."""

    def test_empty_chain_is_identity(self):
        assert_allclose(compose([]), np.eye(4))

    def test_rotate_then_scale_on_unit_z(self):
        """[Rotate(180, Y), Scale(2)] matches manual multiplication."""
        steps = [Rotate(180.0, (0, 1, 0)), Scale(2.0)]
        M = compose(steps)

        Ry = np.eye(4)
        Ry[:3, :3] = np.array([
            [-1, 0, 0],
            [0, 1, 0],
            [0, 0, -1],
        ])
        expected = np.eye(4) @ Ry @ uniform_scale(2.0)

        assert_allclose(M, expected, atol=1e-12)
        assert_allclose(apply_transform(M, [0, 0, 1]), [0, 0, -2], atol=1e-12)

    def test_later_steps_act_in_local_frame(self):
        """M = T @ S: the scale is applied to the object before the translation."""
        M = compose([Translate((1, 0, 0)), Scale(2.0)])
        assert_allclose(apply_transform(M, [1, 1, 1]), [3, 2, 2])

    def test_order_matters(self):
        M = compose([Scale(2.0), Translate((1, 0, 0))])
        assert_allclose(apply_transform(M, [1, 1, 1]), [4, 2, 2])

    def test_initial_matrix(self):
        initial = translation((0, 0, 5))
        M = compose([Scale(3.0)], initial=initial)
        assert_allclose(M, initial @ uniform_scale(3.0))

    def test_compose_does_not_modify_initial(self):
        initial = np.eye(4)
        compose([Scale(3.0)], initial=initial)
        assert_allclose(initial, np.eye(4))


class TestApplyTransform:
    """Tests for applying transforms to points."""

    def test_batch_shape_preserved(self):
        pts = np.array([[0, 0, 0], [1, 2, 3]], dtype=float)
        result = apply_transform(uniform_scale(10), pts)
        assert result.shape == (2, 3)
        assert_allclose(result, pts * 10)

    def test_single_point(self):
        result = apply_transform(translation((1, 1, 1)), np.array([1.0, 2.0, 3.0]))
        assert result.shape == (3,)
        assert_allclose(result, [2, 3, 4])


class TestDecodeStep:
    """Tests for decoding transformation objects."""

    def test_scale_uses_value(self):
        assert decode_step({"type": "scale", "value": 2.0}) == Scale(2.0)

    def test_scale_without_axes(self):
        """A scale step carries no x/y/z; they are simply not needed."""
        step = decode_step({"type": "scale", "value": 0.001})
        assert step == Scale(0.001)

    def test_rotate(self):
        step = decode_step({"type": "rotate", "angle": -90, "x": 1})
        assert step == Rotate(-90.0, (1.0, 0.0, 0.0))

    def test_translate_missing_components_default_to_zero(self):
        step = decode_step({"type": "translate", "x": 1, "y": 2})
        assert step == Translate((1.0, 2.0, 0.0))

    def test_type_is_case_insensitive(self):
        assert isinstance(decode_step({"type": "ROTATION", "angle": 5, "z": 1}), Rotate)
        assert isinstance(decode_step({"type": " Translation ", "x": 1}), Translate)

    def test_unknown_type_ignored(self, caplog):
        with caplog.at_level("WARNING"):
            assert decode_step({"type": "shear", "value": 2}) is None
        assert "shear" in caplog.text

    def test_missing_type(self):
        with pytest.raises(MissingField):
            decode_step({"value": 2})

    def test_decode_chain_drops_unknown(self):
        chain = decode_chain([
            {"type": "rotate", "angle": 90, "y": 1},
            {"type": "skew"},
            {"type": "scale", "value": 2},
        ])
        assert chain == (Rotate(90.0, (0.0, 1.0, 0.0)), Scale(2.0))


class TestValidateRotationMatrix:
    """Tests for rotation matrix validation."""

    def test_identity(self):
        assert validate_rotation_matrix(np.eye(3))

    def test_wrong_shape(self):
        assert not validate_rotation_matrix(np.eye(4))

    def test_reflection(self):
        assert not validate_rotation_matrix(np.diag([1, 1, -1]))

    def test_scaled(self):
        assert not validate_rotation_matrix(np.eye(3) * 1.01)
