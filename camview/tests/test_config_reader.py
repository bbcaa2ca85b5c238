"""
Tests for the config reader and its field extraction rules.
"""

import pytest
import tempfile
import numpy as np
from numpy.testing import assert_allclose

from camview.config_reader import (
    find_field,
    number_array,
    optional_number,
    read_config,
    require_number,
    require_string,
    to_number,
)
from camview.errors import (
    ConfigNotFound,
    MalformedConfig,
    MalformedNumber,
    MissingField,
)


def _write(content, suffix):
    with tempfile.NamedTemporaryFile(mode='w', suffix=suffix, delete=False) as f:
        f.write(content)
        return f.name


class TestReadConfig:
    """Tests for reading whole files."""

    def test_read_json(self):
        path = _write('{"a": 1, "b": {"c": "x"}}', '.json')
        data = read_config(path)
        assert data == {"a": 1, "b": {"c": "x"}}

    def test_read_yaml(self):
        path = _write("a: 1\nb:\n  c: x\n", '.yaml')
        data = read_config(path)
        assert data == {"a": 1, "b": {"c": "x"}}

    def test_json_with_tabs_and_newlines(self):
        """Layout whitespace is immaterial."""
        path = _write('{\n\t"a":\t[1,\n\t2]\n}', '.json')
        assert read_config(path) == {"a": [1, 2]}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigNotFound) as exc_info:
            read_config(tmp_path / "nope.json")
        assert "nope.json" in str(exc_info.value)

    def test_config_not_found_is_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_config(tmp_path / "nope.json")

    def test_unparsable_json(self):
        path = _write('{"a": [1, 2', '.json')
        with pytest.raises(MalformedConfig):
            read_config(path)

    def test_top_level_array_rejected(self):
        path = _write('[1, 2, 3]', '.json')
        with pytest.raises(MalformedConfig):
            read_config(path)

    def test_invalid_utf8_names_file(self, tmp_path):
        path = tmp_path / "calibration.json"
        path.write_bytes(b'{"a": "\xff\xfe"}')
        with pytest.raises(MalformedConfig) as exc_info:
            read_config(path)
        assert exc_info.value.source == str(path)
        assert "calibration.json" in str(exc_info.value)


class TestFieldExtraction:
    """Tests for required/optional field rules."""

    def test_find_field(self):
        assert find_field({"k": 3}, "k") == 3

    def test_find_field_missing_names_key_and_source(self):
        with pytest.raises(MissingField) as exc_info:
            find_field({"k": 3}, "other", source="calib.json")
        message = str(exc_info.value)
        assert "other" in message
        assert "calib.json" in message
        assert exc_info.value.key == "other"

    def test_require_string_trims(self):
        assert require_string({"path": "  mesh.bin "}, "path") == "mesh.bin"

    def test_require_string_rejects_number(self):
        with pytest.raises(MissingField):
            require_string({"path": 3}, "path")

    def test_require_number(self):
        assert require_number({"v": 2}, "v") == 2.0
        assert isinstance(require_number({"v": 2}, "v"), float)

    def test_require_number_missing(self):
        with pytest.raises(MissingField):
            require_number({}, "v")

    def test_optional_number_defaults_to_zero(self):
        assert optional_number({}, "x") == 0.0

    def test_optional_number_null_defaults(self):
        assert optional_number({"x": None}, "x") == 0.0

    def test_optional_number_custom_default(self):
        assert optional_number({}, "x", default=1000.0) == 1000.0

    def test_optional_number_present(self):
        assert optional_number({"x": -1.5}, "x") == -1.5

    @pytest.mark.parametrize("obj", ["abc", ["x"], 3.0])
    def test_optional_number_requires_object(self, obj):
        """A non-object holder is malformed, not searched."""
        with pytest.raises(MalformedConfig) as exc_info:
            optional_number(obj, "x", source="calib.json")
        assert exc_info.value.key == "x"

    def test_unknown_keys_ignored(self):
        obj = {"x": 1.0, "comment": "whatever", "extra": [1, 2]}
        assert optional_number(obj, "x") == 1.0


class TestToNumber:
    """Tests for numeric conversion."""

    def test_numeric_string(self):
        assert to_number(" 1.25 ", "k") == 1.25

    def test_strips_brackets_and_commas(self):
        assert to_number("[0.5,", "k") == 0.5
        assert to_number("-2.0]", "k") == -2.0

    def test_garbage_string(self):
        with pytest.raises(MalformedNumber) as exc_info:
            to_number("abc", "angle", source="models.json")
        assert "angle" in str(exc_info.value)

    def test_empty_string(self):
        with pytest.raises(MalformedNumber):
            to_number("", "k")

    def test_bool_rejected(self):
        with pytest.raises(MalformedNumber):
            to_number(True, "k")

    def test_container_rejected(self):
        with pytest.raises(MalformedNumber):
            to_number([1.0], "k")

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf"), "nan", "Infinity"])
    def test_non_finite_rejected(self, value):
        with pytest.raises(MalformedNumber):
            to_number(value, "k")

    def test_malformed_number_is_value_error(self):
        with pytest.raises(ValueError):
            to_number("x", "k")


class TestNumberArray:
    """Tests for flattening numeric arrays."""

    def test_flat(self):
        assert_allclose(number_array([1, 2, 3], "a"), [1, 2, 3])

    def test_nested(self):
        result = number_array([[1, 2], [3, [4, 5]]], "a")
        assert_allclose(result, [1, 2, 3, 4, 5])
        assert result.dtype == np.float64

    def test_length_checked(self):
        with pytest.raises(MalformedNumber):
            number_array([1, 2, 3], "a", length=4)

    def test_not_an_array(self):
        with pytest.raises(MalformedNumber):
            number_array(3.0, "a")

    def test_bad_element(self):
        with pytest.raises(MalformedNumber):
            number_array([1, "two", 3], "a")
