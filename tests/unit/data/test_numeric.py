"""
Tests for the text-to-value conversion traits.

This test suite covers:
- Type lookup by name, alias and dtype
- Integer conversion with range checks
- Floating-point conversion
- Rejection of malformed tokens
"""

import numpy as np
import pytest

from distcalc.data.numeric import DEFAULT_NUMERIC_TYPE, NUMERIC_TYPES, get_numeric_type
from distcalc.exceptions import ConfigError, FormatError


@pytest.mark.unit
class TestGetNumericType:
    """Test looking up conversion traits."""

    def test_canonical_names(self):
        for name in NUMERIC_TYPES:
            assert get_numeric_type(name).name == name

    def test_aliases(self):
        assert get_numeric_type("double").name == "float64"
        assert get_numeric_type("float").name == "float32"
        assert get_numeric_type("int").name == "int32"
        assert get_numeric_type("string").name == "str"

    def test_case_insensitive(self):
        assert get_numeric_type("FLOAT64").name == "float64"

    def test_from_dtype(self):
        assert get_numeric_type(np.float64).name == "float64"
        assert get_numeric_type(np.dtype("uint16")).name == "uint16"
        assert get_numeric_type(np.longdouble).dtype == np.dtype(np.longdouble)
        assert get_numeric_type(str).name == "str"

    def test_passthrough(self):
        assert get_numeric_type(DEFAULT_NUMERIC_TYPE) is DEFAULT_NUMERIC_TYPE

    def test_default_is_float32(self):
        assert DEFAULT_NUMERIC_TYPE.name == "float32"

    def test_unknown_type(self):
        with pytest.raises(ConfigError):
            get_numeric_type("complex64")

    def test_is_numeric(self):
        assert get_numeric_type("int8").is_numeric
        assert not get_numeric_type("str").is_numeric
        assert get_numeric_type("float64").is_floating
        assert not get_numeric_type("int64").is_floating


@pytest.mark.unit
class TestIntegerConversion:
    """Test integer traits."""

    def test_valid(self):
        assert get_numeric_type("int32").convert(b"-42") == -42
        assert get_numeric_type("uint8").convert(b"255") == 255

    def test_out_of_range(self):
        with pytest.raises(FormatError):
            get_numeric_type("int8").convert(b"128")
        with pytest.raises(FormatError):
            get_numeric_type("uint8").convert(b"256")

    def test_negative_unsigned(self):
        with pytest.raises(FormatError):
            get_numeric_type("uint32").convert(b"-1")

    def test_whole_token_must_parse(self):
        for token in (b"12abc", b"1.5", b"", b"+", b"1_000"):
            with pytest.raises(FormatError):
                get_numeric_type("int64").convert(token)

    def test_make_row(self):
        row = get_numeric_type("int16").make_row([1, 2, 3])
        assert row.dtype == np.int16
        np.testing.assert_array_equal(row, [1, 2, 3])


@pytest.mark.unit
class TestFloatConversion:
    """Test floating-point traits."""

    def test_valid(self):
        assert get_numeric_type("float64").convert(b"1.5") == 1.5
        assert get_numeric_type("float64").convert(b"-2e3") == -2000.0

    def test_float32_overflow(self):
        with pytest.raises(FormatError):
            get_numeric_type("float32").convert(b"1e300")

    @pytest.mark.parametrize("token", [b"1e400", b"-1e400"])
    def test_float64_overflow(self, token):
        with pytest.raises(FormatError):
            get_numeric_type("float64").convert(token)

    def test_longdouble_overflow(self):
        with pytest.raises(FormatError):
            get_numeric_type("longdouble").convert(b"1e99999")

    def test_explicit_infinity_is_allowed(self):
        assert np.isinf(get_numeric_type("float32").convert(b"inf"))
        assert get_numeric_type("float64").convert(b"-Infinity") == -np.inf

    def test_longdouble(self):
        value = get_numeric_type("longdouble").convert(b"0.25")
        assert isinstance(value, np.longdouble)
        assert value == np.longdouble("0.25")

    def test_malformed(self):
        for token in (b"abc", b"1.2.3", b"", b"1_0"):
            with pytest.raises(FormatError) as exc_info:
                get_numeric_type("float32").convert(token)
            assert "Type mismatch" in str(exc_info.value)

    def test_error_carries_token(self):
        with pytest.raises(FormatError) as exc_info:
            get_numeric_type("float64").convert(b"x1")
        assert exc_info.value.token == "x1"
        assert exc_info.value.type_name == "float64"


@pytest.mark.unit
class TestStringConversion:
    """Test the text trait."""

    def test_decodes_utf8(self):
        assert get_numeric_type("str").convert("héllo".encode("utf-8")) == "héllo"

    def test_make_row_is_list(self):
        assert get_numeric_type("str").make_row(["a", "b"]) == ["a", "b"]
