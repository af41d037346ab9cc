"""
Unit tests for type coercion.
"""

from datetime import datetime, timezone

import pytest
from bson import ObjectId

from docport.schema.coercer import CoercionError, TypeCoercer
from docport.schema.types import TypeTag


@pytest.fixture
def coercer():
    return TypeCoercer()


class TestCoerceToString:

    def test_numbers(self, coercer):
        assert coercer.coerce(42, TypeTag.STRING) == "42"
        assert coercer.coerce(2.5, TypeTag.STRING) == "2.5"

    def test_booleans(self, coercer):
        assert coercer.coerce(True, TypeTag.STRING) == "true"
        assert coercer.coerce(False, TypeTag.STRING) == "false"

    def test_date_uses_iso_format(self, coercer):
        value = datetime(2024, 3, 1, 8, 5, 9, 123000, tzinfo=timezone.utc)
        assert coercer.coerce(value, TypeTag.STRING) == "2024-03-01T08:05:09.123Z"

    def test_naive_date_is_utc(self, coercer):
        assert coercer.coerce(datetime(2024, 3, 1), TypeTag.STRING) == "2024-03-01T00:00:00.000Z"

    def test_object_id_uses_hex(self, coercer):
        oid = ObjectId("65a1b2c3d4e5f60718293a4b")
        assert coercer.coerce(oid, TypeTag.STRING) == "65a1b2c3d4e5f60718293a4b"

    def test_composites_use_json(self, coercer):
        assert coercer.coerce({"a": 1}, TypeTag.STRING) == '{"a": 1}'
        assert coercer.coerce([1, "x"], TypeTag.STRING) == '[1, "x"]'


class TestCoerceToNumber:

    def test_integer_string(self, coercer):
        result = coercer.coerce("34", TypeTag.NUMBER)
        assert result == 34
        assert isinstance(result, int)

    def test_float_string(self, coercer):
        assert coercer.coerce(" 3.25 ", TypeTag.NUMBER) == 3.25

    def test_unparseable_string_fails(self, coercer):
        with pytest.raises(CoercionError):
            coercer.coerce("abc", TypeTag.NUMBER)

    def test_nan_string_fails(self, coercer):
        with pytest.raises(CoercionError):
            coercer.coerce("NaN", TypeTag.NUMBER)

    @pytest.mark.parametrize("text", ["1_000", "\u0661\u0662", "12abc", "", "1.2.3", "0x10"])
    def test_non_ascii_or_python_only_forms_fail(self, coercer, text):
        result = coercer.try_coerce(text, TypeTag.NUMBER)

        assert not result.ok
        assert result.value == text

    @pytest.mark.parametrize("text,expected", [
        ("-7", -7),
        ("+0150", 150),
        ("1e3", 1000.0),
        ("-.5", -0.5),
        ("2.", 2.0),
    ])
    def test_standard_numeric_forms(self, coercer, text, expected):
        assert coercer.coerce(text, TypeTag.NUMBER) == expected

    def test_infinity(self, coercer):
        assert coercer.coerce("-Infinity", TypeTag.NUMBER) == float("-inf")

    def test_booleans(self, coercer):
        assert coercer.coerce(True, TypeTag.NUMBER) == 1
        assert coercer.coerce(False, TypeTag.NUMBER) == 0

    def test_date_to_epoch_millis(self, coercer):
        value = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert coercer.coerce(value, TypeTag.NUMBER) == 1704067200000

    def test_object_fails(self, coercer):
        with pytest.raises(CoercionError):
            coercer.coerce({"a": 1}, TypeTag.NUMBER)


class TestCoerceToBoolean:

    @pytest.mark.parametrize("text", ["true", "TRUE", "1", "yes", "On", " yes "])
    def test_true_strings(self, coercer, text):
        assert coercer.coerce(text, TypeTag.BOOLEAN) is True

    @pytest.mark.parametrize("text", ["false", "False", "0", "no", "OFF"])
    def test_false_strings(self, coercer, text):
        assert coercer.coerce(text, TypeTag.BOOLEAN) is False

    def test_other_strings_fail(self, coercer):
        with pytest.raises(CoercionError):
            coercer.coerce("maybe", TypeTag.BOOLEAN)

    def test_numbers(self, coercer):
        assert coercer.coerce(0, TypeTag.BOOLEAN) is False
        assert coercer.coerce(-3, TypeTag.BOOLEAN) is True
        assert coercer.coerce(0.5, TypeTag.BOOLEAN) is True


class TestCoerceToDate:

    def test_iso_string(self, coercer):
        result = coercer.coerce("2024-03-01T08:05:09.123Z", TypeTag.DATE)
        assert result == datetime(2024, 3, 1, 8, 5, 9, 123000, tzinfo=timezone.utc)

    def test_date_only_string(self, coercer):
        result = coercer.coerce("2024-03-01", TypeTag.DATE)
        assert result == datetime(2024, 3, 1, tzinfo=timezone.utc)

    def test_unparseable_string_fails(self, coercer):
        with pytest.raises(CoercionError):
            coercer.coerce("not-a-date", TypeTag.DATE)

    def test_small_numbers_are_seconds(self, coercer):
        result = coercer.coerce(1700000000, TypeTag.DATE)
        assert result == datetime.fromtimestamp(1700000000, tz=timezone.utc)

    def test_large_numbers_are_milliseconds(self, coercer):
        result = coercer.coerce(1700000000000, TypeTag.DATE)
        assert result == datetime.fromtimestamp(1700000000, tz=timezone.utc)

    def test_threshold_is_ten_billion(self, coercer):
        below = coercer.coerce(9_999_999_999, TypeTag.DATE)
        at = coercer.coerce(10_000_000_000, TypeTag.DATE)
        assert below.year == 2286
        assert at.year == 1970

    def test_boolean_fails(self, coercer):
        with pytest.raises(CoercionError):
            coercer.coerce(True, TypeTag.DATE)


class TestCoerceToObjectId:

    def test_hex_string(self, coercer):
        result = coercer.coerce("65a1b2c3d4e5f60718293a4b", TypeTag.OBJECT_ID)
        assert result == ObjectId("65a1b2c3d4e5f60718293a4b")

    @pytest.mark.parametrize("value", ["65a1b2c3", "zz" * 12, 12345, None])
    def test_anything_else_fails(self, coercer, value):
        with pytest.raises(CoercionError):
            coercer.coerce(value, TypeTag.OBJECT_ID)


class TestCoerceToArray:

    def test_json_array_string(self, coercer):
        assert coercer.coerce('[1, 2]', TypeTag.ARRAY) == [1, 2]

    def test_json_non_array_string_is_wrapped(self, coercer):
        assert coercer.coerce('{"a": 1}', TypeTag.ARRAY) == ['{"a": 1}']

    def test_plain_string_is_wrapped(self, coercer):
        assert coercer.coerce("red", TypeTag.ARRAY) == ["red"]

    def test_scalar_is_wrapped(self, coercer):
        assert coercer.coerce(7, TypeTag.ARRAY) == [7]


class TestCoerceToObject:

    def test_json_object_string(self, coercer):
        assert coercer.coerce('{"a": 1}', TypeTag.OBJECT) == {"a": 1}

    def test_json_array_string_is_wrapped(self, coercer):
        assert coercer.coerce('[1]', TypeTag.OBJECT) == {"value": '[1]'}

    def test_scalar_is_wrapped(self, coercer):
        assert coercer.coerce(5, TypeTag.OBJECT) == {"value": 5}

    def test_array_is_wrapped(self, coercer):
        assert coercer.coerce([1, 2], TypeTag.OBJECT) == {"value": [1, 2]}


class TestCoercionContract:

    @pytest.mark.parametrize("value,tag", [
        ("text", TypeTag.STRING),
        (12, TypeTag.NUMBER),
        (1.5, TypeTag.NUMBER),
        (True, TypeTag.BOOLEAN),
        (datetime(2024, 1, 1, tzinfo=timezone.utc), TypeTag.DATE),
        (ObjectId("65a1b2c3d4e5f60718293a4b"), TypeTag.OBJECT_ID),
        ([1, {"a": 2}], TypeTag.ARRAY),
        ({"a": [1]}, TypeTag.OBJECT),
    ])
    def test_identity_for_matching_type(self, coercer, value, tag):
        assert coercer.coerce(value, tag) == value

    @pytest.mark.parametrize("tag", list(TypeTag))
    @pytest.mark.parametrize("value", [None, "x", 3, False, {"a": 1}, [1], ObjectId()])
    def test_try_coerce_never_raises(self, coercer, value, tag):
        result = coercer.try_coerce(value, tag)
        if not result.ok:
            assert result.error
            assert result.value is value

    def test_null_target_fails(self, coercer):
        with pytest.raises(CoercionError):
            coercer.coerce("x", TypeTag.NULL)

    def test_error_carries_reason(self, coercer):
        with pytest.raises(CoercionError) as exc_info:
            coercer.coerce("not-a-date", TypeTag.DATE)
        assert exc_info.value.target == TypeTag.DATE
        assert exc_info.value.reason == "unparseable date"
