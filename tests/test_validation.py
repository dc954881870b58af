# ==============================================
# Tests for Validation (TypeDetector, FieldValidator)
# ==============================================

from datetime import date, datetime

import pytest

from makerchecker.validation import FieldValidator, TypeDetector


class TestTypeDetector:
    @pytest.mark.parametrize("value, data_type", [
        ("text", "str"),
        (7, "int"),
        ("42", "int"),
        (7, "float"),
        ("3.5", "float"),
        (True, "bool"),
        ("yes", "bool"),
        (1, "bool"),
        ("2024-05-01", "date"),
        (date(2024, 5, 1), "date"),
        ("2024-05-01 10:30:00", "datetime"),
        (datetime(2024, 5, 1, 10, 30), "datetime"),
    ])
    def test_conforming_values(self, value, data_type):
        assert TypeDetector.conforms(value, data_type)

    @pytest.mark.parametrize("value, data_type", [
        (7, "str"),
        ({"a": 1}, "str"),
        ("4.2", "int"),
        (True, "int"),
        ("maybe", "bool"),
        (2, "bool"),
        ("01-05-2024 10:30", "datetime"),
        ("tomorrow", "date"),
    ])
    def test_non_conforming_values(self, value, data_type):
        assert not TypeDetector.conforms(value, data_type)

    def test_coerce_returns_converted_value(self):
        assert TypeDetector.coerce("42", "int") == (42, True)
        assert TypeDetector.coerce("2024-05-01", "date") == (date(2024, 5, 1), True)
        assert TypeDetector.coerce(None, "int") == (None, True)

    def test_detect(self):
        assert TypeDetector.detect(None) == "null"
        assert TypeDetector.detect(False) == "bool"
        assert TypeDetector.detect([1]) == "array"
        assert TypeDetector.detect(datetime(2024, 1, 1)) == "datetime"


class TestFieldValidator:
    """Per-field checks of payloads against metadata."""

    @pytest.fixture
    def validator(self):
        return FieldValidator()

    def test_valid_payload(self, validator, employee_schema, employee_record):
        assert validator.validate(employee_schema, employee_record) == {}

    def test_missing_primary_key(self, validator, employee_schema):
        errors = validator.validate(employee_schema, {"NAME": "Asha"})

        assert errors == {"EMP_ID": "EMP_ID is a primary key and is required"}

    def test_null_in_non_nullable_field(self, validator, employee_schema):
        errors = validator.validate(employee_schema, {"EMP_ID": 7, "NAME": None})

        assert errors == {"NAME": "NAME is required"}

    def test_type_and_length(self, validator, employee_schema):
        errors = validator.validate(
            employee_schema, {"EMP_ID": "seven", "NAME": "x" * 101, "SALARY": 10}
        )

        assert errors["EMP_ID"] == "EMP_ID must be of type int"
        assert errors["NAME"] == "NAME must be at most 100 characters"
        assert "SALARY" not in errors

    def test_unknown_field(self, validator, branch_schema):
        errors = validator.validate(branch_schema, {"BRANCH_CODE": "PUN01", "MANAGER": "x"})

        assert errors == {"MANAGER": "MANAGER is not a field of BRANCH"}

    def test_child_errors_keyed_by_position(self, validator, employee_schema, employee_record):
        payload = {
            **employee_record,
            "beans": [
                {"ADDRESS_ID": 1, "CITY": "Pune"},
                {"ADDRESS_ID": 2, "PIN": "12345678901"},
            ],
        }

        errors = validator.validate(employee_schema, payload)

        assert errors == {
            "beans[1].CITY": "CITY is required",
            "beans[1].PIN": "PIN must be at most 10 characters",
        }

    def test_child_errors_in_read_shape(self, validator, employee_schema, employee_record):
        payload = {**employee_record, "ADDRESS": [{"EMP_ID": 7, "CITY": "Pune"}]}

        errors = validator.validate(employee_schema, payload)

        assert errors == {"ADDRESS[0].ADDRESS_ID": "ADDRESS_ID is a primary key and is required"}

    def test_unresolvable_bean(self, validator, employee_schema, employee_record):
        payload = {**employee_record, "beans": [{"__bean__": "PHONE"}]}

        errors = validator.validate(employee_schema, payload)

        assert list(errors) == ["beans"]

    def test_repeated_child_key(self, validator, employee_schema, employee_record):
        payload = {
            **employee_record,
            "beans": [
                {"ADDRESS_ID": 1, "CITY": "Pune"},
                {"ADDRESS_ID": "1", "CITY": "Mumbai"},
            ],
        }

        errors = validator.validate(employee_schema, payload)

        assert errors == {"beans[1].ADDRESS_ID": "ADDRESS_ID repeats the key of beans[0]"}

    def test_distinct_child_keys(self, validator, employee_schema, employee_record):
        payload = {
            **employee_record,
            "beans": [
                {"ADDRESS_ID": 1, "CITY": "Pune"},
                {"ADDRESS_ID": 2, "CITY": "Mumbai"},
            ],
        }

        assert validator.validate(employee_schema, payload) == {}
