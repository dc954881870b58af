# ==============================================
# Tests for the Model (entities, records, results)
# ==============================================

import pytest

from makerchecker.errors import MetadataError
from makerchecker.model import (
    Action,
    Actor,
    CompositeRecord,
    Entity,
    EntityKind,
    Field,
    OperationResult,
    Record,
    RequestKind,
    ResultStatus,
)


class TestField:
    def test_primary_key_is_never_nullable(self):
        field = Field("EMP_ID", primary_key=True, nullable=True)
        assert field.nullable is False

    def test_column_type_defaults(self):
        assert Field("A", data_type="int").column_type == "BIGINT"
        assert Field("A", data_type="str", max_length=20).column_type == "VARCHAR(20)"
        assert Field("A", sql_type="TEXT").column_type == "TEXT"

    @pytest.mark.parametrize("name", ["1ABC", "NAME; DROP TABLE X", "a-b", ""])
    def test_rejects_non_identifier_names(self, name):
        with pytest.raises(MetadataError):
            Field(name)

    def test_rejects_unknown_data_type(self):
        with pytest.raises(MetadataError):
            Field("A", data_type="decimal")


class TestEntity:
    def test_key_fields_keep_declaration_order(self, address_schema):
        assert address_schema.primary_field_names == ["EMP_ID", "ADDRESS_ID"]
        assert [f.name for f in address_schema.non_primary_fields] == ["CITY", "PIN"]

    def test_requires_a_primary_key(self):
        with pytest.raises(MetadataError):
            Entity("X", [Field("A")])

    def test_rejects_duplicate_fields(self):
        with pytest.raises(MetadataError):
            Entity("X", [Field("A", primary_key=True), Field("A")])

    def test_bean_cannot_own_beans(self, address_schema):
        with pytest.raises(MetadataError):
            Entity("X", [Field("A", primary_key=True)], kind=EntityKind.BEAN, beans=[address_schema])

    def test_metadata_round_trip(self, employee_schema):
        restored = Entity.from_dict(employee_schema.to_dict())

        assert restored == employee_schema
        assert restored.bean("ADDRESS").is_sub_bean
        assert not restored.is_sub_bean

    def test_from_dict_without_entity_name(self):
        with pytest.raises(MetadataError):
            Entity.from_dict({"fields": [{"name": "A", "primaryKey": True}]})


class TestRecord:
    def test_key_only_includes_present_primary_fields(self, address_schema):
        record = Record(address_schema, {"EMP_ID": 7, "ADDRESS_ID": None, "CITY": "Pune"})

        assert record.key() == {"EMP_ID": 7}

    def test_declared_values_drop_extra_keys(self, branch_schema):
        record = Record(branch_schema, {"BRANCH_CODE": "PUN01", "STATUS": "PENDING"})

        assert record.declared_values() == {"BRANCH_CODE": "PUN01", "CITY": None}

    def test_merged_leaves_original_untouched(self, branch_schema):
        record = Record(branch_schema, {"BRANCH_CODE": "PUN01", "CITY": "Pune"})

        merged = record.merged({"CITY": "Nashik"})

        assert merged["CITY"] == "Nashik"
        assert record["CITY"] == "Pune"

    def test_composite_iterates_parent_first(self, employee_schema, address_schema):
        parent = Record(employee_schema, {"EMP_ID": 7})
        child = Record(address_schema, {"EMP_ID": 7, "ADDRESS_ID": 1})
        composite = CompositeRecord(parent, [child])

        assert list(composite) == [parent, child]


class TestEnums:
    def test_request_kind_parse(self):
        assert RequestKind.parse("update") is RequestKind.UPDATE
        with pytest.raises(ValueError):
            RequestKind.parse("MERGE")

    def test_action_parse(self):
        assert Action.parse(" reject ") is Action.REJECT
        with pytest.raises(ValueError):
            Action.parse("MERGE")

    def test_actor_requires_identity(self):
        with pytest.raises(ValueError):
            Actor("  ")
        assert str(Actor("alice")) == "alice"


class TestOperationResult:
    def test_default_message(self):
        result = OperationResult.of(ResultStatus.NO_REQUEST_PENDING)

        assert result.message == "No request pending"
        assert not result.ok
        assert result.to_dict() == {"status": "NO_REQUEST_PENDING", "message": "No request pending"}

    def test_validation_failure_serializes_errors_only(self):
        result = OperationResult.validation_failed({"NAME": "NAME is required"})

        assert result.to_dict() == {"NAME": "NAME is required"}

    def test_rows_included_when_present(self):
        result = OperationResult(status=ResultStatus.SUCCESS, rows=[{"EMP_ID": 7}])

        assert result.ok
        assert result.to_dict()["rows"] == [{"EMP_ID": 7}]
