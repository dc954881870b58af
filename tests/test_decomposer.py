# ==============================================
# Tests for the Decomposer
# ==============================================

import pytest

from makerchecker.model import Entity, EntityKind, Field
from makerchecker.model.decomposer import DecompositionError, compose, decompose


@pytest.fixture
def two_bean_schema(address_schema) -> Entity:
    phone = Entity(
        "PHONE",
        [Field("EMP_ID", primary_key=True, data_type="int"), Field("NUMBER", primary_key=True)],
        kind=EntityKind.BEAN,
    )
    return Entity(
        "EMPLOYEE",
        [Field("EMP_ID", primary_key=True, data_type="int"), Field("NAME")],
        beans=[address_schema, phone],
    )


class TestDecompose:
    def test_parent_without_children(self, branch_schema):
        composite = decompose(branch_schema, {"BRANCH_CODE": "PUN01", "CITY": "Pune"})

        assert composite.parent.values == {"BRANCH_CODE": "PUN01", "CITY": "Pune"}
        assert composite.children == []

    def test_single_bean_owns_untagged_children(self, employee_schema):
        payload = {"EMP_ID": 7, "NAME": "Asha", "beans": [{"ADDRESS_ID": 1, "CITY": "Pune"}]}

        composite = decompose(employee_schema, payload)

        assert "beans" not in composite.parent.values
        child = composite.children[0]
        assert child.entity.entity_name == "ADDRESS"
        # Parent key is inherited by the child
        assert child.values == {"ADDRESS_ID": 1, "CITY": "Pune", "EMP_ID": 7}
        assert "EMP_ID" not in payload["beans"][0]

    def test_tagged_children_with_several_beans(self, two_bean_schema):
        payload = {
            "EMP_ID": 7,
            "beans": [
                {"__bean__": "PHONE", "NUMBER": "555"},
                {"__bean__": "ADDRESS", "ADDRESS_ID": 1, "CITY": "Pune"},
            ],
        }

        composite = decompose(two_bean_schema, payload)

        assert [c.entity.entity_name for c in composite.children] == ["PHONE", "ADDRESS"]
        assert "__bean__" not in composite.children[0].values

    def test_untagged_child_is_ambiguous_with_several_beans(self, two_bean_schema):
        with pytest.raises(DecompositionError, match=r"beans\[0\]"):
            decompose(two_bean_schema, {"EMP_ID": 7, "beans": [{"NUMBER": "555"}]})

    def test_unknown_bean_tag(self, employee_schema):
        with pytest.raises(DecompositionError):
            decompose(employee_schema, {"EMP_ID": 7, "beans": [{"__bean__": "PHONE"}]})

    def test_beans_must_be_a_list(self, employee_schema):
        with pytest.raises(DecompositionError):
            decompose(employee_schema, {"EMP_ID": 7, "beans": {"CITY": "Pune"}})

    def test_children_for_module_without_beans(self, branch_schema):
        with pytest.raises(DecompositionError):
            decompose(branch_schema, {"BRANCH_CODE": "X", "beans": [{"A": 1}]})

    def test_read_response_shape_is_accepted(self, employee_schema):
        response = compose(
            {"EMP_ID": 7, "NAME": "Asha"},
            {"ADDRESS": [{"EMP_ID": 7, "ADDRESS_ID": 1, "CITY": "Pune"}]},
        )

        composite = decompose(employee_schema, response)

        assert composite.parent.values == {"EMP_ID": 7, "NAME": "Asha"}
        assert composite.children[0].values == {"EMP_ID": 7, "ADDRESS_ID": 1, "CITY": "Pune"}


class TestCompose:
    def test_children_attached_under_bean_name(self):
        parent = {"EMP_ID": 7}

        composed = compose(parent, {"ADDRESS": [{"ADDRESS_ID": 1}]})

        assert composed == {"EMP_ID": 7, "ADDRESS": [{"ADDRESS_ID": 1}]}
        assert parent == {"EMP_ID": 7}
