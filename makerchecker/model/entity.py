# ==============================================
# Entity (Data Classes)
# ==============================================
#
# PURPOSE:
#   Data classes that describe the SHAPE of a business entity as
#   declared by metadata. Nothing in the framework is hard-coded
#   per entity: table names, column lists, key columns are all
#   derived from these objects.
#
# ENUMS:
# ------
# - EntityKind(Enum): MODULE, BEAN
#     Discriminant. A MODULE is a top-level entity, a BEAN is a child
#     collection owned by exactly one MODULE.
#
# CLASSES:
# --------
# - Field (dataclass)
#     One declared column. Order inside an entity is significant.
#
# - Entity (dataclass)
#     entity_name, ordered fields, kind, beans (MODULE only).
#
#     Methods:
#     --------
#     - primary_field_names / non_primary_fields
#     - field_names / get_field(name)
#     - bean(name) -> Entity | None
#     - to_dict() / from_dict()  → metadata JSON round trip
#
# ==============================================

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from makerchecker.errors import MetadataError

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Default DDL column type for each declared data type
SQL_TYPES = {
    "str": "VARCHAR(255)",
    "int": "BIGINT",
    "float": "DOUBLE",
    "bool": "BOOLEAN",
    "date": "DATE",
    "datetime": "DATETIME",
}


def check_identifier(name: str, what: str = "identifier") -> str:
    """Reject anything that is not a plain SQL identifier."""
    if not isinstance(name, str) or not IDENTIFIER_PATTERN.match(name):
        raise MetadataError(f"Invalid {what}: {name!r}")
    return name


class EntityKind(Enum):
    """
    Discriminant for the two entity variants.

    - MODULE: top-level entity, may own beans
    - BEAN: child collection, only reachable through its module
    """
    MODULE = "module"
    BEAN = "bean"


@dataclass
class Field:
    """A single declared field of an entity."""

    name: str
    primary_key: bool = False
    data_type: str = "str"  # one of SQL_TYPES keys
    nullable: bool = True
    max_length: Optional[int] = None
    sql_type: Optional[str] = None  # overrides the default DDL type

    def __post_init__(self):
        check_identifier(self.name, "field name")
        if self.data_type not in SQL_TYPES:
            raise MetadataError(f"Unsupported data type for field {self.name}: {self.data_type!r}")
        if self.primary_key:
            self.nullable = False

    @property
    def column_type(self) -> str:
        if self.sql_type:
            return self.sql_type
        if self.data_type == "str" and self.max_length:
            return f"VARCHAR({self.max_length})"
        return SQL_TYPES[self.data_type]

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "primaryKey": self.primary_key,
            "dataType": self.data_type,
            "nullable": self.nullable,
        }
        if self.max_length is not None:
            data["maxLength"] = self.max_length
        if self.sql_type is not None:
            data["sqlType"] = self.sql_type
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Field":
        if "name" not in data:
            raise MetadataError(f"Field declaration without a name: {data}")
        return cls(
            name=data["name"],
            primary_key=bool(data.get("primaryKey", False)),
            data_type=data.get("dataType", "str"),
            nullable=bool(data.get("nullable", True)),
            max_length=data.get("maxLength"),
            sql_type=data.get("sqlType"),
        )


@dataclass
class Entity:
    """
    Schema of one entity, either a MODULE or a BEAN.

    A MODULE exclusively owns its beans. A BEAN never owns beans of its
    own and is flagged ``is_sub_bean``.
    """

    entity_name: str
    fields: List[Field]
    kind: EntityKind = EntityKind.MODULE
    beans: List["Entity"] = field(default_factory=list)

    def __post_init__(self):
        check_identifier(self.entity_name, "entity name")
        if not self.fields:
            raise MetadataError(f"Entity {self.entity_name} declares no fields")
        names = [f.name for f in self.fields]
        if len(set(names)) != len(names):
            raise MetadataError(f"Entity {self.entity_name} declares duplicate fields")
        if not any(f.primary_key for f in self.fields):
            raise MetadataError(f"Entity {self.entity_name} declares no primary key field")
        if self.kind is EntityKind.BEAN and self.beans:
            raise MetadataError(f"Bean {self.entity_name} cannot own beans")

    @property
    def is_sub_bean(self) -> bool:
        return self.kind is EntityKind.BEAN

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    @property
    def primary_field_names(self) -> List[str]:
        return [f.name for f in self.fields if f.primary_key]

    @property
    def non_primary_fields(self) -> List[Field]:
        return [f for f in self.fields if not f.primary_key]

    def get_field(self, name: str) -> Optional[Field]:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def bean(self, name: str) -> Optional["Entity"]:
        for b in self.beans:
            if b.entity_name == name:
                return b
        return None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "entityName": self.entity_name,
            "fields": [f.to_dict() for f in self.fields],
        }
        if self.beans:
            data["beans"] = [b.to_dict() for b in self.beans]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], kind: EntityKind = EntityKind.MODULE) -> "Entity":
        """
        Build an entity (and its beans) from a metadata declaration.

        Args:
            data: Parsed metadata JSON
            kind: MODULE for top-level declarations, BEAN for nested ones

        Returns:
            The Entity

        Raises:
            MetadataError: if the declaration is malformed
        """
        if "entityName" not in data:
            raise MetadataError(f"Entity declaration without entityName: {list(data)}")
        beans = [cls.from_dict(b, EntityKind.BEAN) for b in data.get("beans") or []]
        return cls(
            entity_name=data["entityName"],
            fields=[Field.from_dict(f) for f in data.get("fields") or []],
            kind=kind,
            beans=beans,
        )
