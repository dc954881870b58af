import json
from pathlib import Path
from typing import Dict, List

import structlog

from makerchecker.errors import MetadataError
from makerchecker.model.entity import Entity, check_identifier

logger = structlog.get_logger(__name__)


# ==============================================
# MetadataStore
# ==============================================
#
# PURPOSE:
#   Persist and serve entity schemas from disk so that the lifecycle
#   layer never hard-codes the shape of a business entity.
#
# WHY THIS CLASS EXISTS:
#   Every statement the framework issues is derived from metadata:
#   table names, column lists, key columns. Adding a new entity means
#   dropping one JSON file into the metadata directory, nothing else.
#
# WHAT IS PERSISTED:
#   One file per top-level entity (Module); its Beans are nested
#   inside the same file:
#
#   metadata/
#   ├── EMPLOYEE.json   → {"entityName": "EMPLOYEE", "fields": [...],
#   │                      "beans": [{"entityName": "ADDRESS", ...}]}
#   └── BRANCH.json
#
# CLASS: MetadataStore
# --------------------
#   Stateful: holds the storage directory and a cache of parsed
#   schemas.
#
class MetadataStore:
    """
    File-backed provider of entity schemas.

    Files created:
    - metadata/<ENTITY>.json → one Module schema (with its Beans)
    """

    def __init__(self, storage_dir: str = "metadata/"):
        """
        Initialize the metadata store.

        Args:
            storage_dir: Directory holding the schema files
        """
        self.storage_dir = Path(storage_dir)

        # Create directory if it doesn't exist
        self.storage_dir.mkdir(parents=True, exist_ok=True)

        self._cache: Dict[str, Entity] = {}

    def _schema_file(self, entity_name: str) -> Path:
        check_identifier(entity_name, "entity name")
        return self.storage_dir / f"{entity_name}.json"

#   LOADING:
#   - schema(entity_name) -> Entity
#       Parse <entity_name>.json. Raise MetadataError if missing.
#
#   - primary_field_names(entity_name) -> list[str]
#       Ordered primary key field names of a Module or of any Bean.
#
#   - entity_names() -> list[str]
#       Names of every Module with a schema file.
#
    def schema(self, entity_name: str) -> Entity:
        """
        Load the schema of a top-level entity.

        Args:
            entity_name: Module name, e.g. "EMPLOYEE"

        Returns:
            The Entity, with its beans attached

        Raises:
            MetadataError: no schema file, or the file is malformed
        """
        if entity_name in self._cache:
            return self._cache[entity_name]

        schema_file = self._schema_file(entity_name)
        if not schema_file.exists():
            raise MetadataError(f"No metadata found for entity {entity_name}")

        try:
            with open(schema_file, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise MetadataError(f"Malformed metadata in {schema_file}: {e}") from e

        entity = Entity.from_dict(data)
        if entity.entity_name != entity_name:
            raise MetadataError(
                f"{schema_file} declares entity {entity.entity_name}, expected {entity_name}"
            )

        self._cache[entity_name] = entity
        logger.debug("metadata_loaded", entity=entity_name, beans=len(entity.beans))
        return entity

    def primary_field_names(self, entity_name: str) -> List[str]:
        """
        Ordered primary key field names of a Module or of a Bean.

        Beans have no file of their own, so they are looked up inside
        every Module schema.
        """
        if self._schema_file(entity_name).exists():
            return self.schema(entity_name).primary_field_names
        for module_name in self.entity_names():
            bean = self.schema(module_name).bean(entity_name)
            if bean is not None:
                return bean.primary_field_names
        raise MetadataError(f"No metadata found for entity {entity_name}")

    def entity_names(self) -> List[str]:
        return sorted(p.stem for p in self.storage_dir.glob("*.json"))

#   SAVING:
#   - save_schema(entity: Entity) -> None
#       Serialize a Module schema to its JSON file.
#
    def save_schema(self, entity: Entity) -> None:
        """
        Save a Module schema to disk.

        Args:
            entity: Top-level entity (beans are saved inside it)
        """
        if entity.is_sub_bean:
            raise MetadataError(f"Bean {entity.entity_name} must be saved through its module")

        schema_file = self._schema_file(entity.entity_name)
        with open(schema_file, "w") as f:
            json.dump(entity.to_dict(), f, indent=2)

        self._cache[entity.entity_name] = entity
        logger.info("metadata_saved", entity=entity.entity_name, path=str(schema_file))

#   UTILITY:
#   - exists() -> bool
#   - clear() -> None
#
    def exists(self) -> bool:
        """True if at least one schema file is present."""
        return any(self.storage_dir.glob("*.json"))

    def clear(self) -> None:
        """
        Delete all schema files (for testing or reset).
        """
        for schema_file in self.storage_dir.glob("*.json"):
            schema_file.unlink()
            logger.info("metadata_deleted", path=str(schema_file))
        self._cache.clear()
