# ==============================================
# METADATA (Entity schemas)
# ==============================================
#
# This package serves entity schemas to the rest of the framework.
#
# Modules:
# --------
# - metadata_store.py  → Load/save Module schemas as JSON files
#
# ==============================================

from .metadata_store import MetadataStore

__all__ = ["MetadataStore"]
