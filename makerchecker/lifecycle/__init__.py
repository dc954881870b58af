# ==============================================
# LIFECYCLE (Maker-checker orchestration)
# ==============================================
#
# Modules:
# --------
# - orchestrator.py  → submit / decide / rectify / read across the
#                      staging, authoritative and history relations
#
# ==============================================

from .orchestrator import LifecycleOrchestrator

__all__ = ["LifecycleOrchestrator"]
