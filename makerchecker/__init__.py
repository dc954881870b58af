# ==============================================
# makerchecker: Metadata-driven Maker-Checker Framework
# ==============================================
#
# Packages:
# ---------
# - model/       → Entity metadata, records, decomposer, results
# - metadata/    → JSON-file schema store
# - validation/  → Payload checks against metadata
# - storage/     → Statement builder, client, transactional store
# - lifecycle/   → LifecycleOrchestrator (the public entry point)
#
# Top-level modules:
# ------------------
# - config.py    → Typed configuration from .env
# - log.py       → structlog setup
# - errors.py    → Exception hierarchy
# - cli.py       → Command line entry point
#
# ==============================================

__version__ = "0.1.0"
