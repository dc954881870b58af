# ==============================================
# Configuration Management
# ==============================================
#
# PURPOSE:
#   Load and validate all configuration from environment
#   variables / .env file. Provides typed config objects
#   to all other modules.
#
# CLASSES:
# --------
# - MySQLConfig (dataclass)
#     host: str          (default "localhost")
#     port: int          (default 3306)
#     user: str          (default "root")
#     password: str      (default "root")
#     database: str      (default "maker_checker")
#
# - RelationConfig (dataclass)
#     staging_suffix: str        (default "_TEMP")
#     authoritative_suffix: str  (default "_MASTER")
#     history_suffix: str        (default "_HIST")
#
# - LoggingConfig (dataclass)
#     level: str         (default "INFO")
#     json_output: bool  (default False)
#
# - AppConfig (dataclass)
#     mysql, relations, logging
#     metadata_dir: str  (default "metadata/")
#
# FUNCTION:
# ---------
# - get_config() -> AppConfig
#     Load .env using python-dotenv, construct AppConfig.
#     Returns the same singleton on repeated calls.
#
# USAGE:
# ------
#   from makerchecker.config import get_config
#   config = get_config()
#   print(config.mysql.host)
#   print(config.relations.table_name("EMPLOYEE", RelationKind.STAGING))
#
# ==============================================

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from makerchecker.model.columns import RelationKind
from makerchecker.model.entity import check_identifier


@dataclass
class MySQLConfig:
    """MySQL database configuration."""
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = "root"
    database: str = "maker_checker"


@dataclass
class RelationConfig:
    """Suffixes that turn an entity name into its three relation names."""
    staging_suffix: str = "_TEMP"
    authoritative_suffix: str = "_MASTER"
    history_suffix: str = "_HIST"

    def __post_init__(self):
        suffixes = [self.staging_suffix, self.authoritative_suffix, self.history_suffix]
        for suffix in suffixes:
            # Suffixes end up in statement text, so they must keep names valid
            check_identifier("X" + suffix, "relation suffix")
        if len(set(suffixes)) != 3:
            raise ValueError("Relation suffixes must be distinct")

    def suffix(self, relation: RelationKind) -> str:
        if relation is RelationKind.STAGING:
            return self.staging_suffix
        if relation is RelationKind.AUTHORITATIVE:
            return self.authoritative_suffix
        return self.history_suffix

    def table_name(self, entity_name: str, relation: RelationKind) -> str:
        return f"{entity_name}{self.suffix(relation)}"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    json_output: bool = False


@dataclass
class AppConfig:
    """Main application configuration."""
    mysql: MySQLConfig = field(default_factory=MySQLConfig)
    relations: RelationConfig = field(default_factory=RelationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    metadata_dir: str = "metadata/"


# Singleton instance
_config_instance: Optional[AppConfig] = None


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def get_config() -> AppConfig:
    """
    Load configuration from environment variables / .env file.
    Returns the same singleton instance on repeated calls.

    Returns:
        AppConfig: Application configuration
    """
    global _config_instance

    if _config_instance is not None:
        return _config_instance

    # Load .env file from project root
    env_path = Path(__file__).parent.parent / ".env"
    load_dotenv(dotenv_path=env_path)

    mysql_config = MySQLConfig(
        host=os.getenv("MYSQL_HOST", "localhost"),
        port=int(os.getenv("MYSQL_PORT", "3306")),
        user=os.getenv("MYSQL_USER", "root"),
        password=os.getenv("MYSQL_PASSWORD", "root"),
        database=os.getenv("MYSQL_DATABASE", "maker_checker")
    )

    relation_config = RelationConfig(
        staging_suffix=os.getenv("STAGING_SUFFIX", "_TEMP"),
        authoritative_suffix=os.getenv("AUTHORITATIVE_SUFFIX", "_MASTER"),
        history_suffix=os.getenv("HISTORY_SUFFIX", "_HIST")
    )

    logging_config = LoggingConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        json_output=_env_bool("LOG_JSON")
    )

    _config_instance = AppConfig(
        mysql=mysql_config,
        relations=relation_config,
        logging=logging_config,
        metadata_dir=os.getenv("METADATA_DIR", "metadata/")
    )

    return _config_instance


def reset_config() -> None:
    """Drop the cached singleton (tests, or after changing the environment)."""
    global _config_instance
    _config_instance = None
