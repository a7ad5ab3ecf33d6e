"""endotrack MCP Server — application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from endotrack.core.config.settings import get_settings
from endotrack.core.storage.database import SymptomDatabase
from endotrack.core.storage.encryption import EncryptionError, FieldEncryptor
from endotrack.core.storage.repository import SymptomLogRepository
from endotrack.domains.symptoms.domain_logic.metrics import DEFAULT_CATALOG, MetricCatalog
from endotrack.domains.symptoms.prompts.symptom_prompts import register_symptom_prompts
from endotrack.domains.symptoms.resources.metrics import register_metric_resources

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def create_app(
    *,
    repository_override: SymptomLogRepository | None = None,
    catalog: MetricCatalog = DEFAULT_CATALOG,
) -> FastMCP:
    """Create and configure the endotrack MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Initializes the encrypted storage layer (symptom data bank)
    3. Registers all tools, resources, and prompts
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        "endotrack",
        instructions=(
            "Personal symptom tracker. Log daily 0-10 symptom and lifestyle "
            "scores, browse day/week/month/year history, read a 30-day "
            "summary with trends, and export CSV or PDF."
        ),
    )

    # --- Initialize encrypted storage (symptom data bank) ---
    repository: SymptomLogRepository | None = None
    if repository_override is not None:
        repository = repository_override
    elif settings.encryption_key:
        try:
            encryptor = FieldEncryptor(settings.encryption_key)
            db = SymptomDatabase(settings.db_path)
            db.initialize()
            repository = SymptomLogRepository(db, encryptor, user_id=settings.user_id)
            logger.info(
                "Symptom data bank initialized: %s (schema v%d)",
                settings.db_path,
                db.get_schema_version(),
            )
        except EncryptionError as exc:
            logger.error("Failed to initialize storage: %s", exc)
            logger.warning("Continuing without persistence — entries will not be stored")
    else:
        logger.info(
            "No ENCRYPTION_KEY configured — running without persistence. "
            "Set ENCRYPTION_KEY to enable the symptom data bank."
        )

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        status = {
            "status": "ok",
            "server": "endotrack",
            "version": VERSION,
            "metrics_tracked": len(catalog),
            "storage_enabled": repository is not None,
        }
        if repository is not None:
            status["entries_stored"] = repository.count_entries()
        return status

    # --- Register symptom tools (require storage) ---
    if repository is not None:
        from endotrack.domains.symptoms.tools.export_tools import register_export_tools
        from endotrack.domains.symptoms.tools.history_tools import register_history_tools
        from endotrack.domains.symptoms.tools.summary_tools import register_summary_tools
        from endotrack.domains.symptoms.tools.symptom_log_tools import (
            register_symptom_log_tools,
        )

        register_symptom_log_tools(server, repository, catalog)
        register_history_tools(server, repository, catalog)
        register_summary_tools(
            server, repository, catalog, top_limit=settings.top_symptom_limit
        )
        register_export_tools(server, repository, catalog, settings.export_dir)
        logger.info("Symptom log, history, summary and export tools registered")

    # --- Register resources ---
    register_metric_resources(server, catalog)

    # --- Register prompts ---
    register_symptom_prompts(server)

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
