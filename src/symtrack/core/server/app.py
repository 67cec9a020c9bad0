"""symtrack MCP server — application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging
from pathlib import Path

from fastmcp import FastMCP

from symtrack.core.audit.logger import AuditLogger
from symtrack.core.config.settings import get_settings
from symtrack.core.questionnaire.engine import QuestionnaireEngine
from symtrack.core.questionnaire.loader import QuestionnaireLoadError, load_questionnaire_file
from symtrack.core.rules.catalog import RuleCatalog
from symtrack.core.rules.engine import SuggestionEngine
from symtrack.core.storage.database import SymptomDatabase
from symtrack.core.storage.encryption import EncryptionError, FieldEncryptor
from symtrack.core.storage.repository import SymptomRepository
from symtrack.domains.symptoms.resources.rules import register_rule_resources
from symtrack.domains.symptoms.tools.questionnaire_tools import register_questionnaire_tools
from symtrack.domains.symptoms.tools.suggestion_tools import register_analysis_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "symtrack Symptom Journal"
SERVER_VERSION = "0.1.0"

# Packaged rule file under src/symtrack/domains/symptoms/rules/
_RULES_FILE = (
    Path(__file__).resolve().parent.parent.parent
    / "domains" / "symptoms" / "rules" / "symptom_rules.yaml"
)
_QUESTIONNAIRE_FILE = _RULES_FILE.with_name("questionnaire.yaml")


def create_app(
    *,
    repository_override: SymptomRepository | None = None,
    catalog_override: RuleCatalog | None = None,
) -> FastMCP:
    """Create and configure the symtrack MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Loads the rule catalog and builds the suggestion engine
    3. Loads the guided questionnaire
    4. Initializes the encrypted symptom journal (when a key is configured)
    5. Registers all tools and resources
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        SERVER_NAME,
        instructions=(
            "Personal symptom journal with rule-based triage suggestions. "
            "Log symptoms, review their history, and get urgency-ranked "
            "suggestions. Suggestions are informational and never a diagnosis."
        ),
    )

    # --- Rule catalog and engine ---
    if catalog_override is not None:
        catalog = catalog_override
    else:
        catalog = RuleCatalog()
        catalog.load(settings.rules_path or _RULES_FILE)
    engine = SuggestionEngine(catalog)

    # --- Guided questionnaire ---
    questionnaire: QuestionnaireEngine | None = None
    questionnaire_path = settings.questionnaire_path or _QUESTIONNAIRE_FILE
    try:
        questionnaire = QuestionnaireEngine(load_questionnaire_file(questionnaire_path))
    except QuestionnaireLoadError:
        logger.exception("Failed to load questionnaire; questionnaire tools disabled")

    # --- Encrypted storage (symptom journal) ---
    repository: SymptomRepository | None = None
    if repository_override is not None:
        repository = repository_override
    elif settings.encryption_key:
        try:
            encryptor = FieldEncryptor(settings.encryption_key)
            symptom_db = SymptomDatabase(settings.db_path)
            symptom_db.initialize()
            repository = SymptomRepository(symptom_db, encryptor)
            logger.info(
                "Symptom journal initialized: %s (schema v%d)",
                settings.db_path,
                symptom_db.get_schema_version(),
            )
        except EncryptionError as exc:
            logger.error("Failed to initialize storage: %s", exc)
            logger.warning("Continuing without persistence — symptoms will not be stored")
    else:
        logger.info(
            "No ENCRYPTION_KEY configured — running without persistence. "
            "Set ENCRYPTION_KEY to enable the symptom journal."
        )

    audit_logger = AuditLogger(repository.database) if repository is not None else None

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        status = {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "rules_loaded": len(catalog),
            "using_builtin_rules": catalog.using_defaults,
            "storage_enabled": repository is not None,
            "questionnaire_enabled": questionnaire is not None,
        }
        if repository is not None:
            status["symptoms_stored"] = repository.count_symptoms()
        return status

    register_analysis_tools(server, engine, audit_logger)
    if questionnaire is not None:
        register_questionnaire_tools(
            server, questionnaire, settings.questionnaire_session_max_age_minutes, audit_logger
        )

    if repository is not None:
        from symtrack.domains.symptoms.tools.audit_tools import register_audit_tools
        from symtrack.domains.symptoms.tools.suggestion_tools import register_suggestion_tools
        from symtrack.domains.symptoms.tools.symptom_tools import register_symptom_tools

        register_symptom_tools(server, repository, audit_logger)
        register_suggestion_tools(server, engine, repository, settings, audit_logger)
        register_audit_tools(server, audit_logger)
        logger.info("Symptom journal tools registered")

    # --- Register resources ---
    register_rule_resources(server, catalog)

    return server


# Module-level instance for FastMCP discovery (`fastmcp run .../app.py:mcp`).
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
