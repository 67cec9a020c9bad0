"""Rule catalog — the process-wide, read-mostly set of symptom rules."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from symtrack.core.rules.defaults import default_rules
from symtrack.core.rules.loader import RuleLoadError, load_rules_file
from symtrack.core.rules.models import URGENCY_LEVELS, Rule

logger = logging.getLogger(__name__)


class RuleCatalog:
    """Ordered, immutable-after-load collection of rules.

    The rule set is held as a tuple that is only ever replaced as a whole,
    so readers can take a snapshot with :meth:`get_all` without locking and
    always see either the old or the new catalog. Writers (load, reload,
    add) serialize on an internal lock.

    Usage::

        catalog = RuleCatalog()
        catalog.load("rules/symptom_rules.yaml")
        for rule in catalog.get_all():
            ...
    """

    def __init__(self, rules: list[Rule] | None = None) -> None:
        self._rules: tuple[Rule, ...] = tuple(rules if rules is not None else default_rules())
        self._source: Path | None = None
        self._using_defaults = rules is None
        self._write_lock = threading.Lock()

    def load(self, path: str | Path | None = None) -> int:
        """Load rules from ``path``, falling back to the built-in catalog.

        Never raises for a missing or malformed file and never leaves the
        catalog empty.

        Returns:
            The number of rules now in the catalog.
        """
        source = Path(path) if path is not None else self._source

        rules: list[Rule] = []
        using_defaults = False
        if source is None:
            logger.warning("No rule file configured; using built-in rules")
        else:
            try:
                rules = load_rules_file(source)
            except RuleLoadError:
                logger.exception("Failed to load rules from %s", source)
            else:
                if not rules:
                    logger.warning("Rule file %s contains no rules", source)

        if not rules:
            rules = default_rules()
            using_defaults = True
            logger.info("Using %d built-in rules", len(rules))
        else:
            logger.info("Loaded %d symptom rules from %s", len(rules), source)

        with self._write_lock:
            self._rules = tuple(rules)
            self._source = source
            self._using_defaults = using_defaults
        return len(rules)

    def reload(self, path: str | Path | None = None) -> int:
        """Re-read the rule file (the last loaded path unless one is given)."""
        return self.load(path)

    def get_all(self) -> tuple[Rule, ...]:
        """Return the current rules in catalog order."""
        return self._rules

    def add(self, rule: Rule) -> None:
        """Append a rule in memory. Not persisted to the rule file."""
        with self._write_lock:
            self._rules = self._rules + (rule,)
        logger.info("Added rule %s to catalog", rule.id)

    def get(self, rule_id: str) -> Rule | None:
        """Look up a rule by ID."""
        for rule in self._rules:
            if rule.id == rule_id:
                return rule
        return None

    def counts_by_urgency(self) -> dict[str, int]:
        """Count rules per urgency tier, in tier order."""
        counts = {level: 0 for level in URGENCY_LEVELS}
        for rule in self._rules:
            counts[rule.suggestions.urgency] = counts.get(rule.suggestions.urgency, 0) + 1
        return counts

    @property
    def source(self) -> Path | None:
        return self._source

    @property
    def using_defaults(self) -> bool:
        """True when the built-in rules are active."""
        return self._using_defaults

    def __len__(self) -> int:
        return len(self._rules)
