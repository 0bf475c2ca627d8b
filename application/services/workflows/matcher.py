"""
Workflow Matcher

Scores a user query against the workflow registry using keyword triggers,
regex patterns and category context phrases.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from application.services.workflows.registry import (
    WorkflowDefinition,
    get_enabled_workflows,
)

logger = logging.getLogger(__name__)

# Score contributions
EXACT_TRIGGER_SCORE = 5
PREFIX_TRIGGER_SCORE = 4
WORD_TRIGGER_SCORE = 3
SUBSTRING_TRIGGER_SCORE = 1
PATTERN_SCORE = 4
CATEGORY_CONTEXT_BONUS = 0.5

# Matches below this confidence are discarded
MIN_MATCH_CONFIDENCE = 0.3

# Confidence at which the orchestrator routes to the workflow
ROUTING_CONFIDENCE = 0.5

CATEGORY_CONTEXTS: Dict[str, List[str]] = {
    "knowledge": ["what is", "how do", "explain", "tell me about", "ni iki", "sobanura"],
    "action": ["do", "execute", "perform", "kora", "send", "check"],
    "media": ["create", "generate", "make", "draw", "gukora", "design"],
    "research": ["find", "search", "look up", "latest", "current", "shakisha"],
    "code": ["run", "execute", "code", "calculate", "analyze", "kubara"],
}


@dataclass
class MatchResult:
    """Best workflow for a query."""

    workflow: WorkflowDefinition
    confidence: float
    matched_triggers: List[str] = field(default_factory=list)
    extracted_params: Dict[str, Any] = field(default_factory=dict)


class WorkflowMatcher:
    """Keyword/regex matcher over a list of workflow definitions."""

    def __init__(self, workflows: Optional[List[WorkflowDefinition]] = None):
        self.workflows = get_enabled_workflows(workflows)

    def match(self, query: str) -> Optional[MatchResult]:
        """Return the best match, or None when nothing scores high enough."""
        normalized = query.lower().strip()
        if not normalized:
            return None

        best: Optional[MatchResult] = None
        highest = 0.0

        for workflow in self.workflows:
            score, triggers, params = self._score(workflow, normalized)
            if score > highest:
                highest = score
                best = MatchResult(
                    workflow=workflow,
                    confidence=min(score / 3, 1.0),
                    matched_triggers=triggers,
                    extracted_params=params,
                )

        if best and best.confidence >= MIN_MATCH_CONFIDENCE:
            logger.debug(
                f"Workflow match {best.workflow.id} (confidence {best.confidence:.2f}, "
                f"triggers {best.matched_triggers})"
            )
            return best
        return None

    def should_route(self, match: Optional[MatchResult]) -> bool:
        return match is not None and match.confidence >= ROUTING_CONFIDENCE

    def _score(self, workflow: WorkflowDefinition, query: str):
        score = 0.0
        matched: List[str] = []
        params: Dict[str, Any] = {}

        for trigger in workflow.triggers:
            trigger_lower = trigger.lower()
            if query == trigger_lower:
                score += EXACT_TRIGGER_SCORE
            elif query.startswith(trigger_lower + " "):
                score += PREFIX_TRIGGER_SCORE
            elif re.search(rf"\b{re.escape(trigger_lower)}\b", query):
                score += WORD_TRIGGER_SCORE
            elif trigger_lower in query:
                score += SUBSTRING_TRIGGER_SCORE
            else:
                continue
            matched.append(trigger)

        for pattern in workflow.trigger_patterns:
            found = pattern.search(query)
            if found:
                score += PATTERN_SCORE
                matched.append(f"pattern:{pattern.pattern}")
                params.update({k: v for k, v in found.groupdict().items() if v is not None})

        score += self._category_bonus(workflow.category, query)
        return score, matched, params

    @staticmethod
    def _category_bonus(category: str, query: str) -> float:
        return sum(
            CATEGORY_CONTEXT_BONUS
            for context in CATEGORY_CONTEXTS.get(category, [])
            if context in query
        )


def extract_parameters(workflow: WorkflowDefinition, query: str) -> Dict[str, Any]:
    """Derive workflow parameters from the raw query.

    The first required parameter receives the query with leading trigger
    words stripped (or the whole query if nothing is left).
    """
    main_param = next((p for p in workflow.parameters if p.required), None)
    if main_param is None:
        return {}

    content = query
    for trigger in workflow.triggers:
        content = re.sub(rf"^{re.escape(trigger)}\s*", "", content, flags=re.IGNORECASE)
    return {main_param.name: content.strip() or query}
