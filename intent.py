"""
Intent types and scoring logic for the storefront chatbot.
Scores every catalog intent against a user message and picks the winner.
"""

import random
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from context import ConversationContext


PATTERN_SCORE = 100
KEYWORD_SCORE = 10
CONTEXT_BOOST = 5


@dataclass(frozen=True)
class QuickAction:
    """A follow-up the host resolves by action_id"""
    label: str
    action_id: str
    icon: Optional[str] = None


@dataclass(frozen=True)
class ResponseResult:
    text: str
    actions: Tuple[QuickAction, ...] = ()
    context_patch: Optional[Dict[str, Any]] = None


Responder = Callable[[ConversationContext, str, Optional[random.Random]], ResponseResult]


@dataclass(frozen=True)
class Intent:
    """
    One user goal: regex patterns (strong signal), keywords (weak signal),
    a priority multiplier and the responder that builds the reply.
    """
    id: str
    patterns: Tuple[re.Pattern, ...]
    keywords: Tuple[str, ...]
    priority: int
    responder: Responder = field(compare=False, repr=False)

    def respond(self, context: ConversationContext, message: str,
                rng: Optional[random.Random] = None) -> ResponseResult:
        return self.responder(context, message, rng)


@dataclass(frozen=True)
class IntentScore:
    intent_id: str
    score: int


def normalize_message(message: str) -> str:
    """Lower-case and trim a message before matching"""
    return message.lower().strip()


def _first_pattern_span(intent: Intent, normalized: str) -> Optional[Tuple[int, int]]:
    # only the first matching pattern counts
    for pattern in intent.patterns:
        match = pattern.search(normalized)
        if match:
            return match.span()
    return None


def _keyword_hits(keywords: Sequence[str], normalized: str,
                  span: Optional[Tuple[int, int]]) -> int:
    """Count distinct keywords starting at a word boundary outside the pattern-matched span"""
    text = normalized
    if span is not None:
        start, end = span
        text = normalized[:start] + "\x00" + normalized[end:]
    return sum(1 for keyword in keywords if re.search(r"\b" + re.escape(keyword), text))


def score_intent(intent: Intent, normalized: str, context: ConversationContext) -> int:
    """Final score of a single intent against an already normalized message"""
    span = _first_pattern_span(intent, normalized)
    pattern_score = PATTERN_SCORE if span is not None else 0
    keyword_score = KEYWORD_SCORE * _keyword_hits(intent.keywords, normalized, span)

    # The boost sharpens an existing match, it never creates one
    context_boost = 0
    if pattern_score or keyword_score:
        if context.last_topic and context.last_topic in intent.id:
            context_boost = CONTEXT_BOOST

    raw_score = pattern_score + keyword_score + context_boost
    return raw_score * intent.priority


def score(message: str, context: ConversationContext,
          catalog: Sequence[Intent]) -> List[IntentScore]:
    """Score every intent in catalog order"""
    normalized = normalize_message(message)
    return [IntentScore(intent.id, score_intent(intent, normalized, context)) for intent in catalog]


def pick_winner(scores: Sequence[IntentScore]) -> Optional[IntentScore]:
    """
    Stable max: the earliest entry wins ties, only a strictly greater score
    replaces the current best. Returns None when nothing scored above zero.
    """
    best = None
    for entry in scores:
        if best is None or entry.score > best.score:
            best = entry
    if best is None or best.score <= 0:
        return None
    return best


def detect_intent(message: str, context: ConversationContext,
                  catalog: Sequence[Intent]) -> Tuple[Optional[Intent], int]:
    """Return the winning intent and its score, or (None, 0)"""
    winner = pick_winner(score(message, context, catalog))
    if winner is None:
        return None, 0
    for intent in catalog:
        if intent.id == winner.intent_id:
            return intent, winner.score
    return None, 0
