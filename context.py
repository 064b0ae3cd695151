"""
Conversation context for a single chat session.
Only the dispatcher mutates it, by merging patches returned from intent responders.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, FrozenSet, Mapping, Optional


@dataclass
class ConversationContext:
    last_topic: Optional[str] = None
    mentioned_products: FrozenSet[str] = field(default_factory=frozenset)
    asked_about_orders: bool = False
    asked_about_payments: bool = False
    greeting_given: bool = False
    message_count: int = 0

    @classmethod
    def field_names(cls) -> FrozenSet[str]:
        return frozenset(f.name for f in fields(cls))

    def merged(self, patch: Optional[Mapping[str, Any]]) -> "ConversationContext":
        """Return a copy with the patch shallow-merged in"""
        if not patch:
            return self.snapshot()
        unknown = set(patch) - self.field_names()
        if unknown:
            raise ValueError(f"Unknown context fields in patch: {sorted(unknown)}")
        changes: Dict[str, Any] = dict(patch)
        _check_types(changes)
        if "mentioned_products" in changes:
            changes["mentioned_products"] = frozenset(changes["mentioned_products"] or ())
        return replace(self, **changes)

    def apply(self, patch: Optional[Mapping[str, Any]]) -> None:
        """Merge a patch into this context in place"""
        updated = self.merged(patch)
        for name in self.field_names():
            setattr(self, name, getattr(updated, name))

    def snapshot(self) -> "ConversationContext":
        return replace(self)


FLAG_FIELDS = ("asked_about_orders", "asked_about_payments", "greeting_given")


def _check_types(changes: Mapping[str, Any]) -> None:
    """Reject patch values the scorer and fallback could not work with"""
    if "last_topic" in changes:
        topic = changes["last_topic"]
        if topic is not None and not isinstance(topic, str):
            raise ValueError(f"last_topic must be a string or None, got {topic!r}")
    for name in FLAG_FIELDS:
        if name in changes and not isinstance(changes[name], bool):
            raise ValueError(f"{name} must be a bool, got {changes[name]!r}")
    if "message_count" in changes:
        count = changes["message_count"]
        if isinstance(count, bool) or not isinstance(count, int):
            raise ValueError(f"message_count must be an int, got {count!r}")
    if "mentioned_products" in changes:
        products = changes["mentioned_products"]
        if isinstance(products, str):
            raise ValueError("mentioned_products must be a collection of names, not a string")
        if products is not None and not all(isinstance(p, str) for p in products):
            raise ValueError(f"mentioned_products must only hold strings, got {products!r}")
