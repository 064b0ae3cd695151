"""
Fallback replies for messages no intent recognises.
Asks a topic-specific follow-up when the conversation has a topic we can
elaborate on, otherwise returns the generic "didn't catch that" reply.
"""

from typing import Mapping, Optional

from context import ConversationContext
from intent import QuickAction, ResponseResult


CLARIFICATIONS = {
    "payment": "Are you asking about payment fees, bank transfer details or paying with crypto? "
               "Tell me a bit more and I'll point you in the right direction.",
    "orders": "Is this about tracking an order, changing one, or something that arrived damaged? "
              "Let me know which order you mean.",
    "products": "Which product are you interested in? You can tell me a category like "
                "shoes, phones or bags and I'll help you find it.",
    "shipping": "Do you want to know about delivery times, shipping costs or where your parcel is?",
    "returns": "Would you like to start a return, check on a refund, or read our return policy?",
}

GENERIC_FALLBACK = (
    "I didn't quite catch that 🤔 I can help with products, payments, orders or delivery. "
    "Try one of the options below."
)

GENERIC_ACTION_IDS = ("browse_shop", "view_orders", "contact_support")

_DEFAULT_ACTIONS = (
    QuickAction(label="Browse Shop", action_id="browse_shop", icon="shopping-bag"),
    QuickAction(label="My Orders", action_id="view_orders", icon="package"),
    QuickAction(label="Contact Support", action_id="contact_support", icon="help-circle"),
)


def generic_fallback(actions: Optional[Mapping[str, QuickAction]] = None) -> ResponseResult:
    """The generic reply with the three default quick actions"""
    defaults = {action.action_id: action for action in _DEFAULT_ACTIONS}
    if actions:
        defaults.update({a: actions[a] for a in GENERIC_ACTION_IDS if a in actions})
    return ResponseResult(
        text=GENERIC_FALLBACK,
        actions=tuple(defaults[a] for a in GENERIC_ACTION_IDS),
    )


def resolve(context: ConversationContext,
            actions: Optional[Mapping[str, QuickAction]] = None) -> ResponseResult:
    """Fallback reply for the current context; never raises"""
    topic = context.last_topic
    clarification = CLARIFICATIONS.get(topic) if isinstance(topic, str) else None
    if clarification:
        # no patch: last_topic stays as it was
        return ResponseResult(text=clarification)
    return generic_fallback(actions)
