#!/usr/bin/env python3
"""
Unit tests for fallback replies when no intent matches
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
import fallback_handler
from context import ConversationContext
from data_loader import load_quick_actions


def test_payment_topic_gets_clarifying_question():
    context = ConversationContext(last_topic="payment")

    result = fallback_handler.resolve(context)

    assert result.text == fallback_handler.CLARIFICATIONS["payment"]
    assert "fees" in result.text.lower()
    assert result.actions == ()
    assert result.context_patch is None
    assert context.last_topic == "payment"


@pytest.mark.parametrize("topic", ["orders", "products", "shipping", "returns"])
def test_each_elaborable_topic_has_clarification(topic):
    result = fallback_handler.resolve(ConversationContext(last_topic=topic))
    assert result.text == fallback_handler.CLARIFICATIONS[topic]
    assert result.actions == ()


def test_no_topic_gives_generic_reply():
    result = fallback_handler.resolve(ConversationContext())

    assert "didn't quite catch that" in result.text.lower()
    assert [a.action_id for a in result.actions] == ["browse_shop", "view_orders", "contact_support"]
    assert result.context_patch is None


@pytest.mark.parametrize("topic", ["greeting", "deals", "", "PAYMENT"])
def test_unknown_topic_falls_through_to_generic(topic):
    result = fallback_handler.resolve(ConversationContext(last_topic=topic))
    assert result.text == fallback_handler.GENERIC_FALLBACK
    assert len(result.actions) == 3


def test_odd_topic_value_never_raises():
    context = ConversationContext()
    context.last_topic = ["not", "a", "string"]
    result = fallback_handler.resolve(context)
    assert result.text == fallback_handler.GENERIC_FALLBACK


def test_generic_reply_uses_store_action_labels():
    actions = load_quick_actions()
    result = fallback_handler.generic_fallback(actions)
    assert result.actions[0] is actions["browse_shop"]
    assert result.actions[2].label == "Contact Support"


def test_clarified_topics():
    assert set(fallback_handler.CLARIFICATIONS) == {"payment", "orders", "products", "shipping", "returns"}


if __name__ == "__main__":
    pytest.main([__file__])
