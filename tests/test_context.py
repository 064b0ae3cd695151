#!/usr/bin/env python3
"""
Unit tests for conversation context patches
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from context import ConversationContext


def test_merge_returns_updated_copy():
    context = ConversationContext()
    updated = context.merged({"last_topic": "orders", "asked_about_orders": True,
                              "mentioned_products": ["shoes"]})

    assert updated.last_topic == "orders"
    assert updated.asked_about_orders == True
    assert updated.mentioned_products == frozenset({"shoes"})
    assert context.last_topic is None


def test_last_topic_can_be_cleared():
    context = ConversationContext(last_topic="payment")
    assert context.merged({"last_topic": None}).last_topic is None


def test_empty_patch_leaves_context_alone():
    context = ConversationContext(last_topic="cart", message_count=3)
    assert context.merged(None) == context
    assert context.merged({}) == context


def test_unknown_field_rejected():
    with pytest.raises(ValueError):
        ConversationContext().merged({"favourite_colour": "red"})


@pytest.mark.parametrize("patch", [
    {"last_topic": 5},
    {"last_topic": ["payment"]},
    {"greeting_given": "yes"},
    {"asked_about_payments": 1},
    {"message_count": "2"},
    {"message_count": True},
    {"mentioned_products": "shoes"},
    {"mentioned_products": [1, 2]},
])
def test_wrongly_typed_values_rejected(patch):
    with pytest.raises(ValueError):
        ConversationContext().merged(patch)


def test_rejected_patch_is_not_applied():
    context = ConversationContext(last_topic="orders")
    with pytest.raises(ValueError):
        context.apply({"last_topic": "payment", "greeting_given": "yes"})
    assert context.last_topic == "orders"
    assert context.greeting_given == False


if __name__ == "__main__":
    pytest.main([__file__])
