#!/usr/bin/env python3
"""
Unit tests for individual intent responders, each built without the full catalog
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import random
from dataclasses import replace

import pytest
from context import ConversationContext
from data_loader import load_quick_actions, load_store_info
from intents import (
    DEFAULT_INTENTS, GREETINGS, WELCOME_BACK, StoreData, load_catalog, find_product_mentions, pick_phrase,
    respond_greeting, respond_orders, respond_payment, respond_products,
    respond_returns, respond_shipping, respond_thanks
)


@pytest.fixture
def store():
    return StoreData(info=load_store_info(), quick_actions=load_quick_actions())


def for_intent(store, intent_id):
    definition = next(d for d in DEFAULT_INTENTS if d.id == intent_id)
    return replace(store, action_ids=tuple(definition.action_ids))


def test_first_greeting(store):
    result = respond_greeting(for_intent(store, "greeting"), ConversationContext(), "hi", None)

    assert result.text == GREETINGS[0].format(bot="TrendyBot", store="TrendyCart")
    assert result.context_patch == {"last_topic": "greeting", "greeting_given": True}
    assert [a.action_id for a in result.actions] == ["browse_shop", "view_orders"]


def test_returning_greeting(store):
    result = respond_greeting(store, ConversationContext(greeting_given=True), "hello", None)
    assert result.text == WELCOME_BACK[0]


def test_greeting_phrasing_follows_random_source(store):
    texts = {
        respond_greeting(store, ConversationContext(), "hi", random.Random(seed)).text
        for seed in range(30)
    }
    assert len(texts) > 1
    assert texts <= {g.format(bot="TrendyBot", store="TrendyCart") for g in GREETINGS}


def test_thanks_clears_topic(store):
    result = respond_thanks(store, ConversationContext(last_topic="payment"), "thanks", None)
    assert result.context_patch == {"last_topic": None}


def test_payment_details(store):
    result = respond_payment(for_intent(store, "payment"), ConversationContext(), "how do i pay", None)

    assert "**Bank Transfer**" in result.text
    assert "USDT (TRC20)" in result.text
    assert result.context_patch == {"last_topic": "payment", "asked_about_payments": True}
    assert [a.action_id for a in result.actions] == ["checkout", "confirm_payment", "contact_support"]


def test_orders_sets_flag(store):
    result = respond_orders(store, ConversationContext(), "where is my order", None)
    assert result.context_patch["asked_about_orders"] == True
    assert "Dashboard > Orders" in result.text


def test_shipping_and_returns_use_store_facts(store):
    assert "$50" in respond_shipping(store, ConversationContext(), "shipping", None).text
    assert "30-day" in respond_returns(store, ConversationContext(), "returns", None).text


def test_products_merges_mentions(store):
    context = ConversationContext(mentioned_products=frozenset({"watch"}))
    result = respond_products(store, context, "Do you have SHOES or a phone?", None)

    assert result.context_patch["mentioned_products"] == {"watch", "shoes", "phone"}
    assert result.context_patch["last_topic"] == "products"
    assert "shoes, phone" in result.text
    assert context.mentioned_products == {"watch"}


def test_find_product_mentions():
    assert find_product_mentions("Red Dress please", ["dress", "bag"]) == ["dress"]
    assert find_product_mentions("nothing here", ["dress"]) == []
    assert find_product_mentions("my new address", ["dress"]) == []


def test_catalog_replies_carry_declared_actions():
    """Each intent replies with exactly the quick actions its definition lists"""
    catalog = {intent.id: intent for intent in load_catalog()}
    for definition in DEFAULT_INTENTS:
        result = catalog[definition.id].respond(ConversationContext(), "hi")
        assert [a.action_id for a in result.actions] == list(definition.action_ids)


def test_pick_phrase_without_rng():
    assert pick_phrase(("a", "b"), None) == "a"
    assert pick_phrase(("a", "b"), random.Random(3)) in ("a", "b")


if __name__ == "__main__":
    pytest.main([__file__])
