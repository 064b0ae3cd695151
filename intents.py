"""
intents.py  – the storefront intent catalog
-------------------------------------------
Each intent is declared as an IntentDefinition (patterns, keywords, priority,
responder) and compiled once by load_catalog(). Responders are plain
functions of (store, context, message, rng) so each one can be tested alone.

Default intents, in catalog order:
    • greeting   • thanks    • goodbye   • payment
    • orders     • shipping  • returns   • products
    • deals      • cart      • support   • help
"""

import functools
import random
import re
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from context import ConversationContext
from data_loader import load_quick_actions, load_store_info
from intent import Intent, QuickAction, ResponseResult, normalize_message


class CatalogError(ValueError):
    """Raised when the intent catalog cannot be built"""


@dataclass(frozen=True)
class StoreData:
    info: Mapping
    quick_actions: Mapping[str, QuickAction]
    action_ids: Tuple[str, ...] = ()

    def actions(self) -> Tuple[QuickAction, ...]:
        """Quick actions declared by the intent this store view was built for"""
        return tuple(self.quick_actions[action_id] for action_id in self.action_ids)

    @property
    def store_name(self) -> str:
        return self.info.get("store_name", "TrendyCart")

    @property
    def bot_name(self) -> str:
        return self.info.get("bot_name", "TrendyBot")


StoreResponder = Callable[[StoreData, ConversationContext, str, Optional[random.Random]], ResponseResult]


@dataclass(frozen=True)
class IntentDefinition:
    id: str
    patterns: Sequence[str]
    keywords: Sequence[str]
    priority: int
    responder: StoreResponder
    action_ids: Sequence[str] = field(default_factory=tuple)


def pick_phrase(phrasings: Sequence[str], rng: Optional[random.Random]) -> str:
    """Pick one canned phrasing; the first one when no random source is given"""
    if rng is None:
        return phrasings[0]
    return rng.choice(list(phrasings))


# ----------------------------------------------------------------
# Responders
# ----------------------------------------------------------------
GREETINGS = (
    "Hey 👋 I'm {bot}, your smart shopping assistant. How can I help you today?",
    "Hi there! I'm {bot}. Ask me about products, payments, orders or delivery.",
    "Hello! 😊 Welcome to {store}. What are you shopping for today?",
)
WELCOME_BACK = (
    "Welcome back! 😊 What else can I help you with?",
    "Hi again! Ask me anything about products, payments, orders or delivery.",
)


def respond_greeting(store, context, message, rng):
    phrasings = WELCOME_BACK if context.greeting_given else GREETINGS
    text = pick_phrase(phrasings, rng).format(bot=store.bot_name, store=store.store_name)
    return ResponseResult(
        text=text,
        actions=store.actions(),
        context_patch={"last_topic": "greeting", "greeting_given": True},
    )


def respond_thanks(store, context, message, rng):
    text = pick_phrase((
        "You're welcome! 😊 Anything else I can help with?",
        "Happy to help! Let me know if you need anything else.",
        "Anytime! Feel free to ask if something else comes up.",
    ), rng)
    return ResponseResult(text=text, context_patch={"last_topic": None})


def respond_goodbye(store, context, message, rng):
    text = pick_phrase((
        "Thanks for shopping with {store}! Have a lovely day 👋",
        "Bye for now! Come back any time you need a hand. 👋",
    ), rng).format(store=store.store_name)
    return ResponseResult(text=text, context_patch={"last_topic": None})


def format_payment_details(info: Mapping) -> str:
    payment = info.get("payment", {})
    bank = payment.get("bank", {})
    crypto = payment.get("crypto", {})
    return (
        "**Payment Methods Available:**\n\n"
        "1. **Bank Transfer** 🏦\n"
        f"   • Bank Name: {bank.get('name', '')}\n"
        f"   • Account Name: {bank.get('account_name', '')}\n"
        f"   • Account Number: {bank.get('account_number', '')}\n\n"
        "2. **Cryptocurrency** 💰\n"
        f"   • Network: {crypto.get('network', '')}\n"
        f"   • Wallet Address: {crypto.get('wallet_address', '')}\n\n"
        "After payment, please confirm by tapping \"I've Made Payment\" "
        "or contact support if you need help."
    )


def respond_payment(store, context, message, rng):
    return ResponseResult(
        text=format_payment_details(store.info),
        actions=store.actions(),
        context_patch={"last_topic": "payment", "asked_about_payments": True},
    )


def respond_orders(store, context, message, rng):
    text = pick_phrase((
        "📦 You can track all your orders from **Dashboard > Orders**. "
        "Each order shows its current status and delivery updates.",
        "To check an order, open **Dashboard > Orders** and pick the order you want to follow.",
    ), rng)
    return ResponseResult(
        text=text,
        actions=store.actions(),
        context_patch={"last_topic": "orders", "asked_about_orders": True},
    )


def respond_shipping(store, context, message, rng):
    threshold = store.info.get("free_shipping_threshold", 50)
    text = (
        f"🚚 **Free shipping** on all orders over ${threshold}.\n"
        "• Delivery updates appear in Dashboard > Orders\n"
        "• Shipping costs for smaller orders are shown at checkout"
    )
    return ResponseResult(
        text=text,
        actions=store.actions(),
        context_patch={"last_topic": "shipping"},
    )


def respond_returns(store, context, message, rng):
    days = store.info.get("return_days", 30)
    text = (
        f"↩️ We offer a **{days}-day return policy** on unused items. "
        "You can start a return from your order history."
    )
    return ResponseResult(
        text=text,
        actions=store.actions(),
        context_patch={"last_topic": "returns"},
    )


def find_product_mentions(message: str, categories: Iterable[str]) -> List[str]:
    """Known product categories named in the message, in category order"""
    normalized = normalize_message(message)
    return [
        category for category in categories
        if re.search(r"\b" + re.escape(category.lower()) + r"\b", normalized)
    ]


def respond_products(store, context, message, rng):
    found = find_product_mentions(message, store.info.get("product_categories", []))
    if found:
        text = (
            f"Great choice! We have a range of {', '.join(found)} in the shop. "
            "Browse the catalog to compare styles and prices."
        )
    else:
        text = pick_phrase((
            "We sell fashion, electronics and lifestyle products. "
            "Tell me what you're looking for, or browse the shop!",
            "Looking for something special? 🛍️ Our shop has fashion, electronics and lifestyle picks.",
        ), rng)
    return ResponseResult(
        text=text,
        actions=store.actions(),
        context_patch={
            "last_topic": "products",
            "mentioned_products": context.mentioned_products | frozenset(found),
        },
    )


def respond_deals(store, context, message, rng):
    text = pick_phrase((
        "🔥 Our latest deals and coupons are live in the shop. Grab them before they're gone!",
        "Good timing! Check the deals section for today's discounts. 🏷️",
    ), rng)
    return ResponseResult(
        text=text,
        actions=store.actions(),
        context_patch={"last_topic": "deals"},
    )


def respond_cart(store, context, message, rng):
    return ResponseResult(
        text="🛒 Your cart is one tap away. Review your items and head to checkout when you're ready.",
        actions=store.actions(),
        context_patch={"last_topic": "cart"},
    )


def respond_support(store, context, message, rng):
    email = store.info.get("support_email", "")
    return ResponseResult(
        text=f"Our support team is happy to help! You can reach them at **{email}** "
             "or through the contact page.",
        actions=store.actions(),
        context_patch={"last_topic": "support"},
    )


HELP_OVERVIEW = (
    "I can help with:\n"
    "• **Products** (e.g. \"do you have sneakers?\")\n"
    "• **Payments** (e.g. \"how do I pay?\")\n"
    "• **Orders & tracking** (e.g. \"where is my order?\")\n"
    "• **Shipping & returns** (e.g. \"return policy\")\n"
    "• **Deals & coupons**\n\n"
    "What would you like to ask?"
)


def respond_help(store, context, message, rng):
    return ResponseResult(
        text=HELP_OVERVIEW,
        actions=store.actions(),
        context_patch={"last_topic": None},
    )


# ----------------------------------------------------------------
# Default catalog
# ----------------------------------------------------------------
DEFAULT_INTENTS = (
    IntentDefinition(
        id="greeting",
        patterns=(r"^(hi|hello|hey|hiya|howdy)\b", r"^good (morning|afternoon|evening)\b"),
        keywords=(),
        priority=10,
        responder=respond_greeting,
        action_ids=("browse_shop", "view_orders"),
    ),
    IntentDefinition(
        id="thanks",
        patterns=(r"\b(thanks|thank you|thx|cheers)\b",),
        keywords=("thank", "appreciate"),
        priority=9,
        responder=respond_thanks,
    ),
    IntentDefinition(
        id="goodbye",
        patterns=(r"\b(bye|goodbye|see you|see ya)\b",),
        keywords=(),
        priority=9,
        responder=respond_goodbye,
    ),
    IntentDefinition(
        id="payment",
        patterns=(
            r"pay (for|with)",
            r"how (do|can) i (pay|make a payment)",
            r"payment (methods?|options?|details?)",
            r"\b(bank|account) (details|number)\b",
        ),
        keywords=("pay", "payment", "bank", "transfer", "crypto", "usdt", "wallet"),
        priority=8,
        responder=respond_payment,
        action_ids=("checkout", "confirm_payment", "contact_support"),
    ),
    IntentDefinition(
        id="orders",
        patterns=(
            r"\btrack(ing)? (my )?(order|package|parcel)s?\b",
            r"where('?s| is) my (order|package|parcel)",
            r"\border status\b",
        ),
        keywords=("my order", "order number", "tracking", "package", "parcel", "delivered"),
        priority=8,
        responder=respond_orders,
        action_ids=("view_orders", "contact_support"),
    ),
    IntentDefinition(
        id="shipping",
        patterns=(r"\bship(ping)? (cost|fee|time|info)", r"how long .*(deliver|ship)", r"\bfree shipping\b"),
        keywords=("shipping", "ship to", "ships to", "deliver", "courier"),
        priority=7,
        responder=respond_shipping,
        action_ids=("browse_shop", "view_cart"),
    ),
    IntentDefinition(
        id="returns",
        patterns=(r"\breturn polic(y|ies)\b", r"\b(return|refund|exchange) (an? |my |this )?(item|order|product)"),
        keywords=("return", "refund", "exchange"),
        priority=7,
        responder=respond_returns,
        action_ids=("return_item", "contact_support"),
    ),
    IntentDefinition(
        id="products",
        patterns=(r"\b(looking|searching) for\b", r"\bdo you (have|sell|stock)\b", r"\bshow me\b"),
        keywords=("find", "product", "buy", "catalog", "shoes", "sneakers", "phone", "laptop"),
        priority=7,
        responder=respond_products,
        action_ids=("browse_shop", "browse_deals", "view_wishlist"),
    ),
    IntentDefinition(
        id="deals",
        patterns=(r"\b(deals?|discounts?|coupons?|promo( codes?)?)\b",),
        keywords=("deals", "discount", "coupon", "promo", "on sale"),
        priority=6,
        responder=respond_deals,
        action_ids=("browse_deals", "browse_shop"),
    ),
    IntentDefinition(
        id="cart",
        patterns=(r"\b(my|view|open|show) (cart|basket)\b",),
        keywords=("my cart", "shopping cart", "basket", "checkout"),
        priority=6,
        responder=respond_cart,
        action_ids=("view_cart", "checkout"),
    ),
    IntentDefinition(
        id="support",
        patterns=(
            r"\b(talk|speak|chat) (to|with) (a )?(human|person|agent|someone)\b",
            r"\bcontact (you|us|support)\b",
            r"\bcustomer (service|support)\b",
        ),
        keywords=("contact", "support", "email", "an agent", "human", "complaint"),
        priority=6,
        responder=respond_support,
        action_ids=("contact_support",),
    ),
    IntentDefinition(
        id="help",
        patterns=(r"^(help|menu|options)\W*$", r"\bwhat can you do\b", r"\bhow can you help\b"),
        keywords=("help",),
        priority=5,
        responder=respond_help,
        action_ids=("browse_shop", "view_orders", "contact_support"),
    ),
)


def _compile_patterns(definition: IntentDefinition) -> Tuple[re.Pattern, ...]:
    compiled = []
    for pattern in definition.patterns:
        try:
            compiled.append(re.compile(pattern, re.IGNORECASE))
        except re.error as e:
            raise CatalogError(f"Intent '{definition.id}' has an invalid pattern {pattern!r}: {e}")
    return tuple(compiled)


def _normalize_keywords(keywords: Iterable[str]) -> Tuple[str, ...]:
    # dict keeps first-seen order while dropping duplicates
    return tuple(dict.fromkeys(k.lower().strip() for k in keywords if k and k.strip()))


def load_catalog(definitions: Optional[Sequence[IntentDefinition]] = None,
                 store: Optional[Mapping] = None,
                 actions: Optional[Mapping[str, QuickAction]] = None) -> Tuple[Intent, ...]:
    """Compile and validate intent definitions into a read-only catalog"""
    definitions = DEFAULT_INTENTS if definitions is None else definitions
    store_data = StoreData(
        info=store if store is not None else load_store_info(),
        quick_actions=actions if actions is not None else load_quick_actions(),
    )

    catalog: List[Intent] = []
    seen: Dict[str, IntentDefinition] = {}
    for definition in definitions:
        if not definition.id:
            raise CatalogError("Intent id must not be empty")
        if definition.id in seen:
            raise CatalogError(f"Duplicate intent id '{definition.id}'")
        priority = definition.priority
        if isinstance(priority, bool) or not isinstance(priority, int) or priority <= 0:
            raise CatalogError(f"Intent '{definition.id}' needs a positive integer priority, got {priority!r}")
        missing = [a for a in definition.action_ids if a not in store_data.quick_actions]
        if missing:
            raise CatalogError(f"Intent '{definition.id}' refers to unknown quick actions: {', '.join(missing)}")

        seen[definition.id] = definition
        catalog.append(Intent(
            id=definition.id,
            patterns=_compile_patterns(definition),
            keywords=_normalize_keywords(definition.keywords),
            priority=priority,
            responder=functools.partial(
                definition.responder, replace(store_data, action_ids=tuple(definition.action_ids))
            ),
        ))

    return tuple(catalog)
