"""
Data loading functions for the storefront chatbot.
Handles loading store facts (payment details, policies, product categories)
and the quick action table shared by the chatbot and its host.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from intent import QuickAction


logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"
STORE_INFO_FILE = DATA_DIR / "store_info.json"
QUICK_ACTIONS_FILE = DATA_DIR / "quick_actions.csv"

ACTION_COLUMNS = ["action_id", "label", "icon", "route"]

DEFAULT_STORE_INFO = {
    "store_name": "TrendyCart",
    "bot_name": "TrendyBot",
    "support_email": "trendycart96@gmail.com",
    "free_shipping_threshold": 50,
    "return_days": 30,
    "payment": {
        "bank": {"name": "", "account_name": "", "account_number": ""},
        "crypto": {"network": "USDT (TRC20)", "wallet_address": ""},
    },
    "product_categories": [],
    "recently_asked": ["How do I pay?", "Track my order", "Return policy", "Shipping info", "Browse deals"],
}

DEFAULT_ACTION_ROWS = [
    ("browse_shop", "Browse Shop", "shopping-bag", "/shop"),
    ("view_orders", "My Orders", "package", "/user-dashboard"),
    ("contact_support", "Contact Support", "help-circle", "/contact"),
    ("view_cart", "View Cart", "shopping-cart", "/cart"),
    ("checkout", "Go to Checkout", "credit-card", "/checkout"),
    ("confirm_payment", "I've Made Payment", "check", "/user-dashboard"),
    ("browse_deals", "Browse Deals", "tag", "/shop?deals=1"),
    ("view_wishlist", "My Wishlist", "heart", "/wishlist"),
    ("return_item", "Start a Return", "rotate-ccw", "/orders"),
]


def load_store_info(path: Optional[Path] = None) -> Dict:
    """Load store facts from JSON, falling back to built-in defaults"""
    path = Path(path) if path else STORE_INFO_FILE
    info = dict(DEFAULT_STORE_INFO)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            info.update(json.load(f))
    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.warning("Could not load store info from %s: %s", path, e)
    return info


def load_action_table(path: Optional[Path] = None) -> pd.DataFrame:
    """Load the quick action table from CSV"""
    path = Path(path) if path else QUICK_ACTIONS_FILE
    try:
        table = pd.read_csv(path, dtype=str, keep_default_na=False)
    except (FileNotFoundError, pd.errors.EmptyDataError) as e:
        logger.warning("Could not load quick actions from %s: %s", path, e)
        return pd.DataFrame(DEFAULT_ACTION_ROWS, columns=ACTION_COLUMNS)

    missing = [column for column in ACTION_COLUMNS if column not in table.columns]
    if missing:
        raise ValueError(f"{path} is missing columns: {', '.join(missing)}")

    table = table[ACTION_COLUMNS].apply(lambda column: column.str.strip())
    duplicated = table['action_id'][table['action_id'].duplicated()].tolist()
    if duplicated:
        raise ValueError(f"{path} has duplicate action ids: {', '.join(duplicated)}")
    return table


def load_quick_actions(table: Optional[pd.DataFrame] = None) -> Dict[str, QuickAction]:
    """Build QuickAction objects keyed by action id"""
    if table is None:
        table = load_action_table()
    return {
        row.action_id: QuickAction(label=row.label, action_id=row.action_id, icon=row.icon or None)
        for row in table.itertuples(index=False)
    }


def load_action_routes(table: Optional[pd.DataFrame] = None) -> Dict[str, str]:
    """Map action ids to host routes"""
    if table is None:
        table = load_action_table()
    return dict(zip(table['action_id'], table['route']))


def load_recently_asked(info: Optional[Dict] = None) -> List[str]:
    info = info if info is not None else load_store_info()
    return list(info.get("recently_asked", []))
