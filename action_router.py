"""
Host-side resolver for quick actions.
Maps action ids to storefront routes and matches typed text against quick action labels.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence

from rapidfuzz import fuzz, process

from data_loader import load_action_routes
from intent import QuickAction


logger = logging.getLogger(__name__)

LABEL_MATCH_CUTOFF = 85


class ActionRouter:
    def __init__(self, routes: Optional[Dict[str, str]] = None,
                 navigate: Optional[Callable[[str], None]] = None):
        self.routes = routes if routes is not None else load_action_routes()
        self.navigate = navigate
        self.history: List[str] = []

    def resolve(self, action_id: str) -> Optional[str]:
        """Route for an action id, or None when the host does not know it"""
        route = self.routes.get(action_id)
        if route is None:
            logger.warning("Unknown quick action '%s'", action_id)
            return None
        self.history.append(route)
        if self.navigate is not None:
            self.navigate(route)
        return route

    def __call__(self, action_id: str) -> None:
        self.resolve(action_id)


def match_action_label(text: str, actions: Sequence[QuickAction],
                       cutoff: int = LABEL_MATCH_CUTOFF) -> Optional[QuickAction]:
    """Find the quick action whose label the user typed, allowing small typos"""
    if not text or not actions:
        return None
    labels = [action.label.lower() for action in actions]
    match = process.extractOne(text.lower().strip(), labels, scorer=fuzz.ratio, score_cutoff=cutoff)
    if match:
        return actions[match[2]]
    return None
