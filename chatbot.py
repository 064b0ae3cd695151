"""
Main StorefrontChatbot class for the storefront assistant.
Coordinates intent scoring, fallback replies and the conversation context for one chat session.
"""

import asyncio
import itertools
import logging
import random
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Deque, Dict, List, Optional, Sequence, Tuple

import fallback_handler
from config import Settings, load_settings
from context import ConversationContext
from data_loader import load_quick_actions, load_recently_asked, load_store_info
from intent import Intent, QuickAction, detect_intent
from intents import load_catalog


logger = logging.getLogger(__name__)

IDLE = "idle"
AWAITING_REPLY = "awaiting_reply"

WELCOME_ACTION_IDS = ("browse_shop", "view_orders")


@dataclass(frozen=True)
class Message:
    id: str
    content: str
    sender: str  # "user" or "bot"
    timestamp: datetime
    actions: Tuple[QuickAction, ...] = ()
    reply_to: Optional[str] = None


class StorefrontChatbot:
    def __init__(self,
                 catalog: Optional[Sequence[Intent]] = None,
                 settings: Optional[Settings] = None,
                 rng: Optional[random.Random] = None,
                 sleep: Optional[Callable[[float], Awaitable[None]]] = None,
                 on_action: Optional[Callable[[str], None]] = None,
                 on_error: Optional[Callable[[Exception, str], None]] = None,
                 quick_actions: Optional[Dict[str, QuickAction]] = None,
                 store_info: Optional[Dict] = None):
        self.settings = settings or load_settings()

        # Load store data
        self.store_info = dict(store_info if store_info is not None else load_store_info())
        self.store_info.update(store_name=self.settings.store_name, bot_name=self.settings.bot_name)
        self.quick_actions = quick_actions if quick_actions is not None else load_quick_actions()
        self.catalog = tuple(catalog) if catalog is not None else load_catalog(
            store=self.store_info, actions=self.quick_actions
        )

        # Injected collaborators
        self.rng = rng or random.Random()
        self._sleep = sleep or asyncio.sleep
        self.on_action = on_action
        self.on_error = on_error

        # Session state
        self.context = ConversationContext()
        self.messages: List[Message] = []
        self._ids = itertools.count(1)
        self._pending: Deque[asyncio.Task] = deque()
        self._closed = False

    @property
    def state(self) -> str:
        return AWAITING_REPLY if self._pending else IDLE

    @property
    def closed(self) -> bool:
        return self._closed

    def _new_message(self, content: str, sender: str, actions: Sequence[QuickAction] = (),
                     reply_to: Optional[str] = None) -> Message:
        message = Message(
            id=str(next(self._ids)),
            content=content,
            sender=sender,
            timestamp=datetime.now(),
            actions=tuple(actions),
            reply_to=reply_to,
        )
        self.messages.append(message)
        return message

    def start(self) -> Optional[Message]:
        """Post the welcome message when the conversation is opened empty"""
        if self.messages or self._closed:
            return None
        text = (f"Hey 👋 I'm {self.settings.bot_name}, your smart shopping assistant. "
                "How can I help you today?")
        actions = [self.quick_actions[a] for a in WELCOME_ACTION_IDS if a in self.quick_actions]
        return self._new_message(text, "bot", actions)

    def suggestions(self) -> List[str]:
        """Recently asked prompts the host can offer as chips"""
        return load_recently_asked(self.store_info)

    def send(self, text: str) -> Optional[Message]:
        """
        Append the user message and schedule the reply.
        Must be called from a running event loop. Empty input is ignored.
        """
        if self._closed:
            logger.debug("Ignoring message sent after close")
            return None
        if not text or not text.strip():
            logger.debug("Ignoring empty message")
            return None

        user_message = self._new_message(text, "user")
        delay = self.rng.uniform(self.settings.typing_delay_min, self.settings.typing_delay_max)
        previous = self._pending[-1] if self._pending else None
        task = asyncio.get_running_loop().create_task(
            self._deferred_reply(text, user_message.id, delay, previous)
        )
        self._pending.append(task)
        task.add_done_callback(self._forget)
        return user_message

    def _forget(self, task: asyncio.Task) -> None:
        try:
            self._pending.remove(task)
        except ValueError:
            pass

    async def _deferred_reply(self, text: str, user_message_id: str, delay: float,
                              previous: Optional[asyncio.Task]) -> Message:
        await self._sleep(delay)
        if previous is not None:
            # replies are applied in the order their messages were sent
            await asyncio.wait([previous])
        return self._apply_turn(text, user_message_id)

    def _apply_turn(self, text: str, user_message_id: str) -> Message:
        """Resolve one message against the current context and record the reply"""
        intent = None
        try:
            intent, intent_score = detect_intent(text, self.context, self.catalog)
            if intent is not None:
                result = intent.respond(self.context.snapshot(), text, self.rng)
                logger.debug("Intent '%s' scored %s for message %r", intent.id, intent_score, text[:40])
            else:
                result = fallback_handler.resolve(self.context, self.quick_actions)
                logger.debug("No intent matched %r, using fallback", text[:40])
            # validate the patch before anything is applied
            self.context.merged(result.context_patch)
        except Exception as e:
            logger.exception("Turn for %r failed (intent: %s)", text[:40], intent.id if intent else None)
            if self.on_error is not None:
                try:
                    self.on_error(e, text)
                except Exception:
                    logger.exception("Error handler raised while reporting a failed turn")
            result = fallback_handler.generic_fallback(self.quick_actions)

        self.context.apply(result.context_patch)
        self.context.message_count += 1
        return self._new_message(result.text, "bot", result.actions, reply_to=user_message_id)

    async def drain(self) -> None:
        """Wait until every pending reply has been applied"""
        while self._pending:
            await asyncio.wait(list(self._pending))

    async def reply_to(self, text: str) -> Optional[Message]:
        """Send a message and wait for the bot reply answering it"""
        user_message = self.send(text)
        if user_message is None:
            return None
        await self.drain()
        for message in reversed(self.messages):
            if message.reply_to == user_message.id:
                return message
        return None

    def activate_action(self, action: QuickAction) -> None:
        """Hand a quick action over to the host; the chatbot never navigates itself"""
        if self.on_action is None:
            logger.warning("No action handler registered for '%s'", action.action_id)
            return
        self.on_action(action.action_id)

    def close(self) -> None:
        """Cancel pending replies; nothing is applied after this"""
        self._closed = True
        for task in list(self._pending):
            task.cancel()

    async def aclose(self) -> None:
        pending = list(self._pending)
        self.close()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def reset_session(self) -> None:
        """Start a fresh conversation with an empty context"""
        for task in list(self._pending):
            task.cancel()
        self._pending.clear()
        self.context = ConversationContext()
        self.messages = []
        self._closed = False


class ChatSessions:
    """
    One StorefrontChatbot per host session.
    The factory builds a chatbot for a new session id; its welcome message is posted on creation.
    """

    def __init__(self, factory: Callable[[str], StorefrontChatbot]):
        self._factory = factory
        self._sessions: Dict[str, StorefrontChatbot] = {}

    def get(self, session_id: str) -> StorefrontChatbot:
        chatbot = self._sessions.get(session_id)
        if chatbot is None:
            chatbot = self._factory(session_id)
            chatbot.start()
            self._sessions[session_id] = chatbot
            logger.debug("Started chat session %s", session_id)
        return chatbot

    def close(self, session_id: str) -> None:
        """Cancel the session's pending replies and forget it"""
        chatbot = self._sessions.pop(session_id, None)
        if chatbot is not None:
            chatbot.close()
            logger.debug("Closed chat session %s", session_id)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
