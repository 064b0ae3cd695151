"""
Gradio UI setup for the storefront chatbot.
Acts as the host application: renders replies with their quick actions and
turns a typed quick action label into a navigation request.
"""

import gradio as gr

from action_router import ActionRouter, match_action_label
from chatbot import ChatSessions, StorefrontChatbot
from config import configure_logging, load_settings
from data_loader import load_action_routes, load_quick_actions, load_store_info


def format_response_with_actions(message):
    """Append the reply's quick actions as a line of labels"""
    if not message.actions:
        return message.content
    labels = " · ".join(f"[{action.label}]" for action in message.actions)
    return f"{message.content}\n\n{labels}"


# One chatbot per browser session, keyed by Gradio's session hash
_sessions = None
_routes = None
DEFAULT_SESSION = "default"


def _new_chatbot(settings, store_info, quick_actions):
    """Build a chatbot with its own action router"""
    return StorefrontChatbot(
        settings=settings,
        store_info=store_info,
        quick_actions=quick_actions,
        on_action=ActionRouter(routes=_routes),
    )


def get_sessions():
    """Get or create the registry of per-session chatbots"""
    global _sessions, _routes
    if _sessions is None:
        settings = load_settings()
        store_info = load_store_info()
        quick_actions = load_quick_actions()
        _routes = load_action_routes()
        _sessions = ChatSessions(lambda session_id: _new_chatbot(settings, store_info, quick_actions))
    return _sessions


def get_chatbot_instance(request=None):
    """Get or create the chatbot for the requesting session"""
    session_id = getattr(request, "session_hash", None) or DEFAULT_SESSION
    return get_sessions().get(session_id)


async def end_session(request: gr.Request):
    """Drop the chatbot of a closed browser tab"""
    session_id = getattr(request, "session_hash", None)
    if session_id:
        get_sessions().close(session_id)


def _latest_actions(chatbot):
    for message in reversed(chatbot.messages):
        if message.sender == "bot":
            return message.actions
    return ()


async def chat_interface(message, history, request: gr.Request):
    """Main chat interface function"""
    chatbot = get_chatbot_instance(request)

    # Typing a quick action label triggers it instead of starting a new turn
    action = match_action_label(message, _latest_actions(chatbot))
    if action is not None:
        chatbot.activate_action(action)
        route = _routes.get(action.action_id)
        if route:
            return f"Opening **{action.label}** ({route})…"
        return f"Sorry, **{action.label}** isn't available right now."

    reply = await chatbot.reply_to(message)
    if reply is None:
        return "How can I help you today?"
    return format_response_with_actions(reply)


def create_interface():
    """Create and configure the Gradio interface"""
    settings = load_settings()
    get_sessions()  # loads the shared routes
    theme = gr.themes.Soft(primary_hue="cyan")

    # shown to every visitor; each session still posts its own welcome
    preview = _new_chatbot(settings, load_store_info(), load_quick_actions())
    welcome = preview.start()
    demo = gr.ChatInterface(
        fn=chat_interface,
        theme=theme,
        title=f"{settings.bot_name} AI",
        description=format_response_with_actions(welcome) if welcome else "Smart Shopping Assistant",
        examples=preview.suggestions(),
        textbox=gr.Textbox(
            placeholder=f"Ask {settings.bot_name}…",
            container=False
        ),
    )
    with demo:
        demo.unload(end_session)
    return demo


def launch_app():
    """Launch the Gradio application"""
    configure_logging(load_settings())
    demo = create_interface()
    demo.launch(show_error=True)


if __name__ == "__main__":
    launch_app()
