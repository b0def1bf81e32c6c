from livechat.client.transport import ChatTransport, HttpChatTransport
from livechat.client.view import ChatView, RenderedMessage, ViewState

__all__ = [
    "ChatTransport",
    "ChatView",
    "HttpChatTransport",
    "RenderedMessage",
    "ViewState",
]
