"""
Executors that apply committed actions to the output text.
"""
import logging
import webbrowser
from typing import Callable, Optional
from urllib.parse import quote_plus

from .types import Action, ActionExecutor, AppendLetter, ClearOutput, TriggerSearch

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_URL = "https://www.google.com/search?q={query}"

SearchLauncher = Callable[[str], None]


def build_search_url(query: str, url_template: str = DEFAULT_SEARCH_URL) -> str:
    return url_template.format(query=quote_plus(query))


def web_search_launcher(url_template: str = DEFAULT_SEARCH_URL) -> SearchLauncher:
    """Return a launcher that opens the search in the system browser."""
    def launch(query: str) -> None:
        url = build_search_url(query, url_template)
        logger.info("Opening search: %s", url)
        webbrowser.open(url)
    return launch


class TextBufferExecutor:
    """Keeps the typed text and runs searches on request."""

    def __init__(self, search_launcher: Optional[SearchLauncher] = None):
        self.text = ""
        self.search_launcher = search_launcher or web_search_launcher()
        self.search_count = 0

    async def append_letter(self, letter: str) -> None:
        self.text += letter

    async def clear_output(self) -> None:
        self.text = ""

    async def trigger_search(self, query: str) -> None:
        """Run the search launcher; an empty query is ignored."""
        if not query:
            logger.info("Search requested with empty text, ignoring")
            return
        self.search_count += 1
        self.search_launcher(query)


async def dispatch_action(action: Action, executor: ActionExecutor, text: str = "") -> None:
    """
    Apply one committed action to an executor.

    Args:
        action: The committed action
        executor: Target executor
        text: Current output text, used as the search query
    """
    if isinstance(action, AppendLetter):
        await executor.append_letter(action.letter)
    elif isinstance(action, ClearOutput):
        await executor.clear_output()
    elif isinstance(action, TriggerSearch):
        await executor.trigger_search(text)
    else:
        raise TypeError(f"Unknown action: {action!r}")
