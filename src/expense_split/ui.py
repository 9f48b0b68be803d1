"""Interactive UI components for the expense-split CLI."""

import logging
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from .models import Category

logger = logging.getLogger(__name__)


class CategoryCompleter(Completer):
    """Fuzzy search completer for expense categories."""

    def __init__(self, categories: list[Category]):
        """Initialize the completer with available categories."""
        self.categories = categories

        # Display name -> category id
        self.name_to_id = {cat.display_name: cat.id for cat in categories}

    def get_completions(self, document: Document, complete_event: Any):
        """Get fuzzy-matched completions."""
        query = document.text.lower()

        for full_name in self.name_to_id:
            if not query:
                yield Completion(text=full_name, start_position=0, display=full_name)
            elif self._fuzzy_match(query, full_name.lower()):
                yield Completion(
                    text=full_name,
                    start_position=-len(document.text),
                    display=full_name,
                )

    def _fuzzy_match(self, query: str, text: str) -> bool:
        """
        Fuzzy match: all characters in query must appear in order in text.

        Example:
            query="gro" matches "Food > Groceries"
            query="util" matches "Home > Utilities"
        """
        query_idx = 0
        for char in text:
            if query_idx < len(query) and char == query[query_idx]:
                query_idx += 1
        return query_idx == len(query)


def select_category_interactive(
    categories: list[Category],
    expense_description: str,
) -> str | None:
    """
    Interactive category selection with fuzzy search.

    Args:
        categories: Available categories
        expense_description: Description of the expense being categorized

    Returns:
        Selected category id, or None to leave the category blank
    """
    print(f"\n📝 Categorize: {expense_description}")
    print("   Type to search, press Enter to confirm, Ctrl+C to skip\n")

    completer = CategoryCompleter(categories)
    session: PromptSession[str] = PromptSession(completer=completer)

    try:
        while True:
            result = session.prompt("Category: ", complete_while_typing=True)

            if not result:
                return None

            category_id = completer.name_to_id.get(result)
            if category_id:
                logger.info(f"User selected category: {category_id}")
                return category_id

            print(
                "❌ Invalid category. Please select from the list or press Tab to complete."
            )

    except KeyboardInterrupt:
        print("\n⏭️  Skipped")
        return None
    except EOFError:
        return None
