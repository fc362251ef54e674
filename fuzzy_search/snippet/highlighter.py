import re
from typing import Optional


class MatchHighlighter:
    """
    Marks occurrences of the search term inside a result field for display.
    """

    DEFAULT_TAG = "mark"

    @staticmethod
    def highlight(text: Optional[str], term: Optional[str], tag: str = DEFAULT_TAG) -> Optional[str]:
        """
        Wraps every case-insensitive occurrence of the term in <tag>...</tag>.

        Args:
            text (str): Field value to decorate.
            term (str): Raw search term. It is matched literally, not as a regex.
            tag (str): HTML tag name.

        Returns:
            str: Decorated text, or the input unchanged when either side is blank.
        """
        if not text or not term or not term.strip():
            return text

        pattern = re.compile(f"({re.escape(term.strip())})", re.IGNORECASE)
        return pattern.sub(rf"<{tag}>\1</{tag}>", text)


highlight_match = MatchHighlighter.highlight
