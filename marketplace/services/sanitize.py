"""Free-text cleaning for user input (titles, descriptions, bid notes)."""

import bleach


def clean_text(text):
    """Strip all HTML tags from user input. None passes through."""
    if text is None:
        return text
    return bleach.clean(str(text), tags=[], strip=True).strip()
