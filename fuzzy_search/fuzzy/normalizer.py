# fuzzy_search/fuzzy/normalizer.py
# Responsibility: Folds case and Vietnamese diacritics into the canonical comparison form.

import unicodedata
from typing import Optional

# Base letter -> every Vietnamese variant of it (lowercase only; input is lowercased first).
_VIETNAMESE_FAMILIES = {
    "a": "àáạảãâầấậẩẫăằắặẳẵ",
    "e": "èéẹẻẽêềếệểễ",
    "i": "ìíịỉĩ",
    "o": "òóọỏõôồốộổỗơờớợởỡ",
    "u": "ùúụủũưừứựửữ",
    "y": "ỳýỵỷỹ",
    "d": "đ",
}

_FOLD_TABLE = str.maketrans(
    {variant: base for base, variants in _VIETNAMESE_FAMILIES.items() for variant in variants}
)


class TextNormalizer:
    """
    Responsible for reducing text to the form used for every fuzzy comparison.
    "Nguyễn Văn A" and "nguyen van a" normalize to the same string.
    """

    @staticmethod
    def normalize(text: Optional[str], fold_accents: bool = True) -> str:
        """
        Normalizes a term or a stored field value.

        Steps:
        1. NFC composition: decomposed input ("e" + combining acute) becomes a single code point.
        2. Lowercasing.
        3. Diacritic folding (optional): Vietnamese vowels and "đ" map to their base letter.

        Args:
            text (str): Raw text. None and "" are accepted.
            fold_accents (bool): Whether to apply step 3.

        Returns:
            str: Normalized text. Never raises.
        """
        if not text:
            return ""

        normalized = unicodedata.normalize("NFC", text).lower()

        if fold_accents:
            normalized = normalized.translate(_FOLD_TABLE)

        return normalized

    @staticmethod
    def fold_accents(text: Optional[str]) -> str:
        """Lowercases and folds diacritics. Alias kept for pattern building."""
        return TextNormalizer.normalize(text, fold_accents=True)

    @staticmethod
    def variants_of(base: str) -> str:
        """Returns the base letter followed by all of its accented variants ("" if it has none)."""
        variants = _VIETNAMESE_FAMILIES.get(base)
        if variants is None:
            return ""
        return base + variants


normalize = TextNormalizer.normalize
