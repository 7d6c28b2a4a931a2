"""
Local classifier built on spaCy.

Implements the ``TransactionClassifier`` contract without any remote service:
amounts come from ``AmountParser``, the transaction kind from keyword sets,
and categories from keyword overlap between the transaction description and
the category name and description.
"""

import asyncio
import logging
import re
import threading
import unicodedata
from typing import Optional, Sequence

import spacy
from spacy.language import Language

from cofre.config import DEFAULT_SPACY_MODEL, MAX_TRANSACTION_TEXT_LENGTH
from cofre.models import Category, CategoryKind, ParsedAction, TransactionKind

from .amount_parser import AmountParser
from .classifier import CategoryAssignment, TransactionClassifier, TransactionSample

logger = logging.getLogger(__name__)


def normalize(text: str) -> str:
    """Lowercase and strip accents so "Saúde" and "saude" compare equal."""
    decomposed = unicodedata.normalize("NFKD", text.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


class CategoryNLPService(TransactionClassifier):
    """
    NLP service for parsing chat messages and categorizing transactions.

    Uses spaCy for tokenization and stop-word detection to extract:
    - Amount: monetary value
    - Kind: income or expense
    - Description: the message without the amount
    - Category: best keyword match among the vault categories
    """

    # Keywords that indicate money coming in
    INCOME_KEYWORDS = {
        "income",
        "received",
        "receive",
        "got",
        "salary",
        "earned",
        "earn",
        "refund",
        "bonus",
        "freelance",
        "paycheck",
        "salario",
        "recebi",
        "reembolso",
    }

    # Tokens dropped from descriptions
    FILLER_WORDS = {"spent", "paid", "on", "for", "at"}

    def __init__(
        self, model_name: str = DEFAULT_SPACY_MODEL, nlp: Optional[Language] = None
    ):
        """
        Initialize the NLP service.

        Args:
            model_name: Name of the spaCy model to load
            nlp: Already loaded pipeline, used instead of loading ``model_name``

        Raises:
            RuntimeError: If the spaCy model is not installed
        """
        if nlp is not None:
            self.nlp = nlp
        else:
            try:
                self.nlp = spacy.load(model_name)
                logger.info(f"Loaded spaCy model: {model_name}")
            except OSError as e:
                logger.error(
                    f"Failed to load spaCy model '{model_name}': {e}", exc_info=True
                )
                raise RuntimeError(
                    f"spaCy model '{model_name}' not found. "
                    f"Please install it with: python -m spacy download {model_name}"
                ) from e

        # spaCy pipelines are not guaranteed to be thread-safe
        self._lock = threading.Lock()
        self._category_keywords: dict[tuple[str, str, str], set[str]] = {}

    # =========================================================================
    # TransactionClassifier
    # =========================================================================

    async def parse_action(
        self,
        text: str,
        categories: Sequence[Category],
        context_prompt: str = "",
        force_kind: Optional[TransactionKind] = None,
    ) -> ParsedAction:
        return await asyncio.to_thread(
            self.parse, text, categories, context_prompt, force_kind
        )

    async def classify_transactions(
        self,
        samples: Sequence[TransactionSample],
        categories: Sequence[Category],
        context_prompt: str = "",
    ) -> Optional[list[CategoryAssignment]]:
        return await asyncio.to_thread(
            self.classify, samples, categories, context_prompt
        )

    # =========================================================================
    # Synchronous implementation
    # =========================================================================

    def parse(
        self,
        text: str,
        categories: Sequence[Category],
        context_prompt: str = "",
        force_kind: Optional[TransactionKind] = None,
    ) -> ParsedAction:
        """
        Parse a chat message into a proposed income or expense.

        Returns:
            ParsedAction, with ``matched=False`` when no amount could be found
        """
        if not text or not text.strip():
            return ParsedAction(matched=False, raw_text=text or "")

        text = text.strip()
        if len(text) > MAX_TRANSACTION_TEXT_LENGTH:
            logger.info(f"Text too long to parse: {len(text)} characters")
            return ParsedAction(matched=False, raw_text=text)

        found = AmountParser.find_amount_in_text(text)
        if not found:
            logger.debug(f"No amount found in: {text}")
            return ParsedAction(matched=False, raw_text=text)
        amount, matched_amount = found

        description = self._extract_description(text, matched_amount)
        kind = force_kind or self._detect_kind(text)
        category = self._pick_category(
            description or "", kind, categories, self._parse_hints(context_prompt, categories)
        )

        result = ParsedAction(
            matched=amount > 0,
            kind=kind,
            amount=amount,
            description=description,
            category_id=category.id if category else None,
            raw_text=text,
        )
        logger.debug(
            f"Parsed action: kind={kind.value}, amount={amount}, "
            f"category={category.name if category else None}"
        )
        return result

    def classify(
        self,
        samples: Sequence[TransactionSample],
        categories: Sequence[Category],
        context_prompt: str = "",
    ) -> list[CategoryAssignment]:
        """Pick a category for every sample that has a usable match."""
        hints = self._parse_hints(context_prompt, categories)
        assignments = []
        for sample in samples:
            category = self._pick_category(
                sample.description, sample.kind, categories, hints
            )
            if category is None:
                logger.debug(f"No category for transaction {sample.id}")
                continue
            assignments.append(CategoryAssignment(sample.id, category.id))
        return assignments

    # =========================================================================
    # Helpers
    # =========================================================================

    def _words(self, text: str) -> set[str]:
        """Content words of ``text``, normalized and crudely singularized."""
        with self._lock:
            doc = self.nlp(normalize(text))
        words = set()
        for token in doc:
            if token.is_stop or token.is_punct or token.like_num or not token.is_alpha:
                continue
            if len(token.text) < 3:
                continue
            words.add(_singular(token.text))
        return words

    def _detect_kind(self, text: str) -> TransactionKind:
        words = set(re.findall(r"[a-z]+", normalize(text)))
        if words & self.INCOME_KEYWORDS:
            return TransactionKind.INCOME
        return TransactionKind.EXPENSE

    def _extract_description(self, text: str, matched_amount: str) -> Optional[str]:
        """Remove the amount and filler words from the message."""
        remainder = text.replace(matched_amount, " ", 1)
        words = [
            w for w in remainder.split() if w.lower() not in self.FILLER_WORDS
        ]
        description = " ".join(words).strip(" -:,.")
        return description or None

    def _keywords_for(self, category: Category) -> set[str]:
        key = (category.id, category.name, category.description)
        if key not in self._category_keywords:
            self._category_keywords[key] = self._words(
                f"{category.name} {category.description}"
            )
        return self._category_keywords[key]

    def _pick_category(
        self,
        description: str,
        kind: TransactionKind,
        categories: Sequence[Category],
        hints: list[tuple[str, Category]],
    ) -> Optional[Category]:
        candidates = [c for c in categories if c.transaction_kind.accepts(kind)]
        if not candidates:
            return None

        normalized = normalize(description)
        for phrase, category in hints:
            if phrase in normalized and category.transaction_kind.accepts(kind):
                return category

        words = self._words(description)
        best: Optional[Category] = None
        best_score = 0
        for category in candidates:
            score = len(words & self._keywords_for(category))
            if score > best_score:
                best, best_score = category, score

        if best is not None:
            return best

        # Catch-all category when nothing matched
        for category in candidates:
            if category.transaction_kind == CategoryKind.BOTH:
                return category
        return None

    def _parse_hints(
        self, context_prompt: str, categories: Sequence[Category]
    ) -> list[tuple[str, Category]]:
        """
        Read ``phrase: category`` lines from the vault's custom prompt.

        The category may be given by code or by name.
        """
        if not context_prompt:
            return []

        by_key: dict[str, Category] = {}
        for category in categories:
            by_key[category.code.strip()] = category
            by_key[_plain_name(category.name)] = category

        hints = []
        for line in context_prompt.splitlines():
            if ":" not in line:
                continue
            phrase, target = line.split(":", 1)
            phrase = normalize(phrase).strip()
            category = by_key.get(target.strip()) or by_key.get(_plain_name(target))
            if phrase and category:
                hints.append((phrase, category))
        return hints


def _singular(word: str) -> str:
    if word.endswith("ies") and len(word) > 4:
        return word[:-3] + "y"
    if word.endswith("s") and not word.endswith("ss") and len(word) > 3:
        return word[:-1]
    return word


def _plain_name(name: str) -> str:
    """Category name without emoji or punctuation: "🏡 Housing" -> "housing"."""
    return re.sub(r"[^a-z0-9& ]+", "", normalize(name)).strip()


# Singleton instance for convenience
_default_service: Optional[CategoryNLPService] = None


def get_nlp_service() -> CategoryNLPService:
    """
    Get or create the default NLP service instance.

    Raises:
        RuntimeError: If spaCy model is not installed
    """
    global _default_service
    if _default_service is None:
        try:
            _default_service = CategoryNLPService()
            logger.info("Default NLP service initialized")
        except Exception as e:
            logger.error(f"Failed to initialize NLP service: {e}", exc_info=True)
            raise
    return _default_service
