"""Article translation: the per-article cache and the Gemini translator

Translations are cached on the article document (``translatedContent``) keyed
by language code. Any significant change invalidates every cached language in
the same write that changes the article, so a stale translation is never
served.
"""

import logging
from typing import Optional

import httpx

from campus_news.config import settings
from campus_news.errors import DependencyFailedError
from campus_news.models.article import Article

logger = logging.getLogger(__name__)

GEMINI_REST_ENDPOINT = "https://generativelanguage.googleapis.com/v1/models/{model}:generateContent"

TRANSLATION_PROMPT = (
    "Translate the following university news article into the language with "
    "ISO code '{language}'. Keep paragraphs and names intact. Output only the "
    "translation.\n\n{text}"
)


def normalize_language(language: str) -> str:
    return (language or "").strip().lower()


class TranslationCache:
    """Cache operations over an article's ``translatedContent`` map"""

    @staticmethod
    def get(article: Article, language: str) -> Optional[str]:
        return article.translated_content.get(normalize_language(language))

    @staticmethod
    def invalidate(article: Article) -> Article:
        """Drop every cached language"""
        if not article.translated_content:
            return article
        return article.evolve(translated_content={})

    @staticmethod
    def put(article: Article, language: str, text: str) -> Article:
        cached = dict(article.translated_content)
        cached[normalize_language(language)] = text
        return article.evolve(translated_content=cached)


translation_cache = TranslationCache()


async def translate_text(text: str, language: str, model: Optional[str] = None) -> str:
    """Translate ``text`` with Gemini (or return a mock translation in DEV)."""
    model = model or settings.GEMINI_MODEL
    language = normalize_language(language)

    if settings.DEBUG_MOCK_GEMINI or not settings.GOOGLE_API_KEY:
        logger.debug("Using mock Gemini translation")
        return f"[{language.upper()}] Translated: {text[:50]}... (mock)"

    url = f"{GEMINI_REST_ENDPOINT.format(model=model)}?key={settings.GOOGLE_API_KEY}"
    payload = {
        "contents": [
            {"role": "user", "parts": [
                {"text": TRANSLATION_PROMPT.format(language=language, text=text)}]}
        ],
    }

    async with httpx.AsyncClient(timeout=settings.TRANSLATION_TIMEOUT_SECONDS) as client:
        try:
            r = await client.post(url, json=payload, headers={"Content-Type": "application/json"})
            r.raise_for_status()
            raw = r.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Gemini translation error: {e}")
            raise DependencyFailedError("Translation service unavailable") from e

    try:
        translated = raw["candidates"][0]["content"]["parts"][0].get("text") or ""
    except (KeyError, IndexError, TypeError, AttributeError) as e:
        logger.error(f"Unexpected Gemini response shape: {e}")
        raise DependencyFailedError("Translation service unavailable") from e
    if not translated.strip():
        raise DependencyFailedError("Translation service returned no text")
    return translated.strip()
