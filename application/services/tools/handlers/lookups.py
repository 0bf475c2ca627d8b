"""
Cached lookup tools.

Each tool reads through the shared ToolCache with its own TTL. Tools whose
API key is missing answer with demo data, fallback tables or an
explanatory message instead of failing.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from application.services.tools.base import ToolHandler, ToolResult
from application.services.tools.cache import ToolCache
from common.config import config
from common.constants import (
    CURRENCY_CACHE_TTL_SECONDS,
    LOOKUP_TIMEOUT_SECONDS,
    NEWS_CACHE_TTL_SECONDS,
    PLACES_CACHE_TTL_SECONDS,
    SEARCH_CACHE_TTL_SECONDS,
    TRANSLATION_CACHE_TTL_SECONDS,
    WEATHER_CACHE_TTL_SECONDS,
)
from common.exception import ToolExecutionError

logger = logging.getLogger(__name__)

OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
EXCHANGE_RATE_URL = "https://v6.exchangerate-api.com/v6"
SERPAPI_URL = "https://serpapi.com/search"
NEWSAPI_URL = "https://newsapi.org/v2"
NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
GOOGLE_TRANSLATE_URL = "https://translation.googleapis.com/language/translate/v2"
LIBRETRANSLATE_URL = "https://libretranslate.com/translate"

# Approximate units per USD, used when no exchange-rate key is configured
FALLBACK_RATES: Dict[str, float] = {
    "USD": 1,
    "RWF": 1300,
    "EUR": 0.92,
    "GBP": 0.79,
    "KES": 153,
    "UGX": 3750,
    "TZS": 2500,
    "BIF": 2850,
}

LANGUAGE_CODES: Dict[str, str] = {
    "rw": "rw",
    "kinyarwanda": "rw",
    "en": "en",
    "english": "en",
    "fr": "fr",
    "french": "fr",
    "sw": "sw",
    "swahili": "sw",
    "de": "de",
    "german": "de",
    "es": "es",
    "spanish": "es",
    "pt": "pt",
    "portuguese": "pt",
    "ar": "ar",
    "arabic": "ar",
    "zh": "zh",
    "chinese": "zh",
}


def _error_message(error: Exception, default: str) -> str:
    if isinstance(error, ToolExecutionError):
        return error.message
    return str(error) or default


def _bounded_count(value: Any, default: int = 5, maximum: int = 10) -> int:
    try:
        count = int(value) if value else default
    except (TypeError, ValueError):
        count = default
    return max(1, min(count, maximum))


class LookupTool(ToolHandler):
    """Base for tools that call a third-party HTTP API through the cache."""

    cache_category = ""
    cache_ttl = 0

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        cache: ToolCache,
        api_key: Optional[str] = None,
        timeout: float = LOOKUP_TIMEOUT_SECONDS,
    ):
        self.http_client = http_client
        self.cache = cache
        self.api_key = api_key
        self.timeout = timeout

    async def _get_json(self, url: str, **kwargs) -> Any:
        response = await self.http_client.get(url, timeout=self.timeout, **kwargs)
        return response, response.json()


class WeatherTool(LookupTool):
    name = "get_weather"
    description = (
        "Get current weather information for a location. Use this when users ask about "
        "weather, temperature, or climate conditions. Works great for Rwandan cities like "
        "Kigali, Butare, Gisenyi, etc."
    )
    parameters = {
        "type": "object",
        "properties": {
            "location": {
                "type": "string",
                "description": 'The city name, e.g., "Kigali", "Butare", "Gisenyi", "London"',
            },
            "units": {
                "type": "string",
                "enum": ["celsius", "fahrenheit"],
                "description": "Temperature unit (default: celsius)",
            },
        },
        "required": ["location"],
    }
    cache_category = "weather"
    cache_ttl = WEATHER_CACHE_TTL_SECONDS

    async def execute(self, args: Dict[str, Any]) -> ToolResult:
        location = str(args.get("location") or "")
        units = args.get("units") or "celsius"
        unit_label = "°F" if units == "fahrenheit" else "°C"

        if not self.api_key:
            logger.warning("Weather API key not configured, returning demo data")
            return ToolResult.ok(
                {
                    "location": location,
                    "temperature": 22,
                    "units": unit_label,
                    "condition": "Partly cloudy",
                    "humidity": 65,
                    "wind_speed": 12,
                    "note": "Demo data - Add OPENWEATHER_API_KEY for real weather",
                }
            )

        unit_param = "imperial" if units == "fahrenheit" else "metric"

        async def fetch():
            logger.debug(f"Fetching weather data for {location} from API")
            response, data = await self._get_json(
                OPENWEATHER_URL,
                params={"q": location, "appid": self.api_key, "units": unit_param},
            )
            if not response.is_success:
                raise ToolExecutionError(self.name, data.get("message") or "Weather fetch failed")
            return data

        try:
            weather = await self.cache.get_or_fetch(
                self.cache_category, {"location": location, "units": unit_param},
                self.cache_ttl, fetch,
            )
            conditions = weather.get("weather") or [{}]
            return ToolResult.ok(
                {
                    "location": weather.get("name"),
                    "country": (weather.get("sys") or {}).get("country"),
                    "temperature": round(weather["main"]["temp"]),
                    "feels_like": round(weather["main"]["feels_like"]),
                    "units": unit_label,
                    "condition": conditions[0].get("description"),
                    "humidity": weather["main"].get("humidity"),
                    "wind_speed": round(weather["wind"]["speed"] * 3.6),
                    "icon": conditions[0].get("icon"),
                }
            )
        except (httpx.HTTPError, ToolExecutionError, ValueError, KeyError, TypeError) as e:
            logger.error(f"❌ Weather fetch error for {location}: {e}")
            return ToolResult.failure(_error_message(e, "Failed to fetch weather data"))


class CurrencyTool(LookupTool):
    name = "convert_currency"
    description = (
        "Convert between currencies. Supports RWF (Rwandan Franc), USD, EUR, GBP, KES, UGX, "
        "TZS, and more. Great for checking exchange rates."
    )
    parameters = {
        "type": "object",
        "properties": {
            "amount": {"type": "number", "description": "The amount to convert"},
            "from_currency": {
                "type": "string",
                "description": 'Source currency code, e.g., "RWF", "USD", "EUR"',
            },
            "to_currency": {
                "type": "string",
                "description": 'Target currency code, e.g., "RWF", "USD", "EUR"',
            },
        },
        "required": ["amount", "from_currency", "to_currency"],
    }
    cache_category = "currency"
    cache_ttl = CURRENCY_CACHE_TTL_SECONDS

    async def execute(self, args: Dict[str, Any]) -> ToolResult:
        from_currency = str(args.get("from_currency") or "").upper()
        to_currency = str(args.get("to_currency") or "").upper()
        try:
            amount = float(args.get("amount") or 0)
        except (TypeError, ValueError):
            return ToolResult.failure("Invalid amount")

        if not self.api_key:
            logger.warning("Exchange Rate API key not configured, using fallback rates")
            from_rate = FALLBACK_RATES.get(from_currency)
            to_rate = FALLBACK_RATES.get(to_currency)
            if not from_rate or not to_rate:
                return ToolResult.failure(f"Unsupported currency: {from_currency} or {to_currency}")
            return ToolResult.ok(
                {
                    "amount": amount,
                    "from": from_currency,
                    "to": to_currency,
                    "result": round(amount / from_rate * to_rate, 2),
                    "rate": round(to_rate / from_rate, 6),
                    "note": "Approximate rates - Add EXCHANGE_RATE_API_KEY for live rates",
                }
            )

        # The pair rate is cached; the amount is applied per request
        async def fetch():
            logger.debug(f"Fetching exchange rate for {from_currency} to {to_currency} from API")
            _, data = await self._get_json(
                f"{EXCHANGE_RATE_URL}/{self.api_key}/pair/{from_currency}/{to_currency}"
            )
            if data.get("result") != "success":
                raise ToolExecutionError(
                    self.name, data.get("error-type") or "Currency conversion failed"
                )
            return data

        try:
            pair = await self.cache.get_or_fetch(
                self.cache_category, {"from": from_currency, "to": to_currency},
                self.cache_ttl, fetch,
            )
            rate = float(pair["conversion_rate"])
            return ToolResult.ok(
                {
                    "amount": amount,
                    "from": from_currency,
                    "to": to_currency,
                    "result": round(amount * rate, 2),
                    "rate": rate,
                    "updated": pair.get("time_last_update_utc"),
                }
            )
        except (httpx.HTTPError, ToolExecutionError, ValueError, KeyError, TypeError) as e:
            logger.error(f"❌ Currency conversion error {from_currency}->{to_currency}: {e}")
            return ToolResult.failure(_error_message(e, "Failed to fetch exchange rates"))


class WebSearchTool(LookupTool):
    name = "search_web"
    description = (
        "Search the internet for current information. Use this when users ask about recent "
        "events, news, current prices, or anything that requires up-to-date information."
    )
    parameters = {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "The search query"},
            "num_results": {
                "type": "number",
                "description": "Number of results to return (default: 5, max: 10)",
            },
        },
        "required": ["query"],
    }
    cache_category = "search"
    cache_ttl = SEARCH_CACHE_TTL_SECONDS

    async def execute(self, args: Dict[str, Any]) -> ToolResult:
        query = str(args.get("query") or "")
        num_results = _bounded_count(args.get("num_results"))

        if not self.api_key:
            logger.warning("SerpAPI key not configured")
            return ToolResult.ok(
                {
                    "query": query,
                    "results": [],
                    "message": "Web search requires SERPAPI_API_KEY. Get a free key at https://serpapi.com",
                }
            )

        async def fetch():
            logger.debug(f"Performing web search for: {query}")
            _, data = await self._get_json(
                SERPAPI_URL,
                params={
                    "q": query,
                    "api_key": self.api_key,
                    "engine": "google",
                    "num": str(num_results),
                    "hl": "en",
                    "gl": "rw",
                },
            )
            if data.get("error"):
                raise ToolExecutionError(self.name, data["error"])
            return data

        try:
            data = await self.cache.get_or_fetch(
                self.cache_category, {"query": query, "num": num_results},
                self.cache_ttl, fetch,
            )
        except (httpx.HTTPError, ToolExecutionError, ValueError) as e:
            logger.error(f"❌ Web search error for {query!r}: {e}")
            return ToolResult.failure(_error_message(e, "Web search failed"))

        answer_box = data.get("answer_box") or {}
        knowledge_graph = data.get("knowledge_graph")
        quick_answer = (
            answer_box.get("answer")
            or answer_box.get("snippet")
            or (knowledge_graph or {}).get("description")
        )

        return ToolResult.ok(
            {
                "query": query,
                "answer": quick_answer,
                "knowledge_graph": {
                    "title": knowledge_graph.get("title"),
                    "type": knowledge_graph.get("type"),
                    "description": knowledge_graph.get("description"),
                    "source": (knowledge_graph.get("source") or {}).get("name"),
                } if knowledge_graph else None,
                "results": [
                    {
                        "title": r.get("title"),
                        "url": r.get("link"),
                        "snippet": r.get("snippet"),
                        "date": r.get("date"),
                    }
                    for r in (data.get("organic_results") or [])[:num_results]
                ],
            }
        )


class NewsTool(LookupTool):
    name = "get_news"
    description = (
        "Get latest news articles. Can filter by country (Rwanda, East Africa, World) or "
        "topic (technology, business, sports, etc.)"
    )
    parameters = {
        "type": "object",
        "properties": {
            "topic": {
                "type": "string",
                "description": (
                    'News topic: "general", "technology", "business", "sports", '
                    '"entertainment", "health", "science"'
                ),
            },
            "country": {
                "type": "string",
                "description": (
                    'Country code: "rw" (Rwanda), "ke" (Kenya), "ug" (Uganda), '
                    '"tz" (Tanzania), "us", "gb", etc.'
                ),
            },
            "num_articles": {
                "type": "number",
                "description": "Number of articles to return (default: 5, max: 10)",
            },
        },
        "required": [],
    }
    cache_category = "news"
    cache_ttl = NEWS_CACHE_TTL_SECONDS

    async def execute(self, args: Dict[str, Any]) -> ToolResult:
        topic = args.get("topic") or "general"
        country = args.get("country") or "rw"
        num_articles = _bounded_count(args.get("num_articles"))

        if not self.api_key:
            logger.warning("News API key not configured")
            return ToolResult.ok(
                {
                    "topic": topic,
                    "country": country,
                    "articles": [],
                    "message": "News requires NEWS_API_KEY. Get a free key at https://newsapi.org",
                }
            )

        async def fetch():
            logger.debug(f"Fetching news for topic: {topic}, country: {country}")
            _, data = await self._get_json(
                f"{NEWSAPI_URL}/top-headlines",
                params={
                    "country": country,
                    "category": topic,
                    "pageSize": num_articles,
                    "apiKey": self.api_key,
                },
            )
            if data.get("status") == "ok":
                return data

            # Not every country has headlines; search by keyword instead
            if data.get("code") == "countryUnsupported":
                logger.info(f"Country {country} unsupported, using fallback search")
                keyword = "Rwanda" if country == "rw" else country
                _, fallback = await self._get_json(
                    f"{NEWSAPI_URL}/everything",
                    params={
                        "q": f"{keyword} {topic}",
                        "pageSize": num_articles,
                        "sortBy": "publishedAt",
                        "apiKey": self.api_key,
                    },
                )
                if fallback.get("status") == "ok":
                    return fallback
            raise ToolExecutionError(self.name, data.get("message") or "News fetch failed")

        try:
            data = await self.cache.get_or_fetch(
                self.cache_category,
                {"topic": topic, "country": country, "num": num_articles},
                self.cache_ttl, fetch,
            )
        except (httpx.HTTPError, ToolExecutionError, ValueError) as e:
            logger.error(f"❌ News fetch error ({topic}/{country}): {e}")
            return ToolResult.failure(_error_message(e, "News service error"))

        return ToolResult.ok(
            {
                "topic": topic,
                "country": country,
                "articles": [
                    {
                        "title": a.get("title"),
                        "description": a.get("description"),
                        "url": a.get("url"),
                        "source": (a.get("source") or {}).get("name"),
                        "published": a.get("publishedAt"),
                    }
                    for a in (data.get("articles") or [])[:num_articles]
                ],
            }
        )


class PlacesTool(LookupTool):
    name = "search_places"
    description = (
        "Search for places, businesses, restaurants, hotels, hospitals, etc. Great for "
        "finding locations in Rwanda and around the world."
    )
    parameters = {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": (
                    'What to search for, e.g., "restaurants in Kigali", '
                    '"hospitals near Nyamirambo", "hotels in Gisenyi"'
                ),
            },
            "location": {
                "type": "string",
                "description": 'Location to search around, e.g., "Kigali, Rwanda"',
            },
        },
        "required": ["query"],
    }
    cache_category = "places"
    cache_ttl = PLACES_CACHE_TTL_SECONDS

    def __init__(self, *args, user_agent: Optional[str] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_agent = user_agent or config.PLACES_USER_AGENT

    async def execute(self, args: Dict[str, Any]) -> ToolResult:
        query = str(args.get("query") or "")
        location = args.get("location")
        search_query = f"{query} {location}" if location else query

        async def fetch():
            logger.debug(f"Searching places for: {search_query}")
            response = await self.http_client.get(
                NOMINATIM_URL,
                params={"q": search_query, "format": "json", "limit": 5, "addressdetails": 1},
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            if not response.is_success:
                raise ToolExecutionError(self.name, f"Nominatim API error: {response.status_code}")
            return response.json()

        try:
            places = await self.cache.get_or_fetch(
                self.cache_category, {"query": search_query}, self.cache_ttl, fetch,
            )
        except (httpx.HTTPError, ToolExecutionError, ValueError) as e:
            logger.error(f"❌ Place search error for {search_query!r}: {e}")
            return ToolResult.failure(_error_message(e, "Place search failed"))

        if not isinstance(places, list) or not places:
            return ToolResult.ok(
                {"query": search_query, "places": [], "message": "No places found for this search"}
            )

        return ToolResult.ok(
            {
                "query": search_query,
                "places": [
                    {
                        "name": place.get("display_name"),
                        "latitude": float(place["lat"]),
                        "longitude": float(place["lon"]),
                        "type": place.get("type"),
                        "address": place.get("address"),
                        "map_url": (
                            f"https://www.openstreetmap.org/?mlat={place['lat']}"
                            f"&mlon={place['lon']}&zoom=15"
                        ),
                    }
                    for place in places
                ],
            }
        )


class TranslateTool(LookupTool):
    name = "translate_text"
    description = (
        "Translate text between languages. Supports Kinyarwanda, English, French, Swahili, "
        "and many other languages."
    )
    parameters = {
        "type": "object",
        "properties": {
            "text": {"type": "string", "description": "The text to translate"},
            "from_language": {
                "type": "string",
                "description": (
                    'Source language code: "rw" (Kinyarwanda), "en" (English), '
                    '"fr" (French), "sw" (Swahili), etc.'
                ),
            },
            "to_language": {
                "type": "string",
                "description": (
                    'Target language code: "rw" (Kinyarwanda), "en" (English), '
                    '"fr" (French), "sw" (Swahili), etc.'
                ),
            },
        },
        "required": ["text", "to_language"],
    }
    cache_category = "translation"
    cache_ttl = TRANSLATION_CACHE_TTL_SECONDS

    async def execute(self, args: Dict[str, Any]) -> ToolResult:
        text = str(args.get("text") or "")
        from_lang = str(args.get("from_language") or "auto")
        to_lang = str(args.get("to_language") or "en")
        source = LANGUAGE_CODES.get(from_lang.lower(), from_lang)
        target = LANGUAGE_CODES.get(to_lang.lower(), to_lang)
        cache_args = {"text": text, "from": source, "to": target}

        if not self.api_key:
            logger.warning("Google Translate API key not configured, trying LibreTranslate")
            try:
                translated = await self.cache.get_or_fetch(
                    self.cache_category, {**cache_args, "service": "libre"}, self.cache_ttl,
                    lambda: self._libre_translate(text, source, target),
                )
                return ToolResult.ok(
                    {
                        "original": text,
                        "translated": translated,
                        "from": source,
                        "to": target,
                        "service": "LibreTranslate",
                    }
                )
            except (httpx.HTTPError, ToolExecutionError, ValueError) as e:
                logger.error(f"❌ LibreTranslate failed: {e}")

            return ToolResult.ok(
                {
                    "original": text,
                    "translated": None,
                    "from": source,
                    "to": target,
                    "message": (
                        "Translation service unavailable. Add GOOGLE_TRANSLATE_API_KEY "
                        "for reliable translations."
                    ),
                }
            )

        try:
            translation = await self.cache.get_or_fetch(
                self.cache_category, {**cache_args, "service": "google"}, self.cache_ttl,
                lambda: self._google_translate(text, source, target),
            )
        except (httpx.HTTPError, ToolExecutionError, ValueError) as e:
            logger.error(f"❌ Translation error ({source}->{target}): {e}")
            return ToolResult.failure(_error_message(e, "Translation service error"))

        return ToolResult.ok(
            {
                "original": text,
                "translated": translation.get("translatedText"),
                "from": translation.get("detectedSourceLanguage") or source,
                "to": target,
                "service": "Google Translate",
            }
        )

    async def _libre_translate(self, text: str, source: str, target: str) -> str:
        response = await self.http_client.post(
            LIBRETRANSLATE_URL,
            json={"q": text, "source": source, "target": target},
            timeout=self.timeout,
        )
        translated = response.json().get("translatedText")
        if not translated:
            raise ToolExecutionError(self.name, "LibreTranslate returned no translation")
        return translated

    async def _google_translate(self, text: str, source: str, target: str) -> Dict[str, Any]:
        body: Dict[str, Any] = {"q": text, "target": target}
        if source != "auto":
            body["source"] = source
        response = await self.http_client.post(
            GOOGLE_TRANSLATE_URL,
            params={"key": self.api_key},
            json=body,
            timeout=self.timeout,
        )
        translations = (response.json().get("data") or {}).get("translations") or []
        if not translations:
            raise ToolExecutionError(self.name, "Translation failed")
        return translations[0]
