"""
Default page extractor: pull event fields out of a single event page.

Fields come from Open Graph / Twitter Card meta, falling back to the
document itself. Owners can pin individual fields to CSS selectors
(organizer_scraping_configs); those values win over the generic ones.

The extractor never raises: every failure is an ExtractionResult with
ok=False.
"""
from __future__ import annotations

import logging
import re
from functools import partial
from typing import Any, Callable, Dict, List, Mapping, Optional

from bs4 import BeautifulSoup
from supabase import Client

from .models import ExtractionResult
from .sources.http import Fetcher, http_get
from .sources.urls import normalize_url

logger = logging.getLogger(__name__)

SELECTOR_CONFIGS_TABLE = "organizer_scraping_configs"

SelectorConfigSource = Callable[[Optional[str], Optional[str]], List[Mapping[str, Any]]]

_WS_RE = re.compile(r"\s+")
_PRICE_RE = re.compile(r"[\d.,]+")
_BARE_ATTR_RE = re.compile(r"""^([\w-]+)\s*=\s*(?:(["'])(.*?)\2|([^\s"'\[\]]+))\s*$""")


def _clean(text: Optional[str]) -> str:
    return _WS_RE.sub(" ", text or "").strip()


def fix_selector(selector: str) -> str:
    """
    Turn the bare attribute form admins paste from devtools
    (class="a b", id="x", data-foo="bar", data-id=5) into a CSS selector.
    Anything else is returned unchanged.
    """
    s = (selector or "").strip()
    if not s or s[0] in ".#[:" or "=" not in s:
        return s
    m = _BARE_ATTR_RE.match(s)
    if not m:
        return s
    name, _, quoted, unquoted = m.groups()
    value = quoted if quoted is not None else unquoted
    if name in ("class", "className"):
        classes = [c for c in value.split() if c]
        if any(ch in value for ch in "[]()"):
            return "".join(f'[class*="{c}"]' for c in classes)
        return "".join("." + re.sub(r"([.#:])", r"\\\1", c) for c in classes)
    if name == "id":
        return "#" + re.sub(r"([\[\](){}.#:,])", r"\\\1", value)
    escaped = value.replace('"', '\\"')
    return f'[{name}="{escaped}"]'


def _apply_prefix(value: str, prefix: Optional[str]) -> Optional[str]:
    prefix = (prefix or "").strip()
    if not prefix:
        return value
    idx = value.lower().find(prefix.lower())
    if idx == -1:
        return None
    return value[idx + len(prefix):].strip() or None


def _selector_value(soup: BeautifulSoup, cfg: Mapping[str, Any]) -> Optional[str]:
    selector = fix_selector(str(cfg.get("css_selector") or ""))
    if not selector:
        return None
    el = soup.select_one(selector)
    if el is None:
        return None

    attribute = (cfg.get("attribute") or "textContent").strip()
    if attribute == "textContent":
        value = _clean(el.get_text(" "))
    elif attribute == "innerHTML":
        value = el.decode_contents().strip()
    else:
        raw = el.get(attribute)
        value = " ".join(raw) if isinstance(raw, list) else (raw or "").strip()
    if not value:
        return None

    value = _apply_prefix(value, cfg.get("text_prefix"))
    if not value:
        return None

    if cfg.get("transform_function") == "price":
        m = _PRICE_RE.search(value)
        if m:
            value = m.group(0).replace(",", ".")
    return value


def extract_custom_fields(soup: BeautifulSoup, configs: List[Mapping[str, Any]]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for cfg in configs:
        field = (cfg.get("event_field") or "").strip()
        if not field:
            continue
        try:
            value = _selector_value(soup, cfg)
        except Exception as e:
            # one broken selector must not sink the page
            logger.debug("[extract] selector failed field=%s: %s", field, e)
            continue
        if value:
            out[field] = value
    return out


def _meta(soup: BeautifulSoup) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for el in soup.find_all("meta"):
        key = el.get("property") or el.get("name") or ""
        content = (el.get("content") or "").strip()
        if not content:
            continue
        for prefix in ("og:", "twitter:"):
            if key.startswith(prefix):
                out.setdefault(key[len(prefix):], content)
        if key == "description":
            out.setdefault("meta_description", content)
    return out


def extract_generic_fields(soup: BeautifulSoup, url: str) -> Dict[str, Any]:
    meta = _meta(soup)

    title = meta.get("title") or ""
    if not title and soup.title:
        title = soup.title.get_text()
    if not title:
        h1 = soup.find("h1")
        title = h1.get_text(" ") if h1 else ""

    description = meta.get("description") or meta.get("meta_description") or ""
    if not description:
        p = soup.find("p")
        description = p.get_text(" ") if p else ""

    image = meta.get("image") or ""
    if not image:
        img = soup.find("img")
        image = (img.get("src") or "") if img else ""

    out: Dict[str, Any] = {"external_url": url}
    if _clean(title):
        out["title"] = _clean(title)
    if _clean(description):
        out["description"] = _clean(description)
    image_url = normalize_url(image, url)
    if image_url:
        out["image_url"] = image_url
    return out


def scrape_event_page(
    url: str,
    organizer_id: Optional[str] = None,
    location_id: Optional[str] = None,
    *,
    fetch: Fetcher = http_get,
    selector_configs: Optional[SelectorConfigSource] = None,
) -> ExtractionResult:
    if normalize_url(url, url) is None:
        return ExtractionResult(ok=False, error=f"invalid url: {url!r}")

    try:
        res = fetch(url)
    except Exception as e:
        return ExtractionResult(ok=False, error=f"fetch failed: {type(e).__name__}: {e}")

    try:
        soup = BeautifulSoup(res.text or "", "html.parser")
        data = extract_generic_fields(soup, url)
    except Exception as e:
        return ExtractionResult(ok=False, error=f"parse failed: {type(e).__name__}: {e}")

    if selector_configs is not None and (organizer_id or location_id):
        try:
            configs = selector_configs(organizer_id, location_id)
        except Exception as e:
            logger.warning("[extract] selector configs unavailable: %s", e)
            configs = []
        data.update(extract_custom_fields(soup, configs))

    return ExtractionResult(ok=True, data=data)


class SupabaseSelectorConfigs:
    """Per-owner field selectors from public.organizer_scraping_configs."""

    def __init__(self, supabase: Client) -> None:
        self.supabase = supabase
        self._cache: Dict[tuple, List[Mapping[str, Any]]] = {}

    def __call__(self, organizer_id: Optional[str], location_id: Optional[str]) -> List[Mapping[str, Any]]:
        key = (organizer_id, location_id)
        if key not in self._cache:
            query = self.supabase.table(SELECTOR_CONFIGS_TABLE).select("*")
            if organizer_id:
                query = query.eq("organizer_id", organizer_id)
            else:
                query = query.eq("location_id", location_id)
            resp = query.execute()
            self._cache[key] = list(getattr(resp, "data", None) or [])
        return self._cache[key]


def make_page_extractor(supabase: Optional[Client] = None, *, fetch: Fetcher = http_get):
    selector_configs = SupabaseSelectorConfigs(supabase) if supabase is not None else None
    return partial(scrape_event_page, fetch=fetch, selector_configs=selector_configs)
