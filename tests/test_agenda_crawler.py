# tests/test_agenda_crawler.py
"""
Pagination, cycle safety and link extraction for discover_event_urls.
All pages are canned HTML served by FakeSite.
"""
from __future__ import annotations

import pytest

from agenda_scraper.errors import SourceCrawlError
from agenda_scraper.sources.agenda import discover_event_urls

from conftest import FakeSite, listing_html, make_config

AGENDA = "https://venue.example/events"
PAGE_2 = "https://venue.example/events?page=2"


def _links(prefix: str, n: int) -> list[str]:
    return [f"/e/{prefix}-{i}" for i in range(1, n + 1)]


def test_example_scenario_self_looping_next_link_stops_after_two_pages():
    site = FakeSite({
        AGENDA: listing_html(_links("a", 5), next_href="?page=2"),
        # page 3 is page 2 again: its "next" points back to page 2's URL
        PAGE_2: listing_html(_links("b", 5), next_href="/events?page=2"),
    })
    cfg = make_config(max_pages=3)

    urls = discover_event_urls(cfg, fetch=site)

    assert site.fetched == [AGENDA, PAGE_2]
    assert len(urls) == 10
    assert len(set(urls)) == 10
    assert urls[0] == "https://venue.example/e/a-1"
    assert urls[-1] == "https://venue.example/e/b-5"


def test_two_page_cycle_terminates():
    site = FakeSite({
        AGENDA: listing_html(["/e/1"], next_href="?page=2"),
        PAGE_2: listing_html(["/e/2"], next_href="/events"),
    })
    urls = discover_event_urls(make_config(max_pages=50), fetch=site)

    assert site.fetched == [AGENDA, PAGE_2]
    assert urls == ["https://venue.example/e/1", "https://venue.example/e/2"]


def test_next_link_differing_only_in_host_case_is_not_refetched():
    site = FakeSite({
        AGENDA: listing_html(["/e/1"], next_href="https://VENUE.example:443/events"),
    })
    urls = discover_event_urls(make_config(max_pages=50), fetch=site)

    assert site.fetched == [AGENDA]
    assert urls == ["https://venue.example/e/1"]


def test_max_pages_caps_an_endless_chain():
    pages = {}
    for n in range(1, 30):
        url = AGENDA if n == 1 else f"{AGENDA}?page={n}"
        pages[url] = listing_html([f"/e/{n}"], next_href=f"/events?page={n + 1}")
    site = FakeSite(pages)

    urls = discover_event_urls(make_config(max_pages=4), fetch=site)

    assert len(site.fetched) == 4
    assert len(urls) == 4


def test_without_next_selector_only_first_page_is_read():
    site = FakeSite({
        AGENDA: listing_html(["/e/1", "/e/2"], next_href="?page=2"),
        PAGE_2: listing_html(["/e/3"]),
    })
    cfg = make_config(next_page_selector=None, max_pages=10)

    urls = discover_event_urls(cfg, fetch=site)

    assert site.fetched == [AGENDA]
    assert urls == ["https://venue.example/e/1", "https://venue.example/e/2"]


def test_links_resolve_against_the_current_page():
    site = FakeSite({
        AGENDA: listing_html([], next_href="/archive/2024/list"),
        "https://venue.example/archive/2024/list": listing_html(["show-9"]),
    })
    urls = discover_event_urls(make_config(), fetch=site)
    assert urls == ["https://venue.example/archive/2024/show-9"]


def test_duplicates_and_invalid_links_are_dropped():
    site = FakeSite({
        AGENDA: listing_html(
            ["/e/1", "/e/1#tickets", "", "javascript:void(0)", "mailto:x@y.z", "/e/2"],
            next_href="?page=2",
        ),
        PAGE_2: listing_html(["/e/2", "https://venue.example/e/1", "/e/3"]),
    })
    urls = discover_event_urls(make_config(), fetch=site)
    assert urls == [
        "https://venue.example/e/1",
        "https://venue.example/e/2",
        "https://venue.example/e/3",
    ]


def test_custom_link_and_next_attributes():
    html = """
    <ul>
      <li class="ev" data-url="/e/10">A</li>
      <li class="ev" data-url="/e/11">B</li>
      <li class="ev">no url</li>
    </ul>
    <button class="more" data-next="/events?page=2">more</button>
    """
    site = FakeSite({AGENDA: html, PAGE_2: "<li class='ev' data-url='/e/12'></li>"})
    cfg = make_config(
        event_link_selector="li.ev",
        event_link_attribute="data-url",
        next_page_selector="button.more",
        next_page_attribute="data-next",
    )

    urls = discover_event_urls(cfg, fetch=site)

    assert urls == [
        "https://venue.example/e/10",
        "https://venue.example/e/11",
        "https://venue.example/e/12",
    ]


def test_empty_next_href_stops():
    site = FakeSite({AGENDA: '<a class="event-card" href="/e/1"></a><a class="next" href="  "></a>'})
    urls = discover_event_urls(make_config(), fetch=site)
    assert site.fetched == [AGENDA]
    assert urls == ["https://venue.example/e/1"]


def test_unreachable_agenda_raises_source_crawl_error():
    site = FakeSite({})
    with pytest.raises(SourceCrawlError) as exc:
        discover_event_urls(make_config(), fetch=site)
    assert exc.value.page_url == AGENDA
    assert "404" in str(exc.value)


def test_failure_on_a_later_page_aborts_the_source():
    site = FakeSite({AGENDA: listing_html(["/e/1"], next_href="?page=2")})
    site.down.add(PAGE_2)
    with pytest.raises(SourceCrawlError) as exc:
        discover_event_urls(make_config(), fetch=site)
    assert exc.value.page_url == PAGE_2


def test_broken_selector_is_a_crawl_error():
    site = FakeSite({AGENDA: listing_html(["/e/1"])})
    with pytest.raises(SourceCrawlError):
        discover_event_urls(make_config(event_link_selector="a[[["), fetch=site)


def test_invalid_agenda_url_is_a_crawl_error():
    site = FakeSite({})
    with pytest.raises(SourceCrawlError):
        discover_event_urls(make_config(agenda_url="ftp://venue.example/list"), fetch=site)
    assert site.fetched == []
