"""Tests for results-page extraction and the paginated crawl."""

import pytest

from conftest import FakeFetcher, job_card, results_page
from job_crawler.config import Selectors
from job_crawler.errors import ParseError
from job_crawler.jobs.dedup import deduplicate
from job_crawler.jobs.indeed_scraper import (
    build_search_url,
    collect_candidates,
    extract_listings,
    scrape_page,
)
from job_crawler.jobs.models import ListingCandidate
from job_crawler.utils.http_client import FetchFailure


def url_for(offset):
    return build_search_url("data scientist", offset)


class TestBuildSearchUrl:
    def test_query_and_offset(self):
        assert build_search_url("data scientist", 20) == (
            "https://www.indeed.com/jobs?q=data+scientist&l=&start=20"
        )

    def test_location_and_base(self):
        url = build_search_url("ml", 0, location="New York, NY", base_url="https://example.com/")
        assert url == "https://example.com/jobs?q=ml&l=New+York%2C+NY&start=0"


class TestExtractListings:
    def test_full_card(self):
        html = results_page(job_card(
            title="Data\n      Scientist ",
            company="  Acme ",
            location="New York,\n NY",
            summary="Build   models\n",
            href="/rc/clk?jk=abc123",
        ))
        listings = extract_listings(html)
        assert listings == [ListingCandidate(
            title="Data Scientist",
            company="Acme",
            location="New York, NY",
            summary="Build models",
            link="https://www.indeed.com/rc/clk?jk=abc123",
        )]

    def test_title_link_wins_over_earlier_anchors(self):
        logo = '<a href="/cmp/acme"><img src="logo.png"></a>'
        html = results_page(
            job_card(title="Data Scientist", company="Acme", href="/viewjob?jk=1").replace(
                '<div class="job_seen_beacon">', '<div class="job_seen_beacon">' + logo, 1),
            job_card(title="ML Engineer", company="Acme", href="/viewjob?jk=2").replace(
                '<div class="job_seen_beacon">', '<div class="job_seen_beacon">' + logo, 1),
        )
        listings = extract_listings(html)
        assert [c.link for c in listings] == [
            "https://www.indeed.com/viewjob?jk=1",
            "https://www.indeed.com/viewjob?jk=2",
        ]
        assert [c.title for c in deduplicate(listings)] == ["Data Scientist", "ML Engineer"]

    def test_catch_all_link_used_without_title_anchor(self):
        html = results_page(
            '<div class="job_seen_beacon"><h2 class="jobTitle">Analyst</h2>'
            '<a href="/pagead/clk?ad=5">Apply</a></div>'
        )
        assert extract_listings(html)[0].link == "https://www.indeed.com/pagead/clk?ad=5"

    def test_highlighted_terms_are_not_split(self):
        html = results_page(job_card(title="<b>Data</b>bricks Engineer", company="<b>Data</b>bricks"))
        [listing] = extract_listings(html)
        assert listing.title == "Databricks Engineer"
        assert listing.company == "Databricks"

    def test_absolute_link_kept(self):
        html = results_page(job_card(title="ML Engineer", href="https://jobs.example.com/view/9"))
        assert extract_listings(html)[0].link == "https://jobs.example.com/view/9"

    def test_missing_fields_keep_record(self):
        html = results_page(
            job_card(title="Data Scientist", href="/viewjob?jk=1"),
            job_card(company="Acme", location="Remote"),
        )
        listings = extract_listings(html)
        assert len(listings) == 2
        assert listings[0].company == ""
        assert listings[0].summary == ""
        assert listings[0].link == "https://www.indeed.com/viewjob?jk=1"
        assert listings[1].title == ""
        assert listings[1].link == ""
        assert listings[1].company == "Acme"

    def test_preserves_page_order(self):
        html = results_page(*(job_card(title=f"Job {i}", href=f"/viewjob?jk={i}") for i in range(5)))
        assert [c.title for c in extract_listings(html)] == [f"Job {i}" for i in range(5)]

    def test_no_cards(self):
        assert extract_listings("<html><body><p>No jobs found</p></body></html>") == []

    def test_empty_document_raises(self):
        with pytest.raises(ParseError):
            extract_listings("   \n")

    def test_custom_selectors(self):
        html = (
            '<ul><li class="job"><h3>Analyst</h3><em>Globex</em>'
            '<a href="/jobs/7">more</a></li></ul>'
        )
        selectors = Selectors(container="li.job", title="h3", company="em", link="a[href]")
        listings = extract_listings(html, selectors, base_url="https://careers.example.com")
        assert listings[0].title == "Analyst"
        assert listings[0].company == "Globex"
        assert listings[0].link == "https://careers.example.com/jobs/7"

    def test_legacy_card_markup(self):
        html = (
            '<div class="jobsearch-SerpJobCard">'
            '<h2 class="title"><a class="jobtitle" href="/rc/clk?jk=old">Statistician</a></h2>'
            '<span class="company">\nInitech</span>'
            '<span class="location">Austin, TX</span>'
            '<div class="summary">SAS and R</div>'
            "</div>"
        )
        [listing] = extract_listings(html)
        assert listing.title == "Statistician"
        assert listing.company == "Initech"
        assert listing.location == "Austin, TX"
        assert listing.summary == "SAS and R"
        assert listing.link == "https://www.indeed.com/rc/clk?jk=old"


class TestScrapePage:
    def test_fetch_failure_is_skipped(self):
        fetch = FakeFetcher({url_for(0): FetchFailure(url_for(0), "Timeout")})
        page = scrape_page(0, fetch, "data scientist")
        assert page.skipped
        assert page.candidates == ()
        assert "Timeout" in page.error

    def test_unparseable_page_is_skipped(self):
        fetch = FakeFetcher({url_for(0): "   "})
        page = scrape_page(0, fetch, "data scientist")
        assert page.skipped


class TestCollectCandidates:
    @pytest.fixture
    def pages(self):
        return {
            url_for(0): results_page(
                job_card(title="Data Scientist", company="Acme", href="/viewjob?jk=1"),
                job_card(title="ML Engineer", company="Acme", href="/viewjob?jk=2"),
            ),
            url_for(20): results_page(
                job_card(title="Data Engineer", company="Globex", href="/viewjob?jk=3"),
            ),
            url_for(30): results_page(
                job_card(title="Analyst", company="Initech", href="/viewjob?jk=4"),
            ),
        }

    def test_failed_offset_does_not_abort_run(self, pages):
        fetch = FakeFetcher(pages)
        crawl = collect_candidates(range(0, 40, 10), fetch, "data scientist")
        assert [c.title for c in crawl.candidates] == ["Data Scientist", "ML Engineer", "Data Engineer", "Analyst"]
        assert crawl.pages_fetched == 3
        assert crawl.pages_skipped == 1
        assert fetch.calls == [url_for(o) for o in range(0, 40, 10)]

    def test_concurrent_crawl_keeps_offset_order(self, pages):
        sequential = collect_candidates(range(0, 40, 10), FakeFetcher(pages), "data scientist")
        concurrent = collect_candidates(range(0, 40, 10), FakeFetcher(pages), "data scientist", max_workers=4)
        assert concurrent == sequential

    def test_no_offsets(self):
        crawl = collect_candidates([], FakeFetcher(), "data scientist")
        assert crawl.candidates == []
        assert crawl.pages_fetched == 0
        assert crawl.pages_skipped == 0
