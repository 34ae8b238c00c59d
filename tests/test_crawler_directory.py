from harvester.services.crawl.base import Organization, SocialMedia
from harvester.services.crawl.context import HarvestContext
from harvester.services.crawl.errors import DecodeError, TransportError
from harvester.services.crawl.fetcher import PageFetcher
from harvester.services.crawl.runner import run_directory
from harvester.services.crawl.spiders.directory_spider import DirectorySpider
from harvester.models.harvest import DirectoryRunParams

import csv

import httpx
import pytest

DOMAIN = "https://campus.test"
LISTING = "/engage/api/discovery/search/organizations"
DETAIL = "/engage/api/discovery/organization/bykey/"


def org_detail(key: str, visibility: str = "Public", **overrides):
    data = {
        "id": len(key),
        "institutionId": 1234,
        "name": f"Org {key}",
        "description": f"About {key}",
        "email": f"{key}@campus.test",
        "status": "Active",
        "visibility": visibility,
        "socialMedia": {
            "ExternalWebsite": f"https://{key}.example",
            "InstagramUrl": None,
            "FacebookUrl": "",
            "TwitterUrl": None,
        },
    }
    data.update(overrides)
    return data


class FakeDirectory:
    """Serves listing pages sliced by top/skip and detail documents by key."""

    def __init__(self, listing, details):
        self.listing = listing
        self.details = details
        self.listing_calls = []
        self.detail_calls = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == LISTING:
            top = int(request.url.params["top"])
            skip = int(request.url.params["skip"])
            self.listing_calls.append((top, skip))
            return httpx.Response(200, json={"value": self.listing[skip:skip + top]})
        if path.startswith(DETAIL):
            key = path[len(DETAIL):]
            self.detail_calls.append(key)
            if key not in self.details:
                return httpx.Response(404)
            return httpx.Response(200, json=self.details[key])
        return httpx.Response(404)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


def read_rows(path):
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.reader(f))


def test_listing_and_detail_urls():
    spider = DirectorySpider(DOMAIN + "/", page_size=1000)
    url = httpx.URL(spider.listing_url(2000))
    assert url.path == LISTING
    assert url.params["orderBy[0]"] == "UpperName asc"
    assert url.params["top"] == "1000"
    assert url.params["skip"] == "2000"
    assert spider.detail_url("chess-club") == DOMAIN + DETAIL + "chess-club"


def test_public_and_private_listing_with_empty_second_page(tmp_path):
    fake = FakeDirectory(
        listing=[
            {"WebsiteKey": "alpha", "Visibility": "Public"},
            {"WebsiteKey": "beta", "Visibility": "Private"},
        ],
        details={"alpha": org_detail("alpha"), "beta": org_detail("beta", "Private")},
    )
    out = tmp_path / "organizations.csv"

    path, stats = run_directory(DirectoryRunParams(domain=DOMAIN, page_size=2), str(out), client=fake.client())

    assert fake.listing_calls == [(2, 0), (2, 2)]
    assert fake.detail_calls == ["alpha"]
    assert stats.listing_fetches == 2
    assert stats.enrichment_fetches == 1
    rows = read_rows(path)
    assert rows[0] == [
        "ID", "Institution ID", "Name", "Description", "Email", "Status",
        "Visibility", "Website", "Instagram", "Facebook", "Twitter",
    ]
    assert rows[1:] == [[
        "5", "1234", "Org alpha", "About alpha", "alpha@campus.test", "Active",
        "Public", "https://alpha.example", "N/A", "N/A", "N/A",
    ]]


def test_private_detail_is_filtered_after_enrichment():
    fake = FakeDirectory(
        listing=[{"WebsiteKey": "alpha"}, {"WebsiteKey": "beta"}, {"WebsiteKey": "gamma"}],
        details={
            "alpha": org_detail("alpha"),
            "beta": org_detail("beta", "Private"),
            "gamma": org_detail("gamma", "public"),  # case matters
        },
    )
    with PageFetcher(client=fake.client()) as fetcher:
        ctx = HarvestContext(fetcher=fetcher)
        DirectorySpider(DOMAIN, page_size=10).harvest(ctx)
    records = ctx.aggregator.drain()
    assert [r.name for r in records] == ["Org alpha"]
    assert fake.detail_calls == ["alpha", "beta", "gamma"]
    assert ctx.stats.rejected == 2


@pytest.mark.parametrize("total,page_size,expected_fetches", [(4, 2, 3), (6, 3, 3), (3, 2, 2), (0, 5, 1)])
def test_listing_fetch_count(total, page_size, expected_fetches):
    keys = [f"org{i}" for i in range(total)]
    fake = FakeDirectory(
        listing=[{"WebsiteKey": k} for k in keys],
        details={k: org_detail(k) for k in keys},
    )
    with PageFetcher(client=fake.client()) as fetcher:
        ctx = HarvestContext(fetcher=fetcher)
        DirectorySpider(DOMAIN, page_size=page_size).harvest(ctx)
    assert len(fake.listing_calls) == expected_fetches
    assert [skip for _, skip in fake.listing_calls] == [i * page_size for i in range(expected_fetches)]
    assert len(ctx.aggregator.drain()) == total


def test_start_page_offsets_first_skip():
    fake = FakeDirectory(listing=[{"WebsiteKey": f"o{i}"} for i in range(5)], details={})
    with PageFetcher(client=fake.client()) as fetcher:
        ctx = HarvestContext(fetcher=fetcher)
        # o4 is the only entry on page 2 and has no detail document
        with pytest.raises(TransportError):
            DirectorySpider(DOMAIN, page_size=2, start_page=2).harvest(ctx)
    assert fake.listing_calls == [(2, 4)]
    assert fake.detail_calls == ["o4"]


def test_entity_missing_field_is_dropped_and_run_continues():
    broken = org_detail("beta")
    del broken["email"]
    fake = FakeDirectory(
        listing=[{"WebsiteKey": "alpha"}, {"WebsiteKey": "beta"}, {"Name": "no key"}, {"WebsiteKey": "gamma"}],
        details={"alpha": org_detail("alpha"), "beta": broken, "gamma": org_detail("gamma")},
    )
    with PageFetcher(client=fake.client()) as fetcher:
        ctx = HarvestContext(fetcher=fetcher)
        DirectorySpider(DOMAIN, page_size=10).harvest(ctx)
    records = ctx.aggregator.drain()
    assert [r.name for r in records] == ["Org alpha", "Org gamma"]
    assert ctx.stats.skipped == 2


def test_parse_organization_defaults_social_links():
    data = org_detail("alpha", socialMedia=None)
    org = DirectorySpider.parse_organization(data)
    assert org.social_media == SocialMedia()
    assert org.to_row()[-4:] == ["N/A", "N/A", "N/A", "N/A"]

    data = org_detail("alpha", socialMedia={"TwitterUrl": "https://twitter.com/alpha"})
    org = DirectorySpider.parse_organization(data)
    assert org.social_media == SocialMedia(twitter="https://twitter.com/alpha")
    assert isinstance(org, Organization)


def test_listing_decode_error_is_fatal(tmp_path):
    def handler(request):
        return httpx.Response(200, text="<html>maintenance</html>")

    out = tmp_path / "organizations.csv"
    client = httpx.Client(transport=httpx.MockTransport(handler))
    with pytest.raises(DecodeError):
        run_directory(DirectoryRunParams(domain=DOMAIN, page_size=2), str(out), client=client)
    assert not out.exists()


def test_listing_without_value_list_is_decode_error():
    with pytest.raises(DecodeError):
        DirectorySpider.parse_listing({"items": []}, source_url="x")


def test_detail_transport_error_is_fatal(tmp_path):
    fake = FakeDirectory(listing=[{"WebsiteKey": "ghost"}], details={})
    out = tmp_path / "organizations.csv"
    with pytest.raises(TransportError) as excinfo:
        run_directory(DirectoryRunParams(domain=DOMAIN, page_size=5), str(out), client=fake.client())
    assert excinfo.value.status_code == 404
    assert not out.exists()


def test_parallel_enrichment_keeps_listing_order():
    keys = [f"org{i:02d}" for i in range(12)]
    fake = FakeDirectory(
        listing=[{"WebsiteKey": k} for k in keys],
        details={k: org_detail(k, "Private" if i % 3 == 0 else "Public") for i, k in enumerate(keys)},
    )
    with PageFetcher(client=fake.client()) as fetcher:
        ctx = HarvestContext(fetcher=fetcher)
        DirectorySpider(DOMAIN, page_size=5, enrich_concurrency=4).harvest(ctx)
    records = ctx.aggregator.drain()
    expected = [f"Org {k}" for i, k in enumerate(keys) if i % 3 != 0]
    assert [r.name for r in records] == expected
    assert sorted(fake.detail_calls) == keys
    assert ctx.stats.enrichment_fetches == 12


def test_listing_entries_that_are_not_objects_are_dropped():
    fake = FakeDirectory(
        listing=[None, "alpha", ["beta"], {"WebsiteKey": "alpha"}],
        details={"alpha": org_detail("alpha")},
    )
    with PageFetcher(client=fake.client()) as fetcher:
        ctx = HarvestContext(fetcher=fetcher)
        DirectorySpider(DOMAIN, page_size=10).harvest(ctx)
    records = ctx.aggregator.drain()
    assert [r.name for r in records] == ["Org alpha"]
    assert fake.detail_calls == ["alpha"]
    assert ctx.stats.skipped == 3


@pytest.mark.parametrize("social", ["https://x", ["https://x"], 42])
def test_social_media_that_is_not_an_object_drops_only_that_entity(social):
    fake = FakeDirectory(
        listing=[{"WebsiteKey": "alpha"}, {"WebsiteKey": "beta"}],
        details={"alpha": org_detail("alpha", socialMedia=social), "beta": org_detail("beta")},
    )
    with PageFetcher(client=fake.client()) as fetcher:
        ctx = HarvestContext(fetcher=fetcher)
        DirectorySpider(DOMAIN, page_size=10).harvest(ctx)
    assert [r.name for r in ctx.aggregator.drain()] == ["Org beta"]
    assert ctx.stats.skipped == 1


def test_detail_decode_error_is_fatal(tmp_path):
    def handler(request):
        if request.url.path == LISTING:
            return httpx.Response(200, json={"value": [{"WebsiteKey": "alpha"}]})
        return httpx.Response(200, text="<html>Service Unavailable</html>")

    out = tmp_path / "organizations.csv"
    client = httpx.Client(transport=httpx.MockTransport(handler))
    with pytest.raises(DecodeError):
        run_directory(DirectoryRunParams(domain=DOMAIN, page_size=5), str(out), client=client)
    assert not out.exists()
