import httpx
import pytest
import respx

from fitcheck.services.scraper import (
    ProductScraper,
    ScrapeError,
    build_product_data,
    get_size_chart_url,
)


PRODUCT_URL = "https://www.nike.com/t/club-fleece-hoodie"

PRODUCT_HTML = """
<html><head>
  <meta property="og:title" content="Club Fleece Hoodie">
  <meta property="og:description" content="Brushed-back fleece.">
  <meta property="og:image" content="https://static.nike.com/hoodie.jpg">
  <script type="application/ld+json">
    {"@type": "Product", "name": "Ignored Name", "brand": {"@type": "Brand", "name": "Nike"},
     "material": "Cotton/Polyester",
     "offers": [{"price": "65.00", "priceCurrency": "USD"}]}
  </script>
</head><body>
  <ul><li>S</li><li>M</li><li>L</li></ul>
  <span class="price">$65.00</span>
</body></html>
"""


def test_build_product_prefers_meta_and_backfills_from_json_ld():
    product = build_product_data(PRODUCT_URL, PRODUCT_HTML)
    assert product.name == "Club Fleece Hoodie"
    assert product.description == "Brushed-back fleece."
    assert product.image_url == "https://static.nike.com/hoodie.jpg"
    assert product.brand == "Nike"
    assert product.material == "Cotton/Polyester"
    assert product.price == 65.0
    assert product.currency == "USD"
    assert product.sizes == ["S", "M", "L"]
    assert product.size_chart is None


def test_json_ld_fills_missing_fields_from_first_product_only():
    html = """
    <script type="application/ld+json">{"@type": "WebPage", "name": "Page"}</script>
    <script type="application/ld+json">
      [{"@type": "Product", "name": "Linen Dress", "description": "Airy",
        "manufacturer": "Atelier", "image": [{"url": "https://cdn.example.com/dress.jpg"}],
        "offers": {"price": 120, "priceCurrency": "GBP"}}]
    </script>
    <script type="application/ld+json">
      {"type": "Product", "name": "Second", "image": "https://cdn.example.com/other.jpg",
       "offers": {"price": 1, "priceCurrency": "EUR"}}
    </script>
    """
    product = build_product_data("https://shop.example.co/item/42", html)
    assert product.name == "Linen Dress"
    assert product.description == "Airy"
    assert product.brand == "Atelier"
    assert product.image_url == "https://cdn.example.com/dress.jpg"
    # the inline "price": 120 is found by the page-level price patterns first
    assert product.price == 120.0
    assert product.currency == "USD"
    assert product.category == "dress"


def test_json_ld_offer_currency_fills_when_no_price_found_on_page():
    html = """
    <script type="application/ld+json">
      {"@type": "Product", "name": "Wool Coat", "offers": {"priceCurrency": "EUR"}}
    </script>
    """
    product = build_product_data("https://shop.example.com/item/7", html)
    assert product.price is None
    assert product.currency == "EUR"
    assert product.category == "jacket"


def test_brand_inferred_from_hostname_when_absent():
    product = build_product_data("https://www.nike.com/t/runner", "<p>nothing useful</p>")
    assert product.brand == "nike"


def test_brand_hostname_with_single_label():
    product = build_product_data("http://localhost/item", "<p>nothing useful</p>")
    assert product.brand is None


def test_price_from_data_attribute_defaults_to_usd():
    product = build_product_data("https://www.example.com/p/1", '<div data-price="49.99"></div>')
    assert product.price == 49.99
    assert product.currency == "USD"


def test_image_falls_back_to_first_img():
    html = '<img src="/img/logo.png"><img src="/img/main.jpg"><img src="/img/alt.jpg">'
    product = build_product_data("https://www.example.com/p/1", html)
    assert product.image_url == "https://www.example.com/img/main.jpg"


def test_build_is_idempotent():
    first = build_product_data(PRODUCT_URL, PRODUCT_HTML)
    second = build_product_data(PRODUCT_URL, PRODUCT_HTML)
    assert first == second
    assert first.model_dump() == second.model_dump()


def test_size_chart_url_lookup():
    assert get_size_chart_url("Nike") == "https://www.nike.com/size-fit-guide"
    assert get_size_chart_url("H&M") == "https://www2.hm.com/en_us/customer-service/size-guide.html"
    assert get_size_chart_url("All Saints", "jacket") == "https://www.allsaints.com/size-guide/"
    assert get_size_chart_url("unknown-brand") is None
    assert get_size_chart_url("") is None


@pytest.mark.asyncio
@respx.mock
async def test_scrape_product_page_sends_browser_user_agent():
    route = respx.get(PRODUCT_URL).mock(return_value=httpx.Response(200, text=PRODUCT_HTML))
    product = await ProductScraper().scrape_product_page(PRODUCT_URL)
    assert product.name == "Club Fleece Hoodie"
    assert route.called
    assert route.calls.last.request.headers["User-Agent"].startswith("Mozilla/5.0")


@pytest.mark.asyncio
@respx.mock
async def test_scrape_product_page_wraps_http_errors():
    respx.get(PRODUCT_URL).mock(return_value=httpx.Response(404, text="missing"))
    with pytest.raises(ScrapeError) as exc:
        await ProductScraper().scrape_product_page(PRODUCT_URL)
    assert str(exc.value).startswith("Failed to scrape product page: ")
    assert isinstance(exc.value.__cause__, httpx.HTTPStatusError)


@pytest.mark.asyncio
@respx.mock
async def test_scrape_product_page_wraps_timeouts():
    respx.get(PRODUCT_URL).mock(side_effect=httpx.ConnectTimeout("timed out"))
    with pytest.raises(ScrapeError, match="timed out"):
        await ProductScraper().scrape_product_page(PRODUCT_URL)


@pytest.mark.asyncio
@respx.mock
async def test_scrape_size_chart_parses_table():
    url = get_size_chart_url("nike")
    respx.get(url).mock(return_value=httpx.Response(200, text="""
        <table><tr><th>Size</th><th>Chest</th></tr><tr><td>M</td><td>96</td></tr></table>
    """))
    chart = await ProductScraper().scrape_size_chart(url)
    assert chart == {"M": {"chest": 96.0}}


@pytest.mark.asyncio
@respx.mock
async def test_scrape_size_chart_degrades_to_empty_on_failure():
    url = get_size_chart_url("zara")
    respx.get(url).mock(return_value=httpx.Response(500))
    assert await ProductScraper().scrape_size_chart(url) == {}


@pytest.mark.asyncio
@respx.mock
async def test_scrape_size_chart_degrades_on_network_error():
    url = get_size_chart_url("gap")
    respx.get(url).mock(side_effect=httpx.ConnectError("refused"))
    assert await ProductScraper().scrape_size_chart(url) == {}
