"""One-time parse of a crawled page, shared by every pillar scorer."""

from dataclasses import dataclass

from scanner.crawler.fetcher import CrawlResult
from scanner.extraction.html_content import HtmlContent, extract_html_content
from scanner.extraction.nap import (
    ExtractedContact,
    extract_contact_from_entity,
    extract_contact_from_html,
)
from scanner.extraction.schema import BusinessEntity, StructuredData, extract_structured_data


@dataclass(frozen=True)
class ParsedPage:
    """A crawl result plus everything the parsers derived from it."""

    crawl: CrawlResult
    content: HtmlContent
    structured_data: StructuredData
    entity: BusinessEntity | None
    html_contact: ExtractedContact
    schema_contact: ExtractedContact

    @property
    def html(self) -> str:
        return self.crawl.html

    @property
    def url(self) -> str:
        return self.crawl.final_url

    def nap_summary(self) -> dict:
        """
        Resolved name/address/phone with the source they came from.

        Structured data wins over the page for each field; source is
        "both" when each side yielded a name.
        """
        schema, page = self.schema_contact, self.html_contact

        if schema.names and page.names:
            source = "both"
        elif not schema.is_empty:
            source = "schema"
        elif page.names or page.addresses or page.phones:
            source = "html"
        else:
            source = "none"

        def first(*candidates: list[str]) -> str | None:
            for values in candidates:
                if values:
                    return values[0]
            return None

        return {
            "name": first(schema.names, page.names),
            "address": first(schema.addresses, page.addresses),
            "phone": first(schema.phones, page.phones),
            "source": source,
        }


def parse_page(crawl: CrawlResult) -> ParsedPage:
    """Run every parser over a crawl result once."""
    structured_data = extract_structured_data(crawl.html)
    entity = structured_data.entity
    return ParsedPage(
        crawl=crawl,
        content=extract_html_content(crawl.html, crawl.final_url),
        structured_data=structured_data,
        entity=entity,
        html_contact=extract_contact_from_html(crawl.html),
        schema_contact=extract_contact_from_entity(entity),
    )
