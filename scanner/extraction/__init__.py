"""Content extraction package."""

# Lazy imports - use explicit imports when needed:
# from scanner.extraction.html_content import extract_html_content, HtmlContent
# from scanner.extraction.schema import extract_structured_data, StructuredData
# from scanner.extraction.nap import extract_contact_from_html, check_nap_consistency
# from scanner.extraction.page import parse_page, ParsedPage
