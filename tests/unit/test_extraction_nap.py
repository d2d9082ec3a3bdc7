"""Tests for NAP extraction and consistency."""

import pytest

from scanner.extraction.nap import (
    ExtractedContact,
    NAPConsistency,
    check_nap_consistency,
    extract_contact_from_entity,
    extract_contact_from_html,
    normalize_phone,
)
from scanner.extraction.schema import BusinessEntity


class TestNormalizePhone:
    """Tests for normalize_phone function."""

    @pytest.mark.parametrize(
        "phone",
        ["(555) 123-4567", "555.123.4567", "+1 555 123 4567", "1-555-123-4567"],
    )
    def test_formats_normalize_equal(self, phone: str) -> None:
        """Formatting and the country code are ignored."""
        assert normalize_phone(phone) == "5551234567"


class TestExtractContactFromHtml:
    """Tests for extract_contact_from_html function."""

    def test_names_from_title_og_and_h1(self) -> None:
        """Name candidates come from title, og:site_name and H1."""
        html = """
        <html><head>
          <title>Corner Bistro | Best Brunch in Town</title>
          <meta property="og:site_name" content="Corner Bistro LLC">
        </head><body><h1>Welcome to Corner Bistro</h1></body></html>
        """
        contact = extract_contact_from_html(html)
        assert contact.names == ["Corner Bistro", "Corner Bistro LLC", "Welcome to Corner Bistro"]

    def test_phone_email_and_address(self) -> None:
        """Visible phones, emails and addresses are found."""
        html = """
        <html><body>
          <p>Call (555) 123-4567 or 555-123-4567. Email Info@Bistro.com</p>
          <p>Find us at 42 Oak Avenue, Portland, OR 97201</p>
        </body></html>
        """
        contact = extract_contact_from_html(html)
        assert contact.phones == ["5551234567"]
        assert contact.emails == ["info@bistro.com"]
        assert contact.addresses == ["42 Oak Avenue, Portland, OR 97201"]

    def test_script_text_ignored(self) -> None:
        """Numbers inside scripts are not contact data."""
        html = "<html><body><script>var tel = '555-123-4567';</script><p>Hello</p></body></html>"
        contact = extract_contact_from_html(html)
        assert contact.phones == []

    def test_empty_page(self) -> None:
        """Nothing found means an empty contact."""
        assert extract_contact_from_html("<html></html>").is_empty


class TestExtractContactFromEntity:
    """Tests for extract_contact_from_entity function."""

    def test_entity_fields(self) -> None:
        """Declared NAP values are collected and phone normalized."""
        entity = BusinessEntity.from_node(
            {
                "name": "Corner Bistro",
                "telephone": "+1-555-123-4567",
                "email": "Hello@Bistro.com",
                "address": {"streetAddress": "42 Oak Avenue", "addressLocality": "Portland"},
            }
        )
        contact = extract_contact_from_entity(entity)
        assert contact.names == ["Corner Bistro"]
        assert contact.phones == ["5551234567"]
        assert contact.emails == ["hello@bistro.com"]
        assert contact.addresses == ["42 Oak Avenue, Portland"]

    def test_no_entity(self) -> None:
        """No entity means nothing declared."""
        assert extract_contact_from_entity(None).is_empty


class TestCheckNapConsistency:
    """Tests for check_nap_consistency function."""

    def test_full_match(self) -> None:
        """All three fields matching scores 4."""
        schema = ExtractedContact(
            names=["Corner Bistro"],
            addresses=["42 Oak Avenue, Portland, OR, 97201"],
            phones=["5551234567"],
        )
        page = ExtractedContact(
            names=["Welcome to Corner Bistro"],
            addresses=["42 Oak Ave, Portland, OR 97201"],
            phones=["5551234567"],
        )
        result = check_nap_consistency(page, schema)
        assert result == NAPConsistency(name_match=True, phone_match=True, address_match=True)
        assert result.score == 4

    def test_name_containment_either_direction(self) -> None:
        """Shorter page name contained in the schema name still matches."""
        schema = ExtractedContact(names=["Corner Bistro & Bar"])
        page = ExtractedContact(names=["corner bistro"])
        assert check_nap_consistency(page, schema).name_match

    def test_phone_mismatch(self) -> None:
        """Different numbers do not match."""
        schema = ExtractedContact(phones=["5551234567"])
        page = ExtractedContact(phones=["5559999999"])
        assert not check_nap_consistency(page, schema).phone_match

    def test_short_address_needs_all_tokens(self) -> None:
        """Addresses with fewer than three tokens must match every token."""
        schema = ExtractedContact(addresses=["9 Elm"])
        assert check_nap_consistency(
            ExtractedContact(addresses=["9 Elm St 12345"]), schema
        ).address_match
        assert not check_nap_consistency(
            ExtractedContact(addresses=["9 Oak St 12345"]), schema
        ).address_match

    def test_address_partial_overlap(self) -> None:
        """Two shared tokens out of many is not a match."""
        schema = ExtractedContact(addresses=["42 Oak Avenue, Portland, OR, 97201"])
        page = ExtractedContact(addresses=["42 Pine Street, Salem 97301"])
        assert not check_nap_consistency(page, schema).address_match

    def test_empty_sides(self) -> None:
        """Nothing to compare scores zero."""
        assert check_nap_consistency(ExtractedContact(), ExtractedContact()).score == 0
