from vcard_contacts import models, postal
from vcard_contacts.models import CardVersion, OrganizationEntry, PostalEntry, Variant
from vcard_contacts.names import construct_name, split_escaped_values, unescape_text
from vcard_contacts.organization import OrganizationMerger
from vcard_contacts.phone import normalize_phone, strip_to_dial_string
from vcard_contacts.postal import format_postal_slots, pack_postal_slots
from vcard_contacts.type_resolver import (
    resolve_email_type,
    resolve_im_type,
    resolve_phone_type,
    resolve_photo_type,
    resolve_postal_type,
)

SPRINGFIELD = ["", "", "1 Main St", "Springfield", "", "12345", "USA"]


def test_strip_to_dial_string():
    assert strip_to_dial_string("  +1 (555) 123-4567 ") == "+15551234567"
    assert strip_to_dial_string("555+123") == "555123"
    assert strip_to_dial_string("call me") == ""


def test_normalize_phone_default_variant():
    assert normalize_phone("+15551234567") == "+15551234567"
    assert normalize_phone("(555) 123-4567") == "5551234567"
    assert normalize_phone("") == ""


def test_normalize_phone_never_drops_digits():
    assert normalize_phone("+4402071234567") == "+4402071234567"
    assert normalize_phone("+4402071234567", Variant.JAPAN) == "+4402071234567"
    assert normalize_phone("+1 23") == "+123"


def test_normalize_phone_japan_variant():
    assert normalize_phone("0312345678", Variant.JAPAN) == "03-1234-5678"
    assert normalize_phone("+81312345678", Variant.JAPAN) == "+81 3-1234-5678"
    # Only the Japan device variant reformats nationally.
    assert normalize_phone("0312345678", Variant.JAPAN_LOCAL_NAMING) == "0312345678"


def test_postal_slots_pad_and_truncate():
    assert pack_postal_slots(["a"]) == ("a", None, None, None, None, None, None)
    assert len(pack_postal_slots([str(i) for i in range(12)])) == 7
    assert pack_postal_slots([]) == (None,) * 7


def test_formatted_address_by_variant():
    slots = pack_postal_slots(SPRINGFIELD)
    assert format_postal_slots(slots, Variant.JAPAN) == "USA 12345 Springfield 1 Main St"
    assert format_postal_slots(slots, Variant.DEFAULT) == "1 Main St Springfield 12345 USA"
    assert format_postal_slots(slots, Variant.EUROPE) == "1 Main St Springfield 12345 USA"


def test_postal_entry_accessors():
    entry = PostalEntry(slots=pack_postal_slots(SPRINGFIELD))
    assert entry.street == "1 Main St"
    assert entry.locality == "Springfield"
    assert entry.postal_code == "12345"
    assert entry.country == "USA"
    assert entry.region == ""
    assert entry.formatted_address(Variant.JAPAN) == "USA 12345 Springfield 1 Main St"


def test_postal_rendering_lives_with_the_entry_model():
    assert postal.format_postal_slots is models.format_postal_slots
    entry = models.PostalEntry(slots=("", "", "2 Elm Rd", None, "", "", "UK"))
    assert entry.formatted_address() == "2 Elm Rd UK"


def test_phone_type_resolution():
    assert resolve_phone_type(None).category == "home"
    pref_only = resolve_phone_type(["PREF"])
    assert (pref_only.category, pref_only.is_primary) == ("main", True)
    assert resolve_phone_type(["WORK", "FAX"]).category == "fax_work"
    assert resolve_phone_type(["FAX"]).category == "fax_home"
    assert resolve_phone_type(["cell", "VOICE"]).category == "mobile"
    custom = resolve_phone_type(["X-FOO", "BAR"])
    assert (custom.category, custom.label) == ("custom", "FOO")
    overridden = resolve_phone_type(["FOO", "WORK"])
    assert (overridden.category, overridden.label) == ("work", None)


def test_postal_and_email_type_resolution():
    assert resolve_postal_type(["DOM", "INTL"]).category == "home"
    assert resolve_postal_type(["FOO", "BAR"]).label == "FOO"
    assert resolve_postal_type(["work"]).category == "work"
    assert resolve_email_type([]).category == "other"
    internet = resolve_email_type(["INTERNET"])
    assert (internet.category, internet.label) == ("custom", "INTERNET")


def test_im_type_borrows_phone_home_work():
    assert resolve_im_type("X-ICQ", None).category == "icq"
    assert resolve_im_type("X-SKYPE-USERNAME", ["Work"]).category == "work"
    assert resolve_im_type("X-MSN", ["HOME", "PREF"]).is_primary is True


def test_photo_type_resolution():
    resolution = resolve_photo_type(["PREF", "GIF", "JPEG"])
    assert resolution.label == "GIF"
    assert resolution.is_primary is True
    assert resolve_photo_type(None).label is None


def test_split_escaped_values_by_version():
    assert split_escaped_values("a;b;;") == ["a", "b", "", ""]
    assert split_escaped_values("a\\;b;c", CardVersion.V21) == ["a;b", "c"]
    assert split_escaped_values("a\\nb", CardVersion.V21) == ["a\\nb"]
    assert split_escaped_values("a\\nb", CardVersion.V30) == ["a\nb"]
    assert split_escaped_values("trailing\\") == ["trailing\\"]


def test_unescape_text_by_version():
    assert unescape_text("a\\;b\\nc", CardVersion.V21) == "a;b\\nc"
    assert unescape_text("a\\;b\\nc", CardVersion.V30) == "a;b\nc"
    assert unescape_text("keep;separators") == "keep;separators"


def test_construct_name_skips_empty_parts():
    assert construct_name(Variant.DEFAULT, "Doe", "Jane", "", None, "") == "Jane Doe"
    assert construct_name(Variant.EUROPE, "Doe", "Jane", "M") == "M Jane Doe"


def test_organization_merge_fills_first_open_entry():
    organizations = []
    merger = OrganizationMerger(organizations)
    merger.apply_title("CTO")
    merger.apply_title("Advisor")
    merger.apply_organization("work", ["Acme"], False)
    merger.apply_organization("work", ["Globex", "Labs", "West"], True)

    assert organizations == [
        OrganizationEntry("work", "Acme", None, "CTO", False),
        OrganizationEntry("work", "Globex", "Labs West", "Advisor", True),
    ]


def test_organization_empty_strings_are_not_open():
    organizations = []
    merger = OrganizationMerger(organizations)
    merger.apply_organization("work", [], False)
    merger.apply_organization("work", ["Second"], False)
    merger.apply_title("Lead")

    assert [org.company for org in organizations] == ["", "Second"]
    assert organizations[0].department is None
    assert organizations[0].title == "Lead"
    assert organizations[1].title is None


def test_organization_extra_titles_start_new_entries():
    organizations = []
    merger = OrganizationMerger(organizations)
    merger.apply_organization("work", ["Acme"], False)
    merger.apply_title("Engineer")
    merger.apply_title("Mentor")

    assert len(organizations) == 2
    assert organizations[1].company is None
    assert organizations[1].title == "Mentor"
    assert organizations[1].category == "work"
    assert organizations[1].is_primary is False
