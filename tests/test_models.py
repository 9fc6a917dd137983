import pytest

from housetracker.models import (
    DiscoveryResult,
    Listing,
    ListingDraft,
    ListingUpdate,
    validate_vote,
)

from conftest import ROW_ONE


def test_listing_from_dict_parses_api_row():
    listing = Listing.from_dict({**ROW_ONE, "unexpected": "ignored"})

    assert listing.id == "1"
    assert listing.link == "http://example.org/1/"
    assert listing.vote == 7
    assert listing.street == "Via Tommaso Gulli, 32"
    assert listing.position == (45.4654, 9.1334)
    assert listing.rooms_number == 2
    assert listing.square_meters == 71


def test_listing_without_id_is_rejected():
    with pytest.raises(ValueError):
        Listing.from_dict({"link": "http://example.org/"})


def test_listing_with_single_coordinate_is_unmapped():
    only_lat = Listing.from_dict({"id": "3", "link": "x", "lat": 45.0})
    only_lng = Listing.from_dict({"id": "4", "link": "x", "lng": 9.0})
    at_origin = Listing.from_dict({"id": "5", "link": "x", "lat": 0, "lng": 0})

    assert only_lat.position is None
    assert not only_lat.is_mapped
    assert not only_lng.is_mapped
    assert at_origin.position == (0.0, 0.0)


def test_discovery_payload_skips_missing_fields():
    result = DiscoveryResult.from_dict({"city": "Milano", "lat": "45.1", "zone": None})

    assert result.to_payload() == {"city": "Milano", "lat": 45.1}


def test_draft_payload_never_lets_discovery_override_user_fields(discovery):
    draft = ListingDraft(link="http://x/", vote=8, comment="nice", discovery=discovery)

    payload = draft.to_payload()

    assert payload["link"] == "http://x/"
    assert payload["vote"] == 8
    assert payload["comment"] == "nice"
    assert payload["street"] == "Via Pellegrino Rossi, 13"
    assert "cost" not in payload


def test_draft_defaults_and_link_change_drops_discovery(discovery):
    draft = ListingDraft(link="http://x/", discovery=discovery)
    assert draft.vote == 5
    assert draft.comment == ""

    assert draft.with_link("http://x/").discovery is discovery
    changed = draft.with_link("http://y/")
    assert changed.discovery is None
    assert changed.to_payload() == {"link": "http://y/", "vote": 5, "comment": ""}


def test_update_payload_omits_absent_fields():
    assert ListingUpdate().to_payload() == {}
    assert ListingUpdate(vote=0).to_payload() == {"vote": 0}
    assert ListingUpdate(comment="ok", vote="3").to_payload() == {"comment": "ok", "vote": 3}


@pytest.mark.parametrize("value", [-1, 11, 2.5, True, "ten", None])
def test_validate_vote_rejects_out_of_range(value):
    with pytest.raises(ValueError):
        validate_vote(value)


def test_validate_vote_accepts_bounds():
    assert validate_vote(0) == 0
    assert validate_vote("10") == 10
    assert validate_vote(4.0) == 4
