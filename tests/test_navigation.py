import pytest

from housetracker.navigation import (
    Mode,
    Page,
    detail_url,
    map_url,
    resolve,
    switch_items,
)


@pytest.mark.parametrize(
    "path, page",
    [
        ("/insert", Page.INSERT),
        ("/list", Page.LIST),
        ("/list/", Page.LIST),
        ("/map", Page.MAP),
        ("/houses/abc", Page.DETAIL),
    ],
)
def test_resolve_known_paths(path, page):
    route = resolve(path)

    assert route.page is page
    assert not route.redirected


@pytest.mark.parametrize("path", ["/", "", "/houses", "/houses/1/extra", "/nope"])
def test_unknown_paths_fall_back_to_list(path):
    route = resolve(path)

    assert route.page is Page.LIST
    assert route.redirected
    assert route.url == "/list"


def test_map_route_reads_selection_parameter():
    assert resolve("/map", {"houseId": "2"}).selected_id == "2"
    assert resolve("/map", {"houseId": " "}).selected_id is None
    assert resolve("/map").selected_id is None


def test_detail_route_keeps_listing_id():
    route = resolve("/houses/a%2Fb")

    assert route.listing_id == "a/b"
    assert route.url == "/houses/a%2Fb"


@pytest.mark.parametrize(
    "path, active",
    [
        ("/insert", Mode.INSERT),
        ("/list", Mode.LIST),
        ("/map", Mode.MAP),
        ("/houses/1", Mode.LIST),
        ("/whatever", Mode.LIST),
    ],
)
def test_switch_highlights_exactly_one_destination(path, active):
    items = switch_items(resolve(path))

    assert [item.mode for item in items] == [Mode.INSERT, Mode.LIST, Mode.MAP]
    assert [item.mode for item in items if item.active] == [active]


def test_urls():
    assert map_url() == "/map"
    assert map_url("2") == "/map?houseId=2"
    assert map_url("a b") == "/map?houseId=a+b"
    assert detail_url("2") == "/houses/2"
