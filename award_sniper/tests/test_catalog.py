import pytest

from award_sniper import catalog
from award_sniper.models import FlightRoute, RewardProgram


def test_add_route_generates_unique_id():
    settings = catalog.default_settings()
    route = FlightRoute("", "Porto again", "opo", "Porto", "ord", "Chicago", "2026-06-01")

    updated = catalog.add_route(settings, route)
    added = updated.routes[-1]
    assert added.id == "opo-ord-2"
    assert (added.origin, added.destination) == ("OPO", "ORD")
    assert len(settings.routes) == 2  # input untouched


def test_update_and_remove_route():
    settings = catalog.default_settings()
    first = settings.routes[0]
    moved = FlightRoute(first.id, first.label, first.origin, first.origin_city,
                        first.destination, first.dest_city, "2026-06-03")

    updated = catalog.update_route(settings, moved)
    assert updated.routes[0].date == "2026-06-03"
    assert [r.id for r in updated.routes] == [r.id for r in settings.routes]

    removed = catalog.remove_route(updated, first.id)
    assert [r.id for r in removed.routes] == ["ams-msp"]
    with pytest.raises(KeyError):
        catalog.remove_route(removed, first.id)


def test_add_preset_skips_duplicate_names():
    settings = catalog.default_settings()
    same = catalog.add_preset(settings, "Flying Blue (Air France/KLM)")
    assert same is settings

    updated = catalog.add_preset(settings, "United MileagePlus")
    assert updated.programs[-1].id == "united-mileageplus"
    assert updated.programs[-1].miles == 30000
    assert updated.programs[-1].balance is None

    with pytest.raises(KeyError):
        catalog.add_preset(settings, "Unknown Club")


def test_program_mutations():
    settings = catalog.default_settings()
    prog = RewardProgram("flyingblue", "Flying Blue copy", 20000)
    updated = catalog.add_program(settings, prog)
    assert updated.programs[-1].id == "flyingblue-2"

    changed = catalog.update_program(updated, RewardProgram("flyingblue", "FB", 25000, 2.0))
    assert changed.programs[0].miles == 25000
    assert catalog.remove_program(changed, "flyingblue-2").programs == changed.programs[:-1]


def test_program_invariants():
    with pytest.raises(ValueError):
        RewardProgram("x", "X", 20000, threshold=0)
    with pytest.raises(ValueError):
        RewardProgram("x", "X", -1)


def test_urls():
    prog = catalog.DEFAULT_PROGRAMS[0]
    url = catalog.award_search_url(prog, "OPO", "ORD", "2026-05-27")
    assert "OPO" in url and "ORD" in url and "2026-05-27" in url

    custom = RewardProgram("custom", "Custom", 10000, book_url="https://custom.example")
    assert catalog.award_search_url(custom, "OPO", "ORD", "2026-05-27") == "https://custom.example"

    gf = catalog.google_flights_url(catalog.DEFAULT_ROUTES[0])
    assert gf.startswith("https://www.google.com/travel/flights?q=")
    assert "OPO" in gf and "ORD" in gf
