import json
import locale
import os
import stat

from fakenft_server.models import FailedSlot, PendingSlot, ReadySlot
from fakenft_server.preferences import JsonPreferenceStore, MemoryPreferenceStore
from fakenft_server.sorting import SortCriterion, configure_collation, sort_slots

from .conftest import make_detail


def ready(nft_id: str, price: str = "1", rating: int = 0, name: str = "") -> ReadySlot:
    return ReadySlot(detail=make_detail(nft_id, price, rating, name or nft_id))


def ids(slots: list) -> list[str]:
    return [slot.id for slot in slots]


def test_price_sort_is_stable_for_ties() -> None:
    slots = [ready("a", "1"), ready("b", "2"), ready("c", "1"), ready("d", "2")]

    assert ids(sort_slots(slots, SortCriterion.PRICE)) == ["b", "d", "a", "c"]


def test_unloaded_slots_keep_order_at_back() -> None:
    slots = [
        PendingSlot(id="p"),
        ready("a", "0"),
        FailedSlot(id="f", error="HTTP 500"),
        ready("b", "5"),
    ]

    for criterion in SortCriterion:
        assert ids(sort_slots(slots, criterion))[-2:] == ["p", "f"]


def test_name_sort_ignores_case() -> None:
    slots = [ready("1", name="delta"), ready("2", name="Alpha"), ready("3", name="charlie"), ready("4", name="Bravo")]

    assert ids(sort_slots(slots, SortCriterion.NAME)) == ["2", "4", "3", "1"]


def test_name_sort_handles_accents_and_cyrillic() -> None:
    names = ["b", "Ápple", "apple", "Ёж", "ель", "жук"]
    slots = [ready(str(i), name=name) for i, name in enumerate(names)]

    ordered = [slot.detail.name for slot in sort_slots(slots, SortCriterion.NAME)]

    assert ordered == ["apple", "Ápple", "b", "Ёж", "ель", "жук"]


def test_name_sort_keeps_short_i_after_i() -> None:
    slots = [ready("1", name="йод"), ready("2", name="ива"), ready("3", name="игла")]

    assert ids(sort_slots(slots, SortCriterion.NAME)) == ["2", "3", "1"]


def test_sort_does_not_mutate_input() -> None:
    slots = [ready("a", "1"), ready("b", "2")]

    sort_slots(slots, SortCriterion.PRICE)

    assert ids(slots) == ["a", "b"]


def test_parse_criterion() -> None:
    assert SortCriterion.parse("rating") is SortCriterion.RATING
    assert SortCriterion.parse("byName") is None
    assert SortCriterion.parse(None) is None


def test_memory_store() -> None:
    store = MemoryPreferenceStore({"chosenFilter": "name"})

    assert store.get("chosenFilter") == "name"
    store.remove("chosenFilter")
    assert store.get("chosenFilter") is None


def test_json_store_persists(tmp_path) -> None:
    path = str(tmp_path / "prefs.json")

    JsonPreferenceStore(path).set("chosenFilter", "price")

    assert JsonPreferenceStore(path).get("chosenFilter") == "price"
    with open(path) as f:
        assert json.load(f) == {"chosenFilter": "price"}
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600


def test_json_store_ignores_corrupt_file(tmp_path) -> None:
    path = tmp_path / "prefs.json"
    path.write_text("{not json")

    store = JsonPreferenceStore(str(path))

    assert store.get("chosenFilter") is None
    store.set("chosenFilter", "rating")
    assert JsonPreferenceStore(str(path)).get("chosenFilter") == "rating"


def test_json_store_remove(tmp_path) -> None:
    path = str(tmp_path / "prefs.json")
    store = JsonPreferenceStore(path)
    store.set("chosenFilter", "name")

    store.remove("chosenFilter")

    assert JsonPreferenceStore(path).get("chosenFilter") is None


def test_configure_collation_tolerates_unknown_locale(monkeypatch, caplog) -> None:
    def unsupported(category, value=None):
        raise locale.Error("unsupported locale setting")

    monkeypatch.setattr(locale, "setlocale", unsupported)

    configure_collation()

    assert "Could not set collation locale" in caplog.text
