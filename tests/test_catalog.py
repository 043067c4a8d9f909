from fakenft_server.catalog import Catalog, CatalogSort
from fakenft_server.config import DEFAULT_BASE_URL, Settings
from fakenft_server.nft_service import NftService
from fakenft_server.preferences import MemoryPreferenceStore


async def test_load_keeps_server_order_without_preference(client) -> None:
    catalog = Catalog(NftService(client), MemoryPreferenceStore())

    categories = await catalog.load()

    assert [c.title for c in categories] == ["peach", "Blue"]
    assert [c.count for c in categories] == [1, 2]
    assert catalog.sort_type is CatalogSort.NONE


async def test_sort_choice_is_remembered(client) -> None:
    preferences = MemoryPreferenceStore()
    catalog = Catalog(NftService(client), preferences)
    await catalog.load()

    assert [c.title for c in catalog.sort_by_name()] == ["Blue", "peach"]
    assert preferences.get("CatalogSortType") == "byName"

    reloaded = Catalog(NftService(client), preferences)
    await reloaded.load()
    assert [c.title for c in reloaded.categories] == ["Blue", "peach"]

    assert [c.id for c in catalog.sort_by_count()] == ["c2", "c1"]
    assert preferences.get("CatalogSortType") == "byCount"


async def test_unknown_preference_is_ignored(client) -> None:
    catalog = Catalog(NftService(client), MemoryPreferenceStore({"CatalogSortType": "byColour"}))

    assert catalog.sort_type is CatalogSort.NONE


async def test_load_collection_uses_cache(client, api) -> None:
    service = NftService(client)
    catalog = Catalog(service, MemoryPreferenceStore())

    collection, nfts = await catalog.load_collection("c2")
    await catalog.load_collection("c2")

    assert collection.name == "Blue"
    assert [n.detail.name for n in nfts] == ["Perchy", "ivoro"]
    assert sum(1 for r in api.requests if r.url.path.startswith("/api/v1/nft/")) == 2


async def test_load_collection_flags_likes_and_cart(client, api) -> None:
    catalog = Catalog(NftService(client), MemoryPreferenceStore())

    _, nfts = await catalog.load_collection("c2")

    flags = {n.detail.id: (n.liked, n.in_cart) for n in nfts}
    assert flags == {"2": (False, True), "3": (True, False)}


def test_settings_from_env() -> None:
    settings = Settings.from_env(
        {
            "FAKENFT_BASE_URL": "https://example.test/",
            "FAKENFT_TOKEN": "abc",
            "FAKENFT_TIMEOUT": "5",
            "FAKENFT_PREFERENCES_FILE": "/tmp/prefs.json",
            "FAKENFT_LOG_LEVEL": "debug",
        }
    )

    assert settings.base_url == "https://example.test"
    assert settings.token == "abc"
    assert settings.timeout == 5.0
    assert settings.preferences_file == "/tmp/prefs.json"
    assert settings.log_level == "DEBUG"


def test_settings_defaults() -> None:
    settings = Settings.from_env({})

    assert settings.base_url == DEFAULT_BASE_URL
    assert settings.token == ""
    assert settings.timeout == 30.0
    assert settings.preferences_file.endswith(".fakenft_preferences.json")
