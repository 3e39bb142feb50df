import pytest
from strawberry.relay import to_base64

from strawberry_autoschema import Domain, MemoryAccessor, MemoryStore, RecordNotFoundError


@pytest.fixture
def team_store():
    domain = Domain.from_config(
        {
            "models": [
                {
                    "name": "Team",
                    "fields": [
                        {"name": "id", "type": "int", "primary_key": True},
                        {"name": "name", "type": "varchar", "unique": True},
                    ],
                },
                {
                    "name": "Member",
                    "fields": [
                        {
                            "name": "id",
                            "type": "int",
                            "primary_key": True,
                            "auto_increment": True,
                        },
                        {"name": "name", "type": "varchar"},
                        {"name": "team", "references": "Team", "nullable": True},
                    ],
                },
            ]
        }
    )
    store = MemoryStore(domain)
    store.insert("Team", {"id": 10, "name": "red"})
    store.insert("Member", {"name": "Ann", "team": 10})
    store.insert("Member", {"name": "Bob", "team": {"id": 10}})
    store.insert("Member", {"name": "Cid"})
    return store


def test_insert_auto_increment(store):
    first = store.insert("Category", {"name": "a"})
    explicit = store.insert("Category", {"id": 10, "name": "b"})
    after = store.insert("Category", {"name": "c"})
    assert [first["id"], explicit["id"], after["id"]] == [1, 10, 11]


def test_insert_normalizes_foreign_keys(team_store):
    assert [m["team"] for m in team_store.all("Member")] == [10, 10, None]


def test_insert_rejects_unknown_fields(store):
    with pytest.raises(ValueError, match="Unknown fields for Category: colour"):
        store.insert("Category", {"name": "a", "colour": "red"})


def test_insert_checks_unique_values(store):
    store.insert("Category", {"name": "a"})
    with pytest.raises(ValueError, match="already exists"):
        store.insert("Category", {"name": "a"})


def test_remove_nulls_nullable_references(team_store):
    team = team_store.all("Team")[0]
    team_store.remove(team_store.domain.model("Team"), team)
    assert team_store.all("Team") == []
    assert [m["team"] for m in team_store.all("Member")] == [None, None, None]


def test_atomic_restores_rows(store):
    store.insert("Category", {"name": "a"})
    with pytest.raises(RuntimeError), store.atomic():
        store.insert("Category", {"name": "b"})
        store.all("Category")[0]["name"] = "changed"
        raise RuntimeError

    assert store.all("Category") == [{"id": 1, "name": "a"}]
    assert store.insert("Category", {"name": "b"})["id"] == 2


@pytest.mark.asyncio()
async def test_query_filters(store, domain, users):
    accessor = MemoryAccessor(store)
    user = domain.model("User")

    rows = await accessor.query(user, {"where": {"age_ge": 36, "age_le": 40}})
    assert [r["email"] for r in rows] == ["ada@example.com"]

    rows = await accessor.query(user, {"where": {"age_ne": 36}})
    assert [r["email"] for r in rows] == ["alan@example.com", "grace@example.com"]

    rows = await accessor.query(user, {"where": {"firstName_like": "A_a"}})
    assert [r["email"] for r in rows] == ["ada@example.com"]

    rows = await accessor.query(user, {"where": {"firstName_like": "a%"}})
    assert rows == []

    rows = await accessor.query(
        user, {"where": {"AND": [{"age_gt": 30}, {"OR": [{"firstName": "Alan"}]}]}}
    )
    assert [r["email"] for r in rows] == ["alan@example.com"]


@pytest.mark.asyncio()
async def test_unset_operators_are_ignored(store, domain, users):
    accessor = MemoryAccessor(store)
    rows = await accessor.query(domain.model("User"), {"where": {"age_lt": None}})
    assert len(rows) == 3


@pytest.mark.asyncio()
async def test_query_returns_copies(store, domain, users):
    accessor = MemoryAccessor(store)
    rows = await accessor.query(domain.model("User"), {"limit": 1})
    rows[0]["email"] = "changed"
    assert store.all("User")[0]["email"] == "ada@example.com"


@pytest.mark.asyncio()
async def test_unknown_filter(store, domain, users):
    accessor = MemoryAccessor(store)
    with pytest.raises(ValueError, match='Unknown filter "height_lt"'):
        await accessor.query(domain.model("User"), {"where": {"height_lt": 3}})


@pytest.mark.asyncio()
async def test_order_by_relation_is_rejected(store, domain, users):
    accessor = MemoryAccessor(store)
    with pytest.raises(ValueError, match='Cannot order users by "posts"'):
        await accessor.query(domain.model("User"), {"order_by": ["posts"]})


@pytest.mark.asyncio()
async def test_load(store, domain, posts):
    accessor = MemoryAccessor(store)
    user_id = domain.model("User").get_field("id")
    author = domain.model("Post").get_field("author")

    ada = await accessor.load(user_id, 1)
    assert ada["email"] == "ada@example.com"
    assert await accessor.load(user_id, 99) is None

    ada_posts = await accessor.load(author, 1)
    assert [p["title"] for p in ada_posts] == ["Notes", "Engines"]


@pytest.mark.asyncio()
async def test_cursor_query(store, domain, users):
    accessor = MemoryAccessor(store)
    user = domain.model("User")

    edges = await accessor.cursor_query(user, {"limit": 1, "order_by": ["-id"]})
    assert [e["node"]["id"] for e in edges] == [3, 2]
    assert edges[0]["cursor"] == to_base64("User", 3)

    edges = await accessor.cursor_query(
        user, {"limit": 1, "order_by": ["-id"], "cursor": edges[0]["cursor"]}
    )
    assert [e["node"]["id"] for e in edges] == [2, 1]


@pytest.mark.asyncio()
async def test_writes_reset_loaders(store, domain, users):
    accessor = MemoryAccessor(store)
    user = domain.model("User")
    user_id = user.get_field("id")

    assert (await accessor.load(user_id, 1))["age"] == 36
    await accessor.update(user, {"age": 37}, {"id": 1})
    assert (await accessor.load(user_id, 1))["age"] == 37


@pytest.mark.asyncio()
async def test_delete_missing_record(store, domain):
    accessor = MemoryAccessor(store)
    with pytest.raises(RecordNotFoundError) as exc_info:
        await accessor.delete(domain.model("User"), {"id": 1})

    assert exc_info.value.model_name == "User"
    assert exc_info.value.where == {"id": 1}


@pytest.mark.asyncio()
async def test_lookup_needs_a_field(store, domain):
    accessor = MemoryAccessor(store)
    with pytest.raises(ValueError, match="needs at least one field"):
        await accessor.get(domain.model("User"), {})


@pytest.mark.asyncio()
async def test_disconnect_nullable_child(team_store):
    accessor = MemoryAccessor(team_store)
    team = team_store.domain.model("Team")

    await accessor.update(team, {"members": {"disconnect": [{"id": 1}]}}, {"id": 10})
    assert [m["team"] for m in team_store.all("Member")] == [None, 10, None]


@pytest.mark.asyncio()
async def test_upsert_many_children(team_store):
    accessor = MemoryAccessor(team_store)
    team = team_store.domain.model("Team")

    await accessor.update(
        team,
        {
            "members": {
                "upsert": [
                    {"create": {"id": 3, "name": "Cid"}, "update": {"name": "Cyd"}},
                    {"create": {"name": "Dee"}, "update": {"name": "Dee"}},
                ]
            }
        },
        {"name": "red"},
    )
    assert [(m["name"], m["team"]) for m in team_store.all("Member")] == [
        ("Ann", 10),
        ("Bob", 10),
        ("Cyd", 10),
        ("Dee", 10),
    ]


@pytest.mark.asyncio()
async def test_upsert_matches_unique_foreign_key(store, domain, users):
    accessor = MemoryAccessor(store)
    profile = domain.model("Profile")
    store.insert("Profile", {"user": 1, "bio": "Counts"})

    row = await accessor.upsert(
        profile,
        {"user": {"connect": {"email": "ada@example.com"}}, "bio": "new"},
        {"bio": "updated"},
    )
    assert row == {"id": 1, "user": 1, "bio": "updated"}

    row = await accessor.upsert(
        profile,
        {"user": {"connect": {"id": 2}}, "bio": "new"},
        {"bio": "updated"},
    )
    assert row == {"id": 2, "user": 2, "bio": "new"}
    assert len(store.all("Profile")) == 2
