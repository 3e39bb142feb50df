import asyncio
import copy

import pytest

from strawberry_autoschema import Domain, MemoryAccessor, MemoryStore, SchemaBuilder

BLOG_DOMAIN = {
    "models": [
        {
            "name": "User",
            "description": "Someone writing posts",
            "fields": [
                {
                    "name": "id",
                    "type": "integer",
                    "primary_key": True,
                    "auto_increment": True,
                },
                {"name": "email", "type": "varchar(255)", "unique": True},
                {"name": "firstName", "type": "varchar(40)", "nullable": True},
                {"name": "age", "type": "int", "nullable": True},
            ],
        },
        {
            "name": "Profile",
            "fields": [
                {
                    "name": "id",
                    "type": "integer",
                    "primary_key": True,
                    "auto_increment": True,
                },
                {"name": "user", "references": "User", "unique": True},
                {"name": "bio", "type": "text", "nullable": True},
            ],
        },
        {
            "name": "Post",
            "fields": [
                {
                    "name": "id",
                    "type": "integer",
                    "primary_key": True,
                    "auto_increment": True,
                },
                {"name": "title", "type": "varchar(200)"},
                {"name": "score", "type": "float", "default": 0.0},
                {"name": "published", "type": "boolean", "default": False},
                {
                    "name": "author",
                    "references": "User.id",
                    "related_name": "posts",
                },
            ],
            "relations": [{"name": "categories", "through": "PostCategory.category"}],
        },
        {
            "name": "Category",
            "plural_name": "categories",
            "fields": [
                {
                    "name": "id",
                    "type": "integer",
                    "primary_key": True,
                    "auto_increment": True,
                },
                {"name": "name", "type": "varchar(40)", "unique": True},
            ],
        },
        {
            "name": "PostCategory",
            "plural_name": "postCategories",
            "fields": [
                {
                    "name": "id",
                    "type": "integer",
                    "primary_key": True,
                    "auto_increment": True,
                },
                {"name": "post", "references": "Post"},
                {"name": "category", "references": "Category"},
            ],
        },
    ]
}


class RecordingAccessor(MemoryAccessor):
    """A `MemoryAccessor` keeping track of the calls made to it."""

    def __init__(self, store):
        super().__init__(store)
        self.calls = []

    def calls_to(self, name):
        return [call for call in self.calls if call[0] == name]

    def load(self, field, value):
        self.calls.append(("load", field.qualified_name, value))
        return super().load(field, value)

    async def _batch_load(self, field, keys):
        self.calls.append(("batch_load", field.qualified_name, list(keys)))
        return await super()._batch_load(field, keys)

    def query(self, model, options):
        self.calls.append(("query", model.name, options))
        return super().query(model, options)

    def get(self, model, where):
        self.calls.append(("get", model.name, where))
        return super().get(model, where)

    def cursor_query(self, model, options):
        self.calls.append(("cursor_query", model.name, options))
        return super().cursor_query(model, options)

    def create(self, model, data):
        self.calls.append(("create", model.name, data))
        return super().create(model, data)

    def update(self, model, data, where):
        self.calls.append(("update", model.name, data))
        return super().update(model, data, where)

    def upsert(self, model, create, update):
        self.calls.append(("upsert", model.name, create))
        return super().upsert(model, create, update)

    def delete(self, model, where):
        self.calls.append(("delete", model.name, where))
        return super().delete(model, where)


@pytest.fixture
def blog_config():
    return copy.deepcopy(BLOG_DOMAIN)


@pytest.fixture
def domain(blog_config):
    return Domain.from_config(blog_config)


@pytest.fixture
def builder(domain):
    return SchemaBuilder(domain)


@pytest.fixture
def schema(builder):
    return builder.get_schema()


@pytest.fixture
def type_map(schema):
    return schema._schema.type_map


@pytest.fixture
def store(domain):
    return MemoryStore(domain)


@pytest.fixture
def accessor(store):
    return RecordingAccessor(store)


@pytest.fixture
def query(schema, accessor):
    """Execute a GraphQL document against the blog schema and store."""
    loop = asyncio.new_event_loop()

    def execute(document, variable_values=None):
        return loop.run_until_complete(
            schema.execute(
                document,
                variable_values=variable_values,
                context_value={"accessor": accessor},
            )
        )

    yield execute
    loop.close()


@pytest.fixture
def users(store):
    return [
        store.insert("User", {"email": "ada@example.com", "firstName": "Ada", "age": 36}),
        store.insert("User", {"email": "alan@example.com", "firstName": "Alan", "age": 41}),
        store.insert("User", {"email": "grace@example.com", "age": None}),
    ]


@pytest.fixture
def posts(store, users):
    ada, alan, _ = users
    return [
        store.insert("Post", {"title": "Notes", "author": ada["id"], "score": 4.5}),
        store.insert("Post", {"title": "Engines", "author": ada["id"], "published": True}),
        store.insert("Post", {"title": "Machines", "author": alan["id"], "score": 2.0}),
    ]


@pytest.fixture
def categories(store, posts):
    notes, engines, _ = posts
    science = store.insert("Category", {"name": "science"})
    history = store.insert("Category", {"name": "history"})
    store.insert("PostCategory", {"post": notes["id"], "category": science["id"]})
    store.insert("PostCategory", {"post": notes["id"], "category": history["id"]})
    store.insert("PostCategory", {"post": engines["id"], "category": science["id"]})
    return [science, history]


def field_types(type_map, type_name):
    """GraphQL type of every field of a type, as printed in SDL."""
    return {name: str(f.type) for name, f in type_map[type_name].fields.items()}


@pytest.fixture
def fields_of(type_map):
    return lambda type_name: field_types(type_map, type_name)
