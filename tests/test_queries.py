def test_list(query, users):
    result = query("{ users { id email firstName age } }")
    assert result.errors is None
    assert result.data == {
        "users": [
            {"id": 1, "email": "ada@example.com", "firstName": "Ada", "age": 36},
            {"id": 2, "email": "alan@example.com", "firstName": "Alan", "age": 41},
            {"id": 3, "email": "grace@example.com", "firstName": None, "age": None},
        ]
    }


def test_list_options(query, users):
    result = query('{ users(orderBy: ["-age"], offset: 1, limit: 1) { email } }')
    assert result.errors is None
    assert result.data == {"users": [{"email": "ada@example.com"}]}


def test_order_puts_nulls_first(query, users):
    result = query('{ users(orderBy: ["age"]) { email } }')
    assert [u["email"] for u in result.data["users"]] == [
        "grace@example.com",
        "ada@example.com",
        "alan@example.com",
    ]


def test_single(query, users):
    result = query('{ user(where: {email: "alan@example.com"}) { id firstName } }')
    assert result.errors is None
    assert result.data == {"user": {"id": 2, "firstName": "Alan"}}

    result = query('{ user(where: {email: "nobody@example.com"}) { id } }')
    assert result.errors is None
    assert result.data == {"user": None}


def test_scalar_filters(query, users):
    result = query("{ users(where: {age_gt: 37}) { email } }")
    assert result.data == {"users": [{"email": "alan@example.com"}]}

    result = query('{ users(where: {email_like: "a%"}) { email } }')
    assert [u["email"] for u in result.data["users"]] == [
        "ada@example.com",
        "alan@example.com",
    ]

    result = query('{ users(where: {firstName_in: ["Ada", "Grace"]}) { email } }')
    assert result.data == {"users": [{"email": "ada@example.com"}]}

    result = query("{ users(where: {age_null: true}) { email } }")
    assert result.data == {"users": [{"email": "grace@example.com"}]}


def test_boolean_filters(query, users):
    result = query(
        """
        {
          users(where: {OR: [{age_lt: 40}, {age_null: true}]}, orderBy: ["email"]) {
            email
          }
        }
        """
    )
    assert result.errors is None
    assert [u["email"] for u in result.data["users"]] == [
        "ada@example.com",
        "grace@example.com",
    ]

    result = query('{ users(where: {NOT: [{email_like: "a%"}]}) { email } }')
    assert result.data == {"users": [{"email": "grace@example.com"}]}


def test_foreign_key_filter(query, posts):
    result = query('{ posts(where: {author: {email: "alan@example.com"}}) { title } }')
    assert result.errors is None
    assert result.data == {"posts": [{"title": "Machines"}]}


def test_relation_existence_filters(query, posts):
    result = query("{ users(where: {posts_some: {published: true}}) { email } }")
    assert result.errors is None
    assert result.data == {"users": [{"email": "ada@example.com"}]}

    result = query("{ users(where: {posts_none: {}}) { email } }")
    assert result.data == {"users": [{"email": "grace@example.com"}]}


def test_through_relation_filter(query, categories):
    result = query(
        '{ posts(where: {categories_some: {category: {name: "history"}}}) { title } }'
    )
    assert result.errors is None
    assert result.data == {"posts": [{"title": "Notes"}]}


def test_foreign_key_avoids_fetch(query, accessor, posts):
    result = query("{ posts { title author { id } } }")
    assert result.errors is None
    assert result.data["posts"][0] == {"title": "Notes", "author": {"id": 1}}
    assert accessor.calls_to("load") == []


def test_foreign_key_loads_referenced_record(query, accessor, posts):
    result = query('{ posts(where: {title: "Machines"}) { author { id email } } }')
    assert result.errors is None
    assert result.data == {
        "posts": [{"author": {"id": 2, "email": "alan@example.com"}}]
    }
    assert accessor.calls_to("load") == [("load", "User.id", 2)]


def test_foreign_key_loads_are_batched(query, accessor, posts):
    result = query("{ posts { author { email } } }")
    assert result.errors is None
    assert [p["author"]["email"] for p in result.data["posts"]] == [
        "ada@example.com",
        "ada@example.com",
        "alan@example.com",
    ]
    assert len(accessor.calls_to("load")) == 3
    assert accessor.calls_to("batch_load") == [("batch_load", "User.id", [1, 2])]


def test_to_many_relation(query, accessor, posts):
    result = query(
        """
        {
          users(orderBy: ["id"]) {
            email
            posts(orderBy: ["title"]) { title score published }
          }
        }
        """
    )
    assert result.errors is None
    assert result.data["users"] == [
        {
            "email": "ada@example.com",
            "posts": [
                {"title": "Engines", "score": 0.0, "published": True},
                {"title": "Notes", "score": 4.5, "published": False},
            ],
        },
        {
            "email": "alan@example.com",
            "posts": [{"title": "Machines", "score": 2.0, "published": False}],
        },
        {"email": "grace@example.com", "posts": []},
    ]

    queried = [call for call in accessor.calls_to("query") if call[1] == "Post"]
    assert queried[0][2]["where"] == {"author": {"id": 1}}


def test_to_many_relation_where(query, posts):
    result = query(
        """
        {
          user(where: {email: "ada@example.com"}) {
            posts(where: {published: true}) { title }
          }
        }
        """
    )
    assert result.errors is None
    assert result.data == {"user": {"posts": [{"title": "Engines"}]}}


def test_to_one_relation(query, accessor, store, users):
    store.insert("Profile", {"user": users[0]["id"], "bio": "Counts"})

    result = query("{ users(orderBy: [\"id\"]) { profile { id bio } } }")
    assert result.errors is None
    assert result.data == {
        "users": [
            {"profile": {"id": 1, "bio": "Counts"}},
            {"profile": None},
            {"profile": None},
        ]
    }
    assert accessor.calls_to("batch_load") == [("batch_load", "Profile.user", [1, 2, 3])]


def test_to_one_relation_with_where(query, accessor, store, users):
    store.insert("Profile", {"user": users[0]["id"], "bio": "Counts"})

    result = query(
        '{ user(where: {id: 1}) { profile(where: {bio_like: "X%"}) { bio } } }'
    )
    assert result.errors is None
    assert result.data == {"user": {"profile": None}}
    assert accessor.calls_to("load") == []


def test_to_one_relation_with_empty_arguments(query, accessor, store, users):
    store.insert("Profile", {"user": users[0]["id"], "bio": "Counts"})

    result = query(
        "{ user(where: {id: 1}) { profile(where: {}, limit: null) { bio } } }"
    )
    assert result.errors is None
    assert result.data == {"user": {"profile": {"bio": "Counts"}}}
    assert accessor.calls_to("load") == [("load", "Profile.user", 1)]
    assert accessor.calls_to("query") == []


def test_through_relation(query, accessor, categories):
    result = query(
        """
        {
          posts(orderBy: ["id"]) {
            title
            categories(orderBy: ["name"]) { name }
          }
        }
        """
    )
    assert result.errors is None
    assert result.data["posts"] == [
        {"title": "Notes", "categories": [{"name": "history"}, {"name": "science"}]},
        {"title": "Engines", "categories": [{"name": "science"}]},
        {"title": "Machines", "categories": []},
    ]

    queried = [call for call in accessor.calls_to("query") if call[1] == "Category"]
    assert queried[0][2]["where"] == {"postCategories_some": {"post": {"id": 1}}}


def test_through_relation_where_is_combined(query, categories):
    result = query(
        """
        {
          post(where: {id: 1}) {
            categories(where: {name: "science"}) { name }
          }
        }
        """
    )
    assert result.errors is None
    assert result.data == {"post": {"categories": [{"name": "science"}]}}


def test_relation_back_reference_is_not_exposed(query, posts):
    result = query("{ users { posts { author { id } } } }")
    assert result.errors
    message = result.errors[0].message
    assert "Cannot query field" in message
    assert "author" in message
    assert "UserPosts" in message


def test_failed_load_only_nulls_its_field(query, accessor, monkeypatch, posts):
    def load(field, value):
        raise RuntimeError("storage down")

    monkeypatch.setattr(accessor, "load", load)

    result = query('{ posts(where: {title: "Notes"}) { title author { email } } }')
    assert result.data == {"posts": [{"title": "Notes", "author": None}]}
    assert [error.message for error in result.errors] == ["storage down"]
