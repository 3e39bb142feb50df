import pytest

from strawberry_autoschema import naming


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("user", "User"),
        ("userPosts", "UserPosts"),
        ("user_posts", "UserPosts"),
        ("user-posts", "UserPosts"),
        ("User", "User"),
        ("_posts", "Posts"),
        ("author_", "Author"),
        ("user__posts", "UserPosts"),
        ("", ""),
    ],
)
def test_to_pascal_case(name, expected):
    assert naming.to_pascal_case(name) == expected


def test_to_python_name():
    assert naming.to_python_name("from") == "from_"
    assert naming.to_python_name("in") == "in_"
    assert naming.to_python_name("firstName") == "firstName"


def test_type_names(domain):
    user = domain.model("User")
    assert naming.get_type_name(user) == "User"
    assert naming.get_edge_type_name(user) == "UserEdge"
    assert naming.get_connection_type_name(user) == "UserConnection"
    assert naming.get_filter_type_name(user) == "FilterUserInput"
    assert naming.get_find_type_name(user) == "FindUserInput"
    assert naming.get_create_type_name(user) == "CreateUserInput"
    assert naming.get_update_type_name(user) == "UpdateUserInput"
    assert naming.get_upsert_type_name(user) == "UpsertUserInput"
    assert naming.get_create_parent_type_name(user) == "CreateUserParentInput"
    assert naming.get_update_parent_type_name(user) == "UpsertUserParentInput"


def test_relation_type_names(domain):
    posts = domain.model("User").get_field("posts")
    assert naming.get_type_name(posts) == "UserPosts"
    assert naming.get_filter_type_name(posts) == "FilterUserPostsInput"
    assert naming.get_connect_child_type_name(posts) == "ConnectUserPostsInput"
    assert naming.get_create_child_type_name(posts) == "CreateUserPostsInput"
    assert naming.get_create_child_type_name(posts, "One") == "CreateOneUserPostsInput"
    assert naming.get_create_many_child_type_name(posts) == "CreateManyUserPostsInput"
    assert naming.get_update_many_child_type_name(posts) == "UpdateManyUserPostsInput"
    assert naming.get_update_child_fields_type_name(posts) == "UpdateUserPostsInputFields"
    assert naming.get_upsert_child_type_name(posts) == "UpsertUserPostsInput"


def test_root_field_names(domain):
    category = domain.model("Category")
    assert naming.get_list_field_name(category) == "categories"
    assert naming.get_connection_field_name(category) == "categoriesConnection"
    assert naming.get_single_field_name(category) == "category"
    assert naming.get_mutation_field_name("create", category) == "createCategory"
    assert naming.get_single_field_name(domain.model("PostCategory")) == "postCategory"
