from authors_api.mapping import describe_mapping
from authors_api.models import Author, IdempotencyKey


def columns_by_field(model=Author):
    return {column["field"]: column for column in describe_mapping(model)["columns"]}


def test_table_name():
    assert describe_mapping(Author)["table"] == "author_tbl"


def test_all_fields_described():
    fields = {column["field"] for column in describe_mapping(Author)["columns"]}

    assert fields == {"id", "first_name", "last_name", "email", "created_at"}


def test_column_names():
    columns = columns_by_field()

    assert {field: column["column"] for field, column in columns.items()} == {
        "id": "id",
        "first_name": "first_name",
        "last_name": "last_name",
        "email": "email",
        "created_at": "dbCreated_at",
    }


def test_generated_identifier():
    id_column = columns_by_field()["id"]

    assert id_column["primary_key"] is True
    assert id_column["generated"] is True
    assert id_column["nullable"] is False


def test_first_name_constraints():
    first_name = columns_by_field()["first_name"]

    assert first_name["max_length"] == 25
    assert first_name["nullable"] is False
    assert first_name["unique"] is False


def test_email_unique():
    columns = columns_by_field()

    assert columns["email"]["unique"] is True
    assert columns["email"]["nullable"] is True
    assert columns["last_name"]["unique"] is False


def test_created_at_not_updatable():
    columns = columns_by_field()

    assert columns["created_at"]["updatable"] is False
    assert columns["created_at"]["type"] == "Date"
    assert all(
        column["updatable"]
        for field, column in columns.items()
        if field != "created_at"
    )


def test_other_models_described():
    columns = columns_by_field(IdempotencyKey)

    assert columns["key"]["unique"] is True
    assert columns["id"]["generated"] is True
