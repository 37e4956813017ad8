import importlib.util
import os

from authors_api.models import Author

SCRIPT_PATH = os.path.join(os.path.dirname(os.path.dirname(__file__)), "scripts", "init_db.py")


def load_init_db():
    spec = importlib.util.spec_from_file_location("init_db", SCRIPT_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_seed_authors_is_repeatable(db):
    init_db = load_init_db()

    first_run = init_db.seed_authors(db)
    second_run = init_db.seed_authors(db)

    assert first_run == len(init_db.AUTHORS_DATA)
    assert second_run == 0
    assert db.query(Author).count() == len(init_db.AUTHORS_DATA)


def test_print_mapping(capsys):
    load_init_db().print_mapping()

    output = capsys.readouterr().out
    assert "author_tbl" in output
    assert "dbCreated_at" in output
    assert "not updatable" in output
