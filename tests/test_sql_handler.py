import pytest

from banktransfer.database_config import DatabaseConfig
from banktransfer.sql_handler import (
    InvalidSQLInstanceError,
    SQLHandler,
    SQLInstance,
    connect_sql,
    new_sql_database,
)


@pytest.fixture
def handler(tmp_path):
    db = connect_sql(DatabaseConfig(driver="sqlite3", database=str(tmp_path / "bank.db")))
    db.execute("CREATE TABLE accounts (id TEXT, name TEXT, balance INTEGER)")
    yield db
    db.close()


def test_execute_and_query_round_trip(handler):
    handler.execute("INSERT INTO accounts VALUES ($1, $2, $3)", "a1", "Test", 100)
    handler.execute("INSERT INTO accounts VALUES ($1, $2, $3)", "a2", "Other", 250)
    rows = handler.query("SELECT * FROM accounts ORDER BY id")
    assert rows == [("a1", "Test", 100), ("a2", "Other", 250)]


def test_query_row_finds_one_or_none(handler):
    handler.execute("INSERT INTO accounts VALUES ($1, $2, $3)", "a1", "Test", 100)
    assert handler.query_row("SELECT balance FROM accounts WHERE id = $1", "a1") == (100,)
    assert handler.query_row("SELECT balance FROM accounts WHERE id = $1", "zz") is None


def test_placeholders_follow_their_numbers(handler):
    assert handler.query_row("SELECT $2, $1, $2", "x", "y") == ("y", "x", "y")


def test_placeholders_inside_literals_are_left_alone(handler):
    assert handler.query_row("SELECT '$1', $1", "x") == ("$1", "x")


def test_missing_argument_raises(handler):
    with pytest.raises(ValueError):
        handler.query_row("SELECT $2", "only-one")


def test_committed_transaction_is_visible(handler):
    tx = handler.begin()
    tx.execute("INSERT INTO accounts VALUES ($1, $2, $3)", "a1", "Test", 100)
    assert tx.query_row("SELECT name FROM accounts WHERE id = $1", "a1") == ("Test",)
    assert handler.query("SELECT * FROM accounts") == []
    tx.commit()
    assert handler.query("SELECT id FROM accounts") == [("a1",)]


def test_rolled_back_transaction_leaves_nothing(handler):
    tx = handler.begin()
    tx.execute("INSERT INTO accounts VALUES ($1, $2, $3)", "a1", "Test", 100)
    assert tx.query("SELECT id FROM accounts") == [("a1",)]
    tx.rollback()
    assert handler.query("SELECT * FROM accounts") == []


def test_finished_transaction_refuses_more_work(handler):
    tx = handler.begin()
    tx.commit()
    with pytest.raises(RuntimeError, match="already been committed or rolled back"):
        tx.commit()
    with pytest.raises(RuntimeError):
        tx.execute("SELECT 1")


def test_failed_statement_raises_and_keeps_handler_usable(handler):
    with pytest.raises(Exception):
        handler.execute("INSERT INTO missing VALUES ($1)", 1)
    handler.execute("INSERT INTO accounts VALUES ($1, $2, $3)", "a1", "Test", 1)
    assert handler.query_row("SELECT COUNT(*) FROM accounts") == (1,)


def test_unknown_driver_is_rejected():
    with pytest.raises(ValueError, match="unknown driver"):
        connect_sql(DatabaseConfig(driver="nosuchdriver", database="bank"))


def test_invalid_instance_is_rejected():
    with pytest.raises(InvalidSQLInstanceError, match="invalid sql db instance"):
        new_sql_database(7, DatabaseConfig(driver="sqlite3", database=":memory:"))


def test_factory_builds_handler(tmp_path):
    config = DatabaseConfig(driver="sqlite3", database=str(tmp_path / "f.db"))
    db = new_sql_database(SQLInstance.POSTGRES, config)
    try:
        assert isinstance(db, SQLHandler)
        assert db.query_row("SELECT $1", 42) == (42,)
    finally:
        db.close()