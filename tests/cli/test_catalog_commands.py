"""Tests for the catalog commands.

Unit tests patch the catalog operations; integration tests run the
commands against PG_META_TEST_DSN.
"""

import csv
import json
import uuid
from io import StringIO
from unittest.mock import MagicMock

import pytest

from pg_meta.cli.commands._shared import resolve_relid
from pg_meta.core.client import query
from pg_meta.core.exceptions import ConfigError, InputError
from pg_meta.core.labels import ConstraintKind, RelationKind
from pg_meta.core.models import Attribute, Constraint, Database, Relation
from tests.integration_config import DSN_ARGS

_ID = Attribute(
    attrelid=16390,
    attname="id",
    attnum=1,
    atttypid=23,
    atttypmod=-1,
    atttypfmt="integer",
    attnotnull=True,
)
_TOTAL = Attribute(
    attrelid=16390,
    attname="total",
    attnum=3,
    atttypid=1700,
    atttypmod=-1,
    atttypfmt="numeric",
    attnotnull=False,
    adsrc="0",
)
_PKEY = Constraint(conname="orders_pkey", contype=ConstraintKind.PRIMARY_KEY, conkey=[1])
_FKEY = Constraint(
    conname="lines_order_fkey",
    contype=ConstraintKind.FOREIGN_KEY,
    conkey=[2, 3],
    confrelname="orders",
    fkeyattnames="id,region",
)

_ORDERS = Relation(
    relid=16390,
    relname="orders",
    relnamespace="public",
    relowner="postgres",
    relkind=RelationKind.ORDINARY_TABLE,
    attributes=[_ID, _TOTAL],
    constraints=[_PKEY],
)
_AUDIT_ORDERS = Relation(
    relid=16500,
    relname="orders",
    relnamespace="audit",
    relowner="postgres",
    relkind=RelationKind.ORDINARY_TABLE,
)
_LINES = Relation(
    relid=16400,
    relname="lines",
    relnamespace="public",
    relowner="postgres",
    relkind=RelationKind.ORDINARY_TABLE,
    constraints=[_FKEY],
)


def _patch(monkeypatch, name, **kwargs):
    mock = MagicMock(**kwargs)
    monkeypatch.setattr(f"pg_meta.core.catalog.{name}", mock)
    return mock


# -- databases --


@pytest.mark.unit
def test_databases_json(cli_runner, monkeypatch):
    _patch(
        monkeypatch,
        "databases",
        return_value=[
            Database(
                oid=5,
                datname="postgres",
                owner="postgres",
                encoding="UTF8",
                datcollate="C",
                datctype="C",
                datistemplate=False,
                datallowconn=True,
                datconnlimit=-1,
            )
        ],
    )
    result = cli_runner("databases", "-f", "json")
    assert result.exit_code == 0, result.output
    parsed = json.loads(result.stdout)
    assert parsed[0]["datname"] == "postgres"
    assert parsed[0]["datistemplate"] is False


# -- relations --


@pytest.mark.unit
def test_relations_json_nests_records(cli_runner, monkeypatch):
    _patch(monkeypatch, "relations", return_value=[_ORDERS, _LINES])
    result = cli_runner("--format", "json", "relations")
    assert result.exit_code == 0, result.output
    parsed = json.loads(result.stdout)
    assert [r["relname"] for r in parsed] == ["orders", "lines"]
    assert parsed[0]["relkind"] == "ordinary table"
    assert parsed[0]["attributes"][1]["adsrc"] == "0"
    assert parsed[1]["constraints"][0]["fkeyattnames"] == "id,region"


@pytest.mark.unit
def test_relations_csv_lists_names(cli_runner, monkeypatch):
    _patch(monkeypatch, "relations", return_value=[_ORDERS])
    result = cli_runner("relations", "-f", "csv")
    assert result.exit_code == 0, result.output
    rows = list(csv.reader(StringIO(result.stdout)))
    assert rows[0] == [
        "relid",
        "relnamespace",
        "relname",
        "relowner",
        "relkind",
        "attributes",
        "constraints",
    ]
    assert rows[1] == [
        "16390",
        "public",
        "orders",
        "postgres",
        "ordinary table",
        "id,total",
        "orders_pkey",
    ]


@pytest.mark.unit
def test_relations_schema_filter(cli_runner, monkeypatch):
    _patch(monkeypatch, "relations", return_value=[_ORDERS, _AUDIT_ORDERS])
    result = cli_runner("relations", "--schema", "audit", "-f", "json")
    assert result.exit_code == 0, result.output
    assert [r["relid"] for r in json.loads(result.stdout)] == [16500]


@pytest.mark.unit
def test_relations_table_has_title(cli_runner, monkeypatch):
    _patch(monkeypatch, "relations", return_value=[_ORDERS])
    result = cli_runner("--database", "shop", "relations", "--table")
    assert result.exit_code == 0, result.output
    assert "Relations of: shop" in result.stdout


# -- attributes / constraints --


@pytest.mark.unit
def test_attributes_by_relid(cli_runner, monkeypatch):
    attributes = _patch(monkeypatch, "attributes", return_value=[_ID, _TOTAL])
    relations = _patch(monkeypatch, "relations")
    result = cli_runner("attributes", "16390", "-f", "json")
    assert result.exit_code == 0, result.output
    assert attributes.call_args.args[1] == 16390
    relations.assert_not_called()
    parsed = json.loads(result.stdout)
    assert [a["attname"] for a in parsed] == ["id", "total"]
    assert set(parsed[0]) == {"attnum", "attname", "atttypfmt", "attnotnull", "adsrc"}


@pytest.mark.unit
def test_attributes_by_qualified_name(cli_runner, monkeypatch):
    _patch(monkeypatch, "relations", return_value=[_ORDERS, _AUDIT_ORDERS])
    attributes = _patch(monkeypatch, "attributes", return_value=[])
    result = cli_runner("attributes", "audit.orders", "-f", "json")
    assert result.exit_code == 0, result.output
    assert attributes.call_args.args[1] == 16500
    assert json.loads(result.stdout) == []


@pytest.mark.unit
def test_constraints_csv(cli_runner, monkeypatch):
    _patch(monkeypatch, "constraints", return_value=[_FKEY])
    result = cli_runner("constraints", "16400", "-f", "csv")
    assert result.exit_code == 0, result.output
    rows = list(csv.reader(StringIO(result.stdout)))
    assert rows[1] == [
        "lines_order_fkey",
        "foreign key constraint",
        "2,3",
        "orders",
        "id,region",
    ]


@pytest.mark.unit
def test_constraints_unknown_relation(cli_runner, monkeypatch):
    _patch(monkeypatch, "relations", return_value=[_ORDERS])
    result = cli_runner("constraints", "missing")
    assert isinstance(result.exception, InputError)
    assert "Relation not found" in result.exception.message


# -- resolve_relid --


@pytest.mark.unit
def test_resolve_relid_numeric_skips_lookup(config, monkeypatch):
    relations = _patch(monkeypatch, "relations")
    assert resolve_relid(config, "16390") == 16390
    relations.assert_not_called()


@pytest.mark.unit
def test_resolve_relid_unqualified_name(config, monkeypatch):
    _patch(monkeypatch, "relations", return_value=[_ORDERS, _LINES])
    assert resolve_relid(config, "lines") == 16400


@pytest.mark.unit
def test_resolve_relid_ambiguous_name(config, monkeypatch):
    _patch(monkeypatch, "relations", return_value=[_ORDERS, _AUDIT_ORDERS])
    with pytest.raises(InputError, match="candidates: public.orders, audit.orders"):
        resolve_relid(config, "orders")


@pytest.mark.unit
def test_resolve_relid_folds_case(config, monkeypatch):
    _patch(monkeypatch, "relations", return_value=[_ORDERS])
    assert resolve_relid(config, "Public.ORDERS") == 16390


# -- count --


@pytest.mark.unit
def test_count_prints_number(cli_runner, monkeypatch):
    count = _patch(monkeypatch, "count", return_value=1234)
    result = cli_runner("count", "public.orders")
    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == "1234"
    config, table = count.call_args.args
    assert table == "public.orders"
    assert config.statement_timeout is None


@pytest.mark.unit
def test_count_timeout_option(cli_runner, monkeypatch):
    count = _patch(monkeypatch, "count", return_value=0)
    result = cli_runner("count", "orders", "--timeout", "2.5")
    assert result.exit_code == 0, result.output
    assert count.call_args.args[0].statement_timeout == 2.5


@pytest.mark.unit
def test_count_global_timeout_option(cli_runner, monkeypatch):
    count = _patch(monkeypatch, "count", return_value=0)
    result = cli_runner("--timeout", "4", "count", "orders")
    assert result.exit_code == 0, result.output
    assert count.call_args.args[0].statement_timeout == 4.0


@pytest.mark.unit
def test_count_rejects_injection_without_connecting(cli_runner, fake_connect):
    result = cli_runner("count", "orders; DROP TABLE orders")
    assert isinstance(result.exception, InputError)
    fake_connect.connect.assert_not_called()


@pytest.mark.unit
@pytest.mark.parametrize(
    "args",
    [["--timeout=-1", "count", "orders"], ["count", "orders", "--timeout=0"]],
)
def test_count_rejects_non_positive_timeout(cli_runner, fake_connect, args):
    result = cli_runner(*args)
    assert isinstance(result.exception, ConfigError)
    assert "Invalid statement_timeout" in result.exception.message
    fake_connect.connect.assert_not_called()


# -- types --


@pytest.mark.unit
def test_types_bundled_json(cli_runner):
    result = cli_runner("types", "--bundled", "-f", "json")
    assert result.exit_code == 0, result.output
    parsed = json.loads(result.stdout)
    assert {"oid": 16, "regtype": "boolean"} in parsed
    oids = [row["oid"] for row in parsed]
    assert oids == sorted(oids)


@pytest.mark.unit
def test_types_dump(cli_runner, monkeypatch, tmp_path):
    _patch(monkeypatch, "regtypes", return_value={25: "text", 16: "boolean"})
    target = tmp_path / "regtype.json"
    result = cli_runner("types", "--dump", str(target))
    assert result.exit_code == 0, result.output
    assert json.loads(target.read_text()) == {"16": "boolean", "25": "text"}


# -- integration --


@pytest.fixture
def scratch_table(pg_config):
    name = f"cli_{uuid.uuid4().hex[:8]}"
    query(
        pg_config,
        f"CREATE TABLE {name} (id integer PRIMARY KEY, label text DEFAULT 'none')",
    )
    yield name
    query(pg_config, f"DROP TABLE IF EXISTS {name} CASCADE")


@pytest.mark.integration
def test_live_databases(cli_runner, pg_config):
    result = cli_runner(*DSN_ARGS, "databases", "-f", "json")
    assert result.exit_code == 0, result.output
    assert pg_config.dbname in [db["datname"] for db in json.loads(result.stdout)]


@pytest.mark.integration
def test_live_attributes_by_name(cli_runner, scratch_table):
    result = cli_runner(*DSN_ARGS, "attributes", scratch_table, "-f", "json")
    assert result.exit_code == 0, result.output
    parsed = json.loads(result.stdout)
    assert [a["attname"] for a in parsed] == ["id", "label"]
    assert parsed[1]["adsrc"] == "'none'::text"


@pytest.mark.integration
def test_live_count(cli_runner, scratch_table):
    result = cli_runner(*DSN_ARGS, "count", f"public.{scratch_table}")
    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == "0"
