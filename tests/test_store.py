import pytest

from perimeter_editor.errors import PersistenceError
from perimeter_editor.gateway import BoundaryRecord
from perimeter_store import InMemoryBoundaryGateway, SqlBoundaryGateway, create_gateway
from perimeter_store.database import create_database_engine

SITE = "site-1"


@pytest.fixture(params=["memory", "sql"])
def store(request):
    if request.param == "memory":
        yield InMemoryBoundaryGateway()
    else:
        gateway = SqlBoundaryGateway("sqlite://")
        yield gateway
        gateway.close()


def test_create_and_list_in_creation_order(store, square, rectangle, circle):
    a = store.create(SITE, "A", square, is_default=True)
    b = store.create(SITE, "B", rectangle, is_default=False)
    c = store.create(SITE, "C", circle, is_default=False)
    store.create("other-site", "X", square, is_default=True)

    records = store.list(SITE)

    assert [r.id for r in records] == [a.id, b.id, c.id]
    assert records[1].geometry == rectangle
    assert records[2].geometry == circle
    assert all(isinstance(r, BoundaryRecord) for r in records)


def test_single_default_per_site(store, square):
    a = store.create(SITE, "A", square, is_default=True)
    b = store.create(SITE, "B", square, is_default=True)
    other = store.create("other-site", "X", square, is_default=True)

    assert [r.is_default for r in store.list(SITE)] == [False, True]

    store.set_default(SITE, a.id)
    assert [r.id for r in store.list(SITE) if r.is_default] == [a.id]
    assert store.list("other-site")[0].is_default
    assert b.id != other.id


def test_update_keeps_default_flag(store, square, circle):
    a = store.create(SITE, "A", square, is_default=True)

    store.update(a.id, "Renamed", circle)

    record = store.list(SITE)[0]
    assert record.name == "Renamed"
    assert record.geometry == circle
    assert record.is_default


def test_delete(store, square):
    a = store.create(SITE, "A", square, is_default=True)

    store.delete(a.id)

    assert store.list(SITE) == []


@pytest.mark.parametrize("operation", ["update", "delete", "set_default"])
def test_unknown_id_is_persistence_error(store, square, operation):
    calls = {
        "update": lambda: store.update("missing", "A", square),
        "delete": lambda: store.delete("missing"),
        "set_default": lambda: store.set_default(SITE, "missing"),
    }

    with pytest.raises(PersistenceError):
        calls[operation]()


def test_set_default_checks_site(store, square):
    a = store.create(SITE, "A", square, is_default=False)

    with pytest.raises(PersistenceError):
        store.set_default("other-site", a.id)
    assert not store.list(SITE)[0].is_default


def test_blank_name_rejected(store, square):
    with pytest.raises(PersistenceError):
        store.create(SITE, "  ", square, is_default=False)


def test_sql_gateway_shares_engine(square):
    engine = create_database_engine("sqlite://")
    gateway = SqlBoundaryGateway(engine=engine)
    gateway.create(SITE, "A", square, is_default=True)

    assert SqlBoundaryGateway(engine=engine).list(SITE)[0].name == "A"


def test_sql_gateway_persists_to_file(tmp_path, square):
    url = f"sqlite:///{tmp_path / 'boundaries.db'}"
    first = SqlBoundaryGateway(url)
    record = first.create(SITE, "A", square, is_default=True)
    first.close()

    second = SqlBoundaryGateway(url)
    assert second.list(SITE) == [record]
    second.close()


def test_sql_gateway_requires_url_or_engine():
    with pytest.raises(ValueError):
        SqlBoundaryGateway()


def test_create_gateway_by_url():
    assert isinstance(create_gateway("memory://"), InMemoryBoundaryGateway)
    gateway = create_gateway("sqlite://")
    assert isinstance(gateway, SqlBoundaryGateway)
    gateway.close()


def test_record_wire_round_trip(square):
    record = BoundaryRecord(id="b1", site_id=SITE, name="Gate", geometry=square, is_default=True)

    assert BoundaryRecord.from_dict(record.to_dict()) == record
    with pytest.raises(ValueError):
        BoundaryRecord.from_dict({"id": "b1"})
    with pytest.raises(ValueError):
        BoundaryRecord(id="b1", site_id=SITE, name=" ", geometry=square)
