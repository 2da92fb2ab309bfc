from __future__ import annotations

import commissions.models  # noqa: F401
from commissions.models import Base


def test_model_metadata_contains_target_tables():
    expected = {"services", "negotiations", "negotiation_history", "orders"}
    assert expected.issubset(set(Base.metadata.tables.keys()))


def test_active_subject_index_is_partial_and_unique():
    table = Base.metadata.tables["negotiations"]
    index = next(index for index in table.indexes if index.name == "uq_negotiations_active_subject")
    assert index.unique is True
    assert [column.name for column in index.columns] == ["subject_key"]
    predicate = str(index.dialect_options["sqlite"]["where"])
    assert "is_active" in predicate
    assert "'accepted'" in predicate


def test_negotiations_are_versioned():
    mapper = commissions.models.Negotiation.__mapper__
    assert mapper.version_id_col is Base.metadata.tables["negotiations"].c.version
