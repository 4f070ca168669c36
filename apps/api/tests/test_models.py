from expertise.db.catalog import build_target_schema
from expertise.models import EntityEmbedding


def test_mapping_matches_catalog_columns():
    table = EntityEmbedding.__table__
    schema = build_target_schema()

    assert [column.name for column in table.columns] == list(schema.column_names)
    assert table.schema == schema.schema
    assert table.c.embedding.type.dim == schema.dimensions


def test_mapping_nullability_matches_catalog():
    table = EntityEmbedding.__table__

    for spec in build_target_schema().columns:
        assert table.c[spec.name].nullable == (spec.nullable and not spec.primary_key), spec.name


def test_mapping_declares_catalog_indexes():
    table = EntityEmbedding.__table__
    indexed = {index.name: tuple(column.name for column in index.columns) for index in table.indexes}

    assert indexed == {spec.name: spec.columns for spec in build_target_schema().indexes}
