"""Unit tests for folding entry records into document state."""

from __future__ import annotations

import pytest

from packages.panda_sdk.errors import (
    DuplicateCreateError,
    UnhandledActionError,
    UnknownDocumentError,
)
from packages.panda_sdk.materializer import materialize
from tests.sdk.helpers import AUTHOR, SCHEMA_ID, make_record


def test_materialize_empty_batch_returns_no_documents() -> None:
    """No records should yield no documents."""
    assert materialize([]) == {}


def test_materialize_create_opens_document() -> None:
    """CREATE should open a document keyed by the creating entry hash."""
    create = make_record(hash_="h1", seq_num=1, action="create", fields={"name": "Alice"})

    documents = materialize([create])

    document = documents["h1"]
    assert document.id == "h1"
    assert document.fields == {"name": "Alice"}
    assert document.meta.author == AUTHOR
    assert document.meta.schema == SCHEMA_ID
    assert document.meta.deleted is False
    assert document.meta.edited is False
    assert document.meta.entries == [create]


def test_materialize_update_merges_fields_and_marks_edited() -> None:
    """UPDATE should shallow-merge fields over the current state."""
    records = [
        make_record(hash_="h1", seq_num=1, action="create", fields={"name": "Alice", "age": 30}),
        make_record(hash_="h2", seq_num=2, action="update", fields={"age": 31}, previous=["h1"]),
    ]

    document = materialize(records)["h1"]

    assert document.fields == {"name": "Alice", "age": 31}
    assert document.meta.edited is True
    assert [entry.operation_id for entry in document.meta.entries] == ["h1", "h2"]


def test_materialize_successive_updates_accumulate_fields() -> None:
    """Each UPDATE should add to the field map and to the history."""
    records = [
        make_record(hash_="x", seq_num=1, action="create", fields={}),
        make_record(hash_="u1", seq_num=2, action="update", fields={"a": 1}, previous=["x"]),
        make_record(hash_="u2", seq_num=3, action="update", fields={"b": 2}, previous=["u1"]),
    ]

    document = materialize(records)["x"]

    assert document.fields == {"a": 1, "b": 2}
    assert document.meta.edited is True
    assert len(document.meta.entries) == 3


def test_materialize_delete_clears_fields_and_marks_deleted() -> None:
    """DELETE should tombstone the document and drop its fields."""
    records = [
        make_record(hash_="h1", seq_num=1, action="create", fields={"name": "Alice"}),
        make_record(hash_="h2", seq_num=2, action="delete", previous=["h1"]),
    ]

    document = materialize(records)["h1"]

    assert document.fields == {}
    assert document.meta.deleted is True
    assert document.meta.edited is False
    assert len(document.meta.entries) == 2


def test_materialize_skips_operations_after_delete() -> None:
    """Operations on a tombstone should leave no fields and no history."""
    records = [
        make_record(hash_="h1", seq_num=1, action="create", fields={"name": "Alice"}),
        make_record(hash_="h2", seq_num=2, action="delete", previous=["h1"]),
        make_record(hash_="h3", seq_num=3, action="update", fields={"name": "Zed"}, previous=["h2"]),
        make_record(hash_="h4", seq_num=4, action="update", fields={"name": "Zoe"}, previous=["h3"]),
    ]

    document = materialize(records)["h1"]

    assert document.fields == {}
    assert document.meta.edited is False
    assert [entry.operation_id for entry in document.meta.entries] == ["h1", "h2"]


def test_materialize_orders_records_by_seq_num() -> None:
    """Records should fold in sequence order regardless of input order."""
    records = [
        make_record(hash_="h3", seq_num=3, action="update", fields={"name": "Carol"}, previous=["h2"]),
        make_record(hash_="h1", seq_num=1, action="create", fields={"name": "Alice"}),
        make_record(hash_="h2", seq_num=2, action="update", fields={"name": "Bob"}, previous=["h1"]),
    ]

    document = materialize(records)["h1"]

    assert document.fields == {"name": "Carol"}
    assert [entry.seq_num for entry in document.meta.entries] == [1, 2, 3]


def test_materialize_keeps_documents_in_creation_order() -> None:
    """Documents should be returned in order of their first CREATE."""
    records = [
        make_record(hash_="b", seq_num=2, action="create", fields={"n": 2}, log_id=1),
        make_record(hash_="a", seq_num=1, action="create", fields={"n": 1}),
        make_record(hash_="u", seq_num=3, action="update", fields={"n": 3}, previous=["b"], log_id=1),
    ]

    documents = materialize(records)

    assert list(documents) == ["a", "b"]
    assert documents["b"].fields == {"n": 3}
    assert documents["a"].fields == {"n": 1}


def test_materialize_resolves_document_through_any_previous_operation() -> None:
    """An operation should attach to the document owning one of its tips."""
    records = [
        make_record(hash_="h1", seq_num=1, action="create", fields={"name": "Alice"}),
        make_record(hash_="h2", seq_num=2, action="update", fields={"name": "Bob"}, previous=["h1"]),
        make_record(
            hash_="h3",
            seq_num=3,
            action="update",
            fields={"mood": "ok"},
            previous=["unknown-tip", "h2"],
        ),
    ]

    document = materialize(records)["h1"]

    assert document.fields == {"name": "Bob", "mood": "ok"}


def test_materialize_rejects_duplicate_create_of_live_document() -> None:
    """A second CREATE for a live document id should fail the batch."""
    records = [
        make_record(hash_="h1", seq_num=1, action="create", fields={"name": "Alice"}),
        make_record(hash_="h1", seq_num=2, action="create", fields={"name": "Again"}),
    ]

    with pytest.raises(DuplicateCreateError) as exc_info:
        materialize(records)

    assert exc_info.value.document_id == "h1"


def test_materialize_ignores_duplicate_create_of_deleted_document() -> None:
    """A CREATE for a tombstoned id should be skipped."""
    records = [
        make_record(hash_="h1", seq_num=1, action="create", fields={"name": "Alice"}),
        make_record(hash_="h2", seq_num=2, action="delete", previous=["h1"]),
        make_record(hash_="h1", seq_num=3, action="create", fields={"name": "Again"}),
    ]

    document = materialize(records)["h1"]

    assert document.meta.deleted is True
    assert document.fields == {}


def test_materialize_rejects_unknown_action() -> None:
    """Actions other than create/update/delete should fail the batch."""
    records = [
        make_record(hash_="h1", seq_num=1, action="create", fields={"name": "Alice"}),
        make_record(hash_="h2", seq_num=2, action="rename", previous=["h1"]),
    ]

    with pytest.raises(UnhandledActionError) as exc_info:
        materialize(records)

    assert exc_info.value.action == "rename"


def test_materialize_rejects_operation_on_unknown_document() -> None:
    """An UPDATE whose tips belong to no seen document should fail."""
    records = [
        make_record(hash_="h2", seq_num=2, action="update", fields={"a": 1}, previous=["ghost"]),
    ]

    with pytest.raises(UnknownDocumentError) as exc_info:
        materialize(records)

    assert exc_info.value.operation_id == "h2"


def test_materialize_is_deterministic() -> None:
    """Folding the same batch twice should produce equal results."""
    records = [
        make_record(hash_="h1", seq_num=1, action="create", fields={"name": "Alice"}),
        make_record(hash_="h2", seq_num=2, action="update", fields={"name": "Bob"}, previous=["h1"]),
    ]

    assert materialize(records) == materialize(list(reversed(records)))
