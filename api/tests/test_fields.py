import pytest
from pydantic import ValidationError

from contractdesk.fields import (
    DEFAULT_SIZES,
    MAX_HEIGHT,
    MAX_WIDTH,
    MIN_SIZES,
    Field,
    FieldType,
    FieldValidation,
    Position,
    Size,
    clamp_size,
)


def test_every_type_has_sizes():
    for field_type in FieldType:
        min_w, min_h = MIN_SIZES[field_type]
        width, height = DEFAULT_SIZES[field_type]
        assert width >= min_w and height >= min_h


def test_field_below_minimum_is_rejected():
    with pytest.raises(ValidationError):
        Field(type=FieldType.SIGNATURE, size=Size(width=100, height=30))


def test_negative_position_is_rejected():
    with pytest.raises(ValidationError):
        Field(type=FieldType.TEXT, position=Position(x=-1, y=0), size=Size(width=60, height=20))


def test_clamp_size_respects_min_and_max():
    assert clamp_size(FieldType.SIGNATURE, 10, 1000) == (150.0, MAX_HEIGHT)
    assert clamp_size(FieldType.TEXT, 900, 30) == (MAX_WIDTH, 30.0)


def test_merged_keeps_id_and_merges_nested_values():
    field = Field(type=FieldType.DATE, position=Position(x=10, y=20), size=Size(width=150, height=30))
    updated = field.merged({"position": {"x": 40}, "required": True, "id": "other"})
    assert updated.id == field.id
    assert updated.position == Position(x=40, y=20)
    assert updated.required is True
    assert field.position.x == 10


def test_merged_revalidates():
    field = Field(type=FieldType.NAME, size=Size(width=150, height=30))
    with pytest.raises(ValidationError):
        field.merged({"size": {"width": 20}})


def test_record_shape():
    field = Field(
        type=FieldType.SIGNATURE,
        position=Position(x=120, y=80),
        size=Size(width=200, height=60),
        owner_id="7",
        name="signature_1",
        required=True,
    )
    record = field.to_record(3)
    assert record == {
        "contract_id": 3,
        "client_id": "7",
        "field_type": "signature",
        "field_name": "signature_1",
        "position_x": 120,
        "position_y": 80,
        "width": 200,
        "height": 60,
        "is_required": True,
    }
    loaded = Field.from_record(record, field_id="field_9")
    assert loaded.id == "field_9"
    assert loaded.owner_id == "7"
    assert loaded.placeholder is None


def test_validation_rules():
    with pytest.raises(ValidationError):
        FieldValidation(min_length=5, max_length=2)
    with pytest.raises(ValidationError):
        FieldValidation(pattern="(")
    assert FieldValidation(pattern=r"^\d+$").pattern == r"^\d+$"
