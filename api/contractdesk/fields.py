"""Placed field model: type tables, validation and the persisted record shape."""

from __future__ import annotations

import re
import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field as PydField, model_validator


class FieldType(str, Enum):
    TEXT = "text"
    SIGNATURE = "signature"
    DATE = "date"
    CHECKBOX = "checkbox"
    NAME = "name"


class DocumentKind(str, Enum):
    HTML = "html"
    PDF = "pdf"
    IMAGE = "image"


MAX_WIDTH = 500.0
MAX_HEIGHT = 200.0

MIN_SIZES: dict[FieldType, tuple[float, float]] = {
    FieldType.TEXT: (50.0, 20.0),
    FieldType.SIGNATURE: (150.0, 40.0),
    FieldType.DATE: (100.0, 25.0),
    FieldType.CHECKBOX: (20.0, 20.0),
    FieldType.NAME: (100.0, 25.0),
}

DEFAULT_SIZES: dict[FieldType, tuple[float, float]] = {
    FieldType.TEXT: (200.0, 40.0),
    FieldType.SIGNATURE: (200.0, 60.0),
    FieldType.DATE: (150.0, 30.0),
    FieldType.CHECKBOX: (20.0, 20.0),
    FieldType.NAME: (150.0, 30.0),
}

FIELD_LABELS: dict[FieldType, str] = {
    FieldType.TEXT: "Text Field",
    FieldType.SIGNATURE: "Signature",
    FieldType.DATE: "Date Field",
    FieldType.CHECKBOX: "Checkbox",
    FieldType.NAME: "Full Name",
}

for _table in (MIN_SIZES, DEFAULT_SIZES, FIELD_LABELS):
    _missing = set(FieldType) - set(_table)
    if _missing:
        raise RuntimeError(f"field type table incomplete: {sorted(t.value for t in _missing)}")


def min_size(field_type: FieldType) -> tuple[float, float]:
    return MIN_SIZES[FieldType(field_type)]


def clamp_size(field_type: FieldType, width: float, height: float) -> tuple[float, float]:
    min_w, min_h = min_size(field_type)
    return (
        max(min_w, min(MAX_WIDTH, float(width))),
        max(min_h, min(MAX_HEIGHT, float(height))),
    )


def new_field_id() -> str:
    return f"field_{uuid.uuid4().hex}"


class Position(BaseModel):
    x: float = 0.0
    y: float = 0.0


class Size(BaseModel):
    width: float
    height: float


class FieldValidation(BaseModel):
    min_length: Optional[int] = PydField(default=None, ge=0)
    max_length: Optional[int] = PydField(default=None, ge=0)
    pattern: Optional[str] = None

    @model_validator(mode="after")
    def _check(self):
        if self.min_length is not None and self.max_length is not None and self.min_length > self.max_length:
            raise ValueError("min_length must not exceed max_length")
        if self.pattern:
            try:
                re.compile(self.pattern)
            except re.error as exc:
                raise ValueError(f"invalid pattern: {exc}") from exc
        return self


class FieldStyling(BaseModel):
    font_size: int = 14
    font_weight: str = "normal"
    border_width: int = 1
    border_color: Optional[str] = None


class Field(BaseModel):
    id: str = PydField(default_factory=new_field_id)
    type: FieldType
    position: Position = PydField(default_factory=Position)
    size: Size
    owner_id: Optional[str] = None
    name: str = ""
    required: bool = False
    placeholder: Optional[str] = None
    validation: Optional[FieldValidation] = None
    styling: Optional[FieldStyling] = None

    @model_validator(mode="after")
    def _check_geometry(self):
        min_w, min_h = min_size(self.type)
        if self.size.width < min_w or self.size.height < min_h:
            raise ValueError(
                f"{self.type.value} field must be at least {min_w:g}x{min_h:g}, "
                f"got {self.size.width:g}x{self.size.height:g}"
            )
        if self.position.x < 0 or self.position.y < 0:
            raise ValueError("field position must be non-negative")
        return self

    def merged(self, changes: dict) -> "Field":
        """Return a re-validated copy with ``changes`` merged in (nested dicts merge too)."""
        data = self.model_dump()
        for key, value in changes.items():
            if isinstance(value, BaseModel):
                value = value.model_dump()
            if isinstance(value, dict) and isinstance(data.get(key), dict):
                data[key] = {**data[key], **value}
            else:
                data[key] = value
        data["id"] = self.id
        return Field.model_validate(data)

    def to_record(self, contract_id) -> dict:
        record = {
            "contract_id": contract_id,
            "field_type": self.type.value,
            "field_name": self.name,
            "position_x": self.position.x,
            "position_y": self.position.y,
            "width": self.size.width,
            "height": self.size.height,
            "is_required": self.required,
        }
        if self.owner_id is not None:
            record["client_id"] = self.owner_id
        if self.placeholder is not None:
            record["placeholder"] = self.placeholder
        return record

    @classmethod
    def from_record(cls, record: dict, field_id: Optional[str] = None) -> "Field":
        return cls(
            id=field_id or str(record.get("id") or new_field_id()),
            type=FieldType(record["field_type"]),
            position=Position(x=record["position_x"], y=record["position_y"]),
            size=Size(width=record["width"], height=record["height"]),
            owner_id=record.get("client_id"),
            name=record.get("field_name") or "",
            required=bool(record.get("is_required", False)),
            placeholder=record.get("placeholder"),
        )
