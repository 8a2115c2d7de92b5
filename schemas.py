import datetime as dt
from datetime import date, datetime
from typing import Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from categories import category_label
from models import Owner
from money import parse_amount
from periods import Period, resolve_period


def _money_fields_to_cents(data: Any) -> Any:
    if not isinstance(data, dict):
        return data
    data = dict(data)
    if "amount" in data and "amount_cents" not in data:
        data["amount_cents"] = parse_amount(data.pop("amount"))
    if "tax" in data and "tax_cents" not in data:
        tax = data.pop("tax")
        data["tax_cents"] = None if tax in (None, "") else parse_amount(tax)
    return data


class ReportFilter(BaseModel):
    owner: Optional[Owner] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    year: Optional[int] = Field(default=None, ge=1970, le=3000)
    month: Optional[int] = Field(default=None, ge=1, le=12)
    category: Optional[str] = None
    search: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _split_year_month(cls, data: Any) -> Any:
        # month may arrive as "YYYY-MM"
        if isinstance(data, dict) and isinstance(data.get("month"), str):
            raw = data["month"].strip()
            if len(raw) == 7 and raw[4] == "-":
                data = dict(data)
                data.setdefault("year", None)
                if data["year"] in (None, ""):
                    data["year"] = raw[:4]
                data["month"] = raw[5:]
        return data

    @field_validator("category", "search")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _check_period(self) -> "ReportFilter":
        self.period()
        return self

    def period(self) -> Period:
        return resolve_period(self.start_date, self.end_date, self.year, self.month)


class ReceiptIn(BaseModel):
    owner: Owner = Owner.user1
    image_url: Optional[str] = Field(default=None, max_length=500)
    merchant_name: str = Field(..., min_length=1, max_length=200)
    date: date
    amount_cents: int = Field(..., ge=0)
    tax_cents: Optional[int] = Field(default=None, ge=0)
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _money_to_cents(cls, data: Any) -> Any:
        return _money_fields_to_cents(data)

    @field_validator("merchant_name")
    @classmethod
    def _strip_merchant(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Merchant name is required")
        return value

    @field_validator("category")
    @classmethod
    def _normalize_category(cls, value: str) -> str:
        return category_label(value)

    @model_validator(mode="after")
    def _tax_within_amount(self) -> "ReceiptIn":
        if self.tax_cents is not None and self.tax_cents > self.amount_cents:
            raise ValueError("Tax cannot exceed the total amount")
        return self


class ReceiptUpdate(BaseModel):
    owner: Optional[Owner] = None
    image_url: Optional[str] = Field(default=None, max_length=500)
    merchant_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    date: Optional[dt.date] = None
    amount_cents: Optional[int] = Field(default=None, ge=0)
    tax_cents: Optional[int] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _money_to_cents(cls, data: Any) -> Any:
        return _money_fields_to_cents(data)

    @field_validator("category")
    @classmethod
    def _normalize_category(cls, value: Optional[str]) -> Optional[str]:
        return category_label(value) if value is not None else None

    @field_validator("merchant_name")
    @classmethod
    def _strip_merchant(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("Merchant name is required")
        return value


class ReceiptOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner: Owner
    image_url: Optional[str]
    merchant_name: str
    date: date
    amount_cents: int
    tax_cents: Optional[int]
    category: str
    description: Optional[str]
    created_at: datetime


class ReceiptAnalysis(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    merchant_name: str = Field(
        validation_alias=AliasChoices("merchant_name", "merchantName")
    )
    date: Optional[dt.date] = None
    amount: str
    tax: Optional[str] = None
    category: str = "Other"
    description: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def _unreadable_date_to_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return dt.date.fromisoformat(value.strip()[:10])
            except ValueError:
                return None
        return value

    @field_validator("amount", "tax", mode="before")
    @classmethod
    def _money_as_string(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return f"{parse_amount(value) / 100:.2f}"

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value: Any) -> str:
        if not value:
            return "Other"
        return category_label(str(value), fuzzy=True)


class AnalyzeIn(BaseModel):
    image_url: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("image_url", "imageUrl")
    )


class BucketOut(BaseModel):
    total_cents: int
    tax_cents: int
    pre_tax_cents: int
    count: int


class MonthBucketOut(BucketOut):
    month: str


class CategoryBucketOut(BucketOut):
    category: str


class MonthCategoriesOut(BaseModel):
    month: str
    categories: list[CategoryBucketOut]


class SummaryOut(BaseModel):
    total_expenses: int
    total_tax: int
    total_pre_tax: int
    receipt_count: int
    top_category: Optional[str]
    monthly_breakdown: list[MonthBucketOut]
    category_breakdown: list[CategoryBucketOut]
    monthly_category_breakdown: list[MonthCategoriesOut]


class RestoreIn(BaseModel):
    receipts: list[dict[str, Any]]
    owner: Optional[Owner] = Field(
        default=None, validation_alias=AliasChoices("owner", "userId")
    )
