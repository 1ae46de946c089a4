"""Output schemas handed to the structured extraction service."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class PowerRating(BaseModel):
    """Electrical rating of a single product page."""

    product_name: str = Field(description="Name of the product")
    watts: float = Field(description="Power rating of the product in watts")
    volts: float = Field(description="Voltage of the product in volts")
    amps: float = Field(description="Amperage of the product in amps")
    url: str = Field(description="URL of the product page")


class ProductName(BaseModel):
    product_name: str


class RetailerName(BaseModel):
    retailer: str


class ProductImage(BaseModel):
    url: str
    alt: str


class Review(BaseModel):
    rating: float = Field(ge=1, le=5)
    comment: str
    author: str


class ReviewBatch(BaseModel):
    reviews: List[Review] = Field(min_length=5, max_length=5)


class Retailer(BaseModel):
    retailer: str
    country: str
    price: str
    url: str


class Specification(BaseModel):
    label: str
    value: str


class FAQ(BaseModel):
    question: str
    answer: str


class ProductRecord(BaseModel):
    """Normalized product record assembled from multi-source evidence."""

    name: str
    description: str
    image: Optional[ProductImage] = None
    ratings: float = Field(ge=0, le=5)
    reviews: List[Review] = Field(default_factory=list)
    where_to_buy: List[Retailer] = Field(default_factory=list)
    specifications: List[Specification] = Field(default_factory=list)
    faqs: List[FAQ] = Field(default_factory=list)
