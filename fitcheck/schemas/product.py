from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field


# size label -> measurement name -> value (unit as printed on the source page)
SizeChart = Dict[str, Dict[str, float]]


class ProductData(BaseModel):
    name: Optional[str] = None
    brand: Optional[str] = None
    price: Optional[float] = None
    currency: Optional[str] = None
    image_url: Optional[str] = None
    sizes: Optional[List[str]] = None
    size_chart: Optional[SizeChart] = None
    description: Optional[str] = None
    material: Optional[str] = None
    category: Optional[str] = None


class ClothingMeasurements(BaseModel):
    size: Optional[str] = None
    measurements: Dict[str, float] = Field(default_factory=dict)
    fit: Optional[str] = None
    material: Optional[str] = None


class ClothingItem(BaseModel):
    id: str
    name: str
    category: str
    brand: Optional[str] = None
    source_url: str
    image_url: str
    price: Optional[float] = None
    currency: Optional[str] = None
    sizing_data: Dict = Field(default_factory=dict)
    metadata: Dict = Field(default_factory=dict)
    created_at: datetime


class ImportUrlRequest(BaseModel):
    url: str


class ImportUrlResponse(BaseModel):
    success: bool
    item: ClothingItem
    product_data: ProductData
    sizing_data: Dict
