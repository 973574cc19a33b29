from pydantic import BaseModel, Field


class BannerRequest(BaseModel):
    # Image reference or data URL; null clears the banner
    banner: str | None = None


class BannerResponse(BaseModel):
    banner: str | None = None


class InvoiceSettingsSchema(BaseModel):
    logo_url: str | None = None
    signature_url: str | None = None
    company_name: str = ""
    company_address: str = ""
    bank_details: str = ""
    footer_note: str = ""
    owner_name: str = ""


class UpdateInvoiceSettingsRequest(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    logo_url: str | None = None
    signature_url: str | None = None
    company_name: str | None = Field(None, max_length=200)
    company_address: str | None = None
    bank_details: str | None = None
    footer_note: str | None = None
    owner_name: str | None = Field(None, max_length=200)


class TopProduct(BaseModel):
    product_id: str
    name: str
    total_sold: int


class StatsResponse(BaseModel):
    total_orders: int
    orders_by_status: dict[str, int]
    pending: int
    awaiting_review: int
    shipped: int
    cancelled: int
    revenue: float
    total_users: int
    total_products: int
    top_products: list[TopProduct]
