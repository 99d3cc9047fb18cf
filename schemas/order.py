from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import List, Literal, Optional
from datetime import datetime


class LineItemCreate(BaseModel):
    ticker: str = Field(min_length=1)
    quantity: int = Field(gt=0)
    price: float = Field(default=0.0, ge=0)
    is_market_order: bool = False


class OrderCreate(BaseModel):
    client_id: str = Field(min_length=1)
    client_name: str = Field(min_length=1)
    client_account: str = ""
    operation_type: str = Field(min_length=1)
    status: Optional[str] = None  # defaults to the pending label
    market: Optional[str] = None
    term: Optional[str] = None
    notes: Optional[str] = None


class OrderCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order: OrderCreate
    line_items: List[LineItemCreate] = Field(default_factory=list, alias="lineItems")


class OrderUpdate(BaseModel):
    client_name: Optional[str] = None
    client_account: Optional[str] = None
    operation_type: Optional[str] = None
    status: Optional[str] = None
    market: Optional[str] = None
    term: Optional[str] = None
    notes: Optional[str] = None


class StatusUpdate(BaseModel):
    status: str = Field(min_length=1)
    observation: Optional[str] = None


class ObservationCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(min_length=1)
    author_id: Optional[str] = Field(default=None, alias="authorId")
    author_name: Optional[str] = Field(default=None, alias="authorName")


class LineItemOut(BaseModel):
    id: str
    order_id: str
    ticker: str
    quantity: int
    price: float
    is_market_order: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def total(self) -> Optional[float]:
        # Market orders have no meaningful total
        if self.is_market_order:
            return None
        return self.price * self.quantity


class ObservationOut(BaseModel):
    id: str
    order_id: str
    text: str
    author_id: Optional[str] = None
    author_name: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: str
    client_id: str
    client_name: str
    client_account: str
    operation_type: str
    status: str
    market: Optional[str] = None
    term: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    line_items: List[LineItemOut] = []

    model_config = ConfigDict(from_attributes=True)


class OrderDetailOut(OrderOut):
    observations: List[ObservationOut] = []
    state: Optional[str] = None
    suggested_transitions: List[str] = []


# Orchestration payloads (dashboard forms post camelCase keys)

class IndividualOrderIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_id: str = Field(alias="clientId", min_length=1)
    asset_id: str = Field(alias="assetId", min_length=1)
    operation_type: Literal["buy", "sell"] = Field(alias="operationType")
    quantity: int = Field(gt=0)
    price: float = Field(default=0.0, ge=0)
    is_market_order: bool = Field(default=False, alias="isMarketOrder")
    market: str
    notes: Optional[str] = None


class BulkOrderLine(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    asset_id: str = Field(alias="assetId", min_length=1)
    operation_type: Literal["buy", "sell"] = Field(alias="operationType")
    quantity: int = Field(gt=0)
    price: float = Field(ge=0)
    market: str
    term: Optional[str] = None


class BulkOrderIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_id: str = Field(alias="clientId", min_length=1)
    orders: List[BulkOrderLine]
    notes: Optional[str] = None


class SwapLeg(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    asset_id: str = Field(alias="assetId", min_length=1)
    quantity: int = Field(gt=0)
    price: float = Field(ge=0)
    market: str
    term: Optional[str] = None


class SwapOrderIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_id: str = Field(alias="clientId", min_length=1)
    sell_order: SwapLeg = Field(alias="sellOrder")
    buy_order: SwapLeg = Field(alias="buyOrder")
    notes: Optional[str] = None


class SendToMarketIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_ids: List[str] = Field(alias="orderIds")
