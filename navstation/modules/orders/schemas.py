from pydantic import BaseModel


class OrderItem(BaseModel):
    id: int
    order_num: int


class OrderResult(BaseModel):
    success: bool
