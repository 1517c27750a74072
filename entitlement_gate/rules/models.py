from typing import Literal

from pydantic import BaseModel, Field


class StoreRules(BaseModel):
    backend: Literal["memory", "sqlite"] = "sqlite"
    timeout_seconds: float = Field(default=5.0, gt=0)

class ReconcilerRules(BaseModel):
    lock_timeout_seconds: float = Field(default=5.0, gt=0)
    max_retries: int = Field(default=3, ge=0)

class ReplayRules(BaseModel):
    enabled: bool = True
    dedupe_window_seconds: int = Field(default=86400, gt=0)

class CheckoutRules(BaseModel):
    default_product_id: str | None = None
    success_path: str = "/success"

class LookupRules(BaseModel):
    enabled: bool = True
    timeout_seconds: float = Field(default=2.0, gt=0)

class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)

class Rules(BaseModel):
    store: StoreRules = Field(default_factory=StoreRules)
    reconciler: ReconcilerRules = Field(default_factory=ReconcilerRules)
    replay: ReplayRules = Field(default_factory=ReplayRules)
    checkout: CheckoutRules = Field(default_factory=CheckoutRules)
    lookup: LookupRules = Field(default_factory=LookupRules)
    ops: OpsRules = Field(default_factory=OpsRules)
