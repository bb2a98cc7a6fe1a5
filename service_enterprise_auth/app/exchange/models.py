"""
Request and response models for the enterprise verification exchange.

Wire and API field names are camelCase; the models use snake_case attributes
with camelCase aliases.
"""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class CallerIdentity:
    """Caller identity taken from a validated bearer token."""
    user_id: str
    workspace_id: Optional[str] = None
    region_uid: Optional[str] = None


class EnterpriseAuthRequest(CamelModel):
    """Caller-supplied business fields for one verification."""

    key: str = Field(min_length=5, max_length=20, description="Unified social credit code")
    account_bank: Optional[str] = None
    account_prov: Optional[str] = None
    account_city: Optional[str] = None
    sub_bank: Optional[str] = Field(default=None, min_length=12, max_length=12,
                                    description="Electronic interbank number")
    key_name: str = Field(description="Enterprise name")
    usr_name: str = Field(description="Legal person name")
    account_no: str = Field(min_length=1, max_length=32)

    @field_validator("key", "key_name", "usr_name", "account_no")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class SensitiveData(CamelModel):
    """PII sub-mapping carried encrypted in ``sensData``."""

    account_no: Optional[str] = None
    key_name: Optional[str] = None
    usr_name: Optional[str] = None


class GatewayResponse(CamelModel):
    """Decoded ``respData`` of a verified gateway reply."""

    resp_code: Optional[str] = None
    resp_msg: Optional[str] = None
    order_id: Optional[str] = None
    order_status: Optional[str] = None
    order_date: Optional[str] = None
    mer_no: Optional[str] = None
    busi_type: Optional[str] = None
    key_type: Optional[str] = None
    key: Optional[str] = None
    account_bank: Optional[str] = None
    account_prov: Optional[str] = None
    account_city: Optional[str] = None
    sub_bank: Optional[str] = None
    trans_amt: Optional[str] = None
    random_num: Optional[str] = None
    sens_data: Optional[SensitiveData] = None


class EnterpriseAuthResult(CamelModel):
    """Outcome returned to the caller."""

    resp_code: Optional[str] = None
    resp_msg: Optional[str] = None
    is_transaction_success: bool = False

    key: Optional[str] = None
    account_bank: Optional[str] = None
    account_prov: Optional[str] = None
    account_city: Optional[str] = None
    sub_bank: Optional[str] = None

    enterprise_name: Optional[str] = None
    legal_person_name: Optional[str] = None

    order_id: Optional[str] = None
    is_charged: bool = False

    trans_amt: Optional[str] = None
