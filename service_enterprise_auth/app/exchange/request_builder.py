"""
Assembles, encrypts and signs gateway requests.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Optional

from shared.errors import EncryptionFailedError, SigningFailedError
from shared.logging import get_logger

from .cipher import SignedExchangeCipher
from .encoding import b64encode_text, compact_json, encode_form, generate_order_id, sha512_hex
from .models import CallerIdentity, EnterpriseAuthRequest

BUSI_TYPE = "3060"
# 1: unified social credit code
KEY_TYPE = "1"


@dataclass(frozen=True)
class SignedExchangeRequest:
    order_id: str
    req_data: str
    signature: str
    merchant_no: str

    @property
    def envelope(self) -> Dict[str, str]:
        return {"reqData": self.req_data, "merNo": self.merchant_no, "signature": self.signature}

    def form_body(self) -> str:
        return encode_form(self.envelope)


class ExchangeRequestBuilder:
    """Build the signed ``reqData`` envelope for one verification."""

    def __init__(
        self,
        cipher: SignedExchangeCipher,
        merchant_no: str,
        *,
        clock: Callable[[], datetime] = datetime.now,
        order_id_factory: Optional[Callable[[datetime], str]] = None,
    ):
        self.cipher = cipher
        self.merchant_no = merchant_no
        self._clock = clock
        self._order_id_factory = order_id_factory or generate_order_id
        self.logger = get_logger("enterprise-auth.request_builder")

    def build(self, request: EnterpriseAuthRequest, identity: Optional[CallerIdentity] = None) -> SignedExchangeRequest:
        fields = self.assemble(request)
        fields["sensData"] = self.encrypt_sensitive(request)
        req_data, signature = self.sign(fields)

        self.logger.info(
            "Gateway request prepared",
            order_id=fields["orderId"],
            user_id=identity.user_id if identity else None,
            region_uid=identity.region_uid if identity else None,
        )
        return SignedExchangeRequest(
            order_id=fields["orderId"],
            req_data=req_data,
            signature=signature,
            merchant_no=self.merchant_no,
        )

    def assemble(self, request: EnterpriseAuthRequest) -> Dict[str, str]:
        """Plaintext business fields in wire order."""
        current = self._clock()
        fields = {
            "merNo": self.merchant_no,
            "busiType": BUSI_TYPE,
            "keyType": KEY_TYPE,
            "orderDate": f"{current:%Y%m%d}",
            "orderId": self._order_id_factory(current),
            "key": request.key,
        }
        for name, value in (
            ("accountBank", request.account_bank),
            ("accountProv", request.account_prov),
            ("accountCity", request.account_city),
            ("subBank", request.sub_bank),
        ):
            if value is not None:
                fields[name] = value
        return fields

    def encrypt_sensitive(self, request: EnterpriseAuthRequest) -> str:
        sensitive = {
            "accountNo": request.account_no,
            "keyName": request.key_name,
            "usrName": request.usr_name,
        }
        result = self.cipher.encrypt_field(compact_json(sensitive))
        if not result.ok or result.value is None:
            self.logger.error("Sensitive data encryption failed", status=result.status)
            raise EncryptionFailedError(
                f"Encryption failed: {result.message}",
                details={"status": result.status}
            )
        return result.value

    def sign(self, fields: Dict[str, str]) -> tuple:
        """Return ``(reqData, signature)`` for the assembled fields."""
        req_data = b64encode_text(compact_json(fields))
        result = self.cipher.sign({"reqData": sha512_hex(req_data)})
        if not result.ok or result.value is None:
            self.logger.error("Request signing failed", status=result.status)
            raise SigningFailedError(
                f"Signing failed: {result.message}",
                details={"status": result.status}
            )
        return req_data, result.value
