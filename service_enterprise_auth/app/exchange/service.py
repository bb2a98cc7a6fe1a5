"""
End-to-end enterprise verification exchange.
"""

import time
from typing import Optional

import httpx

from shared.errors import ConfigurationError, ExchangeError, GatewayResponseError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from .cipher import RsaExchangeCipher, SignedExchangeCipher
from .client import GatewayClient
from .models import CallerIdentity, EnterpriseAuthRequest, EnterpriseAuthResult, GatewayResponse
from .request_builder import ExchangeRequestBuilder
from .response_processor import ExchangeResponseProcessor

SUCCESS_RESP_CODE = "00000000"
CHARGED_ORDER_STATUS = "0000"


class EnterpriseAuthExchange:
    """Build, sign, submit and verify one enterprise verification."""

    def __init__(
        self,
        builder: ExchangeRequestBuilder,
        client: GatewayClient,
        processor: ExchangeResponseProcessor,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.builder = builder
        self.client = client
        self.processor = processor
        self.metrics = metrics
        self.logger = get_logger("enterprise-auth.exchange")

    @classmethod
    def from_config(
        cls,
        config,
        *,
        cipher: Optional[SignedExchangeCipher] = None,
        metrics: Optional[MetricsCollector] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "EnterpriseAuthExchange":
        if not config.merchant_no:
            raise ConfigurationError("Merchant number is not configured")
        if cipher is None:
            cipher = RsaExchangeCipher.from_directory(config.secss_config_path, config.secss_key_password)

        return cls(
            ExchangeRequestBuilder(cipher, config.merchant_no),
            GatewayClient(config.unionpay_3060_api, timeout=config.gateway_timeout_seconds, transport=transport),
            ExchangeResponseProcessor(cipher),
            metrics=metrics,
        )

    async def run(self, request: EnterpriseAuthRequest, identity: CallerIdentity) -> EnterpriseAuthResult:
        signed = self.builder.build(request, identity)
        self.logger.info(
            "Submitting enterprise verification",
            order_id=signed.order_id,
            user_id=identity.user_id,
            region_uid=identity.region_uid,
        )

        start_time = time.time()
        try:
            body = await self.client.post_form(signed.form_body())
        except ExchangeError:
            self._observe_gateway(start_time, "error")
            raise
        self._observe_gateway(start_time, "ok")

        response = self.processor.process(body)
        result = self.to_result(request, response)

        self.logger.info(
            "Enterprise verification completed",
            order_id=result.order_id,
            resp_code=result.resp_code,
            success=result.is_transaction_success,
        )
        if self.metrics:
            self.metrics.record_business_event(
                "exchange_succeeded" if result.is_transaction_success else "exchange_business_failure"
            )
        return result

    @staticmethod
    def to_result(request: EnterpriseAuthRequest, response: GatewayResponse) -> EnterpriseAuthResult:
        """Map a verified reply to the caller-facing result.

        A non-success code is a normal business outcome: the gateway did not
        confirm the identity fields, so the caller's own values are echoed.
        """
        is_charged = response.order_status == CHARGED_ORDER_STATUS

        if response.resp_code == SUCCESS_RESP_CODE:
            if response.sens_data is None:
                raise GatewayResponseError("Successful reply carries no sensitive data")
            return EnterpriseAuthResult(
                resp_code=response.resp_code,
                resp_msg=response.resp_msg,
                is_transaction_success=True,
                key=response.key,
                account_bank=response.account_bank,
                account_prov=response.account_prov,
                account_city=response.account_city,
                sub_bank=response.sub_bank,
                enterprise_name=response.sens_data.key_name,
                legal_person_name=response.sens_data.usr_name,
                order_id=response.order_id,
                is_charged=is_charged,
                trans_amt=response.trans_amt,
            )

        return EnterpriseAuthResult(
            resp_code=response.resp_code,
            resp_msg=response.resp_msg,
            is_transaction_success=False,
            key=request.key,
            account_bank=request.account_bank,
            account_prov=request.account_prov,
            account_city=request.account_city,
            sub_bank=request.sub_bank,
            enterprise_name=request.key_name,
            legal_person_name=request.usr_name,
            order_id=response.order_id,
            is_charged=is_charged,
        )

    def _observe_gateway(self, start_time: float, outcome: str) -> None:
        if self.metrics:
            self.metrics.observe_gateway_request(outcome, time.time() - start_time)
