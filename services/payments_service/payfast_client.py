"""
PayFast client: request signing, notification verification, checkout URLs.

Signature canonicalization
--------------------------
1. Drop the ``signature`` field.
2. Order fields by PayFast's documented attribute order; fields PayFast does
   not document follow, sorted by name.
3. Join ``key=quote_plus(value.strip())`` pairs with ``&``.
4. Append ``&passphrase=...`` when a passphrase is configured.
5. MD5 the result (lowercase hex).

The ordering is fixed so a field set produces one signature no matter how
the caller's dict happens to be ordered.
"""

import hashlib
import hmac
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence
from urllib.parse import quote_plus

import httpx
from libs.common.config import Settings, get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)

SIGNATURE_FIELD = "signature"

# Attribute order of the checkout (redirect) form.
CHECKOUT_FIELD_ORDER: tuple[str, ...] = (
    "merchant_id",
    "merchant_key",
    "return_url",
    "cancel_url",
    "notify_url",
    "name_first",
    "name_last",
    "email_address",
    "cell_number",
    "m_payment_id",
    "amount",
    "item_name",
    "item_description",
    "custom_int1",
    "custom_int2",
    "custom_int3",
    "custom_int4",
    "custom_int5",
    "custom_str1",
    "custom_str2",
    "custom_str3",
    "custom_str4",
    "custom_str5",
    "email_confirmation",
    "confirmation_address",
    "payment_method",
)

# Attribute order of an ITN (instant transaction notification) post.
NOTIFY_FIELD_ORDER: tuple[str, ...] = (
    "m_payment_id",
    "pf_payment_id",
    "payment_status",
    "item_name",
    "item_description",
    "amount_gross",
    "amount_fee",
    "amount_net",
    "custom_str1",
    "custom_str2",
    "custom_str3",
    "custom_str4",
    "custom_str5",
    "custom_int1",
    "custom_int2",
    "custom_int3",
    "custom_int4",
    "custom_int5",
    "name_first",
    "name_last",
    "email_address",
    "merchant_id",
    "token",
    "billing_date",
)

COMPLETE = "COMPLETE"


def canonical_items(
    fields: Mapping[str, object], field_order: Sequence[str] = CHECKOUT_FIELD_ORDER
) -> list[tuple[str, str]]:
    """Fields (minus the signature) as ``(key, value)`` pairs in canonical order."""
    values = {
        key: "" if value is None else str(value)
        for key, value in fields.items()
        if key != SIGNATURE_FIELD
    }
    known = [key for key in field_order if key in values]
    extra = sorted(key for key in values if key not in field_order)
    return [(key, values[key]) for key in known + extra]


def param_string(
    fields: Mapping[str, object], field_order: Sequence[str] = CHECKOUT_FIELD_ORDER
) -> str:
    return "&".join(
        f"{key}={quote_plus(value.strip())}"
        for key, value in canonical_items(fields, field_order)
    )


def generate_signature(
    fields: Mapping[str, object],
    passphrase: Optional[str] = None,
    field_order: Sequence[str] = CHECKOUT_FIELD_ORDER,
) -> str:
    payload = param_string(fields, field_order)
    if passphrase:
        payload += f"&passphrase={quote_plus(passphrase.strip())}"
    return hashlib.md5(payload.encode("utf-8")).hexdigest()


def verify_signature(
    fields: Mapping[str, object],
    passphrase: Optional[str] = None,
    field_order: Sequence[str] = NOTIFY_FIELD_ORDER,
) -> bool:
    """Recompute over ``fields`` and compare with their ``signature`` field."""
    supplied = fields.get(SIGNATURE_FIELD)
    if not supplied:
        return False
    expected = generate_signature(fields, passphrase, field_order)
    return hmac.compare_digest(expected, str(supplied).strip().lower())


@dataclass
class CheckoutRequest:
    """Signed checkout form for redirecting the buyer to PayFast."""

    fields: dict[str, str]
    signature: str
    process_url: str

    @property
    def payment_url(self) -> str:
        query = param_string(self.fields)
        return f"{self.process_url}?{query}&{SIGNATURE_FIELD}={self.signature}"


class PayFastClient:
    """Merchant-configured PayFast helper."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.merchant_id = self.settings.PAYFAST_MERCHANT_ID
        self.merchant_key = self.settings.PAYFAST_MERCHANT_KEY
        self.passphrase = self.settings.PAYFAST_PASSPHRASE or None

    def build_checkout(self, fields: Mapping[str, object]) -> CheckoutRequest:
        """Add merchant credentials, drop blank values, and sign."""
        payload: dict[str, str] = {
            "merchant_id": self.merchant_id,
            "merchant_key": self.merchant_key,
        }
        for key, value in fields.items():
            if value is None or str(value).strip() == "":
                continue
            payload[key] = str(value).strip()
        ordered = dict(canonical_items(payload))
        return CheckoutRequest(
            fields=ordered,
            signature=generate_signature(ordered, self.passphrase),
            process_url=self.settings.payfast_process_url,
        )

    def verify_notification(self, fields: Mapping[str, object]) -> bool:
        return verify_signature(fields, self.passphrase)

    def merchant_matches(self, fields: Mapping[str, object]) -> bool:
        return str(fields.get("merchant_id") or "").strip() == self.merchant_id

    async def validate_with_gateway(self, fields: Mapping[str, object]) -> bool:
        """Ask PayFast to confirm it sent this notification.

        Bounded by PAYFAST_HTTP_TIMEOUT_SECONDS; a timeout or transport error
        counts as not confirmed.
        """
        body = param_string(fields, NOTIFY_FIELD_ORDER)
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.PAYFAST_HTTP_TIMEOUT_SECONDS
            ) as client:
                response = await client.post(
                    self.settings.payfast_validate_url,
                    content=body,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
        except httpx.HTTPError as e:
            logger.error(f"PayFast validation request failed: {e}")
            return False

        if response.status_code != 200:
            logger.error(
                f"PayFast validation returned {response.status_code}: {response.text}"
            )
            return False
        return response.text.strip() == "VALID"


def get_payfast_client() -> PayFastClient:
    return PayFastClient()
