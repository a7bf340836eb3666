"""
LLM Service for structuring OCR receipt text using an OpenAI chat model.

The model is asked for a JSON object ``{name, modifiers[], items[], notes?}``;
optional markdown code fences around the reply are removed before parsing.
The reply is passed through without enforcing the prompt's contract.
"""

import json
import logging
from typing import Any, Optional

import openai

from receipt_splitter.core.exceptions import ParseError, UpstreamError
from receipt_splitter.schemas import StructuredReceipt

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """
You are a receipt parsing assistant. Analyse the receipt text you are given and return a JSON object in exactly this format:
{
  "name": "Store Name",
  "modifiers": [
    {"type": "Modifier Type", "value": Value, "percentage": PercentageOfOrder}
  ],
  "items": [
    {"item": "Item Name", "price": PricePerItem, "qty": Quantity}
  ]
}

Store name:
Take the store's name from the receipt header or footer.

Modifiers:
Every price adjustment (service charge, discount, tip, tax) is a separate entry in "modifiers".
- type: the name of the adjustment, e.g. "Service Charge", "Discount".
- value: the absolute amount of the adjustment, without currency symbols.
- percentage: the percentage of the order total if the adjustment is expressed that way, otherwise null.
If tax is shown on the receipt, add it as a modifier with type "Tax".

Items:
- item: the item name, joined together if it is split across several lines.
- price: the price of ONE unit, without currency symbols. When a line shows the total for several units, divide it by the quantity.
- qty: the quantity as an integer. Watch for quantities on separate lines or written as "x2", "double" and similar.

Receipts can be irregular: prices may be printed per line or only as totals, adjustments may appear on sub-lines or as notes, totals may already include service charges. Adapt to the layout and infer missing information where you reasonably can.

If a field cannot be extracted with confidence, set it to null and explain why in a top-level "notes" field.
""".strip()

USER_PROMPT_TEMPLATE = (
    "Here is the extracted text from a receipt, "
    "ONLY PROVIDE ME THE JSON OBJECT NOTHING ELSE:\n\n {text}"
)


def strip_code_fences(content: str) -> str:
    """Remove surrounding ```json / ``` markers from a model reply."""
    cleaned = content.strip()
    cleaned = cleaned.removeprefix("```json")
    cleaned = cleaned.removeprefix("```")
    cleaned = cleaned.removesuffix("```")
    return cleaned.strip()


def parse_structured_reply(content: str) -> StructuredReceipt:
    """
    Parse a model reply into a StructuredReceipt.

    Values are passed through as-is; only the outer shape is checked.

    Raises:
        ParseError: reply is not JSON, or not a JSON object
    """
    cleaned = strip_code_fences(content)
    try:
        data: Any = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"JSON decode error: {e}, text: {cleaned[:200]}")
        raise ParseError(f"Failed to parse LLM response: {e}")

    if not isinstance(data, dict):
        raise ParseError("Failed to parse LLM response: expected a JSON object")

    return StructuredReceipt.model_validate(data)


class ReceiptStructurer:
    """Turns raw OCR text into a structured receipt via chat completion."""

    def __init__(self, client: Optional[openai.OpenAI], model: str = "gpt-4o"):
        self.client = client
        self.model = model

    def build_messages(self, raw_text: str) -> list:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": USER_PROMPT_TEMPLATE.format(text=raw_text)},
        ]

    def structure(self, raw_text: str) -> StructuredReceipt:
        """
        Structure receipt text with the LLM.

        Args:
            raw_text: Raw OCR text from receipt

        Returns:
            StructuredReceipt with the model's output, extra keys preserved
        """
        if self.client is None:
            raise UpstreamError("OpenAI client not initialized")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=self.build_messages(raw_text),
            )
        except openai.OpenAIError as e:
            logger.error(f"OpenAI request failed: {e}")
            raise UpstreamError(f"Failed to parse receipt with OpenAI API: {e}")

        if not response.choices:
            raise UpstreamError("No response from OpenAI")

        content = response.choices[0].message.content
        if not content:
            raise UpstreamError("Empty response from OpenAI")

        logger.debug(f"Raw OpenAI response: {content[:500]}")
        return parse_structured_reply(content)
