from __future__ import annotations

import base64
import json
from datetime import date
from pathlib import Path
from typing import Optional
from urllib.error import URLError
from urllib.request import Request, urlopen

from pydantic import ValidationError

from config import get_settings
from models import KnownCategory
from schemas import ReceiptAnalysis

MIME_BY_EXTENSION = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "heic": "image/heic",
    "heif": "image/heif",
}

_CATEGORY_LIST = ", ".join(f'"{member.value}"' for member in KnownCategory)

SYSTEM_PROMPT = f"""You are a receipt analysis assistant. Extract the following details from the receipt image:
- merchantName: The name of the merchant/store.
- date: The date of transaction in YYYY-MM-DD format. If not found, use today's date.
- amount: The TOTAL amount paid (including tax). This is the final amount the customer paid. Return as a string number (e.g. "12.50").
- tax: The tax amount if listed on the receipt. Return as a string number (e.g. "0.63"). If tax is not visible, return null or omit this field.
- category: Categorize based on business context. Predict best fit even if not explicit. Categories: {_CATEGORY_LIST}.
- description: A detailed breakdown including line items if visible on the receipt. For example: "Lunch ($15.00), Coffee ($5.00)".

Return ONLY a valid JSON object matching this structure. Do not include markdown formatting."""


def mime_type_for(path: Path) -> str:
    return MIME_BY_EXTENSION.get(path.suffix.lower().lstrip("."), "image/jpeg")


def image_data_url(path: Path) -> str:
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime_type_for(path)};base64,{encoded}"


class ReceiptAnalyzer:
    def __init__(self, today: Optional[date] = None) -> None:
        self.settings = get_settings()
        self.today = today

    def _request_body(self, data_url: str) -> dict[str, object]:
        return {
            "model": self.settings.vision_model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": "Analyze this receipt."},
                        {"type": "image_url", "image_url": {"url": data_url}},
                    ],
                },
            ],
            "response_format": {"type": "json_object"},
        }

    def _complete(self, body: dict[str, object]) -> str:
        if not self.settings.vision_api_key:
            raise RuntimeError("Receipt analysis is not configured")
        req = Request(
            self.settings.vision_api_url,
            data=json.dumps(body).encode("utf-8"),
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
                "Authorization": f"Bearer {self.settings.vision_api_key}",
            },
            method="POST",
        )
        try:
            with urlopen(req, timeout=self.settings.vision_timeout_secs) as resp:
                payload = json.loads(resp.read().decode("utf-8"))
        except (URLError, TimeoutError, json.JSONDecodeError) as exc:
            raise RuntimeError("Failed to reach the receipt analysis service") from exc

        try:
            content = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise RuntimeError("Unexpected receipt analysis response") from exc
        if not content:
            raise RuntimeError("Empty receipt analysis response")
        return content

    def analyze(self, image_path: Path) -> ReceiptAnalysis:
        content = self._complete(self._request_body(image_data_url(image_path)))
        try:
            result = ReceiptAnalysis.model_validate(json.loads(content))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise RuntimeError("Receipt analysis returned unreadable data") from exc
        if result.date is None:
            result.date = self.today or date.today()
        return result
