"""Example extraction client adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseExtractionClient and register the provider in UnitExtractorFactory.
"""

import json
from typing import ClassVar

from rentroll.extraction.client_base import BaseExtractionClient


class ExampleClientAdapter(BaseExtractionClient):
    """Example adapter that returns a fixed, valid extraction JSON.

    No network calls. Useful for local development and tests.
    """

    DEFAULT_RESPONSE: ClassVar[dict[str, object]] = {
        "units": [
            {
                "unit_id": "1",
                "unit_address": "Vesterbrogade 12",
                "unit_zipcode": "1620",
                "unit_floor": "st",
                "unit_door": "tv",
                "size_sqm": 72,
                "rent_current": 9500,
                "tenant_name": None,
                "lease_start": None,
                "lease_end": None,
                "unit_status": "occupied",
            }
        ],
        "property": None,
    }

    def __init__(self, response: dict[str, object] | None = None) -> None:
        self._response = response if response is not None else self.DEFAULT_RESPONSE

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object],
    ) -> str:
        _ = model, temperature, system_prompt, user_prompt, json_schema
        return json.dumps(self._response)
