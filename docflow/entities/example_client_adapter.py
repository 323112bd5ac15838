"""Example entity client adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseEntityClient and register the provider in EntityRecognizerFactory.
"""

import json
from typing import ClassVar

from docflow.entities.client_base import BaseEntityClient


class ExampleClientAdapter(BaseEntityClient):
    """Example adapter that returns a fixed, valid entity JSON.

    No network calls. Useful for local development and tests.
    """

    DEFAULT_RESPONSE: ClassVar[dict[str, object]] = {"entities": []}

    def complete_json(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object],
    ) -> str:
        _ = model, temperature, system_prompt, user_prompt, json_schema
        return json.dumps(self.DEFAULT_RESPONSE)
