"""Natural language to SQL translation.

The pipeline only produces SQL text. Running it goes through the normal query
path so generated and literal queries share execution and error handling.
"""

from __future__ import annotations

import json
import logging

from querydesk_backend.app.services.cache.schema_cache import NO_TABLE_MESSAGE, has_schema
from querydesk_backend.app.services.errors import MalformedReplyError, NoDatasetError
from querydesk_backend.app.services.translation.base import Translator

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """Convert this natural language query to SQL.

Database Schema:
{schema}

Natural Language Query: {question}

You must respond with ONLY a JSON object in this exact format:
{{"sql": "SELECT ... FROM <table> WHERE ..."}}

Do not include any other text, explanations, or markdown formatting. Only return the JSON object."""


def build_prompt(question: str, schema_text: str) -> str:
    return PROMPT_TEMPLATE.format(schema=schema_text, question=question)


def parse_reply(reply: str) -> str:
    """Extract the SQL from a ``{"sql": "..."}`` reply.

    Anything else (prose around the object, code fences, extra or missing
    fields, a blank query) is rejected rather than repaired.

    Raises:
        MalformedReplyError: If the reply is not exactly the expected object
    """
    try:
        data = json.loads(reply)
    except json.JSONDecodeError as e:
        raise MalformedReplyError(str(e), body=reply) from e

    if not isinstance(data, dict):
        raise MalformedReplyError("reply is not a JSON object", body=reply)
    if set(data) != {"sql"}:
        raise MalformedReplyError(
            f"expected exactly one field 'sql', got {sorted(data)}", body=reply
        )
    sql = data["sql"]
    if not isinstance(sql, str) or not sql.strip():
        raise MalformedReplyError("field 'sql' is not a non-empty string", body=reply)
    return sql


class TranslationPipeline:
    """Turns a question plus a schema description into executable SQL."""

    def __init__(self, translator: Translator) -> None:
        self.translator = translator

    def translate(self, question: str, schema_text: str) -> str:
        """
        Generate SQL for ``question``.

        Raises:
            NoDatasetError: If the schema is the no-table sentinel
            UpstreamError: If the translation call fails
            MalformedReplyError: If the reply does not parse
        """
        if not has_schema(schema_text):
            raise NoDatasetError(NO_TABLE_MESSAGE)

        reply = self.translator.complete(build_prompt(question, schema_text))
        sql = parse_reply(reply)
        logger.info("Generated SQL for question (%s chars)", len(question))
        return sql
