"""Structured output shapes shared by the gateway and the decoders.

The same field and enum tuples declare the schema sent to Gemini and drive
the decoders in ``health.contracts``.
"""

REPORT_FIELDS = ("testName", "value", "unit", "status", "explanation")
REPORT_STATUSES = ("Normal", "Abnormal")

SYMPTOM_FIELDS = ("condition", "probability", "description", "recommendation", "severity")
SYMPTOM_SEVERITIES = ("Low", "Moderate", "High")
MAX_SYMPTOM_ASSESSMENTS = 3

SYMPTOM_FIELD_DESCRIPTIONS = {
    "condition": "Name of the potential condition",
    "probability": "Likelihood percentage or High/Medium/Low",
    "description": "Brief explanation of why this matches",
    "recommendation": "What the user should do next",
}


def _string_property(description: str | None = None, enum: tuple[str, ...] | None = None) -> dict:
    prop = {"type": "STRING"}
    if description:
        prop["description"] = description
    if enum:
        prop["format"] = "enum"
        prop["enum"] = list(enum)
    return prop


def _array_of_objects(properties: dict, required: tuple[str, ...]) -> dict:
    return {
        "type": "ARRAY",
        "items": {
            "type": "OBJECT",
            "properties": properties,
            "required": list(required),
        },
    }


def report_findings_schema() -> dict:
    properties = {field: _string_property() for field in REPORT_FIELDS}
    properties["status"] = _string_property(enum=REPORT_STATUSES)
    return _array_of_objects(properties, REPORT_FIELDS)


def symptom_assessments_schema() -> dict:
    properties = {
        field: _string_property(SYMPTOM_FIELD_DESCRIPTIONS.get(field))
        for field in SYMPTOM_FIELDS
    }
    properties["severity"] = _string_property(enum=SYMPTOM_SEVERITIES)
    return _array_of_objects(properties, SYMPTOM_FIELDS)
