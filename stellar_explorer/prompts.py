from typing import Any

from stellar_explorer.schemas import CelestialInfo, IdentifyRequest

TEXT_SYSTEM_PROMPT = (
    "You are an expert astronomer providing detailed information about celestial objects. "
    "Your responses are fun, clear, and educational."
)

IMAGE_SYSTEM_PROMPT = (
    "You are an expert astronomer who identifies celestial objects from images. "
    "Provide detailed, accurate information in a fun and educational way."
)

IMAGE_USER_PROMPT = (
    "Please identify this celestial object and provide comprehensive information about it."
)

TOOL_NAME = "provide_celestial_info"
TOOL_DESCRIPTION = "Provide structured information about a celestial object"


def text_user_prompt(query: str) -> str:
    return (
        f"Tell me everything about {query}. "
        "Provide detailed information about this celestial object."
    )


def build_text_messages(query: str) -> list[dict[str, Any]]:
    return [
        {"role": "system", "content": TEXT_SYSTEM_PROMPT},
        {"role": "user", "content": text_user_prompt(query)},
    ]


def build_image_messages(image: str) -> list[dict[str, Any]]:
    return [
        {"role": "system", "content": IMAGE_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": IMAGE_USER_PROMPT},
                {"type": "image_url", "image_url": {"url": image}},
            ],
        },
    ]


def build_messages(request: IdentifyRequest) -> list[dict[str, Any]]:
    if request.type == "image":
        return build_image_messages(request.image or "")
    return build_text_messages(request.query or "")


def celestial_info_tool() -> dict[str, Any]:
    """Function definition the model is forced to fill in.

    Built from ``CelestialInfo`` so the schema sent upstream and the
    validation applied to the answer cannot drift apart.
    """
    properties = {
        name: {"type": "string", "description": field.description or name}
        for name, field in CelestialInfo.model_fields.items()
    }
    return {
        "type": "function",
        "function": {
            "name": TOOL_NAME,
            "description": TOOL_DESCRIPTION,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": list(properties),
                "additionalProperties": False,
            },
        },
    }


def forced_tool_choice() -> dict[str, Any]:
    return {"type": "function", "function": {"name": TOOL_NAME}}
